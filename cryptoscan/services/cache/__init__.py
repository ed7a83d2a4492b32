"""
Cache module for CryptoScan.

TTL result cache for scan, metrics and candle payloads, with an optional
Redis tier.
"""

from cryptoscan.services.cache.redis_client import close_redis, init_redis
from cryptoscan.services.cache.result_cache import CacheEntry, CacheKey, ResultCache

__all__ = [
    "CacheEntry",
    "CacheKey",
    "ResultCache",
    "init_redis",
    "close_redis",
]

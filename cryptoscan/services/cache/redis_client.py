"""
Redis connection for the shared result cache tier.

Redis is optional: when it is disabled or unreachable the result cache
runs memory-only.
"""

import logging
from typing import Optional

import redis.asyncio as redis
from redis.exceptions import RedisError

logger = logging.getLogger(__name__)


async def init_redis(redis_url: str) -> Optional[redis.Redis]:
    """
    Open a Redis connection and verify it with PING.
    Called on application startup. Returns None when Redis is unavailable.
    """
    client = redis.from_url(
        redis_url,
        encoding="utf-8",
        decode_responses=True,
    )
    try:
        # Test connection
        await client.ping()
    except (RedisError, OSError) as e:
        logger.warning(f"Redis connection failed: {e}. Using in-memory cache only.")
        await client.aclose()
        return None

    logger.info(f"Redis connected: {redis_url}")
    return client


async def close_redis(client: Optional[redis.Redis]) -> None:
    """Close a Redis connection opened by init_redis."""
    if client is not None:
        await client.aclose()
        logger.info("Redis connection closed")

"""
TTL result cache.

Keys are (symbol, timeframe) pairs. An entry younger than the TTL is
served as-is (the identical object, not a recomputation); anything older
is recomputed on the next request and overwritten. There is no eviction
beyond staleness.

Time comes from an injected clock so expiry is testable without sleeping.

When a Redis client is supplied, entries are mirrored there as JSON and
read through on a memory miss so several workers share recent results:

    {namespace}:{symbol}:{timeframe} -> {"savedAt": float, "payload": {...}}
"""

import json
import logging
import time
from dataclasses import dataclass
from typing import Awaitable, Callable, Generic, Optional, TypeVar

import redis.asyncio as redis
from pydantic import BaseModel
from redis.exceptions import RedisError

logger = logging.getLogger(__name__)

T = TypeVar("T")
CacheKey = tuple[str, str]
Clock = Callable[[], float]


@dataclass(frozen=True)
class CacheEntry(Generic[T]):
    """One cached payload and when it was stored (clock seconds)."""

    saved_at: float
    key: CacheKey
    payload: T


class ResultCache(Generic[T]):
    """
    In-memory TTL cache with an optional Redis mirror.

    Built once at startup and handed to the services that use it.
    """

    def __init__(
        self,
        ttl: float,
        clock: Clock = time.time,
        redis_client: Optional[redis.Redis] = None,
        namespace: str = "result",
        model: Optional[type[BaseModel]] = None,
    ):
        if ttl < 0:
            raise ValueError(f"ttl must be >= 0 (got {ttl})")
        self.ttl = ttl
        self.clock = clock
        self.namespace = namespace
        self.model = model
        # Redis payloads can only be decoded back into a pydantic model
        self._redis = redis_client if model is not None else None
        self._entries: dict[CacheKey, CacheEntry[T]] = {}

    def __len__(self) -> int:
        return len(self._entries)

    def _redis_key(self, key: CacheKey) -> str:
        symbol, timeframe = key
        return f"{self.namespace}:{symbol.upper()}:{timeframe}"

    def is_fresh(self, entry: CacheEntry) -> bool:
        return self.clock() - entry.saved_at < self.ttl

    def lookup(self, key: CacheKey) -> Optional[CacheEntry[T]]:
        """Fresh in-memory entry for key, or None."""
        entry = self._entries.get(key)
        if entry is not None and self.is_fresh(entry):
            return entry
        return None

    async def get(self, key: CacheKey) -> Optional[T]:
        entry = self.lookup(key)
        if entry is not None:
            return entry.payload

        entry = await self._redis_get(key)
        if entry is not None and self.is_fresh(entry):
            self._entries[key] = entry
            return entry.payload
        return None

    async def set(self, key: CacheKey, payload: T) -> CacheEntry[T]:
        entry = CacheEntry(saved_at=self.clock(), key=key, payload=payload)
        self._entries[key] = entry
        await self._redis_set(entry)
        return entry

    async def get_or_compute(
        self, key: CacheKey, compute: Callable[[], Awaitable[T]]
    ) -> tuple[T, bool]:
        """
        Return (payload, hit).

        On a miss `compute` runs once and its result is stored. Errors
        from `compute` propagate and nothing is cached.
        """
        cached = await self.get(key)
        if cached is not None:
            return cached, True

        payload = await compute()
        await self.set(key, payload)
        return payload, False

    def invalidate(self, key: CacheKey) -> None:
        self._entries.pop(key, None)

    def clear(self) -> None:
        self._entries.clear()

    # ============ Redis tier ============

    async def _redis_get(self, key: CacheKey) -> Optional[CacheEntry[T]]:
        if self._redis is None:
            return None

        try:
            raw = await self._redis.get(self._redis_key(key))
        except RedisError as e:
            logger.debug(f"Redis cache get failed: {e}")
            return None
        if not raw:
            return None

        try:
            envelope = json.loads(raw)
            payload = self.model.model_validate(envelope["payload"])
            saved_at = float(envelope["savedAt"])
        except (ValueError, KeyError, TypeError) as e:
            logger.debug(f"Discarding unreadable cache entry {self._redis_key(key)}: {e}")
            return None

        return CacheEntry(saved_at=saved_at, key=key, payload=payload)

    async def _redis_set(self, entry: CacheEntry[T]) -> None:
        if self._redis is None or not isinstance(entry.payload, BaseModel):
            return

        value = json.dumps({
            "savedAt": entry.saved_at,
            "payload": entry.payload.model_dump(mode="json", by_alias=True),
        })
        try:
            await self._redis.set(
                self._redis_key(entry.key), value, ex=max(1, int(self.ttl))
            )
        except RedisError as e:
            logger.debug(f"Redis cache set failed: {e}")

"""Redis fast store for tiercache.

Provides async Redis operations for caching looked-up values.
Uses redis-py async client for connection pooling.
"""

from __future__ import annotations

import time
from collections.abc import Awaitable, Callable
from typing import TYPE_CHECKING, Any, cast

import orjson
import redis.asyncio as redis
from redis.exceptions import RedisError

from tiercache.cache.base import Entry, FastStore, Key
from tiercache.cache.keys import CacheKeys
from tiercache.config import settings
from tiercache.errors import CacheUnavailableError

if TYPE_CHECKING:
    from redis.asyncio import Redis

# Module-level connection pool
_redis_client: Redis | None = None

# Backend failures that mean "cache unreachable"
_BACKEND_ERRORS = (RedisError, OSError)


async def get_redis() -> Redis:
    """Get or create the Redis client.

    Uses connection pooling for efficient connection management.
    """
    global _redis_client
    if _redis_client is None:
        _redis_client = redis.from_url(  # type: ignore[no-untyped-call]
            settings.redis_url,
            decode_responses=False,  # envelopes are orjson bytes
        )
    return _redis_client


async def close_redis() -> None:
    """Close Redis connections."""
    global _redis_client
    if _redis_client is not None:
        await _redis_client.aclose()
        _redis_client = None


def _identity(value: Any) -> Any:
    return value


class RedisStore(FastStore):
    """Fast store backed by Redis.

    Each value is stored as an orjson envelope::

        {"value": <encoded>, "inserted_at": <unix seconds>, "ttl": <seconds>}

    and written with a millisecond expiry so Redis drops it on its own.
    ``encode`` must return something orjson can serialize; ``decode`` turns
    it back into the caller's type.
    """

    backend = "redis"

    def __init__(
        self,
        client: Redis,
        namespace: str,
        encode: Callable[[Any], Any] = _identity,
        decode: Callable[[Any], Any] = _identity,
        clock: Callable[[], float] = time.time,
    ):
        self.client = client
        self.namespace = namespace
        self._encode = encode
        self._decode = decode
        self._clock = clock

    def _key(self, key: Key) -> str:
        return CacheKeys.entry(self.namespace, key)

    async def get(self, key: Key) -> Entry | None:
        redis_key = self._key(key)
        try:
            raw = await self.client.get(redis_key)
        except _BACKEND_ERRORS as e:
            raise CacheUnavailableError(f"Redis GET {redis_key} failed: {e}", key=key) from e

        if raw is None:
            return None

        try:
            envelope = orjson.loads(raw)
            entry = Entry(
                value=self._decode(envelope["value"]),
                inserted_at=float(envelope["inserted_at"]),
                ttl=float(envelope["ttl"]),
            )
        except (ValueError, KeyError, TypeError) as e:
            raise CacheUnavailableError(f"Corrupt cache entry {redis_key}: {e}", key=key) from e

        if not entry.is_valid(self._clock()):
            return None
        return entry

    async def put(self, key: Key, value: Any, ttl: float) -> None:
        redis_key = self._key(key)
        payload = orjson.dumps(
            {
                "value": self._encode(value),
                "inserted_at": self._clock(),
                "ttl": ttl,
            }
        )
        try:
            await self.client.set(redis_key, payload, px=max(1, int(ttl * 1000)))
        except _BACKEND_ERRORS as e:
            raise CacheUnavailableError(f"Redis SET {redis_key} failed: {e}", key=key) from e

    async def invalidate(self, key: Key) -> None:
        redis_key = self._key(key)
        try:
            await self.client.delete(redis_key)
        except _BACKEND_ERRORS as e:
            raise CacheUnavailableError(f"Redis DEL {redis_key} failed: {e}", key=key) from e

    async def clear(self) -> int:
        """Delete every key of this namespace.

        Uses SCAN to avoid blocking on large keyspaces.
        """
        pattern = CacheKeys.namespace_pattern(self.namespace)
        deleted = 0
        try:
            async for redis_key in self.client.scan_iter(match=pattern):
                await self.client.delete(redis_key)
                deleted += 1
        except _BACKEND_ERRORS as e:
            raise CacheUnavailableError(f"Redis SCAN {pattern} failed: {e}") from e
        return deleted

    async def health_check(self) -> bool:
        """Check Redis connectivity."""
        try:
            await cast(Awaitable[bool], self.client.ping())
            return True
        except _BACKEND_ERRORS:
            return False

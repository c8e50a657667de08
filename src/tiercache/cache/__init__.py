"""Fast store tier for tiercache.

Provides the volatile, low-latency half of the cache-aside pattern:
- In-process store with lazy TTL expiry
- Redis store with server-side expiry
- Distributed invalidation over Redis Pub/Sub
"""

from tiercache.cache.base import Entry, FastStore
from tiercache.cache.invalidation import (
    CacheInvalidationBroadcaster,
    InvalidationMessage,
    LocalCacheInvalidator,
)
from tiercache.cache.keys import CacheKeys
from tiercache.cache.memory import MemoryStore
from tiercache.cache.redis import RedisStore, close_redis, get_redis

__all__ = [
    # Core store
    "Entry",
    "FastStore",
    "CacheKeys",
    "MemoryStore",
    "RedisStore",
    "get_redis",
    "close_redis",
    # Distributed invalidation
    "CacheInvalidationBroadcaster",
    "InvalidationMessage",
    "LocalCacheInvalidator",
]

"""tiercache: cache-aside lookups over a fast store and a source of record.

    from tiercache import MemoryStore, TieredCache
    from tiercache.source import CallableSourceLoader

    cache = TieredCache(MemoryStore(), CallableSourceLoader(fetch), default_ttl=600)
    value = await cache.get(1)
"""

from tiercache.cache import MemoryStore, RedisStore
from tiercache.errors import (
    CacheUnavailableError,
    InvalidKeyError,
    NotFoundError,
    SourceUnavailableError,
    TierCacheError,
)
from tiercache.orchestrator import CacheStats, TieredCache

__version__ = "0.1.0"

__all__ = [
    "CacheStats",
    "CacheUnavailableError",
    "InvalidKeyError",
    "MemoryStore",
    "NotFoundError",
    "RedisStore",
    "SourceUnavailableError",
    "TierCacheError",
    "TieredCache",
    "__version__",
]

"""Tiered lookup orchestrator.

Composes a fast store and a source of record behind one ``get(key)``
contract using cache-aside semantics:

    START -> CHECK_CACHE -> HIT: RETURN
                         -> MISS -> LOAD_SOURCE -> SUCCESS: POPULATE_CACHE -> RETURN
                                                -> FAILURE: RETURN_ERROR

Fast store failures are absorbed (a failed ``get`` is a miss, a failed
``put`` is logged). Source failures always reach the caller and are never
cached.

Example:
    posts = TieredCache(MemoryStore(), HttpSourceLoader(client, "/posts/{key}", Post.from_api),
                        name="post", default_ttl=600)
    post = await posts.get(1)
    await posts.write(1, lambda: api.update_post(post))  # invalidates after the write
"""

from __future__ import annotations

import asyncio
import logging
import time
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, TypeVar

from tiercache.cache.base import Entry, FastStore, Key
from tiercache.config import settings
from tiercache.errors import (
    InvalidKeyError,
    NotFoundError,
    SourceUnavailableError,
    TierCacheError,
)
from tiercache.observability.metrics import (
    record_cache_hit,
    record_cache_miss,
    record_operation,
    record_source_load,
    record_store_error,
)
from tiercache.source.base import SourceLoader

if TYPE_CHECKING:
    from tiercache.cache.invalidation import CacheInvalidationBroadcaster

logger = logging.getLogger(__name__)

T = TypeVar("T")

KeyValidator = Callable[[Key], None]

# Errors a source may raise that reach the caller unchanged
_CALLER_ERRORS = (NotFoundError, SourceUnavailableError, InvalidKeyError)


def default_key_validator(key: Key) -> None:
    """Accept non-empty strings and integers (bools excluded)."""
    if key is None or isinstance(key, bool):
        raise InvalidKeyError(key)
    if isinstance(key, str):
        if not key.strip():
            raise InvalidKeyError(key, "key must not be empty")
    elif not isinstance(key, int):
        raise InvalidKeyError(key)


def positive_int_key(key: Key) -> None:
    """Numeric entity IDs: integers greater than zero."""
    if isinstance(key, bool) or not isinstance(key, int):
        raise InvalidKeyError(key, "key must be an integer")
    if key <= 0:
        raise InvalidKeyError(key, "key must be positive")


@dataclass
class CacheStats:
    """Per-instance lookup counters."""

    hits: int = 0
    misses: int = 0
    loads: int = 0
    load_failures: int = 0
    store_errors: int = 0

    @property
    def hit_ratio(self) -> float:
        total = self.hits + self.misses
        return self.hits / total if total else 0.0


class TieredCache:
    """Cache-aside lookup across a fast store and a source of record.

    Args:
        store: Fast store tier (shared, owns its own thread-safety)
        source: Source of record
        name: Logical cache name, used for logs, metrics and broadcasts
        default_ttl: Seconds an entry stays valid; ``<= 0`` disables caching
        single_flight: Coalesce concurrent misses for the same key into one load
        key_validator: Raises InvalidKeyError for unacceptable keys
        broadcaster: Publishes invalidations to peer instances
    """

    def __init__(
        self,
        store: FastStore,
        source: SourceLoader,
        *,
        name: str = "default",
        default_ttl: float | None = None,
        single_flight: bool = False,
        key_validator: KeyValidator | None = None,
        broadcaster: CacheInvalidationBroadcaster | None = None,
    ):
        self.store = store
        self.source = source
        self.name = name
        self.default_ttl = settings.cache_default_ttl if default_ttl is None else default_ttl
        self.single_flight = single_flight
        self.key_validator = key_validator or default_key_validator
        self.broadcaster = broadcaster
        self.stats = CacheStats()
        self._inflight: dict[Key, asyncio.Task[Any]] = {}

    # -------------------------------------------------------------------------
    # Read path
    # -------------------------------------------------------------------------

    async def get(self, key: Key, ttl: float | None = None) -> Any:
        """Return the value for ``key``, loading and caching it on a miss.

        ``ttl`` overrides ``default_ttl`` for the entry this call stores. With
        single-flight on, a caller that joins a load already in flight gets
        that load's ttl; its own ``ttl`` is ignored.

        Raises:
            InvalidKeyError: Before any collaborator is touched
            NotFoundError: The source has no such key
            SourceUnavailableError: The source could not complete the fetch
        """
        self.key_validator(key)

        entry = await self._lookup(key)
        if entry is not None:
            self.stats.hits += 1
            record_cache_hit(self.name)
            return entry.value

        self.stats.misses += 1
        record_cache_miss(self.name)
        logger.debug(f"Cache miss for {self.name}:{key}")

        effective_ttl = self.default_ttl if ttl is None else ttl
        if self.single_flight:
            return await self._load_shared(key, effective_ttl)
        return await self._load_and_populate(key, effective_ttl)

    async def _lookup(self, key: Key) -> Entry | None:
        start = time.perf_counter()
        try:
            return await self.store.get(key)
        except Exception as e:
            self._store_error("get", key, e)
            return None
        finally:
            record_operation(self.name, "get", time.perf_counter() - start)

    async def _load_and_populate(self, key: Key, ttl: float) -> Any:
        value = await self._load(key)
        await self._populate(key, value, ttl)
        return value

    async def _load(self, key: Key) -> Any:
        self.stats.loads += 1
        start = time.perf_counter()
        try:
            value = await self.source.load(key)
        except _CALLER_ERRORS as e:
            self._load_failed(key, e)
            raise
        except Exception as e:
            self._load_failed(key, e)
            raise SourceUnavailableError(
                f"{self.name} source failed for key {key!r}: {e}", key=key
            ) from e
        finally:
            record_operation(self.name, "load", time.perf_counter() - start)

        if value is None:
            error = NotFoundError(self.name, key)
            self._load_failed(key, error)
            raise error

        record_source_load(self.name)
        return value

    def _load_failed(self, key: Key, error: Exception) -> None:
        self.stats.load_failures += 1
        record_source_load(self.name, error=type(error).__name__)
        if isinstance(error, NotFoundError):
            logger.info(f"{self.name}:{key} not found in source")
        else:
            logger.warning(f"Loading {self.name}:{key} failed: {error}")

    async def _populate(self, key: Key, value: Any, ttl: float) -> None:
        if ttl <= 0:
            return
        start = time.perf_counter()
        try:
            await self.store.put(key, value, ttl)
        except Exception as e:
            self._store_error("put", key, e)
        finally:
            record_operation(self.name, "put", time.perf_counter() - start)

    async def _load_shared(self, key: Key, ttl: float) -> Any:
        """Join the in-flight load for ``key`` or start one.

        The shared task is shielded so a cancelled waiter does not cancel
        the load for everyone else.
        """
        task = self._inflight.get(key)
        if task is None:
            task = asyncio.create_task(self._load_and_populate(key, ttl))
            self._inflight[key] = task
            task.add_done_callback(lambda t: self._forget(key, t))
        return await asyncio.shield(task)

    def _forget(self, key: Key, task: asyncio.Task[Any]) -> None:
        if self._inflight.get(key) is task:
            del self._inflight[key]
        if not task.cancelled():
            # Mark the exception retrieved when every waiter was cancelled
            task.exception()

    # -------------------------------------------------------------------------
    # Write / invalidation path
    # -------------------------------------------------------------------------

    async def invalidate(self, key: Key) -> None:
        """Evict ``key``; call only after the source of record has changed."""
        self.key_validator(key)

        # Later readers must not join a load that started before the write
        self._inflight.pop(key, None)

        start = time.perf_counter()
        try:
            await self.store.invalidate(key)
        except Exception as e:
            self._store_error("invalidate", key, e)
        finally:
            record_operation(self.name, "invalidate", time.perf_counter() - start)

        if self.broadcaster is not None:
            try:
                await self.broadcaster.invalidate(self.name, key)
            except Exception as e:
                logger.warning(f"Broadcasting invalidation of {self.name}:{key} failed: {e}")

        logger.debug(f"Invalidated {self.name}:{key}")

    async def write(self, key: Key, operation: Callable[[], Awaitable[T]]) -> T:
        """Run a write against the source of record, then invalidate ``key``.

        A failing write propagates and leaves the cache untouched.
        """
        self.key_validator(key)
        result = await operation()
        await self.invalidate(key)
        return result

    async def clear(self) -> int:
        """Evict every entry of this cache. Returns the number removed."""
        self._inflight.clear()
        try:
            count = await self.store.clear()
        except Exception as e:
            self._store_error("clear", None, e)
            count = 0

        if self.broadcaster is not None:
            try:
                await self.broadcaster.invalidate_namespace(self.name)
            except Exception as e:
                logger.warning(f"Broadcasting clear of {self.name} failed: {e}")

        logger.info(f"Cleared {self.name} cache ({count} entries)")
        return count

    async def health_check(self) -> bool:
        try:
            return await self.store.health_check()
        except Exception:
            return False

    def _store_error(self, operation: str, key: Key | None, error: Exception) -> None:
        self.stats.store_errors += 1
        record_store_error(self.name, operation)
        if isinstance(error, TierCacheError):
            logger.warning(f"Fast store {operation} failed for {self.name}:{key}: {error.text}")
        else:
            logger.warning(f"Fast store {operation} failed for {self.name}:{key}: {error!r}")

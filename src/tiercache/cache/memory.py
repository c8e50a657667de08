"""In-process fast store with per-entry expiration."""

from __future__ import annotations

import threading
import time
from collections.abc import Callable
from typing import Any

from tiercache.cache.base import Entry, FastStore, Key


class MemoryStore(FastStore):
    """Dictionary-backed store with lazy TTL expiry.

    A ``threading.Lock`` guards the mapping so the store may be shared by
    coroutines and threads alike. The lock is never held across an await.
    """

    backend = "memory"

    def __init__(self, clock: Callable[[], float] = time.monotonic, max_entries: int | None = None):
        self._clock = clock
        self._max_entries = max_entries
        self._entries: dict[Key, Entry] = {}
        self._lock = threading.Lock()

    async def get(self, key: Key) -> Entry | None:
        now = self._clock()
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                return None
            if not entry.is_valid(now):
                del self._entries[key]
                return None
            return entry

    async def put(self, key: Key, value: Any, ttl: float) -> None:
        entry = Entry(value=value, inserted_at=self._clock(), ttl=ttl)
        with self._lock:
            self._entries.pop(key, None)
            self._entries[key] = entry
            if self._max_entries is not None and len(self._entries) > self._max_entries:
                self._evict(entry.inserted_at)

    async def invalidate(self, key: Key) -> None:
        with self._lock:
            self._entries.pop(key, None)

    async def clear(self) -> int:
        with self._lock:
            count = len(self._entries)
            self._entries.clear()
        return count

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def __contains__(self, key: object) -> bool:
        with self._lock:
            return key in self._entries

    def _evict(self, now: float) -> None:
        """Drop expired entries, then the oldest insertions until under the bound.

        Caller must hold the lock.
        """
        for key in [k for k, e in self._entries.items() if not e.is_valid(now)]:
            del self._entries[key]

        # dicts keep insertion order and put() re-inserts, so the head is oldest
        while self._max_entries is not None and len(self._entries) > self._max_entries:
            del self._entries[next(iter(self._entries))]

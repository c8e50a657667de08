"""Base fast store interface.

Defines the abstract interface for the volatile, low-latency tier that sits
in front of a source of record.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Hashable
from dataclasses import dataclass
from typing import Any

Key = Hashable


@dataclass(frozen=True)
class Entry:
    """A cached value with its insertion time and time-to-live.

    ``inserted_at`` is expressed on the owning store's clock.
    """

    value: Any
    inserted_at: float
    ttl: float

    @property
    def expires_at(self) -> float:
        return self.inserted_at + self.ttl

    def is_valid(self, now: float) -> bool:
        """An entry is valid only while ``now < inserted_at + ttl``."""
        return now < self.expires_at


class FastStore(ABC):
    """Abstract base class for fast store backends.

    Implementations must be safe for concurrent ``get``/``put``/``invalidate``
    without external locking and must report backend failures as
    ``CacheUnavailableError``.
    """

    backend: str = "abstract"

    @abstractmethod
    async def get(self, key: Key) -> Entry | None:
        """Return the entry for ``key`` if present and unexpired.

        Raises:
            CacheUnavailableError: If the backend cannot be reached
        """
        ...

    @abstractmethod
    async def put(self, key: Key, value: Any, ttl: float) -> None:
        """Insert or overwrite ``key``, resetting its TTL clock.

        Raises:
            CacheUnavailableError: If the backend cannot be reached
        """
        ...

    @abstractmethod
    async def invalidate(self, key: Key) -> None:
        """Remove ``key`` unconditionally.

        Raises:
            CacheUnavailableError: If the backend cannot be reached
        """
        ...

    @abstractmethod
    async def clear(self) -> int:
        """Remove every entry held by this store.

        Returns:
            Number of entries removed
        """
        ...

    async def health_check(self) -> bool:
        """Check backend connectivity."""
        return True

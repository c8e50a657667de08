"""Source loader interface.

A source loader produces the authoritative value for a key when the fast
store cannot. Its failures are significant and always reach the caller.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Awaitable, Callable
from typing import Any

from tiercache.cache.base import Key


class SourceLoader(ABC):
    """Abstract base class for sources of record."""

    @abstractmethod
    async def load(self, key: Key) -> Any:
        """Fetch the value for ``key`` from the source of record.

        Raises:
            NotFoundError: If the key does not exist
            SourceUnavailableError: If the fetch could not complete
        """
        ...


class CallableSourceLoader(SourceLoader):
    """Adapts a plain coroutine function to the loader interface."""

    def __init__(self, fn: Callable[[Key], Awaitable[Any]]):
        self._fn = fn

    async def load(self, key: Key) -> Any:
        return await self._fn(key)

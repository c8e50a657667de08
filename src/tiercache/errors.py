"""Error taxonomy for tiered lookups.

Callers of ``TieredCache.get`` only ever see ``NotFoundError``,
``SourceUnavailableError`` or ``InvalidKeyError``. ``CacheUnavailableError``
is raised by fast stores and absorbed by the orchestrator.
"""

from __future__ import annotations

from typing import Any


class TierCacheError(Exception):
    """Base class for all tiercache errors."""

    code = "TierCacheError"

    def __init__(self, text: str, key: Any = None):
        self.text = text
        self.key = key
        super().__init__(text)


class CacheUnavailableError(TierCacheError):
    """Fast store could not be reached or returned garbage."""

    code = "CacheUnavailable"


class NotFoundError(TierCacheError):
    """Key does not exist in the source of record."""

    code = "NotFound"

    def __init__(self, resource_type: str, key: Any):
        self.resource_type = resource_type
        super().__init__(f"{resource_type} with identifier '{key}' not found", key=key)


class SourceUnavailableError(TierCacheError):
    """Source of record could not complete the fetch. Safe to retry."""

    code = "SourceUnavailable"
    retryable = True


class InvalidKeyError(TierCacheError):
    """Key failed a precondition before any collaborator was touched."""

    code = "InvalidKey"

    def __init__(self, key: Any, reason: str = "key must be a non-empty string or integer"):
        self.reason = reason
        super().__init__(f"Invalid key {key!r}: {reason}", key=key)

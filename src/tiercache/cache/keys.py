"""Cache key schema for tiercache.

Key format: {prefix}:{namespace}:{key}

Where:
- prefix: "tiercache" (namespace for shared Redis instances)
- namespace: logical cache name, e.g. "post", "posts", "user"
- key: the lookup key, stringified
"""

from __future__ import annotations

from typing import Any


class CacheKeys:
    """Cache key generator following consistent naming convention."""

    PREFIX = "tiercache"

    @classmethod
    def entry(cls, namespace: str, key: Any) -> str:
        """Key for a single cached entry."""
        return f"{cls.PREFIX}:{namespace}:{key}"

    @classmethod
    def parse_key(cls, key: str) -> dict[str, str] | None:
        """Parse a cache key into its components.

        Returns None if the key doesn't match the expected format.
        Keys may themselves contain ':' so everything after the namespace
        belongs to the key.
        """
        parts = key.split(":", 2)
        if len(parts) < 3 or parts[0] != cls.PREFIX or not parts[2]:
            return None

        return {
            "prefix": parts[0],
            "namespace": parts[1],
            "key": parts[2],
        }

    @classmethod
    def namespace_pattern(cls, namespace: str) -> str:
        """Pattern matching every entry of a namespace.

        Use with Redis SCAN + DEL for bulk invalidation.
        """
        return f"{cls.PREFIX}:{namespace}:*"

    @classmethod
    def all_pattern(cls) -> str:
        """Pattern matching every tiercache key."""
        return f"{cls.PREFIX}:*"

"""Tests for cache key generation."""

from tiercache.cache.keys import CacheKeys


class TestCacheKeys:
    """Test cache key generation."""

    def test_entry_key(self) -> None:
        """Entry key has correct format."""
        assert CacheKeys.entry("post", 1) == "tiercache:post:1"

    def test_entry_key_with_string(self) -> None:
        """String keys are used verbatim."""
        assert CacheKeys.entry("posts", "all") == "tiercache:posts:all"

    def test_namespace_pattern(self) -> None:
        """Namespace pattern matches every entry of one cache."""
        assert CacheKeys.namespace_pattern("user") == "tiercache:user:*"

    def test_all_pattern(self) -> None:
        assert CacheKeys.all_pattern() == "tiercache:*"

    def test_parse_valid_key(self) -> None:
        """Valid key is parsed correctly."""
        result = CacheKeys.parse_key("tiercache:post:42")
        assert result == {"prefix": "tiercache", "namespace": "post", "key": "42"}

    def test_parse_key_containing_separator(self) -> None:
        """Everything after the namespace belongs to the key."""
        result = CacheKeys.parse_key("tiercache:session:a:b:c")
        assert result is not None
        assert result["namespace"] == "session"
        assert result["key"] == "a:b:c"

    def test_parse_invalid_key_returns_none(self) -> None:
        """Invalid key returns None."""
        assert CacheKeys.parse_key("invalid") is None
        assert CacheKeys.parse_key("other:post:1") is None
        assert CacheKeys.parse_key("tiercache:post:") is None

"""Tests for post use cases."""

from __future__ import annotations

import pytest

from tests.fakes import RecordingSource
from tiercache.cache.memory import MemoryStore
from tiercache.domain.models import Post
from tiercache.errors import NotFoundError
from tiercache.orchestrator import TieredCache
from tiercache.services.posts import ALL_POSTS_KEY, PostService

VALID = Post(user_id=1, id=1, title="Valid Title", body="Body")
INVALID = Post(user_id=1, id=2, title="No body")


@pytest.fixture
def post_source() -> RecordingSource:
    return RecordingSource({1: VALID, 2: INVALID})


@pytest.fixture
def list_source() -> RecordingSource:
    return RecordingSource({ALL_POSTS_KEY: [VALID, INVALID]})


@pytest.fixture
def service(post_source: RecordingSource, list_source: RecordingSource) -> PostService:
    return PostService(
        TieredCache(MemoryStore(), post_source, name="post", default_ttl=60),
        TieredCache(MemoryStore(), list_source, name="posts", default_ttl=60),
    )


class TestPostService:
    async def test_get_post(self, service: PostService) -> None:
        assert await service.get_post(1) == VALID

    async def test_get_post_is_cached(
        self, service: PostService, post_source: RecordingSource
    ) -> None:
        await service.get_post(1)
        await service.get_post(1)
        assert post_source.calls == [1]

    async def test_invalid_post_is_not_found(self, service: PostService) -> None:
        with pytest.raises(NotFoundError, match="Post"):
            await service.get_post(2)

    async def test_missing_post_is_not_found(self, service: PostService) -> None:
        with pytest.raises(NotFoundError):
            await service.get_post(999)

    async def test_get_all_posts_filters_invalid(self, service: PostService) -> None:
        assert await service.get_all_posts() == [VALID]

    async def test_invalidate_post_evicts_listing_too(
        self,
        service: PostService,
        post_source: RecordingSource,
        list_source: RecordingSource,
    ) -> None:
        await service.get_post(1)
        await service.get_all_posts()

        await service.invalidate_post(1)
        await service.get_post(1)
        await service.get_all_posts()

        assert post_source.calls == [1, 1]
        assert list_source.calls == [ALL_POSTS_KEY, ALL_POSTS_KEY]

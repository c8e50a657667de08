"""Integration tests for the Redis fast store and Pub/Sub invalidation.

Runs against a real Redis started in Docker.
"""

from __future__ import annotations

import asyncio

import pytest
from redis.asyncio import Redis

from tests.fakes import RecordingSource
from tiercache.cache.invalidation import CacheInvalidationBroadcaster, LocalCacheInvalidator
from tiercache.cache.memory import MemoryStore
from tiercache.cache.redis import RedisStore
from tiercache.domain.models import Post
from tiercache.factory import model_codec
from tiercache.orchestrator import TieredCache

pytestmark = pytest.mark.integration

POST = Post(user_id=1, id=1, title="Valid Title", body="Body")


class TestRedisStore:
    async def test_put_get_round_trip(self, redis_client: Redis) -> None:
        encode, decode = model_codec(Post)
        store = RedisStore(redis_client, "post", encode=encode, decode=decode)

        await store.put(1, POST, ttl=60)
        entry = await store.get(1)

        assert entry is not None
        assert entry.value == POST

    async def test_redis_expires_entry(self, redis_client: Redis) -> None:
        store = RedisStore(redis_client, "post")

        await store.put(1, "v", ttl=0.2)
        await asyncio.sleep(0.4)

        assert await redis_client.get("tiercache:post:1") is None
        assert await store.get(1) is None

    async def test_clear_only_touches_namespace(self, redis_client: Redis) -> None:
        posts = RedisStore(redis_client, "post")
        users = RedisStore(redis_client, "user")
        await posts.put(1, "a", ttl=60)
        await posts.put(2, "b", ttl=60)
        await users.put(1, "c", ttl=60)

        assert await posts.clear() == 2
        assert await users.get(1) is not None

    async def test_health_check(self, redis_client: Redis) -> None:
        assert await RedisStore(redis_client, "post").health_check() is True


class TestTieredCacheOnRedis:
    async def test_second_lookup_hits_redis(self, redis_client: Redis) -> None:
        source = RecordingSource({1: "one"})
        cache = TieredCache(RedisStore(redis_client, "item"), source, default_ttl=60)

        await cache.get(1)
        await cache.get(1)

        assert source.calls == [1]

    async def test_invalidate_deletes_key(self, redis_client: Redis) -> None:
        cache = TieredCache(
            RedisStore(redis_client, "item"), RecordingSource({1: "one"}), default_ttl=60
        )
        await cache.get(1)

        await cache.invalidate(1)

        assert await redis_client.exists("tiercache:item:1") == 0


class TestBroadcastInvalidation:
    async def test_peer_memory_store_is_evicted(self, redis_client: Redis) -> None:
        peer_store = MemoryStore()
        await peer_store.put(1, "stale", ttl=60)
        invalidator = LocalCacheInvalidator({"post": peer_store})

        listener = CacheInvalidationBroadcaster(client=redis_client, origin="peer")
        listener.add_handler(invalidator.handle_invalidation)
        await listener.start()
        try:
            sender = CacheInvalidationBroadcaster(client=redis_client, origin="writer")
            assert await sender.invalidate("post", 1) >= 1

            for _ in range(50):
                if 1 not in peer_store:
                    break
                await asyncio.sleep(0.1)

            assert 1 not in peer_store
        finally:
            await listener.stop()

"""Tests for distributed cache invalidation."""

from __future__ import annotations

import asyncio
from collections.abc import AsyncIterator
from unittest.mock import AsyncMock, MagicMock

import orjson
import pytest

from tiercache.cache.invalidation import (
    INVALIDATION_CHANNEL,
    CacheInvalidationBroadcaster,
    InvalidationMessage,
    LocalCacheInvalidator,
)
from tiercache.cache.memory import MemoryStore


async def listen_forever(messages: list[dict[str, object]]) -> AsyncIterator[dict[str, object]]:
    """Yield queued Pub/Sub messages, then block like an idle subscription."""
    for message in messages:
        yield message
    await asyncio.Event().wait()


@pytest.fixture
def redis_client() -> MagicMock:
    pubsub = MagicMock()
    pubsub.subscribe = AsyncMock()
    pubsub.unsubscribe = AsyncMock()
    pubsub.aclose = AsyncMock()

    pubsub.listen = lambda: listen_forever([])

    client = MagicMock()
    client.publish = AsyncMock(return_value=2)
    client.pubsub.return_value = pubsub
    return client


class TestInvalidationMessage:
    """Test message serialization."""

    def test_to_bytes(self) -> None:
        msg = InvalidationMessage(namespace="post", key=1, origin="node-a")
        assert orjson.loads(msg.to_bytes()) == {"namespace": "post", "key": 1, "origin": "node-a"}

    def test_from_bytes_without_key_means_namespace(self) -> None:
        msg = InvalidationMessage.from_bytes(b'{"namespace": "posts"}')
        assert msg.namespace == "posts"
        assert msg.key is None
        assert msg.origin is None

    def test_from_bytes_rejects_garbage(self) -> None:
        with pytest.raises(ValueError):
            InvalidationMessage.from_bytes(b"not json")


class TestCacheInvalidationBroadcaster:
    """Test publishing and dispatch."""

    async def test_invalidate_publishes_to_channel(self, redis_client: MagicMock) -> None:
        broadcaster = CacheInvalidationBroadcaster(client=redis_client, origin="node-a")

        count = await broadcaster.invalidate("post", 5)

        assert count == 2
        channel, payload = redis_client.publish.call_args.args
        assert channel == INVALIDATION_CHANNEL
        assert orjson.loads(payload) == {"namespace": "post", "key": 5, "origin": "node-a"}

    async def test_invalidate_namespace_sends_null_key(self, redis_client: MagicMock) -> None:
        broadcaster = CacheInvalidationBroadcaster(client=redis_client)

        await broadcaster.invalidate_namespace("posts")

        payload = orjson.loads(redis_client.publish.call_args.args[1])
        assert payload["namespace"] == "posts"
        assert payload["key"] is None

    async def test_dispatch_calls_every_handler(self, redis_client: MagicMock) -> None:
        broadcaster = CacheInvalidationBroadcaster(client=redis_client)
        first = AsyncMock()
        second = AsyncMock()
        broadcaster.add_handler(first)
        broadcaster.add_handler(second)

        await broadcaster._dispatch(InvalidationMessage("post", 1).to_bytes())

        first.assert_awaited_once()
        second.assert_awaited_once()
        assert first.call_args.args[0].key == 1

    async def test_failing_handler_does_not_stop_others(self, redis_client: MagicMock) -> None:
        broadcaster = CacheInvalidationBroadcaster(client=redis_client)
        broken = AsyncMock(side_effect=RuntimeError("boom"))
        healthy = AsyncMock()
        broadcaster.add_handler(broken)
        broadcaster.add_handler(healthy)

        await broadcaster._dispatch(InvalidationMessage("post", 1).to_bytes())

        healthy.assert_awaited_once()

    async def test_unparseable_message_is_dropped(self, redis_client: MagicMock) -> None:
        broadcaster = CacheInvalidationBroadcaster(client=redis_client)
        handler = AsyncMock()
        broadcaster.add_handler(handler)

        await broadcaster._dispatch(b"{}")

        handler.assert_not_awaited()

    async def test_start_and_stop(self, redis_client: MagicMock) -> None:
        broadcaster = CacheInvalidationBroadcaster(client=redis_client)

        await broadcaster.start()
        assert broadcaster.running
        redis_client.pubsub.return_value.subscribe.assert_awaited_once_with(INVALIDATION_CHANNEL)

        await broadcaster.stop()
        assert not broadcaster.running
        redis_client.pubsub.return_value.aclose.assert_awaited_once()


class TestLocalCacheInvalidator:
    """Test applying broadcasts to local stores."""

    async def test_evicts_single_key(self) -> None:
        store = MemoryStore()
        await store.put(1, "a", ttl=60)
        await store.put(2, "b", ttl=60)
        invalidator = LocalCacheInvalidator({"post": store})

        await invalidator.handle_invalidation(InvalidationMessage("post", 1))

        assert 1 not in store
        assert 2 in store

    async def test_clears_namespace(self) -> None:
        store = MemoryStore()
        await store.put(1, "a", ttl=60)
        invalidator = LocalCacheInvalidator()
        invalidator.register("post", store)

        await invalidator.handle_invalidation(InvalidationMessage("post"))

        assert len(store) == 0

    async def test_unknown_namespace_is_ignored(self) -> None:
        store = MemoryStore()
        await store.put(1, "a", ttl=60)
        invalidator = LocalCacheInvalidator({"post": store})

        await invalidator.handle_invalidation(InvalidationMessage("user", 1))

        assert 1 in store


class TestBroadcasterListener:
    """Test the background subscription."""

    async def test_received_messages_reach_handlers(self, redis_client: MagicMock) -> None:
        pubsub = redis_client.pubsub.return_value
        pubsub.listen = lambda: listen_forever(
            [{"type": "message", "data": InvalidationMessage("post", 9, "peer").to_bytes()}]
        )
        broadcaster = CacheInvalidationBroadcaster(client=redis_client, origin="self")
        handler = AsyncMock()
        broadcaster.add_handler(handler)

        await broadcaster.start()
        for _ in range(20):
            if handler.await_count:
                break
            await asyncio.sleep(0.01)
        await broadcaster.stop()

        handler.assert_awaited_once()
        assert handler.call_args.args[0].key == 9

    async def test_own_messages_are_skipped(self, redis_client: MagicMock) -> None:
        broadcaster = CacheInvalidationBroadcaster(client=redis_client, origin="self")
        handler = AsyncMock()
        broadcaster.add_handler(handler)

        await broadcaster._dispatch(InvalidationMessage("post", 1, origin="self").to_bytes())

        handler.assert_not_awaited()

    async def test_start_is_idempotent(self, redis_client: MagicMock) -> None:
        broadcaster = CacheInvalidationBroadcaster(client=redis_client)

        await broadcaster.start()
        await broadcaster.start()
        await broadcaster.stop()

        assert redis_client.pubsub.call_count == 1

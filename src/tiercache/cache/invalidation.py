"""Cross-instance invalidation over Redis Pub/Sub.

A ``MemoryStore`` lives inside one process, so evicting a key there says
nothing to the other API replicas. Each ``TieredCache`` with a broadcaster
publishes its evictions on ``tiercache:invalidation``; every other instance
applies them to its own stores through a ``LocalCacheInvalidator``.

Wire format (orjson):

    {"namespace": "post", "key": 1, "origin": "3f2a9c1e"}

``key`` of null clears the whole namespace. Messages whose ``origin`` is the
receiving instance are skipped; the sender has already evicted locally.

Example:
    invalidator = LocalCacheInvalidator({"post": post_store})
    broadcaster = CacheInvalidationBroadcaster(origin=settings.instance_id)
    broadcaster.add_handler(invalidator.handle_invalidation)
    await broadcaster.start()

    await broadcaster.invalidate("post", 1)
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, cast

import orjson

from tiercache.cache.redis import get_redis

if TYPE_CHECKING:
    from redis.asyncio import Redis
    from redis.asyncio.client import PubSub

    from tiercache.cache.base import FastStore

logger = logging.getLogger(__name__)

INVALIDATION_CHANNEL = "tiercache:invalidation"


@dataclass
class InvalidationMessage:
    """Eviction of one key, or of a whole namespace when ``key`` is None."""

    namespace: str
    key: Any = None
    origin: str | None = None

    def to_bytes(self) -> bytes:
        return orjson.dumps({"namespace": self.namespace, "key": self.key, "origin": self.origin})

    @classmethod
    def from_bytes(cls, data: bytes) -> InvalidationMessage:
        payload = orjson.loads(data)
        return cls(
            namespace=payload["namespace"],
            key=payload.get("key"),
            origin=payload.get("origin"),
        )


InvalidationHandler = Callable[[InvalidationMessage], Awaitable[None]]


class CacheInvalidationBroadcaster:
    """Publishes evictions and feeds received ones to registered handlers.

    Args:
        channel: Pub/Sub channel shared by all instances
        client: Redis client; defaults to the module-level pooled client
        origin: This instance's ID, stamped on outgoing messages
        retry_delay: Seconds to wait before resubscribing after a failure
    """

    def __init__(
        self,
        channel: str = INVALIDATION_CHANNEL,
        client: Redis | None = None,
        origin: str | None = None,
        retry_delay: float = 1.0,
    ):
        self.channel = channel
        self.origin = origin
        self.retry_delay = retry_delay
        self._redis = client
        self._handlers: list[InvalidationHandler] = []
        self._pubsub: PubSub | None = None
        self._listener: asyncio.Task[None] | None = None

    async def _client(self) -> Redis:
        if self._redis is None:
            self._redis = await get_redis()
        return self._redis

    def add_handler(self, handler: InvalidationHandler) -> None:
        self._handlers.append(handler)

    @property
    def running(self) -> bool:
        return self._listener is not None and not self._listener.done()

    async def start(self) -> None:
        """Subscribe and start dispatching in a background task."""
        if self.running:
            return

        client = await self._client()
        self._pubsub = client.pubsub(ignore_subscribe_messages=True)
        await self._pubsub.subscribe(self.channel)
        self._listener = asyncio.create_task(self._listen())
        logger.info(
            f"Listening for invalidations on {self.channel} "
            f"({len(self._handlers)} handlers, origin {self.origin})"
        )

    async def stop(self) -> None:
        listener, self._listener = self._listener, None
        if listener is not None:
            listener.cancel()
            try:
                await listener
            except asyncio.CancelledError:
                pass

        pubsub, self._pubsub = self._pubsub, None
        if pubsub is not None:
            await pubsub.unsubscribe(self.channel)
            await pubsub.aclose()

        logger.info(f"Stopped listening on {self.channel}")

    async def _listen(self) -> None:
        while self._pubsub is not None:
            try:
                async for message in self._pubsub.listen():
                    if message["type"] == "message":
                        await self._dispatch(message["data"])
                return
            except asyncio.CancelledError:
                raise
            except Exception as e:
                logger.error(
                    f"Invalidation subscription failed, retrying in {self.retry_delay}s: {e}"
                )
                await asyncio.sleep(self.retry_delay)

    async def _dispatch(self, data: bytes) -> None:
        try:
            message = InvalidationMessage.from_bytes(data)
        except (ValueError, KeyError, TypeError) as e:
            logger.error(f"Dropping malformed invalidation message {data!r}: {e}")
            return

        if self.origin is not None and message.origin == self.origin:
            return

        for handler in self._handlers:
            try:
                await handler(message)
            except Exception as e:
                logger.error(f"Invalidation of {message.namespace}:{message.key} failed: {e}")

    async def publish(self, message: InvalidationMessage) -> int:
        """Send ``message`` to every subscribed instance.

        Returns the number of subscribers Redis delivered it to.
        """
        if message.origin is None:
            message.origin = self.origin
        client = await self._client()
        receivers = cast(int, await client.publish(self.channel, message.to_bytes()))
        logger.debug(f"Published invalidation {message.namespace}:{message.key} to {receivers}")
        return receivers

    async def invalidate(self, namespace: str, key: Any) -> int:
        return await self.publish(InvalidationMessage(namespace=namespace, key=key))

    async def invalidate_namespace(self, namespace: str) -> int:
        return await self.publish(InvalidationMessage(namespace=namespace))


class LocalCacheInvalidator:
    """Applies received invalidations to this instance's stores by namespace."""

    def __init__(self, stores: dict[str, FastStore] | None = None) -> None:
        self._stores: dict[str, FastStore] = dict(stores or {})

    def register(self, namespace: str, store: FastStore) -> None:
        self._stores[namespace] = store

    async def handle_invalidation(self, message: InvalidationMessage) -> None:
        store = self._stores.get(message.namespace)
        if store is None:
            return

        if message.key is None:
            count = await store.clear()
            logger.info(f"Cleared {message.namespace} on peer request ({count} entries)")
        else:
            await store.invalidate(message.key)
            logger.debug(f"Evicted {message.namespace}:{message.key} on peer request")

"""Composition root for tiercache.

Chooses concrete fast stores and sources from settings and wires them into
the use-case services. Nothing else in the package constructs adapters.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

import httpx

from tiercache.cache.base import FastStore
from tiercache.cache.invalidation import CacheInvalidationBroadcaster, LocalCacheInvalidator
from tiercache.cache.memory import MemoryStore
from tiercache.cache.redis import RedisStore, get_redis
from tiercache.config import settings
from tiercache.domain.models import DomainModel, Post, User
from tiercache.orchestrator import TieredCache, positive_int_key
from tiercache.services.posts import PostService
from tiercache.services.users import UserService
from tiercache.source.base import CallableSourceLoader
from tiercache.source.http import HttpSourceLoader, create_http_client

if TYPE_CHECKING:
    from redis.asyncio import Redis

logger = logging.getLogger(__name__)

Codec = tuple[Callable[[Any], Any], Callable[[Any], Any]]


def model_codec(model: type[DomainModel]) -> Codec:
    """(encode, decode) pair storing a model as its JSON dict."""
    return (lambda value: value.model_dump(mode="json"), model.model_validate)


def model_list_codec(model: type[DomainModel]) -> Codec:
    """(encode, decode) pair storing a list of models."""
    return (
        lambda values: [value.model_dump(mode="json") for value in values],
        lambda data: [model.model_validate(item) for item in data],
    )


def build_store(
    namespace: str,
    codec: Codec,
    backend: str | None = None,
    redis_client: Redis | None = None,
) -> FastStore:
    """Create a fast store for ``namespace`` based on settings."""
    backend = (backend or settings.cache_backend).lower()
    if backend == "memory":
        return MemoryStore()
    if backend == "redis":
        if redis_client is None:
            raise ValueError("A Redis client is required for cache_backend='redis'")
        encode, decode = codec
        return RedisStore(redis_client, namespace, encode=encode, decode=decode)
    raise ValueError("Unsupported cache_backend. Supported values: memory, redis.")


@dataclass
class Services:
    """Wired application services and the resources they own."""

    posts: PostService
    users: UserService
    http_client: httpx.AsyncClient
    caches: list[TieredCache] = field(default_factory=list)
    broadcaster: CacheInvalidationBroadcaster | None = None

    async def start(self) -> None:
        if self.broadcaster is not None:
            await self.broadcaster.start()

    async def aclose(self) -> None:
        if self.broadcaster is not None:
            await self.broadcaster.stop()
        await self.http_client.aclose()

    async def health_check(self) -> bool:
        for cache in self.caches:
            if not await cache.health_check():
                return False
        return True


async def build_services(
    http_client: httpx.AsyncClient | None = None,
    backend: str | None = None,
    redis_client: Redis | None = None,
    default_ttl: float | None = None,
) -> Services:
    """Wire post and user services from settings.

    Explicit arguments override settings, which keeps tests free of globals.
    """
    backend = (backend or settings.cache_backend).lower()
    # Memory stores still need Redis as the bus for peer invalidations
    needs_redis = backend == "redis" or settings.enable_invalidation_broadcast
    if needs_redis and redis_client is None:
        redis_client = await get_redis()
    client = http_client or create_http_client()

    broadcaster = None
    invalidator = None
    if settings.enable_invalidation_broadcast and redis_client is not None:
        broadcaster = CacheInvalidationBroadcaster(client=redis_client, origin=settings.instance_id)
        invalidator = LocalCacheInvalidator()
        broadcaster.add_handler(invalidator.handle_invalidation)

    post_source = HttpSourceLoader(client, "/posts/{key}", Post.from_api, resource_type="Post")
    user_source = HttpSourceLoader(client, "/users/{key}", User.from_api, resource_type="User")

    def cache(
        name: str,
        source: Any,
        codec: Codec,
        key_validator: Callable[[Any], None] | None = None,
    ) -> TieredCache:
        store = build_store(name, codec, backend=backend, redis_client=redis_client)
        if invalidator is not None:
            invalidator.register(name, store)
        return TieredCache(
            store,
            source,
            name=name,
            default_ttl=default_ttl,
            single_flight=settings.cache_single_flight,
            key_validator=key_validator,
            broadcaster=broadcaster,
        )

    posts = cache("post", post_source, model_codec(Post), positive_int_key)
    post_list = cache(
        "posts",
        CallableSourceLoader(lambda _key: post_source.load_all("/posts")),
        model_list_codec(Post),
    )
    users = cache("user", user_source, model_codec(User), positive_int_key)
    user_list = cache(
        "users",
        CallableSourceLoader(lambda _key: user_source.load_all("/users")),
        model_list_codec(User),
    )

    logger.info(f"Wired services with {backend} fast store and source {client.base_url}")
    return Services(
        posts=PostService(posts, post_list),
        users=UserService(users, user_list),
        http_client=client,
        caches=[posts, post_list, users, user_list],
        broadcaster=broadcaster,
    )

"""Integration test fixtures using Docker.

Provides a containerized Redis; every test here is skipped when Docker is
unavailable.
"""

from __future__ import annotations

import asyncio
import time
from collections.abc import AsyncIterator, Iterator

import pytest
import pytest_asyncio
from redis.asyncio import Redis

from tests.integration.docker_utils import RedisContainer, get_docker_client, run_redis


@pytest.fixture(scope="session")
def docker_client():
    """Create a Docker client or skip if Docker is unavailable."""
    try:
        client = get_docker_client()
        client.ping()
    except Exception as exc:
        pytest.skip(f"Docker not available: {exc}")
    yield client
    client.close()


@pytest.fixture(scope="session")
def redis_container(docker_client) -> Iterator[RedisContainer]:
    with run_redis(docker_client) as redis:
        yield redis


@pytest_asyncio.fixture
async def redis_client(redis_container: RedisContainer) -> AsyncIterator[Redis]:
    """Redis client on a clean database for each test."""
    client = Redis.from_url(redis_container.url, decode_responses=False)
    await _wait_for_redis(client)
    yield client
    await client.flushdb()
    await client.aclose()


async def _wait_for_redis(client: Redis, timeout: float = 30.0) -> None:
    deadline = time.monotonic() + timeout
    while True:
        try:
            await client.ping()
            return
        except Exception:
            if time.monotonic() > deadline:
                raise
            await asyncio.sleep(0.5)

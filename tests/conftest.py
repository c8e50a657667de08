"""Global pytest configuration and fixtures."""

from __future__ import annotations

import pytest

from tests.fakes import FakeClock, RecordingSource
from tiercache.cache.memory import MemoryStore


def pytest_configure(config):
    """Register custom markers."""
    config.addinivalue_line("markers", "integration: tests that need Docker-backed services")


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def store(clock: FakeClock) -> MemoryStore:
    return MemoryStore(clock=clock)


@pytest.fixture
def source() -> RecordingSource:
    return RecordingSource({1: "one", 2: "two", "k": "v"})

"""Shared fixtures for cache tests."""

from collections.abc import Iterator

import pytest

from legalcache.cache.manager import CacheManager


class FakeClock:
    """Millisecond clock advanced by hand."""

    def __init__(self, start: float = 0.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, ms: float) -> None:
        self.now += ms


@pytest.fixture
def clock() -> FakeClock:
    """Create a fake clock starting at t=0."""
    return FakeClock()


@pytest.fixture
def cache(clock: FakeClock) -> Iterator[CacheManager]:
    """Create a cache on the fake clock with a 1s TTL."""
    manager = CacheManager(ttl=1000, max_size=10, name="test", clock=clock)
    yield manager
    manager.destroy()

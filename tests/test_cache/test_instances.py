"""Tests for named cache configuration."""

from collections.abc import Iterator

import pytest

from legalcache.cache.instances import (
    DEFAULT_CACHE_CONFIG,
    CacheConfig,
    CacheType,
    NamedCaches,
)


class TestCacheType:
    """Tests for CacheType enum."""

    def test_values(self) -> None:
        """Test every domain has a cache type."""
        assert [t.value for t in CacheType] == ["chat", "user", "document", "session"]


class TestCacheConfig:
    """Tests for CacheConfig."""

    def test_default_values(self) -> None:
        """Test default per-domain sizing."""
        config = CacheConfig()
        assert config.get_ttl(CacheType.CHAT) == 10 * 60 * 1000
        assert config.get_max_size(CacheType.CHAT) == 500
        assert config.get_ttl(CacheType.USER) == 30 * 60 * 1000
        assert config.get_max_size(CacheType.USER) == 200
        assert config.get_ttl(CacheType.DOCUMENT) == 60 * 60 * 1000
        assert config.get_max_size(CacheType.DOCUMENT) == 100
        assert config.get_ttl(CacheType.SESSION) == 5 * 60 * 1000
        assert config.get_max_size(CacheType.SESSION) == 1000

    def test_custom_values(self) -> None:
        """Test custom configuration values."""
        config = CacheConfig(chat_ttl=1000, chat_max_size=5)
        assert config.get_ttl(CacheType.CHAT) == 1000
        assert config.get_max_size(CacheType.CHAT) == 5

    def test_default_config_instance(self) -> None:
        """Test default config instance exists."""
        assert DEFAULT_CACHE_CONFIG.session_max_size == 1000


class TestNamedCaches:
    """Tests for NamedCaches."""

    @pytest.fixture
    def caches(self, clock) -> Iterator[NamedCaches]:
        """Create named caches on the fake clock."""
        named = NamedCaches.create(clock=clock)
        yield named
        named.destroy()

    def test_caches_use_config(self, caches: NamedCaches) -> None:
        """Test each cache is sized from the configuration."""
        for cache_type in CacheType:
            cache = caches.get(cache_type)
            assert cache.name == cache_type.value
            assert cache.default_ttl == DEFAULT_CACHE_CONFIG.get_ttl(cache_type)
            assert cache.max_size == DEFAULT_CACHE_CONFIG.get_max_size(cache_type)
            assert cache.is_running

    def test_caches_are_independent(self, caches: NamedCaches) -> None:
        """Test a key in one cache is invisible to the others."""
        caches.chat.set("k", "chat")
        assert caches.user.get("k") is None
        assert caches.get(CacheType.CHAT).get("k") == "chat"

    def test_separate_instances_do_not_share_state(self, caches: NamedCaches, clock) -> None:
        """Test two containers hold separate caches."""
        other = NamedCaches.create(clock=clock)
        try:
            caches.session.set("s", 1)
            assert other.session.get("s") is None
        finally:
            other.destroy()

    def test_session_expires_before_document(self, caches: NamedCaches, clock) -> None:
        """Test domains expire on their own schedules."""
        caches.session.set("k", 1)
        caches.document.set("k", 2)
        clock.advance(10 * 60 * 1000)
        assert caches.session.get("k") is None
        assert caches.document.get("k") == 2

    def test_stats(self, caches: NamedCaches) -> None:
        """Test stats are reported per domain."""
        caches.user.set("user:1", {})
        stats = caches.stats()
        assert set(stats) == {"chat", "user", "document", "session"}
        assert stats["user"].total == 1
        assert stats["chat"].total == 0

    def test_destroy(self, caches: NamedCaches) -> None:
        """Test destroy stops and empties every cache."""
        caches.chat.set("k", 1)
        caches.destroy()
        for cache_type in CacheType:
            assert not caches.get(cache_type).is_running
        assert len(caches.chat) == 0

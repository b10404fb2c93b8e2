"""Per-domain cache configuration.

The legal assistant keeps four caches, one per consumer domain, that differ
only in TTL and capacity. They are built explicitly with
``NamedCaches.create()`` and passed to the services that need them.
"""

from collections.abc import Callable
from dataclasses import dataclass
from enum import Enum

import structlog

from legalcache.cache.manager import DEFAULT_CLEANUP_INTERVAL_MS, CacheManager, CacheStats

logger = structlog.get_logger(__name__)

MINUTE_MS = 60 * 1000


class CacheType(Enum):
    """Consumer domains with their own cache."""

    CHAT = "chat"
    USER = "user"
    DOCUMENT = "document"
    SESSION = "session"


@dataclass
class CacheConfig:
    """TTL and capacity for each named cache.

    Attributes:
        chat_ttl: TTL for chat responses in ms (default: 10 min).
        chat_max_size: Capacity of the chat cache (default: 500).
        user_ttl: TTL for user profile lookups in ms (default: 30 min).
        user_max_size: Capacity of the user cache (default: 200).
        document_ttl: TTL for document metadata in ms (default: 1 hour).
        document_max_size: Capacity of the document cache (default: 100).
        session_ttl: TTL for session state in ms (default: 5 min).
        session_max_size: Capacity of the session cache (default: 1000).
        cleanup_interval: Sweep period shared by all caches in ms (default: 1 min).
    """

    chat_ttl: int = 10 * MINUTE_MS
    chat_max_size: int = 500
    user_ttl: int = 30 * MINUTE_MS
    user_max_size: int = 200
    document_ttl: int = 60 * MINUTE_MS
    document_max_size: int = 100
    session_ttl: int = 5 * MINUTE_MS
    session_max_size: int = 1000
    cleanup_interval: int = DEFAULT_CLEANUP_INTERVAL_MS

    def get_ttl(self, cache_type: CacheType) -> int:
        """Get TTL for a cache type."""
        ttl_map = {
            CacheType.CHAT: self.chat_ttl,
            CacheType.USER: self.user_ttl,
            CacheType.DOCUMENT: self.document_ttl,
            CacheType.SESSION: self.session_ttl,
        }
        return ttl_map[cache_type]

    def get_max_size(self, cache_type: CacheType) -> int:
        """Get capacity for a cache type."""
        size_map = {
            CacheType.CHAT: self.chat_max_size,
            CacheType.USER: self.user_max_size,
            CacheType.DOCUMENT: self.document_max_size,
            CacheType.SESSION: self.session_max_size,
        }
        return size_map[cache_type]


# Default cache configuration
DEFAULT_CACHE_CONFIG = CacheConfig()


@dataclass
class NamedCaches:
    """The chat, user, document and session caches of one application."""

    chat: CacheManager
    user: CacheManager
    document: CacheManager
    session: CacheManager

    @classmethod
    def create(
        cls,
        config: CacheConfig | None = None,
        clock: Callable[[], float] | None = None,
    ) -> "NamedCaches":
        """Build and start all four caches.

        Args:
            config: Per-domain sizing, defaults to DEFAULT_CACHE_CONFIG.
            clock: Millisecond clock passed to every cache.

        Returns:
            NamedCaches with running background sweeps.
        """
        config = config or DEFAULT_CACHE_CONFIG

        def build(cache_type: CacheType) -> CacheManager:
            return CacheManager(
                ttl=config.get_ttl(cache_type),
                max_size=config.get_max_size(cache_type),
                cleanup_interval=config.cleanup_interval,
                name=cache_type.value,
                clock=clock,
            )

        caches = cls(
            chat=build(CacheType.CHAT),
            user=build(CacheType.USER),
            document=build(CacheType.DOCUMENT),
            session=build(CacheType.SESSION),
        )
        logger.info("named_caches_created", caches=[t.value for t in CacheType])
        return caches

    def get(self, cache_type: CacheType) -> CacheManager:
        """Get the cache for a domain."""
        cache: CacheManager = getattr(self, cache_type.value)
        return cache

    def stats(self) -> dict[str, CacheStats]:
        """Snapshot stats of every cache, keyed by domain name."""
        return {t.value: self.get(t).get_stats() for t in CacheType}

    def destroy(self) -> None:
        """Stop every sweep and drop every entry."""
        for cache_type in CacheType:
            self.get(cache_type).destroy()

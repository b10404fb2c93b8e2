"""In-memory caching layer.

This module contains:
- CacheManager, the bounded TTL cache with a background sweep
- memoize/preload helpers for the get-or-compute pattern
- NamedCaches for the chat, user, document and session caches
- CacheKeyBuilder for consistent key generation
- CachedQuery, CachedQueries and PagedQuery for retrying, cached fetches
"""

from legalcache.cache.instances import (
    DEFAULT_CACHE_CONFIG,
    CacheConfig,
    CacheType,
    NamedCaches,
)
from legalcache.cache.keys import CacheKeyBuilder
from legalcache.cache.manager import (
    CacheEntry,
    CacheManager,
    CacheMetrics,
    CacheStats,
)
from legalcache.cache.query import CachedQueries, CachedQuery, PagedQuery, QueryOptions
from legalcache.cache.utils import (
    invalidate_pattern,
    memoize,
    memoize_with_deps,
    preload,
    serialize_deps,
)

__all__ = [
    # Core classes
    "CacheEntry",
    "CacheManager",
    "CacheMetrics",
    "CacheStats",
    # Named caches
    "CacheConfig",
    "CacheType",
    "DEFAULT_CACHE_CONFIG",
    "NamedCaches",
    # Keys
    "CacheKeyBuilder",
    # Utilities
    "invalidate_pattern",
    "memoize",
    "memoize_with_deps",
    "preload",
    "serialize_deps",
    # Queries
    "CachedQueries",
    "CachedQuery",
    "PagedQuery",
    "QueryOptions",
]

"""Get-or-compute helpers layered on a CacheManager.

Route handlers use these instead of hand-rolling the cache lookup:

    title = await memoize(
        key=CacheKeyBuilder.chat(session_id, "title"),
        producer=lambda: generate_title(messages),
        cache=caches.chat,
    )

None of these helpers de-duplicate concurrent misses: two callers that
miss on the same key at the same time will both run their producer.
"""

import json
import re
import time
from collections.abc import Awaitable, Callable, Sequence
from typing import Any, TypeVar, cast

import structlog

from legalcache.cache.manager import CacheManager

logger = structlog.get_logger(__name__)

T = TypeVar("T")


def serialize_deps(deps: Sequence[Any]) -> str:
    """Serialize dependency values into a stable key fragment.

    Equal values serialize identically regardless of dict ordering.

    Args:
        deps: Dependency values.

    Returns:
        Compact JSON string, e.g. ``[1,"a"]``.
    """
    return json.dumps(list(deps), sort_keys=True, separators=(",", ":"), default=str)


async def memoize(
    key: str,
    producer: Callable[[], Awaitable[T]],
    cache: CacheManager,
    ttl: float | None = None,
) -> T:
    """Return the cached value for ``key`` or compute and cache it.

    If ``producer`` raises, the exception propagates and nothing is cached.

    Args:
        key: Cache key.
        producer: Async function computing the value on a miss.
        cache: Cache to read from and write to.
        ttl: TTL in milliseconds, defaults to the cache's TTL.

    Returns:
        Cached or computed value.
    """
    cached = cache.get(key)
    if cached is not None:
        return cast(T, cached)

    start = time.monotonic()
    result = await producer()
    compute_time_ms = (time.monotonic() - start) * 1000

    cache.set(key, result, ttl)

    logger.debug(
        "cache_computed",
        cache=cache.name,
        key=key,
        compute_time_ms=round(compute_time_ms, 2),
    )

    return result


async def memoize_with_deps(
    key: str,
    deps: Sequence[Any],
    producer: Callable[[], Awaitable[T]],
    cache: CacheManager,
    ttl: float | None = None,
) -> T:
    """Memoize under a key derived from ``key`` and the dependency values.

    Args:
        key: Base cache key.
        deps: Values the result depends on.
        producer: Async function computing the value on a miss.
        cache: Cache to read from and write to.
        ttl: TTL in milliseconds.

    Returns:
        Cached or computed value.
    """
    deps_key = f"{key}:{serialize_deps(deps)}"
    return await memoize(deps_key, producer, cache, ttl)


def invalidate_pattern(pattern: re.Pattern[str] | str, cache: CacheManager) -> int:
    """Delete every valid key matching ``pattern``.

    Not atomic with respect to concurrent writers or the background sweep.

    Args:
        pattern: Regex (compiled or source) searched against each key.
        cache: Cache to invalidate.

    Returns:
        Number of keys deleted.
    """
    if isinstance(pattern, str):
        pattern = re.compile(pattern)

    deleted = 0
    for key in cache.keys():
        if pattern.search(key) and cache.delete(key):
            deleted += 1

    if deleted:
        logger.info(
            "cache_invalidated",
            cache=cache.name,
            pattern=pattern.pattern,
            deleted_count=deleted,
        )

    return deleted


async def preload(
    key: str,
    producer: Callable[[], Awaitable[Any]],
    cache: CacheManager,
    ttl: float | None = None,
) -> None:
    """Compute and cache a value ahead of time.

    Failures are logged and swallowed.

    Args:
        key: Cache key.
        producer: Async function computing the value.
        cache: Cache to write to.
        ttl: TTL in milliseconds.
    """
    try:
        result = await producer()
    except Exception as e:
        logger.warning("cache_preload_failed", cache=cache.name, key=key, error=str(e))
        return

    cache.set(key, result, ttl)

"""Cached query helpers.

``CachedQuery`` wraps a fetch function with a cache lookup, retries with
linear backoff, and success/error callbacks. ``CachedQueries`` drives several
queries together. ``PagedQuery`` memoizes each page of a paginated fetch
under its own key.
"""

import asyncio
from collections.abc import Awaitable, Callable, Sequence
from dataclasses import dataclass
from typing import Any, Generic, TypeVar

import structlog
from tenacity import AsyncRetrying, stop_after_attempt, wait_incrementing

from legalcache.cache.keys import CacheKeyBuilder
from legalcache.cache.manager import CacheManager
from legalcache.cache.utils import memoize

logger = structlog.get_logger(__name__)

T = TypeVar("T")


@dataclass
class QueryOptions(Generic[T]):
    """Options for a CachedQuery.

    Attributes:
        ttl: TTL in milliseconds for the cached result.
        enabled: When False, execute() does nothing.
        retry_count: Retries after the first failed attempt.
        retry_delay: Base backoff in milliseconds; retry n waits n * retry_delay.
        on_success: Called with the data after a hit or a successful fetch.
        on_error: Called with the exception after the final failed attempt.
        on_settled: Called with (data, error) after every fetch.
    """

    ttl: float | None = None
    enabled: bool = True
    retry_count: int = 3
    retry_delay: float = 1000
    on_success: Callable[[T], None] | None = None
    on_error: Callable[[Exception], None] | None = None
    on_settled: Callable[[T | None, Exception | None], None] | None = None


class CachedQuery(Generic[T]):
    """A keyed query whose result is served from a cache when possible.

    Errors from ``query_fn`` are recorded on the query, not raised. A fetch
    started while an earlier one is still running supersedes it: the
    earlier result or error is discarded and its callbacks never fire.

    Example:
        query = CachedQuery(
            key=CacheKeyBuilder.document(doc_id),
            query_fn=lambda: storage.fetch_metadata(doc_id),
            cache=caches.document,
        )
        metadata = await query.execute()
    """

    def __init__(
        self,
        key: str,
        query_fn: Callable[[], Awaitable[T]],
        cache: CacheManager,
        options: QueryOptions[T] | None = None,
    ) -> None:
        self.key = key
        self.query_fn = query_fn
        self.cache = cache
        self.options = options or QueryOptions()

        self.data: T | None = None
        self.error: Exception | None = None
        self.is_loading = False
        self.is_fetching = False
        self.is_success = False
        self.is_error = False
        self._generation = 0

    async def execute(self, force: bool = False) -> T | None:
        """Serve from cache or fetch, updating query state.

        Args:
            force: Skip the cache lookup and always fetch.

        Returns:
            The query data, or None if disabled or failed.
        """
        if not self.options.enabled:
            return self.data

        if not force and self._check_cache():
            return self.data

        # A newer fetch supersedes this one; its outcome is then dropped.
        self._generation += 1
        generation = self._generation

        self.is_loading = True
        self.is_fetching = True
        self.is_success = False
        self.is_error = False
        self.error = None

        try:
            result = await self._fetch_with_retry()
        except Exception as e:
            if generation != self._generation:
                logger.debug("cached_query_superseded", key=self.key)
                return self.data
            self._record_error(e)
        else:
            if generation != self._generation:
                logger.debug("cached_query_superseded", key=self.key)
                return self.data
            try:
                self.cache.set(self.key, result, self.options.ttl)
                self.data = result
                self.is_success = True
                if self.options.on_success:
                    self.options.on_success(result)
            except Exception as e:
                self._record_error(e)

        self.is_loading = False
        self.is_fetching = False

        if self.options.on_settled:
            self.options.on_settled(self.data, self.error)

        return self.data

    async def refetch(self) -> T | None:
        """Fetch ignoring any cached value."""
        return await self.execute(force=True)

    def invalidate(self) -> None:
        """Drop this query's cached value and data."""
        self.cache.delete(self.key)
        self.data = None
        self.is_success = False

    def clear_cache(self) -> None:
        """Clear the whole backing cache and this query's data."""
        self.cache.clear()
        self.data = None
        self.is_success = False

    def _record_error(self, error: Exception) -> None:
        self.error = error
        self.is_error = True
        self.is_success = False
        logger.warning("cached_query_failed", key=self.key, error=str(error))
        if self.options.on_error:
            self.options.on_error(error)

    def _check_cache(self) -> bool:
        cached = self.cache.get(self.key)
        if cached is None:
            return False

        self.data = cached
        self.is_success = True
        self.is_error = False
        if self.options.on_success:
            self.options.on_success(cached)
        return True

    async def _fetch_with_retry(self) -> T:
        delay_seconds = self.options.retry_delay / 1000
        attempt = 0

        async for attempt_context in AsyncRetrying(
            stop=stop_after_attempt(self.options.retry_count + 1),
            wait=wait_incrementing(start=delay_seconds, increment=delay_seconds),
            reraise=True,
        ):
            with attempt_context:
                attempt += 1
                if attempt > 1:
                    logger.info(
                        "cached_query_retry",
                        key=self.key,
                        attempt=attempt,
                        max_attempts=self.options.retry_count + 1,
                    )
                return await self.query_fn()

        raise RuntimeError("Retry loop exited unexpectedly")


class CachedQueries(Generic[T]):
    """Several cached queries executed and reported on together.

    Example:
        queries = CachedQueries(
            [CachedQuery(CacheKeyBuilder.document(d), fetchers[d], caches.document) for d in ids]
        )
        documents = await queries.execute()
    """

    def __init__(self, queries: Sequence[CachedQuery[T]]) -> None:
        self.queries = list(queries)

    @property
    def data(self) -> list[T]:
        """Data of every query that has some, in query order."""
        return [query.data for query in self.queries if query.data is not None]

    @property
    def error(self) -> Exception | None:
        """The first recorded error, if any."""
        return next((query.error for query in self.queries if query.error is not None), None)

    @property
    def is_loading(self) -> bool:
        return any(query.is_loading for query in self.queries)

    @property
    def is_fetching(self) -> bool:
        return any(query.is_fetching for query in self.queries)

    @property
    def is_error(self) -> bool:
        return any(query.is_error for query in self.queries)

    @property
    def is_success(self) -> bool:
        return all(query.is_success for query in self.queries)

    async def execute(self) -> list[T]:
        """Execute every query concurrently."""
        await asyncio.gather(*(query.execute() for query in self.queries))
        return self.data

    async def refetch(self) -> list[T]:
        """Refetch every query concurrently, ignoring cached values."""
        await asyncio.gather(*(query.refetch() for query in self.queries))
        return self.data

    def invalidate(self) -> None:
        """Invalidate every query."""
        for query in self.queries:
            query.invalidate()

    def clear_cache(self) -> None:
        """Clear the backing cache of every query."""
        for query in self.queries:
            query.clear_cache()


def _default_next_page(last_page: list[Any], all_pages: list[list[Any]], page_size: int) -> int | None:
    return len(all_pages) if len(last_page) == page_size else None


class PagedQuery(Generic[T]):
    """Paginated fetch with each page memoized under ``{key}:page:{n}``."""

    def __init__(
        self,
        key: str,
        query_fn: Callable[[int, int], Awaitable[list[T]]],
        cache: CacheManager,
        page_size: int = 10,
        get_next_page_param: Callable[[list[T], list[list[T]]], int | None] | None = None,
        ttl: float | None = None,
    ) -> None:
        self.key = key
        self.query_fn = query_fn
        self.cache = cache
        self.page_size = page_size
        self.ttl = ttl
        self._get_next_page_param = get_next_page_param

        self.pages: list[list[T]] = []
        self.has_next_page = True

    @property
    def items(self) -> list[T]:
        """All fetched items, in page order."""
        return [item for page in self.pages for item in page]

    async def fetch_page(self, page: int) -> list[T]:
        """Fetch one page, from cache when possible."""
        return await memoize(
            CacheKeyBuilder.page(self.key, page),
            lambda: self.query_fn(page, self.page_size),
            self.cache,
            self.ttl,
        )

    async def fetch_next_page(self) -> None:
        """Fetch and append the next page, if any."""
        if not self.has_next_page:
            return

        new_page = await self.fetch_page(len(self.pages))

        if not new_page:
            self.has_next_page = False
            return

        self.pages.append(new_page)
        self.has_next_page = self._next_page_param(new_page) is not None

    def fetch_previous_page(self) -> None:
        """Drop the last fetched page, keeping at least one."""
        if len(self.pages) <= 1:
            return

        self.pages.pop()
        self.has_next_page = True

    def _next_page_param(self, last_page: list[T]) -> int | None:
        if self._get_next_page_param is not None:
            return self._get_next_page_param(last_page, self.pages)
        return _default_next_page(last_page, self.pages, self.page_size)

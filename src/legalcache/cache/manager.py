"""In-memory TTL cache manager.

This module provides the process-local cache used by the legal assistant
to avoid repeating expensive work such as document metadata lookups,
chat title generation, and user profile fetches.

Features:
- Per-entry TTL with lazy expiry on read
- Capacity-bounded eviction of the oldest entry
- Background sweep that purges expired entries
- Hit/miss/eviction metrics

All durations are in milliseconds.
"""

import threading
import time
import weakref
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any, Generic, TypeVar

import structlog

logger = structlog.get_logger(__name__)

T = TypeVar("T")

DEFAULT_TTL_MS = 5 * 60 * 1000  # 5 minutes
DEFAULT_MAX_SIZE = 1000
DEFAULT_CLEANUP_INTERVAL_MS = 60 * 1000  # 1 minute


def monotonic_ms() -> float:
    """Current monotonic time in milliseconds."""
    return time.monotonic() * 1000


@dataclass
class CacheEntry(Generic[T]):
    """A single cached value.

    Attributes:
        value: The cached payload.
        timestamp: Time of insertion in milliseconds.
        ttl: Milliseconds the entry stays valid after ``timestamp``.
    """

    value: T
    timestamp: float
    ttl: float

    def is_expired(self, now: float) -> bool:
        """Whether the entry has outlived its TTL at ``now``."""
        return now - self.timestamp > self.ttl


@dataclass(frozen=True)
class CacheStats:
    """Point-in-time snapshot of a cache's contents.

    Attributes:
        total: Number of stored entries, expired ones included.
        valid: Entries still within their TTL.
        expired: Entries past their TTL but not yet removed.
        max_size: Configured capacity.
        default_ttl: Configured default TTL in milliseconds.
    """

    total: int
    valid: int
    expired: int
    max_size: int
    default_ttl: float

    def to_dict(self) -> dict[str, Any]:
        """Convert stats to dictionary."""
        return {
            "total": self.total,
            "valid": self.valid,
            "expired": self.expired,
            "max_size": self.max_size,
            "default_ttl": self.default_ttl,
        }


@dataclass
class CacheMetrics:
    """Counters for cache behaviour.

    Attributes:
        hits: Reads that returned a value.
        misses: Reads that found nothing or an expired entry.
        evictions: Entries dropped to make room for a new one.
        expirations: Entries removed because their TTL ran out.
    """

    hits: int = 0
    misses: int = 0
    evictions: int = 0
    expirations: int = 0

    @property
    def total_requests(self) -> int:
        """Total number of reads."""
        return self.hits + self.misses

    @property
    def hit_rate(self) -> float:
        """Cache hit rate as a percentage."""
        if self.total_requests == 0:
            return 0.0
        return (self.hits / self.total_requests) * 100

    def to_dict(self) -> dict[str, Any]:
        """Convert metrics to dictionary."""
        return {
            "hits": self.hits,
            "misses": self.misses,
            "evictions": self.evictions,
            "expirations": self.expirations,
            "total_requests": self.total_requests,
            "hit_rate": round(self.hit_rate, 2),
        }

    def reset(self) -> None:
        """Reset all metrics."""
        self.hits = 0
        self.misses = 0
        self.evictions = 0
        self.expirations = 0


class CacheManager:
    """Bounded, expiring key-value store.

    Entries expire ``ttl`` milliseconds after insertion. Reads treat expired
    entries as absent and remove them; a background thread sweeps expired
    entries every ``cleanup_interval`` milliseconds so unread keys do not
    accumulate. When the cache is full, ``set`` evicts the entry with the
    oldest timestamp first.

    Values are stored by reference. Callers must treat cached objects as
    immutable, or pass a ``snapshot`` function (e.g. ``copy.deepcopy``)
    that is applied to every value handed back by ``get`` and ``entries``.

    The sweep thread keeps only a weak reference to the manager. A manager
    dropped without ``destroy()`` is still collected, and its thread exits.

    Example:
        cache = CacheManager(ttl=10 * 60 * 1000, max_size=500, name="chat")

        cache.set("chat:abc:title", "Lease review")
        cache.get("chat:abc:title")  # "Lease review"

        cache.destroy()
    """

    def __init__(
        self,
        ttl: float | None = None,
        max_size: int | None = None,
        cleanup_interval: float | None = None,
        *,
        name: str = "cache",
        clock: Callable[[], float] | None = None,
        snapshot: Callable[[Any], Any] | None = None,
    ) -> None:
        """Initialize the cache and start its background sweep.

        Args:
            ttl: Default TTL in milliseconds (default: 5 min).
            max_size: Maximum number of entries (default: 1000).
            cleanup_interval: Sweep period in milliseconds (default: 1 min).
            name: Name used in log events.
            clock: Millisecond clock, monotonic by default.
            snapshot: Optional copy function applied to returned values.
        """
        self.default_ttl = ttl or DEFAULT_TTL_MS
        self.max_size = max_size or DEFAULT_MAX_SIZE
        self.cleanup_interval = cleanup_interval or DEFAULT_CLEANUP_INTERVAL_MS
        self.name = name
        self.metrics = CacheMetrics()

        self._clock = clock or monotonic_ms
        self._snapshot = snapshot
        self._cache: dict[str, CacheEntry[Any]] = {}
        self._lock = threading.RLock()
        self._cleanup_thread: threading.Thread | None = None
        self._stop_event: threading.Event | None = None

        self.start_cleanup()

    def set(self, key: str, value: Any, ttl: float | None = None) -> None:
        """Store a value.

        If the cache is full the oldest entry is evicted first, even when
        ``key`` is already present and would simply be overwritten.

        Args:
            key: Cache key.
            value: Value to cache.
            ttl: TTL in milliseconds. Uses the default TTL if not provided.
        """
        with self._lock:
            entry = CacheEntry(
                value=value,
                timestamp=self._clock(),
                ttl=self.default_ttl if ttl is None else ttl,
            )

            if len(self._cache) >= self.max_size:
                self._evict_oldest()

            self._cache[key] = entry

    def get(self, key: str) -> Any | None:
        """Get a value from the cache.

        Args:
            key: Cache key.

        Returns:
            Cached value, or None if absent or expired.
        """
        with self._lock:
            entry = self._cache.get(key)

            if entry is None:
                self.metrics.misses += 1
                return None

            if entry.is_expired(self._clock()):
                self._expire(key)
                self.metrics.misses += 1
                return None

            self.metrics.hits += 1
            return self._copy(entry.value)

    def has(self, key: str) -> bool:
        """Check if a key exists and has not expired."""
        with self._lock:
            entry = self._cache.get(key)

            if entry is None:
                return False

            if entry.is_expired(self._clock()):
                self._expire(key)
                return False

            return True

    def delete(self, key: str) -> bool:
        """Delete a key.

        Returns:
            True if the key was present.
        """
        with self._lock:
            return self._cache.pop(key, None) is not None

    def clear(self) -> None:
        """Remove all entries. The background sweep keeps running."""
        with self._lock:
            self._cache.clear()

    def get_stats(self) -> CacheStats:
        """Classify entries as valid or expired without removing any."""
        with self._lock:
            now = self._clock()
            expired = sum(1 for entry in self._cache.values() if entry.is_expired(now))

            return CacheStats(
                total=len(self._cache),
                valid=len(self._cache) - expired,
                expired=expired,
                max_size=self.max_size,
                default_ttl=self.default_ttl,
            )

    def keys(self) -> list[str]:
        """Get all valid keys in insertion order."""
        with self._lock:
            now = self._clock()
            return [key for key, entry in self._cache.items() if not entry.is_expired(now)]

    def entries(self) -> list[tuple[str, Any]]:
        """Get all valid (key, value) pairs in insertion order."""
        with self._lock:
            now = self._clock()
            return [
                (key, self._copy(entry.value))
                for key, entry in self._cache.items()
                if not entry.is_expired(now)
            ]

    def get_ttl(self, key: str) -> float:
        """Get remaining TTL for a key.

        Args:
            key: Cache key.

        Returns:
            Remaining milliseconds, or -1 if the key is absent or expired.
        """
        with self._lock:
            entry = self._cache.get(key)

            if entry is None:
                return -1

            remaining = entry.ttl - (self._clock() - entry.timestamp)

            if remaining <= 0:
                self._expire(key)
                return -1

            return remaining

    def extend_ttl(self, key: str, additional: float) -> bool:
        """Add to the total TTL of a live entry.

        The extension is measured from the original insertion time, not
        from now.

        Args:
            key: Cache key.
            additional: Milliseconds to add.

        Returns:
            True if extended, False if the key is absent or expired.
        """
        with self._lock:
            entry = self._live_entry(key)
            if entry is None:
                return False

            entry.ttl += additional
            return True

    def set_ttl(self, key: str, ttl: float) -> bool:
        """Replace the TTL of a live entry.

        Args:
            key: Cache key.
            ttl: New total TTL in milliseconds.

        Returns:
            True if updated, False if the key is absent or expired.
        """
        with self._lock:
            entry = self._live_entry(key)
            if entry is None:
                return False

            entry.ttl = ttl
            return True

    def cleanup(self) -> int:
        """Remove every expired entry.

        Returns:
            Number of entries removed.
        """
        with self._lock:
            now = self._clock()
            expired_keys = [key for key, entry in self._cache.items() if entry.is_expired(now)]

            for key in expired_keys:
                self._expire(key)

        if expired_keys:
            logger.debug("cache_cleanup", cache=self.name, removed=len(expired_keys))

        return len(expired_keys)

    @property
    def is_running(self) -> bool:
        """Whether the background sweep is active."""
        return self._cleanup_thread is not None

    def start_cleanup(self) -> None:
        """Start the background sweep if it is not already running."""
        with self._lock:
            if self._cleanup_thread is not None:
                return

            stop_event = threading.Event()
            thread = threading.Thread(
                target=_cleanup_loop,
                args=(weakref.ref(self), stop_event, self.cleanup_interval / 1000),
                daemon=True,
                name=f"{self.name}-cleanup",
            )
            # Stops the thread if the manager is collected without destroy().
            weakref.finalize(self, stop_event.set)
            self._stop_event = stop_event
            self._cleanup_thread = thread
            thread.start()

        logger.debug("cache_cleanup_started", cache=self.name, interval_ms=self.cleanup_interval)

    def stop_cleanup(self) -> None:
        """Stop the background sweep. Entries stay addressable."""
        with self._lock:
            thread, stop_event = self._cleanup_thread, self._stop_event
            if thread is None or stop_event is None:
                return

            self._cleanup_thread = None
            self._stop_event = None

        stop_event.set()
        if thread is not threading.current_thread():
            thread.join(timeout=2.0)
        logger.debug("cache_cleanup_stopped", cache=self.name)

    def destroy(self) -> None:
        """Stop the background sweep and drop all entries."""
        self.stop_cleanup()
        self.clear()

    def get_metrics(self) -> dict[str, Any]:
        """Get cache metrics as a dictionary."""
        return self.metrics.to_dict()

    def reset_metrics(self) -> None:
        """Reset cache metrics."""
        with self._lock:
            self.metrics.reset()

    def __len__(self) -> int:
        with self._lock:
            return len(self._cache)

    def __contains__(self, key: object) -> bool:
        return isinstance(key, str) and self.has(key)

    def _evict_oldest(self) -> None:
        """Drop the entry with the smallest timestamp."""
        oldest_key: str | None = None
        oldest_timestamp = 0.0

        for key, entry in self._cache.items():
            if oldest_key is None or entry.timestamp < oldest_timestamp:
                oldest_key = key
                oldest_timestamp = entry.timestamp

        if oldest_key is not None:
            del self._cache[oldest_key]
            self.metrics.evictions += 1
            logger.debug("cache_evicted", cache=self.name, key=oldest_key)

    def _live_entry(self, key: str) -> CacheEntry[Any] | None:
        """Return the entry for ``key`` unless absent or expired."""
        entry = self._cache.get(key)
        if entry is None:
            return None

        if entry.is_expired(self._clock()):
            self._expire(key)
            return None

        return entry

    def _expire(self, key: str) -> None:
        del self._cache[key]
        self.metrics.expirations += 1

    def _copy(self, value: Any) -> Any:
        if self._snapshot is None:
            return value
        return self._snapshot(value)


def _cleanup_loop(
    manager_ref: "weakref.ref[CacheManager]",
    stop_event: threading.Event,
    interval_seconds: float,
) -> None:
    """Background thread body: sweep until stopped or the manager is gone.

    Only a weak reference is held between sweeps so an abandoned manager
    can still be collected.
    """
    while not stop_event.wait(interval_seconds):
        manager = manager_ref()
        if manager is None:
            return

        try:
            manager.cleanup()
        except Exception as e:
            logger.warning("cache_cleanup_error", cache=manager.name, error=str(e))
        finally:
            del manager

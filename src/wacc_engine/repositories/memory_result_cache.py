"""In-memory implementation of ResultCache.

Process-local memoization for WACC results, keyed by input fingerprint.
It's the default implementation and satisfies the ResultCache protocol.
"""

import asyncio
import logging
import time
from collections import OrderedDict
from collections.abc import Callable

from wacc_engine.config import settings
from wacc_engine.entities import CacheEntry, CacheStatus, WACCResult
from wacc_engine.errors import CacheFailure
from wacc_engine.protocols import ComputeFn

logger = logging.getLogger(__name__)


class _PendingComputation:
    """In-flight computation shared by every caller of one fingerprint."""

    __slots__ = ("future", "retain", "task")

    def __init__(self, future: asyncio.Future) -> None:
        self.future = future
        self.task: asyncio.Task | None = None
        # Cleared by clear()/invalidate(): still deliver, but do not store
        self.retain = True


def _mark_retrieved(future: asyncio.Future) -> None:
    # A failure nobody else awaited must not be reported as "never retrieved"
    if not future.cancelled():
        future.exception()


async def _run(compute_fn: ComputeFn) -> WACCResult:
    return await compute_fn()


class InMemoryResultCache:
    """In-memory cache with single-flight computation, TTL and LRU eviction.

    This class satisfies the ResultCache protocol through structural
    typing - no explicit inheritance needed.

    Guarantees:
    - At most one concurrent ``compute_fn`` call per fingerprint; later
      callers attach to the pending future instead of recomputing
    - Failures are shared with waiters but never cached
    - Entries expire ``ttl`` seconds after creation
    - Least-recently-used completed entries are evicted beyond
      ``max_entries``; pending computations are never evicted

    All mutation happens between awaits on the event loop, so no lock is
    needed for callers on the same loop.

    Example:
        ```python
        cache = InMemoryResultCache.create(ttl=600, max_entries=100)
        result = await cache.get_or_compute(key, compute)
        ```
    """

    def __init__(
        self,
        ttl: float | None = None,
        max_entries: int | None = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        """Initialize the in-memory cache.

        Args:
            ttl: Time-to-live for entries in seconds. Defaults to settings.
            max_entries: Capacity before LRU eviction. Defaults to settings.
            clock: Monotonic clock used for TTL and access bookkeeping.
        """
        self._ttl = ttl if ttl is not None else settings.cache_ttl
        self._max_entries = max_entries if max_entries is not None else settings.cache_max_entries
        if self._ttl <= 0:
            raise ValueError("ttl must be positive")
        if self._max_entries < 1:
            raise ValueError("max_entries must be at least 1")

        self._clock = clock
        self._entries: OrderedDict[str, CacheEntry] = OrderedDict()
        self._pending: dict[str, _PendingComputation] = {}
        self._hits = 0
        self._misses = 0
        self._shared = 0
        self._evictions = 0
        self._expirations = 0

    @classmethod
    def create(
        cls,
        ttl: float | None = None,
        max_entries: int | None = None,
    ) -> "InMemoryResultCache":
        """Factory method to create InMemoryResultCache with defaults.

        Args:
            ttl: Entry TTL in seconds. If None, uses settings.
            max_entries: Capacity. If None, uses settings.

        Returns:
            Configured InMemoryResultCache
        """
        return cls(ttl=ttl, max_entries=max_entries)

    async def get_or_compute(self, fingerprint: str, compute_fn: ComputeFn) -> WACCResult:
        """Return the cached result for a fingerprint, computing it at most once."""
        result, _ = await self.get_or_compute_with_status(fingerprint, compute_fn)
        return result

    async def get_or_compute_with_status(
        self,
        fingerprint: str,
        compute_fn: ComputeFn,
    ) -> tuple[WACCResult, CacheStatus]:
        """Return the result for a fingerprint and how it was served.

        Args:
            fingerprint: Cache key
            compute_fn: Zero-argument callable returning an awaitable result

        Returns:
            Tuple of (result, cache status)

        Raises:
            Exception: Whatever ``compute_fn`` raised, for the computing
                caller and every waiter attached to it
            CacheFailure: If the computation task was cancelled
        """
        entry = self._lookup(fingerprint)
        if entry is not None:
            self._hits += 1
            logger.debug("Cache hit for %s", fingerprint)
            return entry.result, CacheStatus.HIT

        pending = self._pending.get(fingerprint)
        if pending is not None:
            self._shared += 1
            logger.debug("Attaching to pending computation for %s", fingerprint)
            # shield: a cancelled waiter must not cancel the shared computation
            result = await asyncio.shield(pending.future)
            return result, CacheStatus.SHARED

        self._misses += 1
        logger.debug("Cache miss for %s", fingerprint)
        result = await self._compute(fingerprint, compute_fn)
        return result, CacheStatus.MISS

    async def _compute(self, fingerprint: str, compute_fn: ComputeFn) -> WACCResult:
        """Run ``compute_fn`` in its own task behind a pending marker other callers can await."""
        loop = asyncio.get_running_loop()
        pending = _PendingComputation(loop.create_future())
        pending.future.add_done_callback(_mark_retrieved)
        self._pending[fingerprint] = pending

        pending.task = loop.create_task(_run(compute_fn))
        pending.task.add_done_callback(lambda task: self._settle(fingerprint, pending, task))
        # shield: cancelling the first caller must not cancel the shared computation
        return await asyncio.shield(pending.future)

    def _settle(self, fingerprint: str, pending: _PendingComputation, task: asyncio.Task) -> None:
        self._release(fingerprint, pending)
        if task.cancelled():
            pending.future.set_exception(
                CacheFailure(f"Computation for {fingerprint} was cancelled")
            )
            return

        exc = task.exception()
        if exc is not None:
            pending.future.set_exception(exc)
            return

        result = task.result()
        # Store before resolving so no waiter can observe a half-updated cache
        if pending.retain:
            self._store(fingerprint, result)
        pending.future.set_result(result)

    def _lookup(self, fingerprint: str) -> CacheEntry | None:
        entry = self._entries.get(fingerprint)
        if entry is None:
            return None

        now = self._clock()
        if entry.is_expired(now, self._ttl):
            del self._entries[fingerprint]
            self._expirations += 1
            logger.debug("Cache entry expired for %s", fingerprint)
            return None

        entry.touch(now)
        self._entries.move_to_end(fingerprint)
        return entry

    def _store(self, fingerprint: str, result: WACCResult) -> None:
        now = self._clock()
        self._entries[fingerprint] = CacheEntry(
            fingerprint=fingerprint,
            result=result,
            created_at=now,
            last_access=now,
        )
        self._entries.move_to_end(fingerprint)
        self._enforce_capacity()

    def _enforce_capacity(self) -> None:
        # Pending computations count toward capacity but are never evicted
        while self._entries and len(self._entries) + len(self._pending) > self._max_entries:
            evicted, _ = self._entries.popitem(last=False)
            self._evictions += 1
            logger.debug("Evicted least recently used entry %s", evicted)

    def _release(self, fingerprint: str, pending: _PendingComputation) -> None:
        if self._pending.get(fingerprint) is pending:
            del self._pending[fingerprint]

    def invalidate(self, fingerprint: str) -> int:
        """Drop a single fingerprint.

        A pending computation for the fingerprint still resolves for callers
        already waiting on it, but its result is not retained.

        Args:
            fingerprint: Cache key to drop

        Returns:
            Number of entries removed (0 or 1)
        """
        removed = 0
        if self._entries.pop(fingerprint, None) is not None:
            removed = 1

        pending = self._pending.pop(fingerprint, None)
        if pending is not None:
            pending.retain = False
            removed = 1

        return removed

    def clear(self) -> int:
        """Drop every completed entry and detach every pending computation.

        Returns:
            Number of entries removed
        """
        count = len(self._entries) + len(self._pending)
        self._entries.clear()
        for pending in self._pending.values():
            pending.retain = False
        self._pending.clear()

        logger.info("Result cache cleared (%d entries)", count)
        return count

    def purge_expired(self) -> int:
        """Remove every expired entry.

        Returns:
            Number of entries removed
        """
        now = self._clock()
        expired = [key for key, entry in self._entries.items() if entry.is_expired(now, self._ttl)]
        for key in expired:
            del self._entries[key]

        self._expirations += len(expired)
        return len(expired)

    def get_stats(self) -> dict:
        """Get cache statistics.

        Returns:
            Dictionary with cache statistics
        """
        lookups = self._hits + self._shared + self._misses
        return {
            "hits": self._hits,
            "misses": self._misses,
            "shared": self._shared,
            "evictions": self._evictions,
            "expirations": self._expirations,
            "entry_count": len(self._entries),
            "pending_count": len(self._pending),
            "hit_rate": (self._hits + self._shared) / lookups if lookups else 0.0,
            "ttl": self._ttl,
            "max_entries": self._max_entries,
        }

    def __contains__(self, fingerprint: object) -> bool:
        return fingerprint in self._entries

    def __len__(self) -> int:
        return len(self._entries)

    @property
    def ttl(self) -> float:
        """Get the entry time-to-live in seconds."""
        return self._ttl

    @property
    def max_entries(self) -> int:
        """Get the configured capacity."""
        return self._max_entries

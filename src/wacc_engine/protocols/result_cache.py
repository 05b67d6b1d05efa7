"""Result cache protocol.

Defines the interface for the memoization layer that sits in front of the
WACC arithmetic. The default implementation is the process-local
``InMemoryResultCache``.
"""

from collections.abc import Awaitable, Callable
from typing import Protocol, runtime_checkable

from wacc_engine.entities import CacheStatus, WACCResult

ComputeFn = Callable[[], Awaitable[WACCResult]]


@runtime_checkable
class ResultCache(Protocol):
    """Protocol for fingerprint-keyed result caches.

    Any type that implements these methods satisfies the protocol, no
    explicit inheritance needed.

    Example:
        ```python
        from wacc_engine.protocols import ResultCache

        cache: ResultCache = InMemoryResultCache()
        ```
    """

    async def get_or_compute(self, fingerprint: str, compute_fn: ComputeFn) -> WACCResult:
        """Return the cached result for a fingerprint, computing it at most once.

        Args:
            fingerprint: Cache key
            compute_fn: Zero-argument callable returning an awaitable result

        Returns:
            The cached or freshly computed result
        """
        ...

    async def get_or_compute_with_status(
        self,
        fingerprint: str,
        compute_fn: ComputeFn,
    ) -> tuple[WACCResult, CacheStatus]:
        """Like ``get_or_compute`` but also reports how the call was served.

        Returns:
            Tuple of (result, cache status)
        """
        ...

    def invalidate(self, fingerprint: str) -> int:
        """Drop a single fingerprint.

        Returns:
            Number of entries removed (0 or 1)
        """
        ...

    def clear(self) -> int:
        """Drop every entry.

        Returns:
            Number of entries removed
        """
        ...

    def get_stats(self) -> dict:
        """Get cache statistics.

        Returns:
            Dictionary with stats (implementation-specific)
        """
        ...

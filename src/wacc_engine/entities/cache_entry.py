"""Cache entry domain entity."""

from dataclasses import dataclass

from .wacc_result import WACCResult


@dataclass
class CacheEntry:
    """A completed result held by the result cache.

    Entries are owned by the cache; only the cache updates the access
    bookkeeping. The wrapped result itself is immutable.

    Attributes:
        fingerprint: Cache key derived from the input snapshot
        result: The computed result
        created_at: Clock reading when the entry was stored
        last_access: Clock reading of the most recent hit
        access_count: Number of reads, including the initial store
    """

    fingerprint: str
    result: WACCResult
    created_at: float
    last_access: float
    access_count: int = 1

    def is_expired(self, now: float, ttl: float) -> bool:
        """Check whether the entry has outlived its time-to-live."""
        return now - self.created_at > ttl

    def touch(self, now: float) -> None:
        """Record a read."""
        self.access_count += 1
        self.last_access = now

"""
Time-bounded in-memory response cache.

Last-write-wins map from fingerprint to a validated Document. Entries are
derived, idempotent results, so there is no locking: every operation is a
plain dict access that completes without yielding to the event loop.

Expired entries are treated as misses on read and removed by `sweep()`,
which the CacheSweeper calls on a fixed interval.
"""

import time
from dataclasses import dataclass
from typing import Callable, Generic, Optional, TypeVar

import structlog

logger = structlog.get_logger(__name__)

V = TypeVar("V")


@dataclass(frozen=True)
class CacheEntry(Generic[V]):
    value: V
    inserted_at: float


class ResponseCache(Generic[V]):
    """
    TTL cache keyed by request fingerprint.

    Args:
        ttl_seconds: Entry lifetime
        clock: Monotonic time source (injectable for tests)
    """

    def __init__(self, ttl_seconds: float = 300.0, clock: Callable[[], float] = time.monotonic):
        if ttl_seconds <= 0:
            raise ValueError("ttl_seconds must be positive")
        self.ttl_seconds = ttl_seconds
        self._clock = clock
        self._entries: dict[str, CacheEntry[V]] = {}

    def get(self, key: str) -> Optional[V]:
        """Return the live value for `key`, or None if absent or expired."""
        entry = self._entries.get(key)
        if entry is None:
            return None
        if self._is_expired(entry, self._clock()):
            return None
        return entry.value

    def set(self, key: str, value: V) -> None:
        self._entries[key] = CacheEntry(value=value, inserted_at=self._clock())

    def sweep(self) -> int:
        """
        Remove expired entries.

        Returns:
            Number of entries removed
        """
        now = self._clock()
        expired = [key for key, entry in self._entries.items() if self._is_expired(entry, now)]
        for key in expired:
            del self._entries[key]
        if expired:
            logger.debug("Cache sweep removed expired entries", removed=len(expired), remaining=len(self._entries))
        return len(expired)

    def __len__(self) -> int:
        return len(self._entries)

    def _is_expired(self, entry: CacheEntry[V], now: float) -> bool:
        return now - entry.inserted_at >= self.ttl_seconds

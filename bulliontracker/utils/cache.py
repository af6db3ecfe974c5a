"""
BullionTracker — In-memory TTL cache.

Process-lifetime key/value store with a per-instance time-to-live.
Entries are never evicted on expiry: a stale entry stops being returned by
get() but stays readable through get_stale() so callers can fall back to the
last good value when an upstream fetch fails.

The clock is injectable so expiry can be driven deterministically in tests.
Nothing is persisted across restarts.
"""

from __future__ import annotations

import time
from dataclasses import dataclass
from typing import Any, Callable, Generic, Hashable, TypeVar

import structlog

logger = structlog.get_logger(__name__)

T = TypeVar("T")

Clock = Callable[[], float]


@dataclass(frozen=True)
class CacheEntry(Generic[T]):
    value: T
    stored_at: float


class TTLCache(Generic[T]):
    """
    Keyed cache with a single TTL for every entry.

    Usage:
        cache: TTLCache[float] = TTLCache(ttl_seconds=60, name="tickers")
        cache.set("GC=F", 2350.1)
        cache.get("GC=F")        # value while fresh, else None
        cache.get_stale("GC=F")  # value regardless of age
    """

    def __init__(
        self,
        ttl_seconds: float,
        clock: Clock = time.monotonic,
        name: str = "cache",
    ) -> None:
        if ttl_seconds < 0:
            raise ValueError(f"ttl_seconds must be non-negative, got {ttl_seconds}")
        self.ttl_seconds = ttl_seconds
        self.name = name
        self._clock = clock
        self._entries: dict[Hashable, CacheEntry[T]] = {}

    def age(self, key: Hashable) -> float | None:
        """Seconds since the entry was stored, or None if never set."""
        entry = self._entries.get(key)
        if entry is None:
            return None
        return self._clock() - entry.stored_at

    def is_fresh(self, key: Hashable) -> bool:
        age = self.age(key)
        return age is not None and age <= self.ttl_seconds

    def get(self, key: Hashable) -> T | None:
        """Return the value while its age is within the TTL."""
        if not self.is_fresh(key):
            return None
        logger.debug(
            "cache_hit",
            cache=self.name,
            key=str(key),
            age_seconds=round(self.age(key) or 0.0, 3),
            source="cache",
        )
        return self._entries[key].value

    def get_stale(self, key: Hashable) -> T | None:
        """Return the last stored value regardless of age."""
        entry = self._entries.get(key)
        return entry.value if entry is not None else None

    def set(self, key: Hashable, value: T) -> None:
        self._entries[key] = CacheEntry(value=value, stored_at=self._clock())

    def invalidate(self, key: Hashable | None = None) -> None:
        """Drop one entry, or every entry when key is None."""
        if key is None:
            self._entries.clear()
        else:
            self._entries.pop(key, None)

    def summary(self) -> dict[str, Any]:
        """Entry ages for diagnostics."""
        now = self._clock()
        return {
            str(key): {"age_seconds": round(now - entry.stored_at, 1)}
            for key, entry in self._entries.items()
        }

    def __contains__(self, key: Hashable) -> bool:
        return key in self._entries

    def __len__(self) -> int:
        return len(self._entries)

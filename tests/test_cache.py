"""Tests for the in-memory TTL cache (bulliontracker/utils/cache.py)."""

from __future__ import annotations

import pytest

from bulliontracker.utils.cache import TTLCache


class TestTTLCache:
    def test_miss_returns_none(self, clock) -> None:
        cache: TTLCache[float] = TTLCache(60, clock=clock)
        assert cache.get("GC=F") is None
        assert cache.get_stale("GC=F") is None
        assert cache.age("GC=F") is None

    def test_fresh_within_ttl(self, clock) -> None:
        cache: TTLCache[float] = TTLCache(60, clock=clock)
        cache.set("GC=F", 2350.0)

        clock.advance(60)  # boundary is inclusive

        assert cache.get("GC=F") == 2350.0
        assert cache.is_fresh("GC=F") is True

    def test_expired_entry_is_kept_for_stale_reads(self, clock) -> None:
        """Expiry hides the entry from get() but never evicts it."""
        cache: TTLCache[float] = TTLCache(60, clock=clock)
        cache.set("GC=F", 2350.0)

        clock.advance(61)

        assert cache.get("GC=F") is None
        assert cache.get_stale("GC=F") == 2350.0
        assert "GC=F" in cache
        assert len(cache) == 1

    def test_set_resets_age(self, clock) -> None:
        cache: TTLCache[float] = TTLCache(60, clock=clock)
        cache.set("GC=F", 2350.0)
        clock.advance(90)
        cache.set("GC=F", 2360.0)

        assert cache.age("GC=F") == 0
        assert cache.get("GC=F") == 2360.0

    def test_invalidate_single_and_all(self, clock) -> None:
        cache: TTLCache[str] = TTLCache(60, clock=clock)
        cache.set("a", "1")
        cache.set("b", "2")

        cache.invalidate("a")
        assert cache.get_stale("a") is None
        assert cache.get("b") == "2"

        cache.invalidate()
        assert len(cache) == 0

    def test_summary_reports_ages(self, clock) -> None:
        cache: TTLCache[str] = TTLCache(60, clock=clock, name="fx")
        cache.set("fx_snapshot", "x")
        clock.advance(12.34)

        assert cache.summary() == {"fx_snapshot": {"age_seconds": 12.3}}

    def test_negative_ttl_rejected(self) -> None:
        with pytest.raises(ValueError) as exc_info:
            TTLCache(-1)
        assert "must be non-negative" in str(exc_info.value)

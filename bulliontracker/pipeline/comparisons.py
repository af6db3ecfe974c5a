"""
BullionTracker — Cross-Seller Comparison Aggregator

Fans out to every configured retailer concurrently, keeps whatever
succeeded, and groups the listings into canonical product comparisons.

- Settle-all: one seller failing never blocks or invalidates the others
- Result cached process-wide per aggregator instance (24h by default)
"""

from __future__ import annotations

import asyncio
import time
from collections.abc import Sequence

import structlog

from bulliontracker.config import Seller, settings
from bulliontracker.engine.grouping import aggregate_listings
from bulliontracker.models import ProductComparison, RawListing
from bulliontracker.scraper.runner import ScraperRunner
from bulliontracker.utils.cache import Clock, TTLCache

logger = structlog.get_logger(__name__)

_COMPARISONS_KEY = "comparisons"


class ComparisonAggregator:
    """
    Builds and caches the cross-seller comparison set.

    Usage:
        aggregator = ComparisonAggregator(ScraperRunner(http_client))
        comparisons = await aggregator.get_comparisons()
    """

    def __init__(
        self,
        runner: ScraperRunner,
        sellers: Sequence[Seller] | None = None,
        ttl_seconds: float | None = None,
        clock: Clock = time.monotonic,
    ) -> None:
        self._runner = runner
        self._sellers = list(settings.SELLERS if sellers is None else sellers)
        self.cache: TTLCache[list[ProductComparison]] = TTLCache(
            settings.COMPARISONS_CACHE_TTL_SECONDS if ttl_seconds is None else ttl_seconds,
            clock=clock,
            name="comparisons",
        )
        self._lock = asyncio.Lock()

    @property
    def sellers(self) -> list[Seller]:
        return list(self._sellers)

    async def collect_listings(self) -> list[RawListing]:
        """Scrape every seller concurrently and keep the successful subset."""
        results = await asyncio.gather(
            *(self._runner.scrape_seller(seller) for seller in self._sellers),
            return_exceptions=True,
        )

        listings: list[RawListing] = []
        failed: list[str] = []
        for seller, result in zip(self._sellers, results):
            if isinstance(result, BaseException):
                failed.append(seller.name)
                logger.warning(
                    "comparisons_seller_failed",
                    seller=seller.name,
                    error=str(result),
                    error_type=type(result).__name__,
                    source="comparisons",
                )
                continue
            listings.extend(result)

        logger.info(
            "comparisons_sellers_settled",
            sellers_ok=len(self._sellers) - len(failed),
            sellers_failed=failed,
            listings=len(listings),
            source="comparisons",
        )
        return listings

    async def aggregate(self) -> list[ProductComparison]:
        """Run one uncached aggregation pass."""
        listings = await self.collect_listings()
        return aggregate_listings(listings)

    async def get_comparisons(self) -> list[ProductComparison]:
        """Return the cached comparison set, rebuilding it once expired."""
        cached = self.cache.get(_COMPARISONS_KEY)
        if cached is not None:
            return cached

        async with self._lock:
            cached = self.cache.get(_COMPARISONS_KEY)
            if cached is not None:
                return cached

            comparisons = await self.aggregate()
            self.cache.set(_COMPARISONS_KEY, comparisons)
            logger.info(
                "comparisons_refreshed",
                comparisons=len(comparisons),
                ttl_seconds=self.cache.ttl_seconds,
                source="comparisons",
            )
            return comparisons

"""
BullionTracker — Seller Catalog Runner

Fetches every catalog page of one retailer concurrently and runs the
extractor over each page that answered.

Failure isolation:
- One page failing → logged, the other pages still count
- Every page failing → SellerFetchFailed for this seller only
"""

from __future__ import annotations

import asyncio

import httpx
import structlog

from bulliontracker.config import Seller
from bulliontracker.engine.grouping import dedupe_listings
from bulliontracker.exceptions import SellerFetchFailed
from bulliontracker.models import RawListing
from bulliontracker.scraper.anti_detect import AntiDetect
from bulliontracker.scraper.extractor import extract_listings

logger = structlog.get_logger(__name__)


class ScraperRunner:
    """
    Runs catalog fetch + extraction for one seller at a time.

    Usage:
        runner = ScraperRunner(http_client)
        listings = await runner.scrape_seller(seller)
    """

    def __init__(
        self,
        http_client: httpx.AsyncClient,
        anti_detect: AntiDetect | None = None,
    ) -> None:
        self._client = http_client
        self.anti_detect = anti_detect or AntiDetect()

    async def fetch_page(self, seller: Seller, url: str) -> str:
        """
        Fetch one catalog page as text.

        Raises:
            SellerFetchFailed: network error, timeout or non-success status.
        """
        try:
            response = await self._client.get(
                url,
                headers=self.anti_detect.build_headers(),
                follow_redirects=True,
            )
            response.raise_for_status()
        except httpx.HTTPStatusError as e:
            raise SellerFetchFailed(seller.name, f"{e.response.status_code} for {url}") from e
        except httpx.HTTPError as e:
            raise SellerFetchFailed(seller.name, f"{type(e).__name__} for {url}") from e
        return response.text

    async def scrape_seller(self, seller: Seller) -> list[RawListing]:
        """
        Return the seller's deduplicated listings across all catalog pages.

        Raises:
            SellerFetchFailed: no catalog page could be fetched.
        """
        results = await asyncio.gather(
            *(self.fetch_page(seller, url) for url in seller.urls),
            return_exceptions=True,
        )

        pages: list[str] = []
        for url, result in zip(seller.urls, results):
            if isinstance(result, BaseException):
                logger.warning(
                    "scraper_page_failed",
                    seller=seller.name,
                    url=url,
                    error=str(result),
                    source="scraper_runner",
                )
                continue
            pages.append(result)

        if not pages:
            raise SellerFetchFailed(seller.name, "no catalog page could be fetched")

        listings: list[RawListing] = []
        for page in pages:
            listings.extend(extract_listings(page, seller.base_url, seller.name))

        deduped = dedupe_listings(listings)
        logger.info(
            "scraper_seller_complete",
            seller=seller.name,
            pages_ok=len(pages),
            pages_total=len(seller.urls),
            listings=len(deduped),
            source="scraper_runner",
        )
        return deduped

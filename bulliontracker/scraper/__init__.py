"""BullionTracker — Scraper Layer (retailer catalog pages)"""

from __future__ import annotations

from pydantic import BaseModel


class ListingCandidate(BaseModel):
    """Un-normalized listing pulled out of a page by one extraction strategy."""
    name: str
    price: str | float | int | None = None
    url: str | None = None
    strategy: str  # "heading_block" | "structured_data"

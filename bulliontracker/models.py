"""
BullionTracker — Domain models.

Everything the engine caches or returns to the query surface. JSON output
uses camelCase field names to match what the dashboard consumes.
"""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from bulliontracker.config import Metal, ProductForm


class _CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


# ---------------------------------------------------------------------------
# Quotes
# ---------------------------------------------------------------------------


class TickerQuote(_CamelModel):
    """Latest value of one instrument as seen by the quote provider."""

    instrument_id: str
    value: float
    observed_at: datetime


class MetalPriceSnapshot(_CamelModel):
    """Spot price of one metal in every display currency."""

    metal: Metal
    rates: dict[str, float] = Field(..., description="USD, AUD and INR price per troy ounce")
    observed_at: datetime


class FxSnapshot(_CamelModel):
    """USD-denominated multipliers: 1 USD = rate units of currency."""

    inr: float = Field(..., alias="INR")
    aud: float = Field(..., alias="AUD")
    observed_at: datetime
    source_label: str
    ticker_map: dict[str, str]


# ---------------------------------------------------------------------------
# Listings
# ---------------------------------------------------------------------------


class RawListing(_CamelModel):
    """One normalized retailer listing, produced per source fetch."""

    product_name: str
    metal: Metal
    weight_oz: float = Field(..., gt=0)
    price_local: float = Field(..., ge=0)
    url: str
    seller_name: str = ""
    form: ProductForm
    series_key: str | None = None


class Offer(_CamelModel):
    seller_name: str
    price: float
    url: str


class ProductComparison(_CamelModel):
    """A canonical product with one offer per seller listing it."""

    product_name: str
    metal: Metal
    weight_oz: float
    offers: list[Offer] = Field(default_factory=list)

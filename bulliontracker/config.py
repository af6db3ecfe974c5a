"""
BullionTracker — Configuration & Constants

Cache windows, upstream endpoints, instrument maps and the retailer list.
Every threshold and magic number lives here. No hardcoded values in
business logic.

Usage:
    from bulliontracker.config import settings
"""

from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, Field
from pydantic_settings import BaseSettings


# ---------------------------------------------------------------------------
# Enums
# ---------------------------------------------------------------------------

class Metal(str, Enum):
    """Supported precious metals, in classification priority order."""
    GOLD = "Gold"
    SILVER = "Silver"
    PLATINUM = "Platinum"
    PALLADIUM = "Palladium"


class ProductForm(str, Enum):
    """Physical product form. Only COIN and BAR qualify for comparison."""
    COIN = "Coin"
    BAR = "Bar"
    OTHER = "Other"


class Seller(BaseModel):
    """A retailer whose catalog pages are scraped for listings."""
    name: str
    base_url: str
    urls: list[str] = Field(default_factory=list)


def _shopify_seller(name: str, base_url: str) -> Seller:
    return Seller(
        name=name,
        base_url=base_url,
        urls=[
            f"{base_url}/collections/all",
            f"{base_url}/collections/bullion",
            f"{base_url}/collections/coins",
            f"{base_url}/collections/bars",
        ],
    )


DEFAULT_SELLERS: list[Seller] = [
    Seller(
        name="ABC Bullion",
        base_url="https://www.abcbullion.com.au",
        urls=[
            "https://www.abcbullion.com.au/store/",
            "https://www.abcbullion.com.au/store/Bullion-Coins",
            "https://www.abcbullion.com.au/store/abc-bullion-platinum",
            "https://www.abcbullion.com.au/store/palladium",
        ],
    ),
    Seller(
        name="Perth Mint",
        base_url="https://www.perthmint.com",
        urls=[
            "https://www.perthmint.com/shop",
            "https://www.perthmint.com/shop/bullion",
            "https://www.perthmint.com/shop/coins",
            "https://www.perthmint.com/shop/bars",
        ],
    ),
    _shopify_seller("Bullion Money", "https://bullionmoney.com.au"),
    _shopify_seller("Jaggards", "https://jaggards.com.au"),
    _shopify_seller("As Good As Gold", "https://asgoodasgoldaus.com.au"),
    _shopify_seller("KJC Bullion", "https://kjc-gold-silver-bullion.com.au"),
    _shopify_seller("Swan Bullion", "https://swanbullion.com"),
    _shopify_seller("Bulk Bullion", "https://bulkbullion.com.au"),
]


# ---------------------------------------------------------------------------
# Settings
# ---------------------------------------------------------------------------

class Settings(BaseSettings):
    """
    Central configuration for BullionTracker.

    Loads from environment variables with fallback defaults.
    """

    model_config = {"env_file": ".env", "env_file_encoding": "utf-8"}

    # -----------------------------------------------------------------------
    # Server
    # -----------------------------------------------------------------------
    HOST: str = "0.0.0.0"
    PORT: int = 8787
    LOG_LEVEL: str = "INFO"
    SERVICE_NAME: str = "bulliontracker-api"

    # -----------------------------------------------------------------------
    # Cache windows (seconds). Each one is independent.
    # -----------------------------------------------------------------------
    PRICES_CACHE_TTL_SECONDS: float = 60.0
    COMPARISONS_CACHE_TTL_SECONDS: float = 86400.0   # catalogs change slowly
    TICKER_CACHE_TTL_SECONDS: float = 60.0
    FX_CACHE_TTL_SECONDS: float = 60.0

    # -----------------------------------------------------------------------
    # Quote provider (Yahoo Finance chart API)
    # -----------------------------------------------------------------------
    QUOTE_PROVIDER_URL: str = "https://query1.finance.yahoo.com/v8/finance/chart"
    QUOTE_INTERVAL: str = "1d"
    QUOTE_RANGE: str = "5d"
    HTTP_TIMEOUT_SECONDS: float = 10.0

    # Prefer spot, fall back to futures if the spot pair is unavailable.
    METAL_TICKERS: dict[Metal, list[str]] = {
        Metal.GOLD: ["XAUUSD=X", "GC=F"],
        Metal.SILVER: ["XAGUSD=X", "SI=F"],
        Metal.PLATINUM: ["XPTUSD=X", "PL=F"],
        Metal.PALLADIUM: ["XPDUSD=X", "PA=F"],
    }

    # USD/<currency>: 1 USD in the target currency
    FX_TICKERS: dict[str, str] = {
        "INR": "INR=X",
        "AUD": "AUD=X",
    }
    FX_SOURCE_LABEL: str = "Yahoo Finance"

    # -----------------------------------------------------------------------
    # Retailers
    # -----------------------------------------------------------------------
    SELLERS: list[Seller] = DEFAULT_SELLERS


# Singleton instance
settings = Settings()

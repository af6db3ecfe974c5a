"""
BullionTracker — Spot Price Aggregator

Composes single-instrument quotes into:
- Per-metal snapshots priced in USD, AUD and INR
- An FX snapshot (USD/INR, USD/AUD) with its ticker map and source label

Each metal resolves through an ordered fallback chain (spot pair first,
futures contract second). Both composed results are cached independently.
A snapshot is all-valid or not published: one bad rate fails the build.
"""

from __future__ import annotations

import asyncio
import math
import time
from collections.abc import Mapping, Sequence
from datetime import datetime, timezone

import structlog

from bulliontracker.config import Metal, settings
from bulliontracker.exceptions import InstrumentFetchFailed, InvalidRate, QuoteError
from bulliontracker.models import FxSnapshot, MetalPriceSnapshot
from bulliontracker.pipeline.quote_client import QuoteClient
from bulliontracker.utils.cache import Clock, TTLCache
from bulliontracker.utils.forex import convert_usd_to_aud, convert_usd_to_inr, validate_rate

logger = structlog.get_logger(__name__)

_PRICES_KEY = "metal_prices"
_FX_KEY = "fx_snapshot"


class SpotAggregator:
    """
    Builds and caches metal price and FX snapshots.

    Usage:
        spot = SpotAggregator(quote_client)
        prices = await spot.get_metal_prices()
        fx = await spot.get_fx_snapshot()
    """

    def __init__(
        self,
        quotes: QuoteClient,
        metal_tickers: Mapping[Metal, Sequence[str]] | None = None,
        fx_tickers: Mapping[str, str] | None = None,
        prices_ttl_seconds: float | None = None,
        fx_ttl_seconds: float | None = None,
        clock: Clock = time.monotonic,
    ) -> None:
        self._quotes = quotes
        self._metal_tickers = dict(metal_tickers or settings.METAL_TICKERS)
        self._fx_tickers = dict(fx_tickers or settings.FX_TICKERS)
        self.prices_cache: TTLCache[list[MetalPriceSnapshot]] = TTLCache(
            settings.PRICES_CACHE_TTL_SECONDS if prices_ttl_seconds is None else prices_ttl_seconds,
            clock=clock,
            name="metal_prices",
        )
        self.fx_cache: TTLCache[FxSnapshot] = TTLCache(
            settings.FX_CACHE_TTL_SECONDS if fx_ttl_seconds is None else fx_ttl_seconds,
            clock=clock,
            name="fx",
        )
        self._prices_lock = asyncio.Lock()
        self._fx_lock = asyncio.Lock()

    # -----------------------------------------------------------------------
    # Building blocks
    # -----------------------------------------------------------------------

    async def resolve_metal_price(self, tickers: Sequence[str]) -> float:
        """
        Return the USD price from the first instrument that answers.

        Raises:
            InstrumentFetchFailed: every instrument failed; chained to the
                last error seen.
        """
        last_error: QuoteError | None = None
        for ticker in tickers:
            try:
                return await self._quotes.get_quote(ticker)
            except QuoteError as e:
                last_error = e
                logger.warning(
                    "spot_ticker_failed_trying_next",
                    ticker=ticker,
                    error=str(e),
                    source="spot",
                )

        chain = ",".join(tickers)
        if last_error is None:
            raise InstrumentFetchFailed(chain, "no instruments configured")
        raise InstrumentFetchFailed(chain, str(last_error)) from last_error

    async def fetch_fx_rates(self) -> dict[str, float]:
        """Fetch every FX instrument concurrently; all must succeed and be valid."""
        currencies = list(self._fx_tickers)
        values = await asyncio.gather(
            *(self._quotes.get_quote(self._fx_tickers[currency]) for currency in currencies)
        )
        return {
            currency: validate_rate(value, currency)
            for currency, value in zip(currencies, values)
        }

    # -----------------------------------------------------------------------
    # Public API
    # -----------------------------------------------------------------------

    async def get_metal_prices(self) -> list[MetalPriceSnapshot]:
        """Return cached metal snapshots, rebuilding them once expired."""
        cached = self.prices_cache.get(_PRICES_KEY)
        if cached is not None:
            return cached

        async with self._prices_lock:
            cached = self.prices_cache.get(_PRICES_KEY)
            if cached is not None:
                return cached

            snapshots = await self._build_metal_prices()
            self.prices_cache.set(_PRICES_KEY, snapshots)
            logger.info(
                "spot_prices_refreshed",
                metals=[snapshot.metal.value for snapshot in snapshots],
                source="spot",
            )
            return snapshots

    async def _build_metal_prices(self) -> list[MetalPriceSnapshot]:
        fx = await self.fetch_fx_rates()
        inr_rate = fx["INR"]
        aud_rate = fx["AUD"]

        metals = list(self._metal_tickers)
        usd_prices = await asyncio.gather(
            *(self.resolve_metal_price(self._metal_tickers[metal]) for metal in metals)
        )

        observed_at = datetime.now(timezone.utc)
        snapshots: list[MetalPriceSnapshot] = []
        for metal, usd in zip(metals, usd_prices):
            price_usd = float(usd)
            if not math.isfinite(price_usd) or price_usd <= 0:
                raise InvalidRate(f"{metal.value} USD", price_usd)
            snapshots.append(
                MetalPriceSnapshot(
                    metal=metal,
                    rates={
                        "USD": price_usd,
                        "AUD": convert_usd_to_aud(price_usd, aud_rate),
                        "INR": convert_usd_to_inr(price_usd, inr_rate),
                    },
                    observed_at=observed_at,
                )
            )
        return snapshots

    async def get_fx_snapshot(self) -> FxSnapshot:
        """Return the cached FX snapshot, rebuilding it once expired."""
        cached = self.fx_cache.get(_FX_KEY)
        if cached is not None:
            return cached

        async with self._fx_lock:
            cached = self.fx_cache.get(_FX_KEY)
            if cached is not None:
                return cached

            rates = await self.fetch_fx_rates()
            snapshot = FxSnapshot(
                INR=rates["INR"],
                AUD=rates["AUD"],
                observed_at=datetime.now(timezone.utc),
                source_label=settings.FX_SOURCE_LABEL,
                ticker_map=dict(self._fx_tickers),
            )
            self.fx_cache.set(_FX_KEY, snapshot)
            logger.info(
                "spot_fx_refreshed",
                inr=snapshot.inr,
                aud=snapshot.aud,
                source="spot",
            )
            return snapshot

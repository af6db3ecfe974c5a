"""
BullionTracker — Quote Provider Client

Fetches the latest value of a single instrument (metal spot, futures or FX
pair) from the Yahoo Finance chart API.

Per-instrument TTL cache with stale-on-error fallback:
- Fresh cache entry → returned without a network call
- Fetch failure → last cached value regardless of age, else InstrumentFetchFailed
- Payload without a usable number → last cached value, else NoPriceFound
"""

from __future__ import annotations

import math
import time
from datetime import datetime, timezone
from typing import Any

import httpx
import structlog

from bulliontracker.config import settings
from bulliontracker.exceptions import InstrumentFetchFailed, NoPriceFound
from bulliontracker.models import TickerQuote
from bulliontracker.utils.cache import Clock, TTLCache

logger = structlog.get_logger(__name__)


def _as_finite(value: Any) -> float | None:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return None
    value = float(value)
    return value if math.isfinite(value) else None


def last_numeric_value(values: Any) -> float | None:
    """Scan a close series from most recent to oldest for a finite number."""
    if not isinstance(values, list):
        return None
    for value in reversed(values):
        number = _as_finite(value)
        if number is not None:
            return number
    return None


def _mapping(value: Any) -> dict[str, Any]:
    return value if isinstance(value, dict) else {}


def _first_mapping(value: Any) -> dict[str, Any]:
    if not isinstance(value, list) or not value:
        return {}
    return _mapping(value[0])


def extract_chart_price(payload: Any) -> float | None:
    """
    Pull the current price out of a chart API payload.

    Prefers meta.regularMarketPrice; falls back to the most recent finite
    entry of indicators.quote[0].close. Any level with an unexpected shape
    counts as missing.
    """
    result = _first_mapping(_mapping(_mapping(payload).get("chart")).get("result"))
    if not result:
        return None

    price = _as_finite(_mapping(result.get("meta")).get("regularMarketPrice"))
    if price is not None:
        return price

    quote = _first_mapping(_mapping(result.get("indicators")).get("quote"))
    return last_numeric_value(quote.get("close"))


class QuoteClient:
    """
    Async client for the quote provider.

    Usage:
        async with QuoteClient() as client:
            gold_usd = await client.get_quote("GC=F")
    """

    def __init__(
        self,
        http_client: httpx.AsyncClient | None = None,
        base_url: str | None = None,
        ttl_seconds: float | None = None,
        clock: Clock = time.monotonic,
    ) -> None:
        self._base_url = (base_url or settings.QUOTE_PROVIDER_URL).rstrip("/")
        self._client = http_client
        self._owns_client = http_client is None
        ttl = settings.TICKER_CACHE_TTL_SECONDS if ttl_seconds is None else ttl_seconds
        self.cache: TTLCache[TickerQuote] = TTLCache(ttl, clock=clock, name="tickers")

    async def __aenter__(self) -> QuoteClient:
        if self._client is None:
            self._client = httpx.AsyncClient(timeout=settings.HTTP_TIMEOUT_SECONDS)
        return self

    async def __aexit__(self, *args: Any) -> None:
        if self._client and self._owns_client:
            await self._client.aclose()
            self._client = None

    def _stale_or_raise(self, instrument_id: str, error: Exception) -> float:
        stale = self.cache.get_stale(instrument_id)
        if stale is not None:
            logger.warning(
                "quote_fetch_failed_using_stale",
                instrument_id=instrument_id,
                error=str(error),
                stale_value=stale.value,
                stale_observed_at=stale.observed_at.isoformat(),
                source="quote_client",
            )
            return stale.value
        raise error

    async def _fetch_payload(self, instrument_id: str) -> dict[str, Any]:
        assert self._client is not None, "Client not initialized. Use 'async with'."

        try:
            response = await self._client.get(
                f"{self._base_url}/{instrument_id}",
                params={"interval": settings.QUOTE_INTERVAL, "range": settings.QUOTE_RANGE},
                headers={"User-Agent": "Mozilla/5.0", "Accept": "application/json"},
            )
            response.raise_for_status()
            payload = response.json()
        except httpx.HTTPStatusError as e:
            raise InstrumentFetchFailed(
                instrument_id, f"status {e.response.status_code}"
            ) from e
        except (httpx.HTTPError, ValueError) as e:
            raise InstrumentFetchFailed(instrument_id, str(e) or type(e).__name__) from e

        if not isinstance(payload, dict):
            raise InstrumentFetchFailed(instrument_id, "unexpected payload shape")
        return payload

    async def get_quote(self, instrument_id: str) -> float:
        """
        Return the latest numeric value for an instrument.

        Raises:
            InstrumentFetchFailed: fetch failed and nothing is cached.
            NoPriceFound: provider carried no usable number and nothing is cached.
        """
        cached = self.cache.get(instrument_id)
        if cached is not None:
            return cached.value

        try:
            payload = await self._fetch_payload(instrument_id)
        except InstrumentFetchFailed as e:
            return self._stale_or_raise(instrument_id, e)

        value = extract_chart_price(payload)
        if value is None:
            return self._stale_or_raise(instrument_id, NoPriceFound(instrument_id))

        self.cache.set(
            instrument_id,
            TickerQuote(
                instrument_id=instrument_id,
                value=value,
                observed_at=datetime.now(timezone.utc),
            ),
        )
        logger.info(
            "quote_refreshed",
            instrument_id=instrument_id,
            value=value,
            source="quote_client",
        )
        return value

"""
BullionTracker — USD to display-currency conversion.

Quote-provider FX instruments are quoted as USD/<currency> (1 USD = rate
units of currency), so a USD price converts by plain multiplication:

    AUD = USD × aud_rate
    INR = USD × inr_rate

A rate or result that is non-finite or not positive raises InvalidRate.
Callers never publish a snapshot built on a bad rate.
"""

from __future__ import annotations

import math

import structlog

from bulliontracker.exceptions import InvalidRate

logger = structlog.get_logger(__name__)


def validate_rate(rate: float, label: str) -> float:
    """
    Return the rate as a float if it is finite and positive.

    Raises:
        InvalidRate: rate is None, NaN, infinite, zero or negative.
    """
    try:
        value = float(rate)
    except (TypeError, ValueError):
        raise InvalidRate(label, rate) from None

    if not math.isfinite(value) or value <= 0:
        raise InvalidRate(label, value)
    return value


def convert_usd(amount_usd: float, rate: float, currency: str) -> float:
    """
    Convert a USD amount into `currency` using a USD/<currency> rate.

    Args:
        amount_usd: Amount in USD.
        rate: 1 USD expressed in the target currency (e.g., 1.5 AUD).
        currency: Currency code, used for error reporting.

    Returns:
        Amount in the target currency.

    Examples:
        >>> convert_usd(2000.0, 1.5, "AUD")
        3000.0
    """
    rate = validate_rate(rate, currency)
    result = amount_usd * rate
    if not math.isfinite(result) or result <= 0:
        raise InvalidRate(f"converted {currency}", result)

    logger.debug(
        "forex_usd_converted",
        amount_usd=amount_usd,
        currency=currency,
        rate=rate,
        result=result,
        source="forex",
    )
    return result


def convert_usd_to_aud(amount_usd: float, aud_rate: float) -> float:
    return convert_usd(amount_usd, aud_rate, "AUD")


def convert_usd_to_inr(amount_usd: float, inr_rate: float) -> float:
    return convert_usd(amount_usd, inr_rate, "INR")

"""
BullionTracker — Listing Normalizer

Classifies free-text product names into comparable listings. Each concern
is a small pure function returning None when it cannot classify:

    parse_metal        → Metal
    parse_weight_oz    → troy ounces
    detect_form        → Coin | Bar | Other
    extract_series_key → mint series / process keyword

normalize_listing() composes them and rejects anything that is not a
gold/silver/platinum/palladium coin or bar with a positive weight and a
finite price. Rejection is silent: the listing simply does not exist.
"""

from __future__ import annotations

import html
import math
import re
from collections.abc import Callable
from urllib.parse import urljoin

from bulliontracker.config import Metal, ProductForm
from bulliontracker.models import RawListing

GRAMS_PER_TROY_OUNCE = 31.1035

EXCLUDED_PHRASES = ("pool allocated",)

_METAL_KEYWORDS: tuple[tuple[str, Metal], ...] = (
    ("gold", Metal.GOLD),
    ("silver", Metal.SILVER),
    ("platinum", Metal.PLATINUM),
    ("palladium", Metal.PALLADIUM),
)

_COIN_PATTERN = re.compile(
    r"coin|proof|round|sovereign|kangaroo|kookaburra|koala|eagle|maple|"
    r"britannia|philharmonic|krugerrand|panda",
    re.IGNORECASE,
)
_BAR_PATTERN = re.compile(r"bar|cast|minted|ingot|poured|tablet|combi", re.IGNORECASE)

SERIES_KEYWORDS = (
    "kangaroo",
    "kookaburra",
    "koala",
    "maple",
    "britannia",
    "eagle",
    "philharmonic",
    "krugerrand",
    "panda",
    "libertad",
    "swan",
    "dragon",
    "lunar",
)
PROCESS_KEYWORDS = ("cast", "minted", "poured")

_TAG_PATTERN = re.compile(r"<[^>]*>")
_WHITESPACE_PATTERN = re.compile(r"\s+")
_PRICE_NUMBER_PATTERN = re.compile(r"-?\d+(?:\.\d+)?")

_COMBO_PATTERN = re.compile(r"(\d+)\s*x\s*(\d+(?:\.\d+)?)\s*g")
_FRACTION_PATTERN = re.compile(r"(\d+)\s*/\s*(\d+)\s*oz")
_OUNCE_PATTERN = re.compile(r"(\d+(?:\.\d+)?)\s*oz")
_KILOGRAM_PATTERN = re.compile(r"(\d+(?:\.\d+)?)\s*kg")
_GRAM_PATTERN = re.compile(r"(\d+(?:\.\d+)?)\s*(?:grams?|g)\b")


# ---------------------------------------------------------------------------
# Text cleanup
# ---------------------------------------------------------------------------


def clean_text(value: str | None) -> str:
    """Decode HTML entities, strip markup and collapse whitespace."""
    if not value:
        return ""
    text = _TAG_PATTERN.sub("", html.unescape(str(value)))
    return _WHITESPACE_PATTERN.sub(" ", text).strip()


def is_excluded(name: str) -> bool:
    lowered = name.lower()
    return any(phrase in lowered for phrase in EXCLUDED_PHRASES)


# ---------------------------------------------------------------------------
# Classifiers
# ---------------------------------------------------------------------------


def parse_metal(name: str) -> Metal | None:
    """First metal keyword found in the name wins, in priority order."""
    lowered = name.lower()
    for keyword, metal in _METAL_KEYWORDS:
        if keyword in lowered:
            return metal
    return None


def _combo_pack(text: str) -> float | None:
    match = _COMBO_PATTERN.search(text)
    if not match:
        return None
    return (int(match.group(1)) * float(match.group(2))) / GRAMS_PER_TROY_OUNCE


def _fractional_ounces(text: str) -> float | None:
    match = _FRACTION_PATTERN.search(text)
    if not match:
        return None
    denominator = int(match.group(2))
    if denominator == 0:
        return None
    return int(match.group(1)) / denominator


def _ounces(text: str) -> float | None:
    match = _OUNCE_PATTERN.search(text)
    return float(match.group(1)) if match else None


def _kilograms(text: str) -> float | None:
    match = _KILOGRAM_PATTERN.search(text)
    if not match:
        return None
    return (float(match.group(1)) * 1000) / GRAMS_PER_TROY_OUNCE


def _grams(text: str) -> float | None:
    match = _GRAM_PATTERN.search(text)
    if not match:
        return None
    return float(match.group(1)) / GRAMS_PER_TROY_OUNCE


# Priority order matters: "10 x 1g" must not be read as "1g".
WEIGHT_PARSERS: tuple[Callable[[str], float | None], ...] = (
    _combo_pack,
    _fractional_ounces,
    _ounces,
    _kilograms,
    _grams,
)


def parse_weight_oz(name: str) -> float | None:
    """
    Parse the product weight in troy ounces.

    The first pattern that matches decides; a non-positive result rejects
    the name rather than falling through to a lower-priority pattern.

    Examples:
        >>> parse_weight_oz("1/10 oz Gold Kangaroo")
        0.1
        >>> round(parse_weight_oz("1kg Silver Cast Bar"), 4)
        32.1507
    """
    text = name.lower()
    for parser in WEIGHT_PARSERS:
        weight = parser(text)
        if weight is None:
            continue
        if not math.isfinite(weight) or weight <= 0:
            return None
        return weight
    return None


def detect_form(name: str) -> ProductForm:
    """Coin vocabulary beats bar vocabulary; anything else is OTHER."""
    if _COIN_PATTERN.search(name):
        return ProductForm.COIN
    if _BAR_PATTERN.search(name):
        return ProductForm.BAR
    return ProductForm.OTHER


def is_bar_or_coin(name: str) -> bool:
    if is_excluded(name):
        return False
    return detect_form(name) is not ProductForm.OTHER


def extract_series_key(name: str) -> str | None:
    """Known mint series first, then the manufacturing process, else None."""
    lowered = name.lower()
    for keyword in SERIES_KEYWORDS:
        if keyword in lowered:
            return keyword
    for keyword in PROCESS_KEYWORDS:
        if keyword in lowered:
            return keyword
    return None


def parse_price(raw_price: str | float | int | None) -> float | None:
    """Parse '$3,499.00', '3499' or 3499.0 into a finite non-negative float."""
    if raw_price is None or isinstance(raw_price, bool):
        return None
    if isinstance(raw_price, (int, float)):
        value = float(raw_price)
    else:
        match = _PRICE_NUMBER_PATTERN.search(str(raw_price).replace(",", ""))
        if not match:
            return None
        value = float(match.group())
    if not math.isfinite(value) or value < 0:
        return None
    return value


def to_absolute_url(base_url: str, href: str | None) -> str:
    """Resolve a listing link against the seller's base URL."""
    if not href:
        return base_url
    if href.startswith(("http://", "https://")):
        return href
    return urljoin(base_url.rstrip("/") + "/", href)


# ---------------------------------------------------------------------------
# Composition
# ---------------------------------------------------------------------------


def normalize_listing(
    raw_name: str | None,
    raw_price: str | float | int | None,
    raw_url: str | None,
    base_url: str,
    seller_name: str = "",
) -> RawListing | None:
    """
    Turn a raw (name, price, url) triple into a RawListing, or None.

    Rejected: empty names, pool-allocated products, anything that is not a
    coin or bar, unknown metal, unparseable weight, unparseable price.
    """
    name = clean_text(raw_name)
    if not name or not is_bar_or_coin(name):
        return None

    metal = parse_metal(name)
    if metal is None:
        return None

    weight_oz = parse_weight_oz(name)
    if weight_oz is None:
        return None

    price = parse_price(raw_price)
    if price is None:
        return None

    return RawListing(
        product_name=name,
        metal=metal,
        weight_oz=weight_oz,
        price_local=price,
        url=to_absolute_url(base_url, raw_url),
        seller_name=seller_name,
        form=detect_form(name),
        series_key=extract_series_key(name),
    )

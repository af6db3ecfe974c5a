"""
BullionTracker — Listing Deduplication & Cross-Seller Grouping

Pure functions, no I/O:

- dedupe_listings: exact (product_name, price, url) duplicates collapse
  to the first occurrence
- comparison_key: canonical identity of a product across sellers,
  (metal, weight rounded to 3 dp, form, series key or "generic")
- aggregate_listings: one ProductComparison per canonical key

aggregate_listings puts its input into content order before grouping, so
the same set of listings always yields the same comparisons no matter
which seller answered first.
"""

from __future__ import annotations

from collections.abc import Iterable

import structlog

from bulliontracker.config import Metal, ProductForm
from bulliontracker.models import Offer, ProductComparison, RawListing

logger = structlog.get_logger(__name__)

GENERIC_SERIES = "generic"

ComparisonKey = tuple[str, float, str, str]


def dedupe_key(listing: RawListing) -> tuple[str, float, str]:
    return (listing.product_name, listing.price_local, listing.url)


def dedupe_listings(listings: Iterable[RawListing]) -> list[RawListing]:
    """Drop exact (name, price, url) repeats, keeping the first occurrence."""
    seen: set[tuple[str, float, str]] = set()
    unique: list[RawListing] = []
    for listing in listings:
        key = dedupe_key(listing)
        if key in seen:
            continue
        seen.add(key)
        unique.append(listing)
    return unique


def comparison_key(listing: RawListing) -> ComparisonKey:
    return (
        listing.metal.value,
        round(listing.weight_oz, 3),
        listing.form.value,
        listing.series_key or GENERIC_SERIES,
    )


def format_weight_label(weight_oz: float) -> str:
    """
    3 decimals from one ounce up, 4 below it, trailing zeros trimmed.

    Examples:
        >>> format_weight_label(1.0)
        '1 oz'
        >>> format_weight_label(10 / 31.1035)
        '0.3215 oz'
    """
    decimals = 3 if weight_oz >= 1 else 4
    number = f"{weight_oz:.{decimals}f}".rstrip("0").rstrip(".")
    return f"{number} oz"


def format_series_label(series_key: str | None, form: ProductForm) -> str:
    if not series_key or series_key == GENERIC_SERIES:
        return form.value
    return " ".join(part.capitalize() for part in series_key.split(" "))


def build_product_label(
    weight_oz: float,
    metal: Metal,
    form: ProductForm,
    series_key: str | None,
) -> str:
    """e.g. '1 oz Gold Kangaroo', '0.3215 oz Gold Bar'."""
    return (
        f"{format_weight_label(weight_oz)} {metal.value} "
        f"{format_series_label(series_key, form)}"
    )


def _content_order(listing: RawListing) -> tuple:
    return (
        comparison_key(listing),
        listing.seller_name,
        listing.price_local,
        listing.url,
        listing.product_name,
        listing.weight_oz,
    )


def aggregate_listings(listings: Iterable[RawListing]) -> list[ProductComparison]:
    """
    Deduplicate listings and group them into cross-seller comparisons.

    Every contributing listing becomes one offer. Offers are not ranked
    by price here; cheapest-first is a display concern.
    """
    ordered = sorted(listings, key=_content_order)
    unique = dedupe_listings(ordered)

    groups: dict[ComparisonKey, list[RawListing]] = {}
    for listing in unique:
        groups.setdefault(comparison_key(listing), []).append(listing)

    comparisons: list[ProductComparison] = []
    for key in sorted(groups):
        entries = groups[key]
        first = entries[0]
        comparisons.append(
            ProductComparison(
                product_name=build_product_label(
                    first.weight_oz, first.metal, first.form, first.series_key
                ),
                metal=first.metal,
                weight_oz=first.weight_oz,
                offers=[
                    Offer(seller_name=entry.seller_name, price=entry.price_local, url=entry.url)
                    for entry in entries
                ],
            )
        )

    logger.debug(
        "grouping_complete",
        listings=len(unique),
        comparisons=len(comparisons),
        duplicates_dropped=len(ordered) - len(unique),
        source="grouping",
    )
    return comparisons

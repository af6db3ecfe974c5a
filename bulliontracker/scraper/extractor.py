"""
BullionTracker — Listing Extractor

Pulls candidate product listings out of raw retailer HTML with two
independent strategies whose results are unioned:

1. Heading/price-block: every h2/h3 is a product tile title. The tile
   spans from the end of the heading to the next heading (or the end of
   the document) and its price is the first currency-prefixed amount in
   that span.
2. Embedded structured data: JSON-LD payloads whose @type is Product
   yield name, first offer price and URL.

Both are heuristics. Layout changes make them return fewer results,
which is expected rather than an error.
"""

from __future__ import annotations

import json
import re
from collections.abc import Iterator
from typing import Any

import structlog
from bs4 import BeautifulSoup
from bs4.element import NavigableString, PreformattedString, Tag

from bulliontracker.engine.grouping import dedupe_listings
from bulliontracker.exceptions import MalformedStructuredData
from bulliontracker.models import RawListing
from bulliontracker.scraper import ListingCandidate
from bulliontracker.scraper.normalizer import clean_text, normalize_listing

logger = structlog.get_logger(__name__)

HEADING_TAGS = ("h2", "h3")
_NON_CONTENT_TAGS = frozenset({"script", "style", "noscript", "template"})
_PRICE_PATTERN = re.compile(r"(?:AUD\s*|\$)\s*(\d[\d,]*(?:\.\d+)?)")
_LD_JSON_TYPE = re.compile(r"application/ld\+json", re.IGNORECASE)


def _as_soup(page: BeautifulSoup | str) -> BeautifulSoup:
    if isinstance(page, BeautifulSoup):
        return page
    return BeautifulSoup(page or "", "lxml")


def _is_content_string(element: Any) -> bool:
    if not isinstance(element, NavigableString) or isinstance(element, PreformattedString):
        return False
    return element.find_parent(list(_NON_CONTENT_TAGS)) is None


def _is_listing_heading(element: Any) -> bool:
    """A visible h2/h3; headings inside noscript or template never start a tile."""
    return (
        isinstance(element, Tag)
        and element.name in HEADING_TAGS
        and element.find_parent(list(_NON_CONTENT_TAGS)) is None
    )


# ---------------------------------------------------------------------------
# Strategy 1: heading + following price block
# ---------------------------------------------------------------------------


def _heading_link(heading: Tag) -> str | None:
    anchor = heading.find("a", href=True) or heading.find_parent("a", href=True)
    if anchor is None:
        return None
    return str(anchor["href"]).strip() or None


def _block_text(heading: Tag) -> str:
    """Text between the end of this heading and the start of the next one."""
    descendants = list(heading.descendants)
    start = descendants[-1] if descendants else heading

    parts: list[str] = []
    for element in start.next_elements:
        if _is_listing_heading(element):
            break
        if isinstance(element, Tag):
            continue
        if _is_content_string(element):
            parts.append(str(element))
    return " ".join(parts)


def find_block_price(text: str) -> str | None:
    """First currency-prefixed amount in a block of text, digits only."""
    match = _PRICE_PATTERN.search(text)
    return match.group(1) if match else None


def extract_heading_blocks(page: BeautifulSoup | str) -> list[ListingCandidate]:
    soup = _as_soup(page)
    candidates: list[ListingCandidate] = []

    for heading in soup.find_all(list(HEADING_TAGS)):
        if not _is_listing_heading(heading):
            continue
        name = clean_text(heading.get_text(" "))
        if not name:
            continue
        price = find_block_price(_block_text(heading))
        if price is None:
            continue
        candidates.append(
            ListingCandidate(
                name=name,
                price=price,
                url=_heading_link(heading),
                strategy="heading_block",
            )
        )

    return candidates


# ---------------------------------------------------------------------------
# Strategy 2: embedded JSON-LD product data
# ---------------------------------------------------------------------------


def _load_payload(raw: str | None) -> Any:
    if not raw or not raw.strip():
        raise MalformedStructuredData("empty JSON-LD payload")
    try:
        return json.loads(raw)
    except ValueError as e:
        raise MalformedStructuredData(f"invalid JSON-LD payload: {e}") from e


def _is_product(type_tag: Any) -> bool:
    if isinstance(type_tag, list):
        return "Product" in type_tag
    return type_tag == "Product"


def iter_product_nodes(payload: Any) -> Iterator[dict[str, Any]]:
    """Walk top-level arrays and @graph containers for Product nodes."""
    entries = payload if isinstance(payload, list) else [payload]
    for entry in entries:
        if not isinstance(entry, dict):
            continue
        graph = entry.get("@graph")
        nodes = graph if isinstance(graph, list) else [entry]
        for node in nodes:
            if isinstance(node, dict) and _is_product(node.get("@type")):
                yield node


def _first(value: Any) -> Any:
    if isinstance(value, list):
        return value[0] if value else None
    return value


def _offer_price(offers: Any) -> Any:
    offer = _first(offers)
    if not isinstance(offer, dict):
        return None
    price = offer.get("price")
    if price is not None:
        return price
    price_spec = _first(offer.get("priceSpecification"))
    if isinstance(price_spec, dict):
        return price_spec.get("price")
    return None


def extract_structured_data(page: BeautifulSoup | str) -> list[ListingCandidate]:
    soup = _as_soup(page)
    candidates: list[ListingCandidate] = []

    for script in soup.find_all("script", attrs={"type": _LD_JSON_TYPE}):
        try:
            payload = _load_payload(script.string or script.get_text())
        except MalformedStructuredData as e:
            logger.debug("structured_data_skipped", error=str(e), source="extractor")
            continue

        for node in iter_product_nodes(payload):
            name = clean_text(str(node.get("name") or ""))
            if not name:
                continue
            url = node.get("url")
            price = _offer_price(node.get("offers"))
            candidates.append(
                ListingCandidate(
                    name=name,
                    price=price if isinstance(price, (str, int, float)) else None,
                    url=url if isinstance(url, str) else None,
                    strategy="structured_data",
                )
            )

    return candidates


# ---------------------------------------------------------------------------
# Composition
# ---------------------------------------------------------------------------


def extract_candidates(page_content: str) -> list[ListingCandidate]:
    """Union of both strategies over one parsed document."""
    soup = _as_soup(page_content)
    return [*extract_heading_blocks(soup), *extract_structured_data(soup)]


def extract_listings(
    page_content: str,
    base_url: str,
    seller_name: str = "",
) -> list[RawListing]:
    """
    Extract, normalize and deduplicate every listing on one page.

    Candidates failing normalization are dropped silently. The same product
    found by both strategies collapses to one listing.
    """
    candidates = extract_candidates(page_content)
    listings: list[RawListing] = []
    for candidate in candidates:
        listing = normalize_listing(
            candidate.name, candidate.price, candidate.url, base_url, seller_name
        )
        if listing is not None:
            listings.append(listing)

    deduped = dedupe_listings(listings)
    logger.debug(
        "extractor_page_parsed",
        base_url=base_url,
        candidates=len(candidates),
        listings=len(deduped),
        source="extractor",
    )
    return deduped

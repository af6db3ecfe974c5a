"""
Tests for listing normalization (bulliontracker/scraper/normalizer.py).

Covers:
- Weight parsing priority: combo packs, fractions, ounces, kilograms, grams
- Metal / form / series classification
- Pool-allocated and non bar/coin rejection
- Price parsing and URL resolution
"""

from __future__ import annotations

import math

import pytest

from bulliontracker.config import Metal, ProductForm
from bulliontracker.scraper.normalizer import (
    clean_text,
    detect_form,
    extract_series_key,
    is_bar_or_coin,
    normalize_listing,
    parse_metal,
    parse_price,
    parse_weight_oz,
    to_absolute_url,
)

BASE_URL = "https://seller-a.test"


class TestParseWeight:
    @pytest.mark.parametrize(
        ("name", "expected"),
        [
            ("10 x 1g Gold CombiBar", 0.3215),
            ("1/10 oz Platinum Koala", 0.1),
            ("1kg Silver Cast Bar", 32.1507),
            ("500g Silver Minted Bar", 16.0753),
            ("1oz Gold Kangaroo", 1.0),
            ("2.5 oz Silver Round", 2.5),
            ("100 Grams Gold Bar", 3.2151),
        ],
    )
    def test_weights(self, name, expected) -> None:
        assert parse_weight_oz(name) == pytest.approx(expected, abs=1e-4)

    def test_combo_pack_not_read_as_single_gram(self) -> None:
        """'10 x 1g' is ten grams, not one."""
        assert parse_weight_oz("10 x 1g Gold CombiBar") == pytest.approx(10 / 31.1035)

    def test_fraction_beats_plain_ounces(self) -> None:
        assert parse_weight_oz("1/4 oz Gold Eagle") == 0.25

    def test_no_weight(self) -> None:
        assert parse_weight_oz("Gold Kangaroo Coin") is None

    def test_zero_weight_rejected(self) -> None:
        assert parse_weight_oz("0 oz Gold Coin") is None
        assert parse_weight_oz("1/0 oz Gold Coin") is None


class TestClassifiers:
    def test_metal_priority(self) -> None:
        assert parse_metal("1oz Gold Kangaroo") is Metal.GOLD
        assert parse_metal("Silver Bar with Gold Gilding") is Metal.GOLD
        assert parse_metal("1oz PALLADIUM Maple") is Metal.PALLADIUM
        assert parse_metal("1oz Copper Round") is None

    def test_form(self) -> None:
        assert detect_form("1oz Gold Kangaroo") is ProductForm.COIN
        assert detect_form("1kg Silver Cast Bar") is ProductForm.BAR
        assert detect_form("10 x 1g Gold CombiBar") is ProductForm.BAR
        assert detect_form("Sterling Silver Spoon") is ProductForm.OTHER

    def test_coin_vocabulary_wins_over_bar(self) -> None:
        assert detect_form("Kangaroo Minted Bar") is ProductForm.COIN

    def test_series_then_process_keyword(self) -> None:
        assert extract_series_key("1oz Gold Kangaroo Coin") == "kangaroo"
        assert extract_series_key("1kg Silver Cast Bar") == "cast"
        assert extract_series_key("1oz Gold Bar") is None

    def test_pool_allocated_excluded(self) -> None:
        assert is_bar_or_coin("Gold Pool Allocated 1oz Bar") is False
        assert is_bar_or_coin("1oz Gold Bar") is True


class TestParsePrice:
    @pytest.mark.parametrize(
        ("raw", "expected"),
        [
            ("$3,499.00", 3499.0),
            ("3499", 3499.0),
            (3499, 3499.0),
            (2150.5, 2150.5),
            ("AUD 1,075.25", 1075.25),
            ("0", 0.0),
        ],
    )
    def test_valid(self, raw, expected) -> None:
        assert parse_price(raw) == expected

    @pytest.mark.parametrize("raw", [None, "", "Sold out", True, -5.0, math.nan, math.inf])
    def test_invalid(self, raw) -> None:
        assert parse_price(raw) is None


class TestUrlsAndText:
    def test_relative_href_resolved(self) -> None:
        assert (
            to_absolute_url(BASE_URL, "/products/1oz-gold")
            == "https://seller-a.test/products/1oz-gold"
        )

    def test_absolute_href_kept(self) -> None:
        href = "https://cdn.seller-a.test/p/1"
        assert to_absolute_url(BASE_URL, href) == href

    def test_missing_href_falls_back_to_base(self) -> None:
        assert to_absolute_url(BASE_URL, None) == BASE_URL

    def test_clean_text(self) -> None:
        assert clean_text("  10 x 1g\n Gold <b>CombiBar</b>&trade; ") == "10 x 1g Gold CombiBar™"
        assert clean_text(None) == ""


class TestNormalizeListing:
    def test_kangaroo_coin(self) -> None:
        listing = normalize_listing(
            "1 oz Gold Kangaroo Coin", "$3,500.00", "/products/kangaroo", BASE_URL, "Seller A"
        )

        assert listing is not None
        assert listing.metal is Metal.GOLD
        assert listing.weight_oz == 1.0
        assert listing.form is ProductForm.COIN
        assert listing.series_key == "kangaroo"
        assert listing.price_local == 3500.0
        assert listing.url == "https://seller-a.test/products/kangaroo"
        assert listing.seller_name == "Seller A"

    def test_compact_weight_same_classification(self) -> None:
        spaced = normalize_listing("1 oz Gold Kangaroo Coin", "3500", None, BASE_URL)
        compact = normalize_listing("1oz Gold Kangaroo", "3500", None, BASE_URL)

        assert spaced is not None and compact is not None
        assert (spaced.metal, spaced.weight_oz, spaced.form, spaced.series_key) == (
            compact.metal,
            compact.weight_oz,
            compact.form,
            compact.series_key,
        )

    @pytest.mark.parametrize(
        ("name", "price"),
        [
            ("Gold Pool Allocated 1oz", "$3,400.00"),
            ("Sterling Silver Spoon", "$45.00"),
            ("1oz Copper Round", "$5.00"),
            ("Gold Kangaroo Coin", "$3,500.00"),
            ("1oz Gold Kangaroo Coin", "Sold out"),
            ("", "$1.00"),
        ],
    )
    def test_rejections(self, name, price) -> None:
        assert normalize_listing(name, price, None, BASE_URL) is None

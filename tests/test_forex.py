"""
BullionTracker — Forex Conversion Tests

Quote-provider FX instruments are USD/<currency>, so conversion is a
plain multiplication. Invalid rates must raise, never produce a number.
"""

from __future__ import annotations

import math

import pytest

from bulliontracker.exceptions import InvalidRate
from bulliontracker.utils.forex import (
    convert_usd,
    convert_usd_to_aud,
    convert_usd_to_inr,
    validate_rate,
)


class TestConvertUSD:
    """USD → display currency conversion."""

    def test_aud_and_inr_conversion(self) -> None:
        """USD 2000 at AUD 1.5 and INR 83 → AUD 3000, INR 166000."""
        assert convert_usd_to_aud(2000.0, 1.5) == pytest.approx(3000.0)
        assert convert_usd_to_inr(2000.0, 83.0) == pytest.approx(166000.0)

    def test_rate_of_one_is_identity(self) -> None:
        assert convert_usd(31.25, 1.0, "USD") == pytest.approx(31.25)

    @pytest.mark.parametrize("bad_rate", [0.0, -1.5, math.nan, math.inf, None])
    def test_invalid_rate_raises(self, bad_rate) -> None:
        with pytest.raises(InvalidRate) as exc_info:
            convert_usd(2000.0, bad_rate, "AUD")

        assert "Invalid AUD rate" in str(exc_info.value)

    def test_non_positive_result_raises(self) -> None:
        """A zero USD amount would publish a zero price, which is invalid."""
        with pytest.raises(InvalidRate) as exc_info:
            convert_usd(0.0, 1.5, "AUD")

        assert "converted AUD" in str(exc_info.value)


class TestValidateRate:
    def test_returns_float(self) -> None:
        assert validate_rate(83, "INR") == 83.0
        assert isinstance(validate_rate(83, "INR"), float)

    def test_string_garbage_raises(self) -> None:
        with pytest.raises(InvalidRate):
            validate_rate("n/a", "INR")  # type: ignore[arg-type]

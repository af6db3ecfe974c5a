"""
BullionTracker — Exception hierarchy.

Quote- and snapshot-level errors propagate to the API layer (500).
Seller- and structured-data errors are absorbed by the pipeline and only
reduce the completeness of the result set.
"""

from __future__ import annotations


class BullionTrackerError(Exception):
    """Base class for all errors raised by the aggregation engine."""


class QuoteError(BullionTrackerError):
    """Base class for single-instrument quote failures."""

    def __init__(self, instrument_id: str, message: str) -> None:
        self.instrument_id = instrument_id
        super().__init__(message)


class InstrumentFetchFailed(QuoteError):
    """Network, non-success or parse failure while fetching one instrument."""

    def __init__(self, instrument_id: str, reason: str = "") -> None:
        message = f"Quote request failed for {instrument_id}"
        if reason:
            message = f"{message}: {reason}"
        super().__init__(instrument_id, message)


class NoPriceFound(QuoteError):
    """The provider answered but carried no usable numeric price."""

    def __init__(self, instrument_id: str) -> None:
        super().__init__(instrument_id, f"No valid price found for {instrument_id}")


class InvalidRate(BullionTrackerError):
    """An FX rate or converted price is non-finite or not positive."""

    def __init__(self, label: str, value: float) -> None:
        self.label = label
        self.value = value
        super().__init__(f"Invalid {label} rate: {value!r}")


class SellerFetchFailed(BullionTrackerError):
    """A retailer was unreachable or answered with a non-success status."""

    def __init__(self, seller_name: str, reason: str = "") -> None:
        self.seller_name = seller_name
        message = f"{seller_name} request failed"
        if reason:
            message = f"{message} ({reason})"
        super().__init__(message)


class MalformedStructuredData(BullionTrackerError):
    """An embedded JSON-LD payload could not be decoded."""

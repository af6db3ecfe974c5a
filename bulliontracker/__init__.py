"""BullionTracker — precious-metal spot prices and dealer price comparisons."""

__version__ = "0.1.0"

from bulliontracker.engine.grouping import (
    aggregate_listings,
    build_product_label,
    comparison_key,
    dedupe_listings,
)

__all__ = [
    "aggregate_listings",
    "build_product_label",
    "comparison_key",
    "dedupe_listings",
]

"""
Utility package exports
"""

from legacy_ops.utils.helpers import (
    aggregate_customers,
    build_airtable_filter,
    customers_to_csv,
    detect_category,
    ensure_list,
    extract_json,
    filter_low_stock,
    offer_recommendation,
    strip_mentions,
    truncate,
)

__all__ = [
    "aggregate_customers",
    "build_airtable_filter",
    "customers_to_csv",
    "detect_category",
    "ensure_list",
    "extract_json",
    "filter_low_stock",
    "offer_recommendation",
    "strip_mentions",
    "truncate",
]

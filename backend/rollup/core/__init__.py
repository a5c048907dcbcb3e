"""Core domain objects: month keys, block/row normalization, error types."""

from rollup.core.errors import RollupError, UpstreamError, ValidationError
from rollup.core.months import MonthKey, months_between, parse_iso_day, parse_month_date
from rollup.core.rows import (
    ALL_CATEGORIES,
    CATEGORY_ALIASES,
    PLACEHOLDER,
    category_rows,
    rows_of,
    table_data_of,
    usd_of,
)

__all__ = [
    "ALL_CATEGORIES",
    "CATEGORY_ALIASES",
    "MonthKey",
    "PLACEHOLDER",
    "RollupError",
    "UpstreamError",
    "ValidationError",
    "category_rows",
    "months_between",
    "parse_iso_day",
    "parse_month_date",
    "rows_of",
    "table_data_of",
    "usd_of",
]

from .sources import EMPTY_FILTERS, RANGE_CEILING, RANGE_FLOOR, PortfolioSource, SqlPortfolioSource

__all__ = [
    "EMPTY_FILTERS",
    "PortfolioSource",
    "RANGE_CEILING",
    "RANGE_FLOOR",
    "SqlPortfolioSource",
]

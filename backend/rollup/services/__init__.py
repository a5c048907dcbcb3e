from .aggregate import RollupResult, aggregate, empty_rollup, palette, positions_frame, r2
from .overview import OverviewSummary, build_trend, summarize
from .periods import (
    PeriodRequest,
    ResolvedPeriod,
    filter_blocks,
    latest_per_bank,
    latest_snapshot,
    resolve_period,
    snapshot_blocks,
)

__all__ = [
    "OverviewSummary",
    "PeriodRequest",
    "ResolvedPeriod",
    "RollupResult",
    "aggregate",
    "build_trend",
    "empty_rollup",
    "filter_blocks",
    "latest_per_bank",
    "latest_snapshot",
    "palette",
    "positions_frame",
    "r2",
    "resolve_period",
    "snapshot_blocks",
    "summarize",
]

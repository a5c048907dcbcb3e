"""Reporting-period resolution and custodian snapshots."""

from __future__ import annotations

import pytest

from rollup.core.errors import UpstreamError
from rollup.core.months import MonthKey
from rollup.services.periods import (
    EMPTY_PERIOD,
    PeriodRequest,
    filter_blocks,
    latest_per_bank,
    latest_snapshot,
    resolve_period,
    snapshot_blocks,
)

LATEST = MonthKey(2025, 7)
TWELVE_MONTHS = [LATEST.shifted(-i) for i in range(12)]


# ── Latest-month fallback ────────────────────────────────────────────────────

class TestLatestMonth:
    @pytest.mark.parametrize("position", [0, 5, 11])
    def test_first_populated_month_wins(self, source, july_blocks, position: int) -> None:
        source.recent = TWELVE_MONTHS
        target = TWELVE_MONTHS[position]
        source.add_month(target.year, target.month, july_blocks)

        period = resolve_period(PeriodRequest(client_id=7), source)

        assert period.mode == "latest"
        assert period.month == target
        assert period.label == target.month_date_utc()
        fetched = [MonthKey(c[2], c[3]) for c in source.calls_of("month")]
        assert fetched == TWELVE_MONTHS[: position + 1]

    def test_search_stops_at_first_hit(self, source, july_blocks, june_blocks) -> None:
        source.add_month(2025, 7, july_blocks)
        source.add_month(2025, 6, june_blocks)

        period = resolve_period(PeriodRequest(client_id=7), source)

        assert period.month == MonthKey(2025, 7)
        assert len(source.calls_of("month")) == 1

    def test_exhausted_search_is_empty(self, source) -> None:
        source.recent = TWELVE_MONTHS
        period = resolve_period(PeriodRequest(client_id=7), source)
        assert period == EMPTY_PERIOD
        assert period.label is None
        assert len(source.calls_of("month")) == 12

    def test_no_candidates(self, source) -> None:
        assert resolve_period(PeriodRequest(client_id=7), source) == EMPTY_PERIOD
        assert source.calls_of("month") == []

    def test_recent_limit_forwarded(self, source) -> None:
        resolve_period(PeriodRequest(client_id=7), source, recent_limit=3)
        assert source.calls_of("recent") == [("recent", 7, 3)]

    def test_custom_label(self, source, july_blocks) -> None:
        source.add_month(2025, 7, july_blocks)
        period = resolve_period(PeriodRequest(client_id=7), source, label_month=MonthKey.iso_first_day)
        assert period.label == "2025-07-01T00:00:00.000Z"


# ── Explicit month ───────────────────────────────────────────────────────────

class TestExplicitMonth:
    def test_year_and_month(self, source, june_blocks) -> None:
        source.add_month(2025, 6, june_blocks)
        period = resolve_period(PeriodRequest(client_id=7, year=2025, month=6), source)
        assert period.mode == "month"
        assert period.blocks == june_blocks
        assert source.calls_of("recent") == []

    def test_month_date(self, source, july_blocks) -> None:
        source.add_month(2025, 7, july_blocks)
        period = resolve_period(PeriodRequest(client_id=7, month_date="Tue, 01 Jul 2025 00:00:00 GMT"), source)
        assert period.month == MonthKey(2025, 7)

    def test_year_only_month_date_is_january(self, source, june_blocks) -> None:
        source.add_month(2025, 1, june_blocks)
        period = resolve_period(PeriodRequest(client_id=7, month_date="2025"), source)
        assert period.month == MonthKey(2025, 1)
        assert source.calls_of("month") == [("month", 7, 2025, 1)]

    def test_empty_explicit_month_does_not_fall_back(self, source, july_blocks) -> None:
        source.add_month(2025, 7, july_blocks)
        period = resolve_period(PeriodRequest(client_id=7, year=2025, month=6), source)
        assert period == EMPTY_PERIOD
        assert source.calls_of("month") == [("month", 7, 2025, 6)]

    def test_unparseable_month_date_uses_latest(self, source, july_blocks) -> None:
        source.add_month(2025, 7, july_blocks)
        period = resolve_period(PeriodRequest(client_id=7, month_date="garbage"), source)
        assert period.mode == "latest"


# ── Range / filter mode ──────────────────────────────────────────────────────

class TestRangeMode:
    def test_dates_select_range(self, source, july_blocks) -> None:
        source.range_blocks = july_blocks
        request = PeriodRequest(client_id=7, date_from="2025-01-01", date_to="2025-03-31")
        period = resolve_period(request, source)
        assert period.mode == "range"
        assert period.label == "2025-03-31"
        assert source.calls == [("range", 7, "2025-01-01", "2025-03-31", None, None)]

    def test_from_only_label(self, source) -> None:
        period = resolve_period(PeriodRequest(client_id=7, date_from="2025-01-01"), source)
        assert period.label == "2025-01-01"

    def test_custodian_alone_selects_range(self, source) -> None:
        period = resolve_period(PeriodRequest(client_id=7, year=2025, month=7, custodian="UBS"), source)
        assert period.mode == "range"
        assert period.label is None
        assert source.calls == [("range", 7, None, None, "UBS", None)]

    def test_upstream_error_propagates(self, source) -> None:
        source.error = UpstreamError("database unavailable")
        with pytest.raises(UpstreamError):
            resolve_period(PeriodRequest(client_id=7), source)


# ── Snapshots ────────────────────────────────────────────────────────────────

HISTORY = [
    {"bank": "UBS", "account_number": "A-1", "as_of_date": "2025-05-31", "tag": "ubs-may"},
    {"bank": "UBS", "account_number": "A-2", "as_of_date": "2025-07-31", "tag": "ubs-jul-a2"},
    {"bank": "Julius Baer", "account_number": "B-7", "as_of_date": "2025-06-30", "tag": "jb-jun"},
    {"bank": "UBS", "account_number": "A-1", "as_of_date": "2025-07-31", "tag": "ubs-jul-a1"},
]


class TestSnapshots:
    def test_latest_per_bank_first_seen_on_ties(self) -> None:
        assert [b["tag"] for b in latest_per_bank(HISTORY)] == ["ubs-jul-a2", "jb-jun"]

    def test_latest_snapshot(self) -> None:
        assert [b["tag"] for b in latest_snapshot(HISTORY)] == ["ubs-jul-a2", "ubs-jul-a1"]
        assert latest_snapshot([]) == []

    def test_filter_custodian_case_insensitive(self) -> None:
        assert [b["tag"] for b in filter_blocks(HISTORY, custodian="julius baer")] == ["jb-jun"]

    def test_filter_account_exact(self) -> None:
        assert [b["tag"] for b in filter_blocks(HISTORY, account="A-1")] == ["ubs-may", "ubs-jul-a1"]
        assert filter_blocks(HISTORY, account="a-1") == []

    def test_snapshot_policy(self) -> None:
        assert [b["tag"] for b in snapshot_blocks(HISTORY)] == ["ubs-jul-a2", "jb-jun"]
        assert [b["tag"] for b in snapshot_blocks(HISTORY, account="A-1")] == ["ubs-jul-a1"]
        assert [b["tag"] for b in snapshot_blocks(HISTORY, custodian="ubs")] == ["ubs-jul-a2", "ubs-jul-a1"]

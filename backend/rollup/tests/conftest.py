"""Shared pytest fixtures for rollup unit tests and API tests.

Provides:
- FakePortfolioSource: in-memory data source that records every call
- source: a fresh FakePortfolioSource per test
- test_client: TestClient with the data-source dependency overridden
- july_blocks / june_blocks: two months of realistic custodian blocks
"""

from __future__ import annotations

from typing import Any

import pytest
from starlette.testclient import TestClient

from app.datasource import get_portfolio_source
from app.main import app
from rollup.core.months import MonthKey
from rollup.io.sources import EMPTY_FILTERS, PortfolioSource


class FakePortfolioSource(PortfolioSource):
    """Months keyed by ``(year, month)``; range calls return ``range_blocks`` unfiltered."""

    def __init__(self) -> None:
        self.months: dict[tuple[int, int], list[dict[str, Any]]] = {}
        self.range_blocks: list[dict[str, Any]] = []
        self.recent: list[MonthKey] | None = None
        self.filters: dict[str, Any] = dict(EMPTY_FILTERS)
        self.error: Exception | None = None
        self.calls: list[tuple[Any, ...]] = []

    def add_month(self, year: int, month: int, blocks: list[dict[str, Any]]) -> None:
        self.months[(year, month)] = list(blocks)

    def _maybe_fail(self) -> None:
        if self.error is not None:
            raise self.error

    def fetch_month(self, client_id: int, year: int, month: int) -> dict[str, Any]:
        self.calls.append(("month", client_id, year, month))
        self._maybe_fail()
        return {"tableData": list(self.months.get((year, month), []))}

    def fetch_range(self, client_id, date_from, date_to, custodian, account) -> dict[str, Any]:
        self.calls.append(("range", client_id, date_from, date_to, custodian, account))
        self._maybe_fail()
        return {"tableData": list(self.range_blocks), "periods": [], "custodians": []}

    def recent_months(self, client_id: int, limit: int) -> list[MonthKey]:
        self.calls.append(("recent", client_id, limit))
        self._maybe_fail()
        if self.recent is not None:
            return list(self.recent[:limit])
        return sorted((MonthKey(y, m) for y, m in self.months), reverse=True)[:limit]

    def client_filters(self, client_id, custodian, account) -> dict[str, Any]:
        self.calls.append(("filters", client_id, custodian, account))
        self._maybe_fail()
        return dict(self.filters)

    def calls_of(self, kind: str) -> list[tuple[Any, ...]]:
        return [c for c in self.calls if c[0] == kind]


@pytest.fixture()
def source() -> FakePortfolioSource:
    return FakePortfolioSource()


@pytest.fixture()
def test_client(source: FakePortfolioSource):
    """TestClient whose routes read from the per-test fake source."""
    app.dependency_overrides[get_portfolio_source] = lambda: source
    try:
        with TestClient(app) as client:
            yield client
    finally:
        app.dependency_overrides.clear()


# ── Synthetic custodian blocks ─────────────────────────────────────────────
#
# UBS uses the canonical bucket keys and bare row lists; Julius Baer uses the
# older camelCase keys with {"rows": [...]} wrappers and ``ccy``/``balance``.

@pytest.fixture()
def july_blocks() -> list[dict[str, Any]]:
    return [
        {
            "bank": "UBS",
            "account_number": "A-1",
            "as_of_date": "2025-07-31",
            "cash_equivalents": [
                {"currency": "USD", "balance_usd": 1000.0},
                {"currency": "EUR", "balance_usd": 500.5},
            ],
            "direct_equities": {
                "rows": [
                    {"currency": "USD", "balance_usd": 2000.0, "extra": "Ticker: aapl ISIN: us0378331005"},
                ],
            },
            "loans": [{"currency": "USD", "balance_usd": -300.0}],
        },
        {
            "bank": "Julius Baer",
            "account_number": "B-7",
            "as_of_date": "2025-07-31",
            "cashAndEquivalents": {
                "rows": [
                    {"ccy": "CHF", "balance": 250.0},
                    {"currency": "EUR", "balanceUsd": 100.0},
                ],
            },
            "equityFunds": [{"currency": "EUR", "balance_usd": 400.0}],
        },
    ]


@pytest.fixture()
def june_blocks() -> list[dict[str, Any]]:
    return [
        {
            "bank": "UBS",
            "account_number": "A-1",
            "as_of_date": "2025-06-30",
            "cash_equivalents": [{"currency": "USD", "balance_usd": 900.0}],
        },
    ]

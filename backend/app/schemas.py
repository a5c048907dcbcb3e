"""Pydantic models defining the REST contract between frontend and backend."""

from __future__ import annotations

from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field


# ── Rollups ─────────────────────────────────────────────────────────────────

class ChartSeries(BaseModel):
    labels: list[str] = Field(default_factory=list)
    data: list[float] = Field(default_factory=list)
    colors: list[str] = Field(default_factory=list)
    pairs: list[dict[str, Any]] = Field(default_factory=list)


class AccountAmount(BaseModel):
    bank: str
    account: str
    amount: float


class CurrencyAmount(BaseModel):
    currency: str
    amount: float


class AccountCurrencyBreakdown(BaseModel):
    bank: str
    account: str
    items: list[CurrencyAmount] = Field(default_factory=list)


class BankCurrencyMatrix(BaseModel):
    banks: list[str] = Field(default_factory=list)
    currencies: list[str] = Field(default_factory=list)
    matrix: list[list[float]] = Field(default_factory=list)


class CashRollup(BaseModel):
    by_currency: ChartSeries = Field(default_factory=ChartSeries)
    by_bank: ChartSeries = Field(default_factory=ChartSeries)
    by_account: list[AccountAmount] = Field(default_factory=list)
    by_account_currency: list[AccountCurrencyBreakdown] = Field(default_factory=list)
    bank_currency: BankCurrencyMatrix = Field(default_factory=BankCurrencyMatrix)


class RollupTotals(BaseModel):
    grand_total: float = 0.0


class CashResponse(BaseModel):
    status: Literal["ok"] = "ok"
    month_date: str | None = None
    totals: RollupTotals = Field(default_factory=RollupTotals)
    cash: CashRollup = Field(default_factory=CashRollup)


class ErrorResponse(BaseModel):
    status: Literal["error"] = "error"
    message: str


# ── Holdings ────────────────────────────────────────────────────────────────

class PieChartData(BaseModel):
    charts: list[dict[str, Any]] = Field(default_factory=list)


class TableData(BaseModel):
    tableData: list[dict[str, Any]] = Field(default_factory=list)


class OverviewEntry(BaseModel):
    month_date: str | None = None
    pie_chart_data: PieChartData = Field(default_factory=PieChartData)
    table_data: TableData = Field(default_factory=TableData)


class HoldingsResponse(BaseModel):
    overview_data: list[OverviewEntry] = Field(default_factory=list)
    status: Literal["ok"] = "ok"


class MonthsResponse(BaseModel):
    months: list[str] = Field(default_factory=list)


# ── Selector options ────────────────────────────────────────────────────────

class FiltersResponse(BaseModel):
    """Options for the custodian, account and period selectors; unknown keys pass through."""

    model_config = ConfigDict(extra="allow")

    custodians: list[Any] = Field(default_factory=list)
    custodian_map: list[Any] = Field(default_factory=list)
    periods: list[Any] = Field(default_factory=list)
    min_date: str | None = None
    max_date: str | None = None
    accounts: list[Any] = Field(default_factory=list)


# ── Overview ────────────────────────────────────────────────────────────────

class OverviewCards(BaseModel):
    total_assets: float = 0.0
    total_liabilities: float = 0.0
    net_assets: float = 0.0
    aum_from_banks: float = 0.0


class TrendPoint(BaseModel):
    y: int
    m: int
    label: str
    net_assets: float


class OverviewComputed(BaseModel):
    cards: OverviewCards = Field(default_factory=OverviewCards)
    breakdown: dict[str, float] = Field(default_factory=dict)
    trend: list[TrendPoint] = Field(default_factory=list)


class OverviewResponse(BaseModel):
    status: Literal["ok"] = "ok"
    overview_data: list[OverviewEntry] = Field(default_factory=list)
    computed: OverviewComputed | None = None

"""Overview page summaries: AUM per bank, asset-class mix, currency mix, net-asset trend."""

from __future__ import annotations

from collections.abc import Iterable, Mapping, Sequence
from dataclasses import dataclass, field
from typing import Any

from rollup.core.months import MonthKey
from rollup.core.rows import ALL_CATEGORIES
from rollup.io.sources import PortfolioSource
from rollup.services.aggregate import bank_order, palette, positions_frame, r2
from rollup.services.periods import fetch_month_blocks, filter_blocks

ASSET_CLASS_LABELS: dict[str, str] = {
    "cash_equivalents": "Cash And Equivalents",
    "direct_fixed_income": "Direct Fixed Income",
    "fixed_income_funds": "Fixed Income Funds",
    "direct_equities": "Direct Equities",
    "equities_fund": "Equities Fund",
    "alternative_fund": "Alternative Fund",
    "structured_product": "Structured Product",
    "loans": "Loans",
}

LIABILITY_CATEGORIES = frozenset({"loans"})


@dataclass
class OverviewSummary:
    charts: list[dict[str, Any]] = field(default_factory=list)
    gross_assets: float = 0.0
    loans: float = 0.0
    net_assets: float = 0.0
    aum_from_banks: float = 0.0
    breakdown: dict[str, float] = field(default_factory=dict)

    def cards(self) -> dict[str, float]:
        return {
            "total_assets": r2(self.gross_assets),
            "total_liabilities": r2(self.loans),
            "net_assets": r2(self.net_assets),
            "aum_from_banks": r2(self.aum_from_banks),
        }


def _chart(title: str, labels: list[str], data: list[float]) -> dict[str, Any]:
    return {"title": title, "labels": labels, "data": data, "colors": palette(len(labels))}


def summarize(blocks: Iterable[Any], category_keys: Sequence[str] = ALL_CATEGORIES) -> OverviewSummary:
    blocks = list(blocks)
    frame = positions_frame(blocks, category_keys)
    banks = bank_order(blocks)

    bank_totals = frame.groupby("bank", sort=False)["usd"].sum().reindex(banks, fill_value=0.0)
    class_totals = frame.groupby("category", sort=False)["usd"].sum()
    class_amounts = {c: float(class_totals.get(c, 0.0)) for c in category_keys}

    ccy_totals = frame.groupby("currency", sort=False)["usd"].sum()
    ccy_totals = ccy_totals.sort_values(ascending=False, kind="stable")

    labels = [ASSET_CLASS_LABELS.get(c, c) for c in category_keys]
    loans = sum(v for c, v in class_amounts.items() if c in LIABILITY_CATEGORIES)
    gross = sum(v for c, v in class_amounts.items() if c not in LIABILITY_CATEGORIES)
    bank_data = [float(v) for v in bank_totals.tolist()]

    return OverviewSummary(
        charts=[
            _chart("AUM_ratio", list(banks), bank_data),
            _chart("overall_asset_class_breakdown", labels, [class_amounts[c] for c in category_keys]),
            _chart(
                "overall_currency_breakdown",
                [str(c) for c in ccy_totals.index],
                [float(v) for v in ccy_totals.tolist()],
            ),
        ],
        gross_assets=gross,
        loans=loans,
        net_assets=gross + loans,
        aum_from_banks=float(sum(bank_data)),
        breakdown={ASSET_CLASS_LABELS.get(c, c): r2(class_amounts[c]) for c in category_keys},
    )


def build_trend(
    source: PortfolioSource,
    client_id: int,
    months: Iterable[MonthKey],
    custodian: str | None = None,
    account: str | None = None,
) -> list[dict[str, Any]]:
    """Net assets per month, fetched one month at a time."""
    points: list[dict[str, Any]] = []
    for month in months:
        blocks: list[Mapping[str, Any]] = fetch_month_blocks(source, client_id, month)
        if custodian or account:
            blocks = filter_blocks(blocks, custodian, account)
        summary = summarize(blocks)
        points.append({
            "y": month.year,
            "m": month.month,
            "label": month.label(),
            "net_assets": r2(summary.net_assets),
        })
    return points


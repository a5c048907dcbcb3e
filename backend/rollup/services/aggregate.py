"""Currency / bank / account rollups over normalized position rows.

Rows from every requested category are flattened into one DataFrame and
rolled up with ``groupby(sort=False)`` so every label list keeps the order in
which it was first seen.  Sums run at full precision; values are rounded to
cents only when emitted.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping, Sequence
from dataclasses import dataclass, field
from typing import Any

import numpy as np
import pandas as pd

from rollup.core.rows import PLACEHOLDER, account_label, bank_label, category_rows, currency_of, usd_of

POSITION_COLUMNS = ["bank", "account", "category", "currency", "usd"]

_PALETTE = (
    "#4F6CF0", "#34d399", "#fbbf24", "#f472b6", "#38bdf8",
    "#a78bfa", "#ef4444", "#10b981", "#22d3ee", "#fb7185",
)

_EPS = np.finfo(float).eps


def r2(value: float) -> float:
    """Round half up to two decimals; idempotent on its own output."""
    return float(np.floor((float(value) + _EPS) * 100.0 + 0.5) / 100.0) + 0.0


def palette(n: int) -> list[str]:
    return [_PALETTE[i % len(_PALETTE)] for i in range(max(n, 0))]


# ── Result objects ──────────────────────────────────────────────────────────

@dataclass
class ChartSeries:
    """Parallel label/value/colour arrays for one chart."""

    key: str  # name of the label field inside ``pairs``
    labels: list[str] = field(default_factory=list)
    data: list[float] = field(default_factory=list)

    def to_payload(self) -> dict[str, Any]:
        return {
            "labels": list(self.labels),
            "data": list(self.data),
            "colors": palette(len(self.labels)),
            "pairs": [{self.key: label, "amount": amount} for label, amount in zip(self.labels, self.data)],
        }


@dataclass
class AccountAmount:
    bank: str
    account: str
    amount: float


@dataclass
class CurrencyAmount:
    currency: str
    amount: float


@dataclass
class AccountCurrencyBreakdown:
    bank: str
    account: str
    items: list[CurrencyAmount] = field(default_factory=list)


@dataclass
class RollupResult:
    by_currency: ChartSeries = field(default_factory=lambda: ChartSeries("currency"))
    by_bank: ChartSeries = field(default_factory=lambda: ChartSeries("bank"))
    banks: list[str] = field(default_factory=list)
    currencies: list[str] = field(default_factory=list)
    matrix: list[list[float]] = field(default_factory=list)
    by_account: list[AccountAmount] = field(default_factory=list)
    by_account_currency: list[AccountCurrencyBreakdown] = field(default_factory=list)
    grand_total: float = 0.0

    def to_payload(self) -> dict[str, Any]:
        return {
            "by_currency": self.by_currency.to_payload(),
            "by_bank": self.by_bank.to_payload(),
            "by_account": [
                {"bank": a.bank, "account": a.account, "amount": a.amount} for a in self.by_account
            ],
            "by_account_currency": [
                {
                    "bank": b.bank,
                    "account": b.account,
                    "items": [{"currency": i.currency, "amount": i.amount} for i in b.items],
                }
                for b in self.by_account_currency
            ],
            "bank_currency": {
                "banks": list(self.banks),
                "currencies": list(self.currencies),
                "matrix": [list(row) for row in self.matrix],
            },
        }


def empty_rollup() -> RollupResult:
    return RollupResult()


# ── Flattening ──────────────────────────────────────────────────────────────

def positions_frame(blocks: Iterable[Any], category_keys: Sequence[str]) -> pd.DataFrame:
    """One row per position across *blocks*, restricted to *category_keys*."""
    records: list[dict[str, Any]] = []
    for block in blocks:
        if not isinstance(block, Mapping):
            continue
        bank = bank_label(block)
        account = account_label(block)
        for category in category_keys:
            for row in category_rows(block, category):
                records.append({
                    "bank": bank,
                    "account": account,
                    "category": category,
                    "currency": currency_of(row),
                    "usd": usd_of(row),
                })
    frame = pd.DataFrame.from_records(records, columns=POSITION_COLUMNS)
    frame["usd"] = pd.to_numeric(frame["usd"], errors="coerce").fillna(0.0).astype(float)
    return frame


def bank_order(blocks: Iterable[Any]) -> list[str]:
    """Distinct bank labels in block order, including banks with no rows."""
    return list(dict.fromkeys(bank_label(b) for b in blocks if isinstance(b, Mapping)))


def _by_abs_desc(amount: float) -> float:
    return -abs(amount)


# ── Aggregation ─────────────────────────────────────────────────────────────

def aggregate(blocks: Iterable[Any], category_keys: Sequence[str]) -> RollupResult:
    """Roll the rows of *category_keys* up by currency, bank, bank×currency and account.

    Zero-amount rows contribute nothing.  Blocks without an account number
    count toward bank and currency totals but are left out of the account
    views.  Negative totals (overdrafts, loans) keep their sign.
    """
    blocks = list(blocks)
    frame = positions_frame(blocks, category_keys)
    banks = bank_order(blocks)

    bank_totals = frame.groupby("bank", sort=False)["usd"].sum().reindex(banks, fill_value=0.0)

    live = frame.loc[frame["usd"] != 0.0]
    ccy_totals = live.groupby("currency", sort=False)["usd"].sum()
    currencies = [str(c) for c in ccy_totals.index]
    ccy_data = [r2(v) for v in ccy_totals.tolist()]

    cells = live.groupby(["bank", "currency"], sort=False)["usd"].sum()
    cell_map = {(str(b), str(c)): float(v) for (b, c), v in cells.items()}
    matrix = [[r2(cell_map.get((bank, ccy), 0.0)) for ccy in currencies] for bank in banks]

    accounts = live.loc[live["account"] != PLACEHOLDER]
    acct_totals = accounts.groupby(["bank", "account"], sort=False)["usd"].sum()
    by_account = [
        AccountAmount(bank=str(bank), account=str(account), amount=r2(amount))
        for (bank, account), amount in acct_totals.items()
    ]
    by_account.sort(key=lambda a: _by_abs_desc(a.amount))

    acct_ccy = accounts.groupby(["bank", "account", "currency"], sort=False)["usd"].sum()
    breakdowns: dict[tuple[str, str], AccountCurrencyBreakdown] = {}
    for bank, account in acct_totals.index:
        breakdowns[(str(bank), str(account))] = AccountCurrencyBreakdown(bank=str(bank), account=str(account))
    for (bank, account, ccy), amount in acct_ccy.items():
        breakdowns[(str(bank), str(account))].items.append(CurrencyAmount(currency=str(ccy), amount=r2(amount)))
    for breakdown in breakdowns.values():
        breakdown.items.sort(key=lambda i: _by_abs_desc(i.amount))

    return RollupResult(
        by_currency=ChartSeries("currency", currencies, ccy_data),
        by_bank=ChartSeries("bank", list(banks), [r2(v) for v in bank_totals.tolist()]),
        banks=list(banks),
        currencies=currencies,
        matrix=matrix,
        by_account=by_account,
        by_account_currency=list(breakdowns.values()),
        grand_total=r2(sum(ccy_data)),
    )

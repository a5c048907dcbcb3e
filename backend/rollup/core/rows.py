"""Row normalization for bank/account blocks returned by the data source.

A *block* is one custodian/account snapshot: a loosely typed mapping with
``bank``, ``account_number``, ``as_of_date`` and any number of category
buckets.  Bucket keys have changed spelling over time, and a bucket value is
either a bare list of position rows or a ``{"rows": [...]}`` wrapper.  This
module resolves both ambiguities once so the aggregation code only ever sees
plain lists of row mappings.
"""

from __future__ import annotations

import math
import re
from collections.abc import Mapping
from dataclasses import dataclass, field
from numbers import Real
from typing import Any, Union

PLACEHOLDER = "—"

# Canonical category -> historical spellings, checked in order against the
# keys of each block.  The first spelling present on a block wins.
CATEGORY_ALIASES: dict[str, tuple[str, ...]] = {
    "cash_equivalents": ("cash_equivalents", "cash_and_equivalents", "cashAndEquivalents", "cashEquivalents"),
    "direct_fixed_income": ("direct_fixed_income", "directFixedIncome"),
    "fixed_income_funds": ("fixed_income_funds", "fixedIncomeFunds"),
    "direct_equities": ("direct_equities", "directEquities"),
    "equities_fund": ("equities_fund", "equity_funds", "equitiesFund", "equityFunds"),
    "alternative_fund": ("alternative_fund", "alternative_funds", "alternativeFund", "alternativeFunds"),
    "structured_product": ("structured_product", "structured_products", "structuredProduct", "structuredProducts"),
    "loans": ("loans",),
}

ALL_CATEGORIES: tuple[str, ...] = tuple(CATEGORY_ALIASES)

USD_FIELDS: tuple[str, ...] = ("balance_usd", "balanceUsd", "balance")

_HOLDING_BALANCE_FIELDS: tuple[str, ...] = ("balance", "balance_usd", "balanceUsd", "balance_in_currency")
_FREE_TEXT_FIELDS: tuple[str, ...] = ("extra", "Extra", "details", "info")

_TICKER_RE = re.compile(r"ticker\s*:\s*([A-Za-z0-9.\-]+)", re.IGNORECASE)
_ISIN_RE = re.compile(r"isin\s*:\s*([A-Za-z0-9]+)", re.IGNORECASE)


# ── Bucket shapes ───────────────────────────────────────────────────────────

@dataclass(frozen=True)
class RowArray:
    """Bucket stored as a bare list of rows."""

    rows: list[Mapping[str, Any]] = field(default_factory=list)


@dataclass(frozen=True)
class RowWrapper:
    """Bucket stored as ``{"rows": [...]}``, possibly with subtotal fields."""

    rows: list[Mapping[str, Any]] = field(default_factory=list)


@dataclass(frozen=True)
class UnknownBucket:
    """Anything else: absent, scalar, or a wrapper whose ``rows`` is not a list."""

    rows: list[Mapping[str, Any]] = field(default_factory=list)


PositionBucket = Union[RowArray, RowWrapper, UnknownBucket]


def _only_mappings(items: list[Any]) -> list[Mapping[str, Any]]:
    return [item for item in items if isinstance(item, Mapping)]


def parse_bucket(bucket: Any) -> PositionBucket:
    if isinstance(bucket, list):
        return RowArray(_only_mappings(bucket))
    if isinstance(bucket, Mapping) and isinstance(bucket.get("rows"), list):
        return RowWrapper(_only_mappings(bucket["rows"]))
    return UnknownBucket()


def rows_of(bucket: Any) -> list[Mapping[str, Any]]:
    """Rows held by a bucket of unknown shape; ``[]`` for anything unusable."""
    return parse_bucket(bucket).rows


# ── Field resolution ────────────────────────────────────────────────────────

def _finite_number(value: Any) -> float | None:
    if isinstance(value, bool) or not isinstance(value, Real):
        return None
    number = float(value)
    if not math.isfinite(number):
        return None
    return number


def usd_of(row: Any) -> float:
    """USD-equivalent signed amount of a row: first finite of ``USD_FIELDS``, else 0."""
    if not isinstance(row, Mapping):
        return 0.0
    for key in USD_FIELDS:
        number = _finite_number(row.get(key))
        if number is not None:
            return number
    return 0.0


def currency_of(row: Any) -> str:
    if isinstance(row, Mapping):
        for key in ("currency", "ccy"):
            value = row.get(key)
            if value is not None and str(value).strip():
                return str(value).strip()
    return "USD"


def bank_label(block: Mapping[str, Any]) -> str:
    value = block.get("bank")
    return PLACEHOLDER if value is None else str(value)


def account_label(block: Mapping[str, Any]) -> str:
    value = block.get("account_number")
    return PLACEHOLDER if value is None else str(value)


# ── Category lookup ─────────────────────────────────────────────────────────

def resolve_category_key(block: Mapping[str, Any], canonical: str) -> str | None:
    """Key actually used on *block* for *canonical*, or ``None`` when absent.

    Unknown canonical names are looked up verbatim.
    """
    for alias in CATEGORY_ALIASES.get(canonical, (canonical,)):
        if alias in block:
            return alias
    return None


def category_rows(block: Any, canonical: str) -> list[Mapping[str, Any]]:
    if not isinstance(block, Mapping):
        return []
    key = resolve_category_key(block, canonical)
    if key is None:
        return []
    return rows_of(block[key])


def table_data_of(payload: Any) -> list[Mapping[str, Any]]:
    """Blocks from a data-source payload.

    Accepts the current ``{"tableData": [...]}`` shape and the older
    overview shape ``{"overview_data": [{"table_data": {"tableData": [...]}}]}``.
    """
    if not isinstance(payload, Mapping):
        return []
    if isinstance(payload.get("tableData"), list):
        return _only_mappings(payload["tableData"])

    first: Any = None
    for key in ("overview_data", "overview", "data"):
        candidates = payload.get(key)
        if isinstance(candidates, list) and candidates:
            first = candidates[0]
            break
    for holder in (first, payload):
        if not isinstance(holder, Mapping):
            continue
        table = holder.get("table_data")
        if isinstance(table, Mapping) and isinstance(table.get("tableData"), list):
            return _only_mappings(table["tableData"])
    return []


# ── Holdings rows ───────────────────────────────────────────────────────────

def parse_ticker_isin(text: Any) -> dict[str, str]:
    if not text:
        return {}
    s = str(text)
    out: dict[str, str] = {}
    ticker = _TICKER_RE.search(s)
    if ticker:
        out["ticker"] = ticker.group(1).upper()
    isin = _ISIN_RE.search(s)
    if isin:
        out["isin"] = isin.group(1).upper()
    return out


def normalize_holding_row(row: Mapping[str, Any]) -> dict[str, Any]:
    """Copy of *row* with canonical ``ticker``, ``isin`` and ``balance`` fields."""
    free_text = next((row.get(k) for k in _FREE_TEXT_FIELDS if row.get(k)), None)
    parsed = parse_ticker_isin(free_text)

    ticker = row.get("ticker") or row.get("Ticker") or parsed.get("ticker")
    isin = row.get("isin") or row.get("ISIN") or parsed.get("isin")

    balance = 0.0
    for key in _HOLDING_BALANCE_FIELDS:
        number = _finite_number(row.get(key))
        if number is not None:
            balance = number
            break

    return {
        **row,
        "ticker": str(ticker).upper() if ticker else None,
        "isin": str(isin).upper() if isin else None,
        "balance": balance,
    }


def normalize_block(block: Mapping[str, Any]) -> dict[str, Any]:
    """Block re-keyed by canonical category with normalized holding rows."""
    out: dict[str, Any] = {
        "bank": block.get("bank") or block.get("bankname") or block.get("custodian") or PLACEHOLDER,
        "as_of_date": block.get("as_of_date"),
        "account_number": block.get("account_number"),
    }
    for canonical in ALL_CATEGORIES:
        key = resolve_category_key(block, canonical)
        if key is not None:
            out[canonical] = [normalize_holding_row(r) for r in rows_of(block[key])]
    return out

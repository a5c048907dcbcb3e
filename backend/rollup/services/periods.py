"""Reporting-period resolution.

Decides which data a request aggregates:

- range/filter mode: any of ``from``, ``to``, ``custodian``, ``account`` given;
  one call to the range collaborator, labelled ``to ?? from``.
- explicit month: ``year`` + ``month`` (or a parseable ``month_date``).
- latest month (default): walk the recent months newest-first, one fetch at a
  time, and stop at the first month with any blocks.

An empty dataset is not an error; it resolves to ``mode="empty"`` with no label.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterable, Mapping
from dataclasses import dataclass, field
from typing import Any

from rollup.core.months import MonthKey, parse_month_date
from rollup.core.rows import bank_label, table_data_of
from rollup.io.sources import PortfolioSource

_log = logging.getLogger(__name__)

DEFAULT_RECENT_MONTHS = 12


@dataclass(frozen=True)
class PeriodRequest:
    client_id: int
    year: int | None = None
    month: int | None = None
    month_date: str | None = None
    date_from: str | None = None
    date_to: str | None = None
    custodian: str | None = None
    account: str | None = None

    @property
    def is_range_mode(self) -> bool:
        return any((self.date_from, self.date_to, self.custodian, self.account))

    def explicit_month(self) -> MonthKey | None:
        """Month named by ``year``/``month``, falling back to ``month_date``."""
        if self.year and self.month:
            return MonthKey(self.year, self.month)
        if self.month_date:
            return parse_month_date(self.month_date)
        return None


@dataclass(frozen=True)
class ResolvedPeriod:
    mode: str  # "range" | "month" | "latest" | "empty"
    blocks: list[Mapping[str, Any]] = field(default_factory=list)
    month: MonthKey | None = None
    label: str | None = None


EMPTY_PERIOD = ResolvedPeriod(mode="empty")


def fetch_month_blocks(source: PortfolioSource, client_id: int, month: MonthKey) -> list[Mapping[str, Any]]:
    return table_data_of(source.fetch_month(client_id, month.year, month.month))


def first_populated_month(
    source: PortfolioSource,
    client_id: int,
    candidates: Iterable[MonthKey],
) -> tuple[MonthKey, list[Mapping[str, Any]]] | None:
    """Sequential newest-first search; ``None`` when every candidate is empty."""
    for candidate in candidates:
        blocks = fetch_month_blocks(source, client_id, candidate)
        if blocks:
            return candidate, blocks
        _log.debug("client %s: %s has no table data", client_id, candidate.ym())
    return None


def resolve_period(
    request: PeriodRequest,
    source: PortfolioSource,
    *,
    recent_limit: int = DEFAULT_RECENT_MONTHS,
    label_month: Callable[[MonthKey], str] = MonthKey.month_date_utc,
) -> ResolvedPeriod:
    """Resolve *request* against *source*.

    *label_month* formats the chosen month for the response's ``month_date``.
    """
    if request.is_range_mode:
        payload = source.fetch_range(
            request.client_id,
            request.date_from,
            request.date_to,
            request.custodian,
            request.account,
        )
        return ResolvedPeriod(
            mode="range",
            blocks=table_data_of(payload),
            label=request.date_to or request.date_from,
        )

    explicit = request.explicit_month()
    if explicit is not None:
        blocks = fetch_month_blocks(source, request.client_id, explicit)
        if not blocks:
            return EMPTY_PERIOD
        return ResolvedPeriod(mode="month", blocks=blocks, month=explicit, label=label_month(explicit))

    candidates = source.recent_months(request.client_id, recent_limit)
    found = first_populated_month(source, request.client_id, candidates)
    if found is None:
        _log.info(
            "client %s: no populated month among %d candidates", request.client_id, len(candidates),
        )
        return EMPTY_PERIOD
    month, blocks = found
    _log.debug("client %s: resolved latest month %s", request.client_id, month.ym())
    return ResolvedPeriod(mode="latest", blocks=blocks, month=month, label=label_month(month))


# ── Custodian/account snapshots ─────────────────────────────────────────────

def _as_of(block: Mapping[str, Any]) -> str:
    value = block.get("as_of_date")
    return "" if value is None else str(value)


def filter_blocks(
    blocks: Iterable[Mapping[str, Any]],
    custodian: str | None = None,
    account: str | None = None,
) -> list[Mapping[str, Any]]:
    """Keep blocks of *custodian* (case-insensitive) and *account* (exact)."""
    wanted_bank = custodian.lower() if custodian else None
    out: list[Mapping[str, Any]] = []
    for block in blocks:
        if wanted_bank is not None and str(block.get("bank") or "").lower() != wanted_bank:
            continue
        if account is not None and (block.get("account_number") or "") != account:
            continue
        out.append(block)
    return out


def latest_per_bank(blocks: Iterable[Mapping[str, Any]]) -> list[Mapping[str, Any]]:
    latest: dict[str, Mapping[str, Any]] = {}
    for block in blocks:
        bank = bank_label(block)
        if bank not in latest or _as_of(block) > _as_of(latest[bank]):
            latest[bank] = block
    return list(latest.values())


def latest_snapshot(blocks: Iterable[Mapping[str, Any]]) -> list[Mapping[str, Any]]:
    rows = list(blocks)
    if not rows:
        return []
    newest = max(_as_of(b) for b in rows)
    return [b for b in rows if _as_of(b) == newest]


def snapshot_blocks(
    blocks: Iterable[Mapping[str, Any]],
    custodian: str | None = None,
    account: str | None = None,
) -> list[Mapping[str, Any]]:
    """Latest position per bank, or the latest snapshot of the filtered slice."""
    if not custodian and not account:
        return latest_per_bank(blocks)
    return latest_snapshot(filter_blocks(blocks, custodian, account))

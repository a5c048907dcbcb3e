"""Portfolio data sources: per-month, range, month-listing and filter-option collaborators.

The aggregation functions live in PostgreSQL and return nested JSON; this
module only calls them.  ``PortfolioSource`` is the seam the resolver and the
routes depend on, so tests can substitute an in-memory source.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from collections.abc import Callable
from typing import Any

from sqlalchemy import text
from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError

from rollup.core.errors import UpstreamError
from rollup.core.months import MonthKey

_log = logging.getLogger(__name__)

RANGE_FLOOR = "1900-01-01"
RANGE_CEILING = "9999-12-31"

_MONTH_SQL = text(
    "select public.get_month_overview_aggregated(:client_id, :year, :month)::jsonb as data"
)

_RANGE_SQL = text(
    "select public.get_overview_range_aggregated("
    ":client_id, cast(:date_from as date), cast(:date_to as date), :custodian, :account"
    ")::jsonb as data"
)

_RECENT_MONTHS_SQL = text(
    """
    with mon as (
      select date_trunc('month', as_of_date)::date as mon
      from document
      where client_id = :client_id and as_of_date is not null
      group by 1
      order by mon desc
      limit :limit
    )
    select extract(year from mon)::int as y,
           extract(month from mon)::int as m
    from mon
    order by y desc, m desc
    """
)

_FILTERS_SQL = text(
    "select public.get_client_filters(:client_id, :custodian, :account)::jsonb as data"
)

EMPTY_FILTERS: dict[str, Any] = {
    "custodians": [],
    "custodian_map": [],
    "periods": [],
    "min_date": None,
    "max_date": None,
    "accounts": [],
}


class PortfolioSource(ABC):
    """External collaborators consumed by the rollup layer."""

    @abstractmethod
    def fetch_month(self, client_id: int, year: int, month: int) -> dict[str, Any]:
        """``{"tableData": [...]}`` for one calendar month (may be empty)."""

    @abstractmethod
    def fetch_range(
        self,
        client_id: int,
        date_from: str | None,
        date_to: str | None,
        custodian: str | None,
        account: str | None,
    ) -> dict[str, Any]:
        """``{"tableData": [...], "periods": [...], "custodians": [...]}`` for a window."""

    @abstractmethod
    def recent_months(self, client_id: int, limit: int) -> list[MonthKey]:
        """Months holding at least one dated statement, newest first."""

    @abstractmethod
    def client_filters(self, client_id: int, custodian: str | None, account: str | None) -> dict[str, Any]:
        """Custodians, accounts and statement periods available to the selectors."""


class SqlPortfolioSource(PortfolioSource):
    """PostgreSQL-backed source calling the portal's aggregation functions.

    *engine* may be an ``Engine`` or a zero-argument factory returning one; a
    factory is only called when the first query runs.
    """

    def __init__(self, engine: Engine | Callable[[], Engine]):
        self._engine_ref = engine

    @property
    def engine(self) -> Engine:
        if isinstance(self._engine_ref, Engine):
            return self._engine_ref
        return self._engine_ref()

    def _scalar(self, statement: Any, params: dict[str, Any]) -> Any:
        try:
            with self.engine.connect() as conn:
                return conn.execute(statement, params).scalar()
        except SQLAlchemyError as exc:
            raise UpstreamError(f"portfolio query failed: {exc.__class__.__name__}") from exc

    def fetch_month(self, client_id: int, year: int, month: int) -> dict[str, Any]:
        data = self._scalar(_MONTH_SQL, {"client_id": client_id, "year": year, "month": month})
        return data if isinstance(data, dict) else {"tableData": []}

    def fetch_range(
        self,
        client_id: int,
        date_from: str | None,
        date_to: str | None,
        custodian: str | None,
        account: str | None,
    ) -> dict[str, Any]:
        params = {
            "client_id": client_id,
            "date_from": date_from or RANGE_FLOOR,
            "date_to": date_to or RANGE_CEILING,
            "custodian": custodian,
            "account": account,
        }
        data = self._scalar(_RANGE_SQL, params)
        if isinstance(data, dict):
            return data
        return {"tableData": [], "periods": [], "custodians": []}

    def recent_months(self, client_id: int, limit: int) -> list[MonthKey]:
        try:
            with self.engine.connect() as conn:
                result = conn.execute(_RECENT_MONTHS_SQL, {"client_id": client_id, "limit": limit})
                rows = result.all()
        except SQLAlchemyError as exc:
            raise UpstreamError(f"month listing failed: {exc.__class__.__name__}") from exc
        months = [MonthKey(int(row.y), int(row.m)) for row in rows]
        _log.debug("client %s: %d candidate months", client_id, len(months))
        return months

    def client_filters(self, client_id: int, custodian: str | None, account: str | None) -> dict[str, Any]:
        data = self._scalar(
            _FILTERS_SQL, {"client_id": client_id, "custodian": custodian, "account": account},
        )
        return data if isinstance(data, dict) else dict(EMPTY_FILTERS)

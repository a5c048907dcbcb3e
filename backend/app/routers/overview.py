"""Overview page route: cards, asset-class and currency mix, and the net-asset trend.

``from``/``to`` switch to range mode, where the range collaborator filters by
custodian and account and the trend covers the months of the window.  Without
dates the month is explicit or the latest populated one, the blocks are
filtered here, and the trend covers the candidate months.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Mapping, Sequence
from datetime import datetime, timezone
from typing import Any

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse

import app.state as state
from app.config import OVERVIEW_BODY_FIELDS, OVERVIEW_ERROR_MESSAGE
from app.datasource import get_portfolio_source
from app.routers.cash import _RESPONSES
from app.schemas import (
    OverviewCards,
    OverviewComputed,
    OverviewEntry,
    OverviewResponse,
    PieChartData,
    TableData,
    TrendPoint,
)
from app.services.asset_query import (
    _error_response,
    _json_response,
    _period_request,
    _query_from_body,
    _read_json_body,
)
from rollup.core.errors import ValidationError
from rollup.core.months import MonthKey, months_between, parse_iso_day
from rollup.core.rows import table_data_of
from rollup.io.sources import PortfolioSource
from rollup.services.overview import build_trend, summarize
from rollup.services.periods import PeriodRequest, filter_blocks, first_populated_month

_log = logging.getLogger(__name__)

router = APIRouter()


def _current_month() -> MonthKey:
    return MonthKey.from_date(datetime.now(timezone.utc).date())


def _range_trend_months(date_from: str | None, date_to: str | None, window: int) -> list[MonthKey]:
    """Months of ``[from, to]``, never past the current month nor longer than *window*."""
    current = _current_month()
    to_day = parse_iso_day(date_to)
    end = min(MonthKey.from_date(to_day), current) if to_day else current

    earliest = end.shifted(-(max(window, 1) - 1))
    from_day = parse_iso_day(date_from)
    start = max(MonthKey.from_date(from_day), earliest) if from_day else earliest
    return months_between(start, end)


def _overview_payload(
    month_date: str | None,
    blocks: Sequence[Mapping[str, Any]],
    trend: list[dict[str, Any]],
) -> OverviewResponse:
    summary = summarize(blocks)
    entry = OverviewEntry(
        month_date=month_date,
        pie_chart_data=PieChartData(charts=summary.charts),
        table_data=TableData(tableData=[dict(b) for b in blocks]),
    )
    computed = OverviewComputed(
        cards=OverviewCards(**summary.cards()),
        breakdown=summary.breakdown,
        trend=[TrendPoint(**p) for p in trend],
    )
    return OverviewResponse(overview_data=[entry], computed=computed)


def _range_overview(req: PeriodRequest, source: PortfolioSource) -> OverviewResponse:
    payload = source.fetch_range(req.client_id, req.date_from, req.date_to, req.custodian, req.account)
    blocks = table_data_of(payload)
    months = _range_trend_months(req.date_from, req.date_to, state.TREND_MONTHS)
    trend = build_trend(source, req.client_id, months, req.custodian, req.account)
    return _overview_payload(req.date_to or req.date_from, blocks, trend)


def _month_overview(req: PeriodRequest, source: PortfolioSource) -> OverviewResponse:
    explicit = req.explicit_month()
    candidates = [explicit] if explicit else source.recent_months(req.client_id, state.RECENT_MONTHS)
    if not candidates:
        _log.info("client %s: no statement months for overview", req.client_id)
        return OverviewResponse()

    found = first_populated_month(source, req.client_id, candidates)
    selected, blocks = found if found is not None else (candidates[0], [])
    if req.custodian or req.account:
        blocks = filter_blocks(blocks, req.custodian, req.account)

    trend = build_trend(source, req.client_id, sorted(candidates), req.custodian, req.account)
    return _overview_payload(selected.month_date_utc(), blocks, trend)


def _overview_response(params: Mapping[str, str], source: PortfolioSource) -> JSONResponse:
    try:
        req = _period_request(params)
    except ValidationError as exc:
        return _error_response(400, str(exc))

    try:
        if req.date_from or req.date_to:
            result = _range_overview(req, source)
        else:
            result = _month_overview(req, source)
        return _json_response(result)
    except Exception:
        _log.exception("overview failed for client %s", req.client_id)
        return _error_response(500, OVERVIEW_ERROR_MESSAGE)


@router.get("/api/clients/assets/overview", response_model=OverviewResponse, responses=_RESPONSES)
def get_overview(
    request: Request,
    source: PortfolioSource = Depends(get_portfolio_source),
) -> JSONResponse:
    return _overview_response(request.query_params, source)


@router.post("/api/clients/assets/overview", response_model=OverviewResponse, responses=_RESPONSES)
async def post_overview(
    request: Request,
    source: PortfolioSource = Depends(get_portfolio_source),
) -> JSONResponse:
    body = await _read_json_body(request)
    params = _query_from_body(body, OVERVIEW_BODY_FIELDS)
    return await asyncio.to_thread(_overview_response, params, source)

"""Holdings table route and the month listing that feeds its picker."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Mapping

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse

import app.state as state
from app.config import ERROR_MESSAGE, HOLDINGS_BODY_FIELDS, MONTHS_BODY_FIELDS, MONTHS_LISTING_LIMIT
from app.datasource import get_portfolio_source
from app.routers.cash import _RESPONSES
from app.schemas import HoldingsResponse, MonthsResponse, OverviewEntry, TableData
from app.services.asset_query import (
    _client_id,
    _error_response,
    _json_response,
    _period_request,
    _query_from_body,
    _read_json_body,
)
from rollup.core.errors import ValidationError
from rollup.core.months import MonthKey
from rollup.core.rows import normalize_block
from rollup.io.sources import PortfolioSource
from rollup.services.periods import resolve_period

_log = logging.getLogger(__name__)

router = APIRouter()


def _holdings_response(params: Mapping[str, str], source: PortfolioSource) -> JSONResponse:
    try:
        req = _period_request(params, with_filters=False)
    except ValidationError as exc:
        return _error_response(400, str(exc))

    try:
        period = resolve_period(
            req, source, recent_limit=state.RECENT_MONTHS, label_month=MonthKey.iso_first_day,
        )
        entry = OverviewEntry(
            month_date=period.label,
            table_data=TableData(tableData=[normalize_block(b) for b in period.blocks]),
        )
        return _json_response(HoldingsResponse(overview_data=[entry]))
    except Exception:
        _log.exception("holdings lookup failed for client %s", req.client_id)
        return _error_response(500, ERROR_MESSAGE)


def _months_response(params: Mapping[str, str], source: PortfolioSource) -> JSONResponse:
    try:
        client_id = _client_id(params)
    except ValidationError as exc:
        return _error_response(400, str(exc))

    try:
        months = source.recent_months(client_id, MONTHS_LISTING_LIMIT)
        return _json_response(MonthsResponse(months=[m.ym() for m in months]))
    except Exception:
        _log.exception("month listing failed for client %s", client_id)
        return _error_response(500, ERROR_MESSAGE)


@router.get("/api/clients/assets/holdings", response_model=HoldingsResponse, responses=_RESPONSES)
def get_holdings(
    request: Request,
    source: PortfolioSource = Depends(get_portfolio_source),
) -> JSONResponse:
    return _holdings_response(request.query_params, source)


@router.post("/api/clients/assets/holdings", response_model=HoldingsResponse, responses=_RESPONSES)
async def post_holdings(
    request: Request,
    source: PortfolioSource = Depends(get_portfolio_source),
) -> JSONResponse:
    body = await _read_json_body(request)
    params = _query_from_body(body, HOLDINGS_BODY_FIELDS)
    return await asyncio.to_thread(_holdings_response, params, source)


@router.get("/api/clients/assets/holdings/months", response_model=MonthsResponse, responses=_RESPONSES)
def get_holding_months(
    request: Request,
    source: PortfolioSource = Depends(get_portfolio_source),
) -> JSONResponse:
    return _months_response(request.query_params, source)


@router.post("/api/clients/assets/holdings/months", response_model=MonthsResponse, responses=_RESPONSES)
async def post_holding_months(
    request: Request,
    source: PortfolioSource = Depends(get_portfolio_source),
) -> JSONResponse:
    body = await _read_json_body(request)
    params = _query_from_body(body, MONTHS_BODY_FIELDS)
    return await asyncio.to_thread(_months_response, params, source)

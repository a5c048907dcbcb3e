"""Cash and exposure rollup route: currency, bank, bank×currency and account splits."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Mapping

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse

import app.state as state
from app.config import CASH_BODY_FIELDS, ERROR_MESSAGE
from app.datasource import get_portfolio_source
from app.schemas import CashResponse, CashRollup, ErrorResponse, RollupTotals
from app.services.asset_query import (
    _categories_for_scope,
    _error_response,
    _json_response,
    _period_request,
    _query_from_body,
    _read_json_body,
)
from rollup.core.errors import ValidationError
from rollup.io.sources import PortfolioSource
from rollup.services.aggregate import RollupResult, aggregate, empty_rollup
from rollup.services.periods import resolve_period

_log = logging.getLogger(__name__)

router = APIRouter()

_RESPONSES = {400: {"model": ErrorResponse}, 500: {"model": ErrorResponse}}


def _cash_envelope(month_date: str | None, rollup: RollupResult) -> CashResponse:
    return CashResponse(
        month_date=month_date,
        totals=RollupTotals(grand_total=rollup.grand_total),
        cash=CashRollup.model_validate(rollup.to_payload()),
    )


def _cash_response(params: Mapping[str, str], source: PortfolioSource) -> JSONResponse:
    try:
        period_request = _period_request(params)
    except ValidationError as exc:
        return _error_response(400, str(exc))

    try:
        categories = _categories_for_scope(params.get("scope"))
        period = resolve_period(period_request, source, recent_limit=state.RECENT_MONTHS)
        rollup = aggregate(period.blocks, categories) if period.blocks else empty_rollup()
        return _json_response(_cash_envelope(period.label, rollup))
    except Exception:
        _log.exception("cash rollup failed for client %s", period_request.client_id)
        return _error_response(500, ERROR_MESSAGE)


@router.get("/api/clients/assets/cash", response_model=CashResponse, responses=_RESPONSES)
def get_cash(
    request: Request,
    source: PortfolioSource = Depends(get_portfolio_source),
) -> JSONResponse:
    return _cash_response(request.query_params, source)


@router.post("/api/clients/assets/cash", response_model=CashResponse, responses=_RESPONSES)
async def post_cash(
    request: Request,
    source: PortfolioSource = Depends(get_portfolio_source),
) -> JSONResponse:
    body = await _read_json_body(request)
    params = _query_from_body(body, CASH_BODY_FIELDS)
    return await asyncio.to_thread(_cash_response, params, source)

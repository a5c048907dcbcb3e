"""Custodian route: rollups over a date window or the latest snapshot per custodian.

With ``from``/``to`` the range collaborator does the filtering.  Without dates
the full history is fetched and reduced to a snapshot: the latest block per
bank, or, when a custodian and/or account is given, the latest ``as_of_date``
of that slice.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Mapping

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse

from app.config import CUSTODIAN_BODY_FIELDS, ERROR_MESSAGE, FULL_CATEGORIES
from app.datasource import get_portfolio_source
from app.routers.cash import _RESPONSES, _cash_envelope
from app.schemas import CashResponse
from app.services.asset_query import (
    _error_response,
    _json_response,
    _period_request,
    _query_from_body,
    _read_json_body,
)
from rollup.core.errors import ValidationError
from rollup.core.rows import table_data_of
from rollup.io.sources import PortfolioSource
from rollup.services.aggregate import aggregate
from rollup.services.periods import snapshot_blocks

_log = logging.getLogger(__name__)

router = APIRouter()


def _custodian_response(params: Mapping[str, str], source: PortfolioSource) -> JSONResponse:
    try:
        req = _period_request(params)
    except ValidationError as exc:
        return _error_response(400, str(exc))

    try:
        if req.date_from or req.date_to:
            payload = source.fetch_range(req.client_id, req.date_from, req.date_to, req.custodian, req.account)
            blocks = table_data_of(payload)
        else:
            payload = source.fetch_range(req.client_id, None, None, req.custodian, req.account)
            blocks = snapshot_blocks(table_data_of(payload), req.custodian, req.account)
        return _json_response(_cash_envelope(None, aggregate(blocks, FULL_CATEGORIES)))
    except Exception:
        _log.exception("custodian rollup failed for client %s", req.client_id)
        return _error_response(500, ERROR_MESSAGE)


@router.get("/api/clients/assets/custodian", response_model=CashResponse, responses=_RESPONSES)
def get_custodian(
    request: Request,
    source: PortfolioSource = Depends(get_portfolio_source),
) -> JSONResponse:
    return _custodian_response(request.query_params, source)


@router.post("/api/clients/assets/custodian", response_model=CashResponse, responses=_RESPONSES)
async def post_custodian(
    request: Request,
    source: PortfolioSource = Depends(get_portfolio_source),
) -> JSONResponse:
    body = await _read_json_body(request)
    params = _query_from_body(body, CUSTODIAN_BODY_FIELDS)
    return await asyncio.to_thread(_custodian_response, params, source)

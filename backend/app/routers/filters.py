"""Selector options route: custodians, accounts and statement periods for a client."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Mapping

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse

from app.config import ERROR_MESSAGE, FILTERS_BODY_FIELDS
from app.datasource import get_portfolio_source
from app.routers.cash import _RESPONSES
from app.schemas import FiltersResponse
from app.services.asset_query import (
    _account_filter,
    _client_id,
    _error_response,
    _json_response,
    _query_from_body,
    _read_json_body,
    _to_text,
)
from rollup.core.errors import ValidationError
from rollup.io.sources import PortfolioSource

_log = logging.getLogger(__name__)

router = APIRouter()


def _filters_response(params: Mapping[str, str], source: PortfolioSource) -> JSONResponse:
    try:
        client_id = _client_id(params)
    except ValidationError as exc:
        return _error_response(400, str(exc))

    try:
        data = source.client_filters(
            client_id, _to_text(params.get("custodian")), _account_filter(params.get("account")),
        )
        # Null lists from the database fall back to the empty defaults.
        options = FiltersResponse.model_validate({k: v for k, v in data.items() if v is not None})
        return _json_response(options)
    except Exception:
        _log.exception("filter options failed for client %s", client_id)
        return _error_response(500, ERROR_MESSAGE)


@router.get("/api/clients/filters", response_model=FiltersResponse, responses=_RESPONSES)
def get_filters(
    request: Request,
    source: PortfolioSource = Depends(get_portfolio_source),
) -> JSONResponse:
    return _filters_response(request.query_params, source)


@router.post("/api/clients/filters", response_model=FiltersResponse, responses=_RESPONSES)
async def post_filters(
    request: Request,
    source: PortfolioSource = Depends(get_portfolio_source),
) -> JSONResponse:
    body = await _read_json_body(request)
    params = _query_from_body(body, FILTERS_BODY_FIELDS)
    return await asyncio.to_thread(_filters_response, params, source)

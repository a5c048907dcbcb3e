"""Query-string parsing and response helpers shared by the asset routes.

Every asset route accepts the same string-valued query contract.  POST
handlers re-marshal their JSON body into that contract and run the same code
path as GET.
"""

from __future__ import annotations

import json
import math
from collections.abc import Iterable, Mapping
from dataclasses import replace
from typing import Any

from fastapi import Request
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from app.config import (
    ACCOUNT_WILDCARDS,
    FROM_PARAMS,
    FULL_CATEGORIES,
    MISSING_CLIENT_MESSAGE,
    NO_STORE_HEADERS,
    SCOPE_CATEGORIES,
    TO_PARAMS,
)
from app.schemas import ErrorResponse
from rollup.core.errors import ValidationError
from rollup.core.months import parse_iso_day
from rollup.services.periods import PeriodRequest


# ── Scalar parsing ──────────────────────────────────────────────────────────

def _to_text(value: Any) -> str | None:
    if value is None:
        return None
    text = str(value).strip()
    return text if text != "" else None


def _int_or_none(value: Any) -> int | None:
    """Integral number from a query value; ``None`` for blanks, garbage and fractions."""
    text = _to_text(value)
    if text is None:
        return None
    try:
        number = float(text)
    except ValueError:
        return None
    if not math.isfinite(number) or not number.is_integer():
        return None
    return int(number)


def _first_param(params: Mapping[str, str], names: Iterable[str]) -> str | None:
    for name in names:
        value = _to_text(params.get(name))
        if value is not None:
            return value
    return None


def _iso_day_param(params: Mapping[str, str], names: tuple[str, ...]) -> str | None:
    raw = _first_param(params, names)
    if raw is None:
        return None
    parsed = parse_iso_day(raw)
    if parsed is None:
        raise ValidationError(f"{names[0]} must be an ISO date (YYYY-MM-DD)")
    return parsed.isoformat()


def _client_id(params: Mapping[str, str]) -> int:
    client_id = _int_or_none(params.get("client_id"))
    if not client_id:
        raise ValidationError(MISSING_CLIENT_MESSAGE)
    return client_id


def _account_filter(raw: Any) -> str | None:
    account = _to_text(raw)
    if account is None or account in ACCOUNT_WILDCARDS:
        return None
    return account


# ── Request contract ────────────────────────────────────────────────────────

def _period_request(params: Mapping[str, str], *, with_filters: bool = True) -> PeriodRequest:
    """Build the resolver input from query params; raises ``ValidationError``.

    With ``with_filters=False`` only the month selectors are read.
    """
    client_id = _client_id(params)

    year = _int_or_none(params.get("year"))
    month = _int_or_none(params.get("month"))
    if month is not None and month != 0 and not 1 <= month <= 12:
        raise ValidationError("month must be between 1 and 12")

    request = PeriodRequest(
        client_id=client_id,
        year=year or None,
        month=month or None,
        month_date=_to_text(params.get("month_date")),
    )
    if not with_filters:
        return request

    return replace(
        request,
        date_from=_iso_day_param(params, FROM_PARAMS),
        date_to=_iso_day_param(params, TO_PARAMS),
        custodian=_to_text(params.get("custodian")),
        account=_account_filter(params.get("account")),
    )


def _categories_for_scope(scope: str | None) -> tuple[str, ...]:
    return SCOPE_CATEGORIES.get((scope or "").strip().lower(), FULL_CATEGORIES)


async def _read_json_body(request: Request) -> dict[str, Any]:
    """JSON object body, or ``{}`` when the body is absent or not an object."""
    raw = await request.body()
    if not raw:
        return {}
    try:
        body = json.loads(raw)
    except (json.JSONDecodeError, UnicodeDecodeError):
        return {}
    return body if isinstance(body, dict) else {}


def _query_from_body(body: Mapping[str, Any], fields: Iterable[str]) -> dict[str, str]:
    """Re-marshal a JSON body into the string-valued query contract."""
    params: dict[str, str] = {}
    for name in fields:
        value = body.get(name)
        if value is None:
            continue
        params[name] = str(value)
    return params


# ── Responses ───────────────────────────────────────────────────────────────

def _json_response(model: BaseModel, status_code: int = 200) -> JSONResponse:
    return JSONResponse(
        content=model.model_dump(mode="json"),
        status_code=status_code,
        headers=NO_STORE_HEADERS,
    )


def _error_response(status_code: int, message: str) -> JSONResponse:
    return _json_response(ErrorResponse(message=message), status_code=status_code)

"""
Wealth portal asset API – FastAPI app serving portfolio rollups.

=== ROLE IN THE SYSTEM ===
The dashboard's asset pages (cash, custodian, holdings, overview) and their
filter selectors read their data from this API. The aggregated statement data
itself lives in PostgreSQL behind a few database functions; this service picks
the reporting period, normalizes the position rows and rolls them up per
currency, bank and account.

=== WHAT IT DOES ===
1. PERIOD RESOLUTION: explicit month, latest populated month, or a custodian /
   account / date window (rollup.services.periods).
2. ROLLUPS: currency, bank, bank×currency and account splits with the portal's
   chart palette (rollup.services.aggregate).
3. OVERVIEW: cards, asset-class and currency mix, net-asset trend
   (rollup.services.overview).

Routes live in app/routers; the database engine is created lazily in
app/datasource.py and disposed on shutdown.
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

import app.state as state
from app.config import ERROR_MESSAGE
from app.datasource import dispose_engine
from app.routers import cash, custodian, filters, holdings, overview
from app.services.asset_query import _error_response

_log = logging.getLogger(__name__)


@asynccontextmanager
async def _lifespan(app: FastAPI):
    """FastAPI lifespan: release pooled database connections on shutdown."""
    yield
    dispose_engine()


app = FastAPI(title="Portfolio rollup API", lifespan=_lifespan)

app.add_middleware(
    CORSMiddleware,
    allow_origins=state.CORS_ORIGINS,
    allow_origin_regex=r"^https?://(localhost|127\.0\.0\.1)(:\d+)?$",
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(Exception)
async def _unhandled_error(request: Request, exc: Exception) -> JSONResponse:
    _log.exception("unhandled error on %s %s", request.method, request.url.path)
    return _error_response(500, ERROR_MESSAGE)


@app.get("/api/health")
def health() -> dict[str, str]:
    return {"status": "ok"}


app.include_router(cash.router)
app.include_router(custodian.router)
app.include_router(filters.router)
app.include_router(holdings.router)
app.include_router(overview.router)

"""Database engine construction and the data-source dependency used by the routes."""

from __future__ import annotations

import logging
import threading

from sqlalchemy import URL, create_engine
from sqlalchemy.engine import Engine

import app.state as state
from rollup.io.sources import PortfolioSource, SqlPortfolioSource

_log = logging.getLogger(__name__)

# Serializes first-use engine creation across threadpool workers.
_engine_lock = threading.Lock()


def _database_url() -> str | URL:
    if state.DATABASE_URL:
        return state.DATABASE_URL

    missing = [
        name
        for name, value in (
            ("DB_HOST", state.DB_HOST),
            ("DB_USER", state.DB_USER),
            ("DB_PASSWORD", state.DB_PASSWORD),
            ("DB_NAME", state.DB_NAME),
        )
        if not value
    ]
    if missing:
        raise RuntimeError(f"Missing env var(s): {', '.join(missing)}")

    return URL.create(
        drivername="postgresql+psycopg2",
        username=state.DB_USER,
        password=state.DB_PASSWORD,
        host=state.DB_HOST,
        port=state.DB_PORT,
        database=state.DB_NAME,
        query={"sslmode": state.DB_SSLMODE} if state.DB_SSLMODE else {},
    )


def get_engine() -> Engine:
    """Shared engine, created once on first use."""
    if state._engine is not None:
        return state._engine
    with _engine_lock:
        if state._engine is None:
            state._engine = create_engine(
                _database_url(),
                pool_pre_ping=True,
                pool_size=5,
                max_overflow=10,
                pool_timeout=10,
                pool_recycle=1800,
            )
            _log.info("Created database engine for %s", state._engine.url.render_as_string(hide_password=True))
    return state._engine


def dispose_engine() -> None:
    with _engine_lock:
        if state._engine is not None:
            state._engine.dispose()
            state._engine = None


def get_portfolio_source() -> PortfolioSource:
    """FastAPI dependency; tests override it with an in-memory source."""
    return SqlPortfolioSource(get_engine)

"""
Process-wide settings and lazily created shared objects.

Modules access these via ``import app.state as state`` and then
``state._engine`` etc. so that rebinding in the lifespan function is visible
everywhere.  Settings are read from the environment once, at import.
"""

from __future__ import annotations

import os

from sqlalchemy.engine import Engine


def _int_env(name: str, default: int) -> int:
    raw = os.environ.get(name)
    if not raw:
        return default
    try:
        return max(1, int(raw))
    except ValueError:
        return default


# SQLAlchemy engine – created on first request in app.datasource, disposed
# in main._lifespan().
_engine: Engine | None = None

# Database connection. DATABASE_URL wins over the individual DB_* parts.
DATABASE_URL = os.environ.get("DATABASE_URL", "")
DB_HOST = os.environ.get("DB_HOST", "")
DB_PORT = _int_env("DB_PORT", 5432)
DB_USER = os.environ.get("DB_USER", "")
DB_PASSWORD = os.environ.get("DB_PASSWORD", "")
DB_NAME = os.environ.get("DB_NAME", "")
DB_SSLMODE = os.environ.get("DB_SSLMODE", "require")

# Fallback search window (months) and overview trend cap.
RECENT_MONTHS = _int_env("ROLLUP_RECENT_MONTHS", 12)
TREND_MONTHS = _int_env("ROLLUP_TREND_MONTHS", 24)

LOG_LEVEL = os.environ.get("ROLLUP_LOG_LEVEL", "INFO").upper()

_DEFAULT_CORS = (
    "http://localhost:3000,http://127.0.0.1:3000,"
    "http://localhost:3001,http://127.0.0.1:3001"
)
CORS_ORIGINS = [
    origin.strip()
    for origin in os.environ.get("ROLLUP_CORS_ORIGINS", _DEFAULT_CORS).split(",")
    if origin.strip()
]

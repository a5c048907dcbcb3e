"""
Portfolio rollup backend – uvicorn entry point.

Used for deployments and local runs outside the reloader
(``uvicorn app.main:app --reload`` is used during development).

Environment variables read here:
  ROLLUP_HOST       – bind address (default 127.0.0.1)
  ROLLUP_PORT       – bind port (default 8000)
  ROLLUP_LOG_LEVEL  – root logging level (default INFO)

Database and CORS settings are read by app.state.
"""

from __future__ import annotations

import logging
import os

import app.state as state
from app.main import app as _fastapi_app


def main() -> None:
    logging.basicConfig(
        level=state.LOG_LEVEL,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    import uvicorn

    uvicorn.run(
        _fastapi_app,
        host=os.environ.get("ROLLUP_HOST", "127.0.0.1"),
        port=int(os.environ.get("ROLLUP_PORT", "8000")),
        workers=1,
        log_level=state.LOG_LEVEL.lower(),
        # Request logging comes from the app's own loggers.
        access_log=False,
    )


if __name__ == "__main__":
    main()

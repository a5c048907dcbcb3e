"""Error taxonomy shared by the resolver, the data sources and the routes."""

from __future__ import annotations


class RollupError(Exception):
    """Base class for failures raised by the rollup layer."""


class ValidationError(RollupError, ValueError):
    """A request parameter is missing or malformed (HTTP 400)."""


class UpstreamError(RollupError):
    """The portfolio data source failed to answer (HTTP 500)."""

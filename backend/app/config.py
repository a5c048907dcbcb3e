"""Domain constants for the asset routes."""

from __future__ import annotations

from rollup.core.rows import ALL_CATEGORIES

# Category sets selectable through the ``scope`` query parameter.
CASH_CATEGORIES: tuple[str, ...] = ("cash_equivalents",)
FULL_CATEGORIES: tuple[str, ...] = ALL_CATEGORIES

SCOPE_CATEGORIES: dict[str, tuple[str, ...]] = {
    "cash": CASH_CATEGORIES,
}

# Account filter values that mean "no account filter".
ACCOUNT_WILDCARDS = {"ALL"}

# Query aliases accepted for the date window.
FROM_PARAMS = ("from", "date_from")
TO_PARAMS = ("to", "date_to")

# Fields the POST handlers copy from the JSON body into the query contract.
CASH_BODY_FIELDS = (
    "client_id", "scope", "year", "month", "month_date",
    "from", "to", "date_from", "date_to", "custodian", "account",
)
CUSTODIAN_BODY_FIELDS = ("client_id", "custodian", "account", "from", "to", "date_from", "date_to")
HOLDINGS_BODY_FIELDS = ("client_id", "year", "month", "month_date")
MONTHS_BODY_FIELDS = ("client_id",)
FILTERS_BODY_FIELDS = ("client_id", "custodian", "account")
OVERVIEW_BODY_FIELDS = CASH_BODY_FIELDS

ERROR_MESSAGE = "failed to load"
OVERVIEW_ERROR_MESSAGE = "failed to load overview"
MISSING_CLIENT_MESSAGE = "client_id is required"

NO_STORE_HEADERS = {"Cache-Control": "no-store"}

# Upper bound on listed months for the holdings month picker.
MONTHS_LISTING_LIMIT = 240

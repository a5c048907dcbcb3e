"""Calendar-month keys and the date parsing used to pick reporting periods."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime, timezone
from email.utils import format_datetime
from typing import Any

from dateutil import parser as date_parser

# Fills the parts a partial date leaves out.
_PARSE_DEFAULT = datetime(2000, 1, 1)


@dataclass(frozen=True, order=True)
class MonthKey:
    """One calendar month of aggregated statement data."""

    year: int
    month: int

    def __post_init__(self) -> None:
        if not 1 <= self.month <= 12:
            raise ValueError(f"month out of range: {self.month}")

    @property
    def first_day(self) -> datetime:
        return datetime(self.year, self.month, 1, tzinfo=timezone.utc)

    def month_date_utc(self) -> str:
        """RFC 1123 form, e.g. ``Tue, 01 Jul 2025 00:00:00 GMT``."""
        return format_datetime(self.first_day, usegmt=True)

    def iso_first_day(self) -> str:
        """ISO-8601 instant of the first day, e.g. ``2025-07-01T00:00:00.000Z``."""
        return self.first_day.strftime("%Y-%m-%dT%H:%M:%S.000Z")

    def ym(self) -> str:
        return f"{self.year:04d}-{self.month:02d}"

    def label(self) -> str:
        """Short chart label, e.g. ``Jul 2025``."""
        return self.first_day.strftime("%b %Y")

    def shifted(self, months: int) -> MonthKey:
        """Month *months* later (negative for earlier)."""
        index = self.year * 12 + (self.month - 1) + months
        return MonthKey(index // 12, index % 12 + 1)

    def next(self) -> MonthKey:
        return self.shifted(1)

    @classmethod
    def from_date(cls, value: date) -> MonthKey:
        return cls(value.year, value.month)


def parse_month_date(value: Any) -> MonthKey | None:
    """Parse a loosely formatted date string into the UTC month it falls in.

    Naive timestamps are read as UTC; aware ones are converted first.
    Missing parts default to January 1st, so ``"2025"`` is January 2025.
    Returns ``None`` for anything unparseable.
    """
    if value is None:
        return None
    text = str(value).strip()
    if not text:
        return None
    try:
        parsed = date_parser.parse(text, default=_PARSE_DEFAULT)
    except (ValueError, OverflowError):
        return None
    if parsed.tzinfo is not None:
        parsed = parsed.astimezone(timezone.utc)
    return MonthKey(parsed.year, parsed.month)


def parse_iso_day(value: Any) -> date | None:
    """Parse ``YYYY-MM-DD`` (or any ISO date/datetime prefix); ``None`` if invalid."""
    if value is None:
        return None
    text = str(value).strip()
    if not text:
        return None
    try:
        return date.fromisoformat(text[:10])
    except ValueError:
        return None


def months_between(start: MonthKey, end: MonthKey) -> list[MonthKey]:
    """Inclusive ascending list of months from *start* to *end*."""
    out: list[MonthKey] = []
    cursor = start
    while cursor <= end:
        out.append(cursor)
        cursor = cursor.next()
    return out

from __future__ import annotations

import calendar
from datetime import date, datetime


def parse_iso_date(value: str) -> date:
    """Parse YYYY-MM-DD string into date."""
    return datetime.strptime(value, "%Y-%m-%d").date()


def now_local() -> datetime:
    """Current local time.

    Note: Wrapped so tests can patch/mocked easier.
    """
    return datetime.now()


def inclusive_days(start: date, end: date) -> int:
    """Number of calendar days from start to end, both ends counted."""
    return (end - start).days + 1


def month_bounds(month: str, year: int) -> tuple[date, date]:
    m = int(month)
    last = calendar.monthrange(int(year), m)[1]
    return date(int(year), m, 1), date(int(year), m, last)

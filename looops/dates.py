"""
Calendar helpers shared by the scheduler and the recurrence calculator.

Stored entities use two conventions that differ from Python's:
- Dates are ISO "YYYY-MM-DD" strings
- Day-of-week numbers run 0=Sunday .. 6=Saturday

Everything here converts at the edges so the rest of the engine can work
with datetime.date values.
"""

from __future__ import annotations

import calendar
from datetime import date, datetime, timedelta

# 0=Sunday .. 6=Saturday
SUNDAY = 0
SATURDAY = 6
WEEKEND_DAYS = (SUNDAY, SATURDAY)
DAY_ABBREVIATIONS = ["Sun", "Mon", "Tue", "Wed", "Thu", "Fri", "Sat"]

# Month overflow policies for add_months()
OVERFLOW_CLAMP = "clamp"
OVERFLOW_ROLL = "roll"
OVERFLOW_POLICIES = (OVERFLOW_CLAMP, OVERFLOW_ROLL)


def parse_date(value: date | str) -> date:
    """
    Coerce a date or ISO string to a date.

    Accepts full ISO datetimes too ("2024-01-31T09:00:00"); the time part
    is dropped.
    """
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    text = value.strip()
    if len(text) > 10:
        return datetime.fromisoformat(text).date()
    return date.fromisoformat(text)


def format_date_key(value: date) -> str:
    """Format a date as the YYYY-MM-DD key used by stored entities."""
    return value.isoformat()


def sunday_weekday(value: date) -> int:
    """Day of week with 0=Sunday .. 6=Saturday."""
    return (value.weekday() + 1) % 7


def is_weekend(value: date) -> bool:
    return sunday_weekday(value) in WEEKEND_DAYS


def days_in_month(year: int, month: int) -> int:
    return calendar.monthrange(year, month)[1]


def add_months(value: date, months: int, overflow: str = OVERFLOW_CLAMP) -> date:
    """
    Move a date by a whole number of months.

    When the source day does not exist in the target month (Jan 31 + 1),
    "clamp" lands on the last day of the target month (Feb 29 / Feb 28) and
    "roll" carries the surplus days into the following month (Mar 2 / Mar 3),
    which is what naive calendar arithmetic produces.
    """
    month_index = value.month - 1 + months
    year = value.year + month_index // 12
    month = month_index % 12 + 1
    last_day = days_in_month(year, month)

    if value.day <= last_day:
        return date(year, month, value.day)

    if overflow == OVERFLOW_ROLL:
        return date(year, month, last_day) + timedelta(days=value.day - last_day)
    return date(year, month, last_day)


def add_years(value: date, years: int, overflow: str = OVERFLOW_CLAMP) -> date:
    """Move a date by whole years; Feb 29 follows the same overflow policy."""
    return add_months(value, years * 12, overflow)


def month_day_key(value: date) -> str:
    """MM-DD, the year-independent part of a date key."""
    return value.isoformat()[5:]

"""
Tool: Day Type Resolver
Purpose: Classify a calendar date and manage the marks that override it

Resolution order (first match wins):
    1. Smart scheduling disabled  -> regular
    2. Exact marked date          -> that mark's day type
    3. Yearly-repeating mark      -> that mark's day type (month/day match)
    4. Saturday or Sunday         -> weekend
    5. Anything else              -> regular

A date can satisfy several rules at once (a holiday that falls on a
weekend, a one-off mark on a yearly holiday); the order above decides.

Usage:
    from looops.scheduling.day_types import resolve_day_type, bulk_generate

    resolve_day_type("2024-12-25", marks)            # DayType.HOLIDAY
    bulk_generate("2024-01-01", CustodyPattern.EVERY_OTHER_WEEKEND, DayType.CUSTODY, 6)
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from datetime import date, timedelta

from looops.dates import (
    SATURDAY,
    add_months,
    is_weekend,
    month_day_key,
    parse_date,
    sunday_weekday,
)
from looops.scheduling.models import (
    DEFAULT_DAY_TYPE_CONFIGS,
    CustodyPattern,
    DayType,
    DayTypeConfig,
    DayTypeId,
    MarkedDate,
    SmartSchedule,
    as_day_type,
)

logger = logging.getLogger(__name__)

# Resolution sources, reported alongside the day type
SOURCE_DISABLED = "disabled"
SOURCE_MARKED = "marked"
SOURCE_YEARLY = "yearly"
SOURCE_WEEKEND = "weekend"
SOURCE_DEFAULT = "default"


def resolve_with_source(
    day: date | str, marked_dates: Iterable[MarkedDate], enabled: bool = True
) -> tuple[DayTypeId, str]:
    """Resolve a day type and report which rule produced it."""
    day = parse_date(day)

    if not enabled:
        return DayType.REGULAR, SOURCE_DISABLED

    marks = tuple(marked_dates)

    for mark in marks:
        if mark.date == day:
            return mark.day_type, SOURCE_MARKED

    key = month_day_key(day)
    for mark in marks:
        if mark.repeats_yearly and month_day_key(mark.date) == key:
            return mark.day_type, SOURCE_YEARLY

    if is_weekend(day):
        return DayType.WEEKEND, SOURCE_WEEKEND

    return DayType.REGULAR, SOURCE_DEFAULT


def resolve_day_type(
    day: date | str, marked_dates: Iterable[MarkedDate], enabled: bool = True
) -> DayTypeId:
    """
    Classify a date.

    Args:
        day: Date to classify
        marked_dates: Explicit and yearly-repeating marks
        enabled: Global smart-scheduling switch

    Returns:
        The resolved built-in DayType or custom day type id
    """
    day_type, source = resolve_with_source(day, marked_dates, enabled)
    logger.debug(f"Resolved {parse_date(day)} to {day_type} via {source}")
    return day_type


def day_type_for(day: date | str, schedule: SmartSchedule) -> DayTypeId:
    return resolve_day_type(day, schedule.marked_dates, schedule.enabled)


def day_type_config(day_type: DayTypeId, schedule: SmartSchedule | None = None) -> DayTypeConfig:
    """
    Look up the config for a day type.

    Checks the schedule's own table, then its custom day types, then the
    built-in defaults. An id found nowhere gets a neutral config so a
    stale custom mark never breaks evaluation.
    """
    if schedule is not None:
        if day_type in schedule.day_type_configs:
            return schedule.day_type_configs[day_type]
        for custom in schedule.custom_day_types:
            if custom.day_type == day_type:
                return custom

    if isinstance(day_type, DayType):
        return DEFAULT_DAY_TYPE_CONFIGS[day_type]

    logger.debug(f"No config for day type {day_type}, using neutral config")
    return DayTypeConfig(day_type=day_type, label=day_type)


# ─────────────────────────────────────────────────────────────────────────────
# Marked dates
# ─────────────────────────────────────────────────────────────────────────────


def mark_date(
    day: date | str,
    day_type: DayTypeId,
    label: str | None = None,
    repeats_yearly: bool = False,
) -> MarkedDate:
    return MarkedDate(
        date=parse_date(day),
        day_type=as_day_type(day_type),
        label=label,
        repeats_yearly=repeats_yearly,
    )


def get_marked_date(day: date | str, marked_dates: Iterable[MarkedDate]) -> MarkedDate | None:
    """The exact-date mark for a day, ignoring yearly repeats."""
    day = parse_date(day)
    return next((m for m in marked_dates if m.date == day), None)


def is_date_marked(day: date | str, marked_dates: Iterable[MarkedDate]) -> bool:
    return get_marked_date(day, marked_dates) is not None


def replace_marked_date(
    marked_dates: Iterable[MarkedDate], mark: MarkedDate
) -> tuple[MarkedDate, ...]:
    """Return marks with any existing mark on the same date swapped for this one."""
    return tuple(m for m in marked_dates if m.date != mark.date) + (mark,)


def remove_marked_date(
    marked_dates: Iterable[MarkedDate], day: date | str
) -> tuple[MarkedDate, ...]:
    day = parse_date(day)
    return tuple(m for m in marked_dates if m.date != day)


def marked_dates_for_month(
    year: int, month: int, marked_dates: Iterable[MarkedDate]
) -> list[MarkedDate]:
    """
    Marks that fall in a month (1-12), for calendar display.

    Yearly-repeating marks are included for their month in any year.
    """
    result = []
    for mark in marked_dates:
        if mark.date.year == year and mark.date.month == month:
            result.append(mark)
        elif mark.repeats_yearly and mark.date.month == month:
            result.append(mark)
    return result


# ─────────────────────────────────────────────────────────────────────────────
# Bulk patterns
# ─────────────────────────────────────────────────────────────────────────────


def bulk_generate(
    start: date | str,
    pattern: CustodyPattern | str,
    day_type: DayTypeId,
    months: int = 6,
) -> list[MarkedDate]:
    """
    Generate marks for a recurring custody-style pattern.

    every_other_weekend anchors on the first Saturday on or after start and
    marks Saturday + Sunday, then jumps 14 days. weekly and biweekly mark
    the start date and every 7 / 14 days after it. Generation stops before
    start + months.

    Args:
        start: First eligible date
        pattern: CustodyPattern
        day_type: Day type written on every mark
        months: Window length

    Returns:
        List of MarkedDate in date order
    """
    start = parse_date(start)
    pattern = CustodyPattern(pattern)
    day_type = as_day_type(day_type)
    end = add_months(start, months)

    marks: list[MarkedDate] = []
    current = start

    if pattern == CustodyPattern.EVERY_OTHER_WEEKEND:
        current += timedelta(days=(SATURDAY - sunday_weekday(current)) % 7)
        while current < end:
            marks.append(MarkedDate(date=current, day_type=day_type))
            marks.append(MarkedDate(date=current + timedelta(days=1), day_type=day_type))
            current += timedelta(days=14)
        return marks

    step = 7 if pattern == CustodyPattern.WEEKLY else 14
    while current < end:
        marks.append(MarkedDate(date=current, day_type=day_type))
        current += timedelta(days=step)
    return marks

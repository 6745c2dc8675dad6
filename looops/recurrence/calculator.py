"""
Tool: Recurrence Calculator
Purpose: Project the next due date of a repeating task or routine

Each "mark complete" consumes the pattern once to derive the next date.
The calculator is stateless: it sees the pattern and the current due date,
never how many occurrences have fired. Callers that use `count` track the
tally themselves and pass it to should_stop().

Frequencies:
    daily    base + interval days
    weekly   next listed weekday this week, else first listed weekday
             `interval` weeks ahead; without days, base + interval weeks
    monthly  + interval months; day_of_month is clamped to the month length
    yearly   + interval years
    custom   base + interval days

Months without the source day (Jan 31 -> February) are clamped by default.
Pass overflow="roll" for naive rollover (Jan 31 + 1 month -> Mar 2).

Malformed patterns fail closed: an empty or out-of-range days_of_week
falls back to the plain weekly interval, interval < 1 counts as 1, and a
day_of_month outside 1..31 is ignored.

Usage:
    from looops.recurrence.calculator import RecurrencePattern, next_due_date

    next_due_date("2024-01-31", RecurrencePattern("monthly", day_of_month=31))
    # date(2024, 2, 29)
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, timedelta
from enum import Enum
from typing import Any

from looops.dates import (
    DAY_ABBREVIATIONS,
    OVERFLOW_CLAMP,
    add_months,
    add_years,
    days_in_month,
    format_date_key,
    parse_date,
    sunday_weekday,
)

WEEKDAYS = (1, 2, 3, 4, 5)


class RecurrenceFrequency(str, Enum):
    DAILY = "daily"
    WEEKLY = "weekly"
    MONTHLY = "monthly"
    YEARLY = "yearly"
    CUSTOM = "custom"


@dataclass(frozen=True)
class RecurrencePattern:
    """Immutable repeat rule attached to a task or routine template."""

    frequency: RecurrenceFrequency
    interval: int = 1
    days_of_week: tuple[int, ...] = ()  # 0=Sunday
    day_of_month: int | None = None
    end_date: date | None = None
    count: int | None = None

    def __post_init__(self) -> None:
        # Accept plain strings and lists from callers; normalize once here
        object.__setattr__(self, "frequency", RecurrenceFrequency(self.frequency))
        object.__setattr__(self, "days_of_week", tuple(self.days_of_week or ()))
        if self.end_date is not None:
            object.__setattr__(self, "end_date", parse_date(self.end_date))

    @property
    def step(self) -> int:
        try:
            return max(1, int(self.interval))
        except (TypeError, ValueError):
            return 1

    @property
    def valid_days_of_week(self) -> list[int]:
        return sorted({d for d in self.days_of_week if isinstance(d, int) and 0 <= d <= 6})

    @property
    def valid_day_of_month(self) -> int | None:
        if isinstance(self.day_of_month, int) and 1 <= self.day_of_month <= 31:
            return self.day_of_month
        return None

    def to_dict(self) -> dict[str, Any]:
        result: dict[str, Any] = {"frequency": self.frequency.value, "interval": self.interval}
        if self.days_of_week:
            result["days_of_week"] = list(self.days_of_week)
        if self.day_of_month is not None:
            result["day_of_month"] = self.day_of_month
        if self.end_date is not None:
            result["end_date"] = format_date_key(self.end_date)
        if self.count is not None:
            result["count"] = self.count
        return result

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> RecurrencePattern:
        return cls(
            frequency=RecurrenceFrequency(data["frequency"]),
            interval=data.get("interval", 1),
            days_of_week=tuple(data.get("days_of_week", data.get("daysOfWeek")) or ()),
            day_of_month=data.get("day_of_month", data.get("dayOfMonth")),
            end_date=data.get("end_date", data.get("endDate")),
            count=data.get("count"),
        )


RECURRENCE_PRESETS: dict[str, dict[str, Any]] = {
    "daily": {"label": "Daily", "pattern": RecurrencePattern(RecurrenceFrequency.DAILY)},
    "weekdays": {
        "label": "Weekdays",
        "pattern": RecurrencePattern(RecurrenceFrequency.WEEKLY, days_of_week=WEEKDAYS),
    },
    "weekly": {"label": "Weekly", "pattern": RecurrencePattern(RecurrenceFrequency.WEEKLY)},
    "biweekly": {
        "label": "Every 2 weeks",
        "pattern": RecurrencePattern(RecurrenceFrequency.WEEKLY, interval=2),
    },
    "monthly": {"label": "Monthly", "pattern": RecurrencePattern(RecurrenceFrequency.MONTHLY)},
    "quarterly": {
        "label": "Every 3 months",
        "pattern": RecurrencePattern(RecurrenceFrequency.MONTHLY, interval=3),
    },
    "yearly": {"label": "Yearly", "pattern": RecurrencePattern(RecurrenceFrequency.YEARLY)},
}


def _next_weekly(base: date, pattern: RecurrencePattern) -> date:
    days = pattern.valid_days_of_week
    if not days:
        return base + timedelta(weeks=pattern.step)

    current = sunday_weekday(base)
    later_this_week = next((d for d in days if d > current), None)
    if later_this_week is not None:
        return base + timedelta(days=later_this_week - current)

    # Wrap to the first listed day, `interval` weeks out
    return base + timedelta(days=7 - current + days[0] + (pattern.step - 1) * 7)


def _next_monthly(base: date, pattern: RecurrencePattern, overflow: str) -> date:
    day_of_month = pattern.valid_day_of_month
    if day_of_month is None:
        return add_months(base, pattern.step, overflow)

    target = add_months(base.replace(day=1), pattern.step)
    return target.replace(day=min(day_of_month, days_in_month(target.year, target.month)))


def next_due_date(
    current_due_date: date | str | None,
    pattern: RecurrencePattern,
    today: date | None = None,
    overflow: str = OVERFLOW_CLAMP,
) -> date:
    """
    Compute the next occurrence.

    Args:
        current_due_date: Current due date; None means "from today"
        pattern: Recurrence rule
        today: Reference date when current_due_date is None
        overflow: "clamp" or "roll" for month/year arithmetic without day_of_month

    Returns:
        The next due date (date only)
    """
    if current_due_date is None:
        base = today or date.today()
    else:
        base = parse_date(current_due_date)

    frequency = pattern.frequency

    if frequency == RecurrenceFrequency.WEEKLY:
        return _next_weekly(base, pattern)
    if frequency == RecurrenceFrequency.MONTHLY:
        return _next_monthly(base, pattern, overflow)
    if frequency == RecurrenceFrequency.YEARLY:
        return add_years(base, pattern.step, overflow)
    # daily and custom
    return base + timedelta(days=pattern.step)


def should_stop(
    pattern: RecurrencePattern,
    next_date: date | str,
    today: date | None = None,
    occurrences: int | None = None,
) -> bool:
    """
    Whether a recurrence has run out.

    Stops once end_date has passed (today is after it) or the newly computed
    next_date would land after it, and when a caller-tracked occurrence tally
    has reached count.
    """
    if pattern.end_date is not None:
        today = today or date.today()
        if today > pattern.end_date:
            return True
        if parse_date(next_date) > pattern.end_date:
            return True

    if pattern.count is not None and occurrences is not None and occurrences >= pattern.count:
        return True

    return False


def recurrence_label(pattern: RecurrencePattern) -> str:
    """Human-readable pattern, e.g. "Every 2 weeks on Mon, Thu"."""
    interval = pattern.step
    frequency = pattern.frequency

    if frequency == RecurrenceFrequency.DAILY:
        return "Daily" if interval == 1 else f"Every {interval} days"

    if frequency == RecurrenceFrequency.WEEKLY:
        days = pattern.valid_days_of_week
        if days:
            if days == list(WEEKDAYS):
                return "Weekdays"
            names = ", ".join(DAY_ABBREVIATIONS[d] for d in days)
            return f"Weekly on {names}" if interval == 1 else f"Every {interval} weeks on {names}"
        return "Weekly" if interval == 1 else f"Every {interval} weeks"

    if frequency == RecurrenceFrequency.MONTHLY:
        return "Monthly" if interval == 1 else f"Every {interval} months"

    if frequency == RecurrenceFrequency.YEARLY:
        return "Yearly" if interval == 1 else f"Every {interval} years"

    return f"Every {interval} days"

"""Scheduling data models.

Day types classify a calendar date; each day type has a config that
switches Routines on or off and scales Loop capacity:

    date --resolve_day_type()--> DayType --day_type_config()--> DayTypeConfig
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from datetime import date
from enum import Enum
from typing import Any, Union

from looops.dates import format_date_key, parse_date
from looops.loops.models import LoopId

CUSTOM_DAY_TYPE_PREFIX = "custom_"
DEFAULT_ICON = "📅"


class DayType(str, Enum):
    """Built-in day types."""

    REGULAR = "regular"
    WEEKEND = "weekend"
    CUSTODY = "custody"
    NON_CUSTODY = "non_custody"
    HOLIDAY = "holiday"
    TRAVEL = "travel"


# A built-in DayType or a user-created "custom_..." id
DayTypeId = Union[DayType, str]


def is_custom_day_type(day_type: DayTypeId) -> bool:
    return not isinstance(day_type, DayType) and day_type.startswith(CUSTOM_DAY_TYPE_PREFIX)


def as_day_type(value: DayTypeId) -> DayTypeId:
    """
    Normalize a stored day type string.

    Built-in names become DayType members; custom ids pass through.
    Anything else is a caller error.
    """
    if isinstance(value, DayType):
        return value
    try:
        return DayType(value)
    except ValueError:
        if is_custom_day_type(value):
            return value
        raise ValueError(
            f"Unknown day type '{value}'. Must be one of "
            f"{[d.value for d in DayType]} or start with '{CUSTOM_DAY_TYPE_PREFIX}'"
        ) from None


def day_type_value(day_type: DayTypeId) -> str:
    return day_type.value if isinstance(day_type, DayType) else day_type


class CustodyPattern(str, Enum):
    """Bulk marking patterns."""

    EVERY_OTHER_WEEKEND = "every_other_weekend"
    WEEKLY = "weekly"
    BIWEEKLY = "biweekly"


class RoutineFrequency(str, Enum):
    DAILY = "daily"
    WEEKDAYS = "weekdays"
    WEEKENDS = "weekends"
    WEEKLY = "weekly"
    BIWEEKLY = "biweekly"
    MONTHLY = "monthly"
    CUSTOM = "custom"


class TimeOfDay(str, Enum):
    MORNING = "morning"
    AFTERNOON = "afternoon"
    EVENING = "evening"
    NIGHT = "night"
    ANYTIME = "anytime"


TIME_OF_DAY_ORDER = list(TimeOfDay)


class RoutineStatus(str, Enum):
    ACTIVE = "active"
    PAUSED = "paused"
    ARCHIVED = "archived"


# ─────────────────────────────────────────────────────────────────────────────
# Marked dates and day-type configs
# ─────────────────────────────────────────────────────────────────────────────


@dataclass(frozen=True)
class MarkedDate:
    """An explicit day-type override for one date, or every year on its month/day."""

    date: date
    day_type: DayTypeId
    label: str | None = None
    repeats_yearly: bool = False

    def to_dict(self) -> dict[str, Any]:
        result: dict[str, Any] = {
            "date": format_date_key(self.date),
            "day_type": day_type_value(self.day_type),
        }
        if self.label:
            result["label"] = self.label
        if self.repeats_yearly:
            result["repeats_yearly"] = True
        return result

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> MarkedDate:
        return cls(
            date=parse_date(data["date"]),
            day_type=as_day_type(data.get("day_type", data.get("dayType"))),
            label=data.get("label"),
            repeats_yearly=bool(data.get("repeats_yearly", data.get("repeatsYearly", False))),
        )


@dataclass(frozen=True)
class DayTypeConfig:
    """How a day type changes the schedule. Read-only during evaluation."""

    day_type: DayTypeId
    label: str
    color: str = "#4A90A4"
    icon: str | None = None
    enabled_routines: tuple[str, ...] = ()
    disabled_routines: tuple[str, ...] = ()
    loop_capacity_multipliers: dict[LoopId, float] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        return {
            "day_type": day_type_value(self.day_type),
            "label": self.label,
            "color": self.color,
            "icon": self.icon or DEFAULT_ICON,
            "enabled_routines": list(self.enabled_routines),
            "disabled_routines": list(self.disabled_routines),
            "loop_capacity_multipliers": {
                loop_id.value: value for loop_id, value in self.loop_capacity_multipliers.items()
            },
        }


def _multipliers(*values: float) -> dict[LoopId, float]:
    """Multipliers in loop order: Health, Wealth, Family, Work, Fun, Maintenance, Meaning."""
    return dict(zip(LoopId, values))


DEFAULT_DAY_TYPE_CONFIGS: dict[DayType, DayTypeConfig] = {
    DayType.REGULAR: DayTypeConfig(
        day_type=DayType.REGULAR,
        label="Workday",
        color="#4A90A4",
        icon="💼",
        loop_capacity_multipliers=_multipliers(1.0, 1.0, 1.0, 1.0, 1.0, 1.0, 1.0),
    ),
    DayType.WEEKEND: DayTypeConfig(
        day_type=DayType.WEEKEND,
        label="Weekend",
        color="#7C3AED",
        icon="🌴",
        loop_capacity_multipliers=_multipliers(1.0, 0.5, 1.3, 0.3, 1.5, 1.2, 1.2),
    ),
    DayType.CUSTODY: DayTypeConfig(
        day_type=DayType.CUSTODY,
        label="Custody Day",
        color="#EC4899",
        icon="👨‍👧",
        loop_capacity_multipliers=_multipliers(1.0, 0.5, 2.0, 0.5, 1.5, 0.7, 1.0),
    ),
    DayType.NON_CUSTODY: DayTypeConfig(
        day_type=DayType.NON_CUSTODY,
        label="Solo Day",
        color="#10B981",
        icon="🧘",
        loop_capacity_multipliers=_multipliers(1.2, 1.0, 0.5, 1.2, 1.0, 1.2, 1.3),
    ),
    DayType.HOLIDAY: DayTypeConfig(
        day_type=DayType.HOLIDAY,
        label="Holiday",
        color="#F59E0B",
        icon="🎉",
        loop_capacity_multipliers=_multipliers(1.0, 0.0, 1.5, 0.0, 2.0, 0.5, 1.0),
    ),
    DayType.TRAVEL: DayTypeConfig(
        day_type=DayType.TRAVEL,
        label="Travel Day",
        color="#6366F1",
        icon="✈️",
        loop_capacity_multipliers=_multipliers(0.5, 0.3, 0.5, 0.3, 1.0, 0.3, 0.5),
    ),
}


def new_custom_day_type(name: str, icon: str = DEFAULT_ICON, color: str = "#4A90A4") -> DayTypeConfig:
    """Create a user-defined day type with neutral multipliers."""
    return DayTypeConfig(
        day_type=f"{CUSTOM_DAY_TYPE_PREFIX}{uuid.uuid4().hex[:12]}",
        label=name,
        color=color,
        icon=icon,
        loop_capacity_multipliers=_multipliers(1.0, 1.0, 1.0, 1.0, 1.0, 1.0, 1.0),
    )


@dataclass(frozen=True)
class SmartSchedule:
    """
    Everything the day-type resolver needs, passed by value.

    day_type_configs holds per-user overrides of the built-in table;
    custom_day_types holds user-created day types.
    """

    enabled: bool = True
    marked_dates: tuple[MarkedDate, ...] = ()
    day_type_configs: dict[DayTypeId, DayTypeConfig] = field(default_factory=dict)
    custom_day_types: tuple[DayTypeConfig, ...] = ()

    @classmethod
    def default(cls) -> SmartSchedule:
        return cls(enabled=True, day_type_configs=dict(DEFAULT_DAY_TYPE_CONFIGS))


# ─────────────────────────────────────────────────────────────────────────────
# Routines
# ─────────────────────────────────────────────────────────────────────────────


@dataclass(frozen=True)
class RoutineSchedule:
    frequency: RoutineFrequency
    time_of_day: TimeOfDay = TimeOfDay.ANYTIME
    days_of_week: tuple[int, ...] = ()  # 0=Sunday
    day_of_month: int | None = None
    specific_time: str | None = None  # HH:MM

    def to_dict(self) -> dict[str, Any]:
        result: dict[str, Any] = {
            "frequency": self.frequency.value,
            "time_of_day": self.time_of_day.value,
        }
        if self.days_of_week:
            result["days_of_week"] = list(self.days_of_week)
        if self.day_of_month is not None:
            result["day_of_month"] = self.day_of_month
        if self.specific_time:
            result["specific_time"] = self.specific_time
        return result

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> RoutineSchedule:
        return cls(
            frequency=RoutineFrequency(data["frequency"]),
            time_of_day=TimeOfDay(data.get("time_of_day", data.get("timeOfDay", "anytime"))),
            days_of_week=tuple(data.get("days_of_week", data.get("daysOfWeek")) or ()),
            day_of_month=data.get("day_of_month", data.get("dayOfMonth")),
            specific_time=data.get("specific_time", data.get("specificTime")),
        )


@dataclass(frozen=True)
class DayTypeScheduleOverride:
    time_of_day: TimeOfDay | None = None
    specific_time: str | None = None


@dataclass(frozen=True)
class Routine:
    """
    A scheduled, possibly day-type-filtered, recurring activity.

    An empty day_types tuple means the routine applies to every day type.
    """

    id: str
    schedule: RoutineSchedule
    title: str = ""
    day_types: tuple[DayTypeId, ...] = ()
    status: RoutineStatus = RoutineStatus.ACTIVE
    day_type_schedule_overrides: dict[DayTypeId, DayTypeScheduleOverride] = field(
        default_factory=dict
    )

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "title": self.title,
            "schedule": self.schedule.to_dict(),
            "day_types": [day_type_value(d) for d in self.day_types],
            "status": self.status.value,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Routine:
        overrides = {}
        raw_overrides = data.get(
            "day_type_schedule_overrides", data.get("dayTypeScheduleOverrides")
        ) or {}
        for key, value in raw_overrides.items():
            time_of_day = value.get("time_of_day", value.get("timeOfDay"))
            overrides[as_day_type(key)] = DayTypeScheduleOverride(
                time_of_day=TimeOfDay(time_of_day) if time_of_day else None,
                specific_time=value.get("specific_time", value.get("specificTime")),
            )

        return cls(
            id=data["id"],
            title=data.get("title", ""),
            schedule=RoutineSchedule.from_dict(data["schedule"]),
            day_types=tuple(
                as_day_type(d) for d in (data.get("day_types", data.get("dayTypes")) or ())
            ),
            status=RoutineStatus(data.get("status", "active")),
            day_type_schedule_overrides=overrides,
        )

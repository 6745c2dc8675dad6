"""
Tool: Schedule Adjuster
Purpose: Apply a day type to Routines and Loop capacities

Given the day type for a date, the adjuster:
- Filters Routines through the day type's deny-list and allow-list
- Checks each Routine's own frequency and day-type tags against the date
- Rescales each Loop's task budget by the day type's capacity multiplier

plan_day() combines all of it into the engine's answer for one date:
which Routines are due, and how many tasks each Loop should carry.

Usage:
    from looops.scheduling.adjuster import plan_day, daily_summary

    plan = plan_day(routines, loop_states, schedule, "2024-07-06")
    plan.loop_capacities[LoopId.FUN].max_tasks    # 6 on a weekend in MAINTAIN

Nothing here mutates its inputs; filtered lists are new lists.
"""

from __future__ import annotations

import math
from collections.abc import Iterable
from dataclasses import dataclass, field, replace
from datetime import date
from typing import Any

from looops.dates import DAY_ABBREVIATIONS, is_weekend, parse_date, sunday_weekday
from looops.loops.capacity import capacity_for
from looops.loops.models import ALL_LOOPS, AllLoopStates, LoopId, LoopStateType
from looops.scheduling.day_types import day_type_config, resolve_with_source
from looops.scheduling.models import (
    DEFAULT_ICON,
    TIME_OF_DAY_ORDER,
    DayTypeConfig,
    DayTypeId,
    Routine,
    RoutineFrequency,
    RoutineSchedule,
    RoutineStatus,
    SmartSchedule,
    TimeOfDay,
    day_type_value,
)

TIME_OF_DAY_LABELS = {
    TimeOfDay.MORNING: "Morning",
    TimeOfDay.AFTERNOON: "Afternoon",
    TimeOfDay.EVENING: "Evening",
    TimeOfDay.NIGHT: "Night",
    TimeOfDay.ANYTIME: "Anytime",
}


def round_half_up(value: float) -> int:
    """Round .5 away from zero for positive values (2.5 -> 3, not banker's 2)."""
    return int(math.floor(value + 0.5))


# ─────────────────────────────────────────────────────────────────────────────
# Day-type filters
# ─────────────────────────────────────────────────────────────────────────────


def active_routines(routines: Iterable[Routine], config: DayTypeConfig) -> list[Routine]:
    """
    Filter Routines by a day type's routine lists.

    The deny-list is checked first and always wins. A non-empty allow-list
    then admits only its ids. With neither list, every Routine passes.
    """
    result = []
    for routine in routines:
        if routine.id in config.disabled_routines:
            continue
        if config.enabled_routines and routine.id not in config.enabled_routines:
            continue
        result.append(routine)
    return result


def adjusted_capacity(base: int, loop_id: LoopId, config: DayTypeConfig) -> int:
    """Scale a task count by the day type's multiplier for a Loop (default 1.0)."""
    multiplier = config.loop_capacity_multipliers.get(loop_id, 1.0)
    return round_half_up(base * multiplier)


def loop_capacity_multipliers(config: DayTypeConfig) -> dict[LoopId, float]:
    return dict(config.loop_capacity_multipliers)


# ─────────────────────────────────────────────────────────────────────────────
# Routine frequency
# ─────────────────────────────────────────────────────────────────────────────


def matches_frequency(routine: Routine, day: date | str) -> bool:
    """Whether a Routine's own schedule lands on this date (day types aside)."""
    day = parse_date(day)
    schedule = routine.schedule
    weekday = sunday_weekday(day)
    frequency = schedule.frequency

    if frequency == RoutineFrequency.DAILY:
        return True
    if frequency == RoutineFrequency.WEEKDAYS:
        return not is_weekend(day)
    if frequency == RoutineFrequency.WEEKENDS:
        return is_weekend(day)
    if frequency == RoutineFrequency.WEEKLY:
        if schedule.days_of_week:
            return weekday in schedule.days_of_week
        return True
    if frequency == RoutineFrequency.MONTHLY:
        return schedule.day_of_month == day.day
    # biweekly and custom need explicit days
    if schedule.days_of_week:
        return weekday in schedule.days_of_week
    return False


def routines_due(
    routines: Iterable[Routine],
    day_types: DayTypeId | Iterable[DayTypeId],
    day: date | str,
) -> list[Routine]:
    """
    Active Routines whose frequency matches the date and whose day-type tags
    match any of the day's types. Untagged Routines apply to every day type.
    """
    if isinstance(day_types, str):
        day_types = (day_types,)
    day_types = tuple(day_types)
    day = parse_date(day)

    result = []
    for routine in routines:
        if routine.status != RoutineStatus.ACTIVE:
            continue
        if not matches_frequency(routine, day):
            continue
        if routine.day_types and not any(dt in day_types for dt in routine.day_types):
            continue
        result.append(routine)
    return result


def effective_schedule(routine: Routine, day_type: DayTypeId) -> RoutineSchedule:
    """The Routine's schedule with any day-type time override applied."""
    override = routine.day_type_schedule_overrides.get(day_type)
    if override is None:
        return routine.schedule
    return replace(
        routine.schedule,
        time_of_day=override.time_of_day or routine.schedule.time_of_day,
        specific_time=override.specific_time or routine.schedule.specific_time,
    )


def sort_routines_by_time_of_day(
    routines: Iterable[Routine], day_type: DayTypeId | None = None
) -> list[Routine]:
    """Order Routines morning first; with a day_type, its time overrides apply."""
    if day_type is None:
        return sorted(routines, key=lambda r: TIME_OF_DAY_ORDER.index(r.schedule.time_of_day))
    return sorted(
        routines,
        key=lambda r: TIME_OF_DAY_ORDER.index(effective_schedule(r, day_type).time_of_day),
    )


def _ordinal(n: int) -> str:
    if 10 <= n % 100 <= 20:
        suffix = "th"
    else:
        suffix = {1: "st", 2: "nd", 3: "rd"}.get(n % 10, "th")
    return f"{n}{suffix}"


def schedule_description(schedule: RoutineSchedule) -> str:
    """Human-readable schedule, e.g. "Mon, Wed, Fri • Morning"."""
    frequency = schedule.frequency
    days = ", ".join(DAY_ABBREVIATIONS[d] for d in schedule.days_of_week if 0 <= d <= 6)

    if frequency == RoutineFrequency.DAILY:
        text = "Daily"
    elif frequency == RoutineFrequency.WEEKDAYS:
        text = "Weekdays"
    elif frequency == RoutineFrequency.WEEKENDS:
        text = "Weekends"
    elif frequency == RoutineFrequency.WEEKLY:
        text = days or "Weekly"
    elif frequency == RoutineFrequency.BIWEEKLY:
        text = "Every 2 weeks"
    elif frequency == RoutineFrequency.MONTHLY:
        text = f"Monthly on the {_ordinal(schedule.day_of_month)}" if schedule.day_of_month else "Monthly"
    else:
        text = days or "Custom"

    return f"{text} • {TIME_OF_DAY_LABELS[schedule.time_of_day]}"


# ─────────────────────────────────────────────────────────────────────────────
# Daily summary and plan
# ─────────────────────────────────────────────────────────────────────────────


@dataclass(frozen=True)
class DailySummary:
    day: date
    day_type: DayTypeId
    source: str
    config: DayTypeConfig
    active_routine_count: int
    disabled_routine_count: int

    @property
    def label(self) -> str:
        return self.config.label

    @property
    def icon(self) -> str:
        return self.config.icon or DEFAULT_ICON

    def to_dict(self) -> dict[str, Any]:
        return {
            "date": self.day.isoformat(),
            "day_type": day_type_value(self.day_type),
            "source": self.source,
            "label": self.label,
            "icon": self.icon,
            "active_routine_count": self.active_routine_count,
            "disabled_routine_count": self.disabled_routine_count,
        }


def daily_summary(
    routines: Iterable[Routine], schedule: SmartSchedule, day: date | str | None = None
) -> DailySummary:
    """Report a date's day type and how many Routines its config lets through."""
    day = parse_date(day) if day is not None else date.today()
    routines = list(routines)

    day_type, source = resolve_with_source(day, schedule.marked_dates, schedule.enabled)
    config = day_type_config(day_type, schedule)
    active = active_routines(routines, config)

    return DailySummary(
        day=day,
        day_type=day_type,
        source=source,
        config=config,
        active_routine_count=len(active),
        disabled_routine_count=len(routines) - len(active),
    )


@dataclass(frozen=True)
class LoopCapacityPlan:
    state: LoopStateType
    multiplier: float
    min_tasks: int
    max_tasks: int

    def to_dict(self) -> dict[str, Any]:
        return {
            "state": self.state.value,
            "multiplier": self.multiplier,
            "min_tasks": self.min_tasks,
            "max_tasks": self.max_tasks,
        }


@dataclass(frozen=True)
class DayPlan:
    day: date
    day_type: DayTypeId
    source: str
    label: str
    routines: list[Routine] = field(default_factory=list)
    loop_capacities: dict[LoopId, LoopCapacityPlan] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        return {
            "date": self.day.isoformat(),
            "day_type": day_type_value(self.day_type),
            "source": self.source,
            "label": self.label,
            "routines": [
                {
                    "id": r.id,
                    "title": r.title,
                    "schedule": schedule_description(effective_schedule(r, self.day_type)),
                }
                for r in self.routines
            ],
            "loop_capacities": {
                loop_id.value: plan.to_dict() for loop_id, plan in self.loop_capacities.items()
            },
        }


def plan_day(
    routines: Iterable[Routine],
    loop_states: AllLoopStates,
    schedule: SmartSchedule,
    day: date | str,
) -> DayPlan:
    """
    Decide what a date holds.

    Args:
        routines: All Routines (any status)
        loop_states: Snapshot of Loop states
        schedule: Marks, configs and the enabled switch
        day: Date to plan

    Returns:
        DayPlan with due Routines sorted by time of day and, for each Loop in
        the snapshot, its state's task range scaled by the day's multiplier
    """
    day = parse_date(day)
    day_type, source = resolve_with_source(day, schedule.marked_dates, schedule.enabled)
    config = day_type_config(day_type, schedule)

    due = active_routines(routines_due(routines, day_type, day), config)

    capacities = {}
    for loop_id in ALL_LOOPS:
        if loop_id not in loop_states:
            continue
        state = loop_states[loop_id].current_state
        base = capacity_for(state)
        capacities[loop_id] = LoopCapacityPlan(
            state=state,
            multiplier=config.loop_capacity_multipliers.get(loop_id, 1.0),
            min_tasks=adjusted_capacity(base.min_tasks, loop_id, config),
            max_tasks=adjusted_capacity(base.max_tasks, loop_id, config),
        )

    return DayPlan(
        day=day,
        day_type=day_type,
        source=source,
        label=config.label,
        routines=sort_routines_by_time_of_day(due, day_type),
        loop_capacities=capacities,
    )

"""Shared test fixtures for Looops tests.

This module provides common fixtures used across all test modules:
- Default Loop state snapshots
- Sample routines covering each frequency
- Smart schedules with marked dates

Usage:
    def test_something(default_states, weekend_day):
        ...
"""

from datetime import date

import pytest

from looops.loops.models import LoopId, LoopState, LoopStateType
from looops.loops.state_machine import create_default_states
from looops.scheduling.models import (
    DayType,
    MarkedDate,
    Routine,
    RoutineFrequency,
    RoutineSchedule,
    SmartSchedule,
    TimeOfDay,
)


# ─────────────────────────────────────────────────────────────────────────────
# Date Fixtures
# ─────────────────────────────────────────────────────────────────────────────


@pytest.fixture
def workday() -> date:
    """A plain Wednesday with no marks."""
    return date(2024, 7, 10)


@pytest.fixture
def weekend_day() -> date:
    """A Saturday with no marks."""
    return date(2024, 7, 6)


# ─────────────────────────────────────────────────────────────────────────────
# Loop State Fixtures
# ─────────────────────────────────────────────────────────────────────────────


@pytest.fixture
def default_states() -> dict:
    """Every Loop in MAINTAIN with floor RECOVER and ceiling BUILD."""
    return create_default_states()


@pytest.fixture
def health_state() -> LoopState:
    return LoopState(loop_id=LoopId.HEALTH, current_state=LoopStateType.MAINTAIN)


# ─────────────────────────────────────────────────────────────────────────────
# Scheduling Fixtures
# ─────────────────────────────────────────────────────────────────────────────


@pytest.fixture
def sample_routines() -> list:
    """Routines covering the common frequencies.

    Returns:
        list of Routine
    """
    return [
        Routine(
            id="morning_run",
            title="Morning run",
            schedule=RoutineSchedule(RoutineFrequency.DAILY, TimeOfDay.MORNING),
        ),
        Routine(
            id="standup",
            title="Standup",
            schedule=RoutineSchedule(RoutineFrequency.WEEKDAYS, TimeOfDay.MORNING),
        ),
        Routine(
            id="meal_prep",
            title="Meal prep",
            schedule=RoutineSchedule(RoutineFrequency.WEEKENDS, TimeOfDay.AFTERNOON),
        ),
        Routine(
            id="evening_review",
            title="Evening review",
            schedule=RoutineSchedule(RoutineFrequency.DAILY, TimeOfDay.EVENING),
        ),
        Routine(
            id="pay_bills",
            title="Pay bills",
            schedule=RoutineSchedule(RoutineFrequency.MONTHLY, day_of_month=1),
        ),
        Routine(
            id="park_day",
            title="Park with kids",
            schedule=RoutineSchedule(RoutineFrequency.DAILY, TimeOfDay.AFTERNOON),
            day_types=(DayType.CUSTODY,),
        ),
    ]


@pytest.fixture
def holiday_schedule() -> SmartSchedule:
    """Default schedule with Christmas marked as a yearly holiday."""
    base = SmartSchedule.default()
    return SmartSchedule(
        enabled=True,
        marked_dates=(
            MarkedDate(date(2024, 12, 25), DayType.HOLIDAY, "Christmas", repeats_yearly=True),
        ),
        day_type_configs=base.day_type_configs,
    )

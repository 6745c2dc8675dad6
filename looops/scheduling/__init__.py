"""Smart Scheduler - day types, routine filtering, capacity scaling

Philosophy:
    A custody Saturday is not a workday with fewer meetings. Each kind of
    day switches routines on and off and shifts how much each Loop can
    carry, so the day type is decided first and everything else follows.

Components:
    models.py: DayType, MarkedDate, DayTypeConfig, SmartSchedule, Routine
    day_types.py: Resolve a date's day type, manage marks, bulk patterns
    adjuster.py: Filter routines and scale capacities for a day type

Usage:
    from looops.scheduling.models import SmartSchedule
    from looops.scheduling.adjuster import plan_day

    plan = plan_day(routines, loop_states, SmartSchedule.default(), "2024-12-25")
"""

from looops.scheduling.models import (
    DEFAULT_DAY_TYPE_CONFIGS,
    CustodyPattern,
    DayType,
    DayTypeConfig,
    MarkedDate,
    Routine,
    SmartSchedule,
)

__all__ = [
    "DEFAULT_DAY_TYPE_CONFIGS",
    "CustodyPattern",
    "DayType",
    "DayTypeConfig",
    "MarkedDate",
    "Routine",
    "SmartSchedule",
]

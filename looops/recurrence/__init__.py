"""Recurrence Engine - next occurrence dates for repeating work

Components:
    calculator.py: RecurrencePattern, next_due_date, should_stop, labels
    tasks.py: Follow-up tasks for completed recurring tasks, state gating
"""

from looops.recurrence.calculator import (
    RECURRENCE_PRESETS,
    RecurrenceFrequency,
    RecurrencePattern,
)

__all__ = [
    "RECURRENCE_PRESETS",
    "RecurrenceFrequency",
    "RecurrencePattern",
]

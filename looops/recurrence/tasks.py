"""
Tool: Recurring Tasks
Purpose: Spawn the next occurrence of a recurring task and gate tasks by Loop state

When a recurring task is completed, create_next_occurrence() builds the
follow-up task (same template fields, new id, next due date) or returns
None once the pattern has ended. The completed task itself is untouched.

Usage:
    from looops.recurrence.tasks import create_task, create_next_occurrence

    task = create_task("Pay rent", LoopId.WEALTH, due_date=date(2024, 1, 1),
                       recurrence=RecurrencePattern("monthly", day_of_month=1))
    follow_up = create_next_occurrence(task)
"""

from __future__ import annotations

import uuid
from collections.abc import Iterable
from dataclasses import dataclass, replace
from datetime import date, datetime
from enum import Enum
from typing import Any

from looops.dates import OVERFLOW_CLAMP, format_date_key, parse_date
from looops.loops.models import AllLoopStates, LoopId, LoopStateType, is_state_at_or_above
from looops.recurrence.calculator import RecurrencePattern, next_due_date, should_stop


class TaskStatus(str, Enum):
    INBOX = "inbox"
    TODO = "todo"
    DOING = "doing"
    WAITING = "waiting"
    DONE = "done"
    DROPPED = "dropped"


@dataclass(frozen=True)
class Task:
    """The recurrence-relevant slice of a task. Priority 1 is highest, 0 is someday."""

    id: str
    title: str
    loop: LoopId
    priority: int = 4
    status: TaskStatus = TaskStatus.INBOX
    due_date: date | None = None
    recurrence: RecurrencePattern | None = None
    required_state: LoopStateType | None = None
    description: str | None = None
    estimate_minutes: int | None = None
    tags: tuple[str, ...] = ()
    source: str | None = None
    created_at: str = ""

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "title": self.title,
            "loop": self.loop.value,
            "priority": self.priority,
            "status": self.status.value,
            "due_date": format_date_key(self.due_date) if self.due_date else None,
            "recurrence": self.recurrence.to_dict() if self.recurrence else None,
            "required_state": self.required_state.value if self.required_state else None,
            "description": self.description,
            "estimate_minutes": self.estimate_minutes,
            "tags": list(self.tags),
            "source": self.source,
            "created_at": self.created_at,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Task:
        due = data.get("due_date", data.get("dueDate"))
        recurrence = data.get("recurrence")
        required = data.get("required_state", data.get("requiredState"))
        return cls(
            id=data["id"],
            title=data["title"],
            loop=LoopId(data["loop"]),
            priority=data.get("priority", 4),
            status=TaskStatus(data.get("status", "inbox")),
            due_date=parse_date(due) if due else None,
            recurrence=RecurrencePattern.from_dict(recurrence) if recurrence else None,
            required_state=LoopStateType(required) if required else None,
            description=data.get("description"),
            estimate_minutes=data.get("estimate_minutes", data.get("estimateMinutes")),
            tags=tuple(data.get("tags") or ()),
            source=data.get("source"),
            created_at=data.get("created_at", data.get("createdAt", "")),
        )


def create_task(title: str, loop: LoopId, **options: Any) -> Task:
    return Task(
        id=f"task_{uuid.uuid4().hex[:12]}",
        title=title,
        loop=loop,
        created_at=datetime.now().isoformat(),
        **options,
    )


def create_next_occurrence(
    task: Task,
    today: date | None = None,
    occurrences: int | None = None,
    overflow: str = OVERFLOW_CLAMP,
) -> Task | None:
    """
    Build the follow-up for a completed recurring task.

    Args:
        task: The task being completed
        today: Reference date for end-date checks (defaults to today)
        occurrences: Occurrences fired so far, for count-limited patterns
        overflow: Month overflow policy passed to next_due_date

    Returns:
        New TODO task due on the next date, or None if the task does not
        recur or its pattern has ended
    """
    if task.recurrence is None:
        return None

    next_date = next_due_date(task.due_date, task.recurrence, today=today, overflow=overflow)
    if should_stop(task.recurrence, next_date, today=today, occurrences=occurrences):
        return None

    return replace(
        task,
        id=f"task_{uuid.uuid4().hex[:12]}",
        status=TaskStatus.TODO,
        due_date=next_date,
        source="recurring",
        created_at=datetime.now().isoformat(),
    )


def filter_tasks_by_state(tasks: Iterable[Task], loop_states: AllLoopStates) -> list[Task]:
    """
    Keep tasks whose Loop currently has at least the capacity they require.

    Tasks without a required_state always pass. A task whose Loop is absent
    from the snapshot and that requires a state is held back.
    """
    result = []
    for task in tasks:
        if task.required_state is None:
            result.append(task)
            continue
        loop_state = loop_states.get(task.loop)
        if loop_state and is_state_at_or_above(loop_state.current_state, task.required_state):
            result.append(task)
    return result


def sort_tasks_by_priority(tasks: Iterable[Task]) -> list[Task]:
    """P1 first, someday (0) last; stable within a priority."""
    return sorted(tasks, key=lambda t: (t.priority == 0, t.priority))

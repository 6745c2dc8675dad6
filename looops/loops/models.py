"""Loop state data models.

Defines the life domains, their capacity states, and the per-Loop record
that the state machine validates transitions against:
    LoopState --transition()--> TransitionResult --apply_transition()--> LoopState
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from datetime import datetime
from enum import Enum
from typing import Any


class LoopId(str, Enum):
    """The fixed set of life domains."""

    HEALTH = "Health"
    WEALTH = "Wealth"
    FAMILY = "Family"
    WORK = "Work"
    FUN = "Fun"
    MAINTENANCE = "Maintenance"
    MEANING = "Meaning"


# Iteration order for anything that walks every loop
ALL_LOOPS: tuple[LoopId, ...] = tuple(LoopId)


class LoopStateType(str, Enum):
    """Capacity mode of a Loop."""

    BUILD = "BUILD"
    MAINTAIN = "MAINTAIN"
    RECOVER = "RECOVER"
    HIBERNATE = "HIBERNATE"

    @property
    def priority(self) -> int:
        return STATE_PRIORITY[self]


class TriggerType(str, Enum):
    """What caused a state change."""

    THRESHOLD = "threshold"
    TIME = "time"
    MANUAL = "manual"
    CASCADE = "cascade"
    BIOMETRIC = "biometric"
    USER = "user"


# Higher number = more capacity
STATE_PRIORITY: dict[LoopStateType, int] = {
    LoopStateType.HIBERNATE: 0,
    LoopStateType.RECOVER: 1,
    LoopStateType.MAINTAIN: 2,
    LoopStateType.BUILD: 3,
}

# Directed graph of allowed single-step transitions
VALID_TRANSITIONS: dict[LoopStateType, tuple[LoopStateType, ...]] = {
    LoopStateType.HIBERNATE: (LoopStateType.RECOVER, LoopStateType.MAINTAIN),
    LoopStateType.RECOVER: (LoopStateType.HIBERNATE, LoopStateType.MAINTAIN),
    LoopStateType.MAINTAIN: (
        LoopStateType.RECOVER,
        LoopStateType.BUILD,
        LoopStateType.HIBERNATE,
    ),
    LoopStateType.BUILD: (LoopStateType.MAINTAIN, LoopStateType.RECOVER),
}


def is_valid_transition(from_state: LoopStateType, to_state: LoopStateType) -> bool:
    return to_state in VALID_TRANSITIONS[from_state]


def compare_states(a: LoopStateType, b: LoopStateType) -> int:
    """Negative if a has less capacity than b, zero if equal, positive otherwise."""
    return STATE_PRIORITY[a] - STATE_PRIORITY[b]


def is_state_at_or_below(state: LoopStateType, ceiling: LoopStateType) -> bool:
    return compare_states(state, ceiling) <= 0


def is_state_at_or_above(state: LoopStateType, floor: LoopStateType) -> bool:
    return compare_states(state, floor) >= 0


def _pick(data: dict[str, Any], snake: str, camel: str, default: Any = None) -> Any:
    """Read a key stored either as snake_case or camelCase."""
    if snake in data:
        return data[snake]
    return data.get(camel, default)


@dataclass(frozen=True)
class StateTransitionTrigger:
    """A configured condition that can move a Loop to a target state."""

    id: str
    type: TriggerType
    condition: str
    target_state: LoopStateType
    enabled: bool = True

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "type": self.type.value,
            "condition": self.condition,
            "target_state": self.target_state.value,
            "enabled": self.enabled,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> StateTransitionTrigger:
        return cls(
            id=data["id"],
            type=TriggerType(data["type"]),
            condition=data.get("condition", ""),
            target_state=LoopStateType(_pick(data, "target_state", "targetState")),
            enabled=data.get("enabled", True),
        )


@dataclass(frozen=True)
class StateHistoryEntry:
    """One immutable record in a Loop's state history."""

    from_state: LoopStateType
    to_state: LoopStateType
    timestamp: str
    reason: str
    triggered_by: TriggerType

    def to_dict(self) -> dict[str, Any]:
        return {
            "from_state": self.from_state.value,
            "to_state": self.to_state.value,
            "timestamp": self.timestamp,
            "reason": self.reason,
            "triggered_by": self.triggered_by.value,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> StateHistoryEntry:
        return cls(
            from_state=LoopStateType(_pick(data, "from_state", "fromState")),
            to_state=LoopStateType(_pick(data, "to_state", "toState")),
            timestamp=data["timestamp"],
            reason=data.get("reason", ""),
            triggered_by=TriggerType(_pick(data, "triggered_by", "triggeredBy", "user")),
        )


@dataclass(frozen=True)
class LoopState:
    """
    Per-Loop capacity record.

    Invariant: floor <= current_state <= ceiling under STATE_PRIORITY.
    Instances are immutable; a successful transition produces a new
    LoopState via dataclasses.replace (see state_machine.apply_transition).
    """

    loop_id: LoopId
    current_state: LoopStateType = LoopStateType.MAINTAIN
    floor: LoopStateType = LoopStateType.RECOVER
    ceiling: LoopStateType = LoopStateType.BUILD
    min_tasks: int = 1
    max_tasks: int = 5
    current_load: int = 0
    triggers: tuple[StateTransitionTrigger, ...] = ()
    state_history: tuple[StateHistoryEntry, ...] = ()
    last_state_change: str = field(default_factory=lambda: datetime.now().isoformat())

    def __post_init__(self) -> None:
        if not is_state_at_or_below(self.floor, self.ceiling):
            raise ValueError(
                f"{self.loop_id.value}: floor {self.floor.value} is above "
                f"ceiling {self.ceiling.value}"
            )
        if not is_state_at_or_above(self.current_state, self.floor):
            raise ValueError(
                f"{self.loop_id.value}: {self.current_state.value} is below "
                f"floor {self.floor.value}"
            )
        if not is_state_at_or_below(self.current_state, self.ceiling):
            raise ValueError(
                f"{self.loop_id.value}: {self.current_state.value} is above "
                f"ceiling {self.ceiling.value}"
            )

    def with_state(self, state: LoopStateType, **changes: Any) -> LoopState:
        return replace(self, current_state=state, **changes)

    def to_dict(self) -> dict[str, Any]:
        return {
            "loop_id": self.loop_id.value,
            "current_state": self.current_state.value,
            "floor": self.floor.value,
            "ceiling": self.ceiling.value,
            "min_tasks": self.min_tasks,
            "max_tasks": self.max_tasks,
            "current_load": self.current_load,
            "triggers": [t.to_dict() for t in self.triggers],
            "state_history": [h.to_dict() for h in self.state_history],
            "last_state_change": self.last_state_change,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> LoopState:
        kwargs: dict[str, Any] = {
            "loop_id": LoopId(_pick(data, "loop_id", "loopId")),
            "current_state": LoopStateType(
                _pick(data, "current_state", "currentState", "MAINTAIN")
            ),
            "floor": LoopStateType(data.get("floor", "RECOVER")),
            "ceiling": LoopStateType(data.get("ceiling", "BUILD")),
            "min_tasks": _pick(data, "min_tasks", "minTasks", 1),
            "max_tasks": _pick(data, "max_tasks", "maxTasks", 5),
            "current_load": _pick(data, "current_load", "currentLoad", 0),
            "triggers": tuple(
                StateTransitionTrigger.from_dict(t) for t in data.get("triggers", [])
            ),
            "state_history": tuple(
                StateHistoryEntry.from_dict(h)
                for h in _pick(data, "state_history", "stateHistory", [])
            ),
        }
        last_change = _pick(data, "last_state_change", "lastStateChange")
        if last_change:
            kwargs["last_state_change"] = last_change
        return cls(**kwargs)


# Read-only snapshot of every loop's state, passed into recommend()
AllLoopStates = dict[LoopId, LoopState]


@dataclass(frozen=True)
class CascadeEffect:
    """A follow-on recommendation for another Loop after a transition."""

    loop_id: LoopId
    suggested_state: LoopStateType
    reason: str

    def to_dict(self) -> dict[str, Any]:
        return {
            "loop_id": self.loop_id.value,
            "suggested_state": self.suggested_state.value,
            "reason": self.reason,
        }


@dataclass(frozen=True)
class TransitionResult:
    """Outcome of a requested transition. new_state is unchanged on failure."""

    success: bool
    new_state: LoopStateType
    reason: str
    from_state: LoopStateType | None = None
    cascade_effects: tuple[CascadeEffect, ...] = ()

    def to_dict(self) -> dict[str, Any]:
        result: dict[str, Any] = {
            "success": self.success,
            "new_state": self.new_state.value,
            "reason": self.reason,
        }
        if self.from_state is not None:
            result["from_state"] = self.from_state.value
        if self.cascade_effects:
            result["cascade_effects"] = [c.to_dict() for c in self.cascade_effects]
        return result


@dataclass(frozen=True)
class Recommendation:
    """Advisory state for a Loop; never applied automatically."""

    state: LoopStateType
    reason: str

    def to_dict(self) -> dict[str, Any]:
        return {"state": self.state.value, "reason": self.reason}

"""
Tool: Loop State Machine
Purpose: Validate Loop state transitions and recommend states from conditions

Each Loop moves between four capacity states along a fixed graph:

    HIBERNATE -> RECOVER, MAINTAIN
    RECOVER   -> HIBERNATE, MAINTAIN
    MAINTAIN  -> RECOVER, BUILD, HIBERNATE
    BUILD     -> MAINTAIN, RECOVER

A graph-valid move can still be refused when it would leave the Loop's
floor/ceiling band. Nothing here mutates a LoopState: transition() returns
a TransitionResult and apply_transition() returns a new LoopState with the
history entry appended, so what-if evaluation and retries are free.

Usage:
    from looops.loops.state_machine import transition, recommend, apply_transition

    result = transition(health_state, LoopStateType.RECOVER, "Bad night")
    if result.success:
        health_state = apply_transition(health_state, result, TriggerType.USER)

    rec = recommend(LoopId.HEALTH, all_states, ExternalFactors(sleep_score=52))
    # Recommendation(state=RECOVER, reason="Poor sleep - focus on recovery")
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date, datetime
from typing import Any

from looops.dates import WEEKEND_DAYS, sunday_weekday
from looops.loops.models import (
    ALL_LOOPS,
    AllLoopStates,
    CascadeEffect,
    LoopId,
    LoopState,
    LoopStateType,
    Recommendation,
    StateHistoryEntry,
    TransitionResult,
    TriggerType,
    is_state_at_or_above,
    is_state_at_or_below,
    is_valid_transition,
)

logger = logging.getLogger(__name__)

# Thresholds for Health signals
LOW_SLEEP_SCORE = 60
LOW_ENERGY_LEVEL = 30

DEFAULT_REASON = "default"

# Loops whose recommendation reads another loop's current state
DEPENDENT_LOOPS: dict[LoopId, tuple[LoopId, ...]] = {
    LoopId.HEALTH: (LoopId.FUN,),
    LoopId.WORK: (LoopId.FUN,),
}

STATE_DISPLAY: dict[LoopStateType, dict[str, str]] = {
    LoopStateType.BUILD: {
        "name": "Build",
        "description": "Growth mode - high volume, high complexity tasks",
        "color": "#73A58C",
    },
    LoopStateType.MAINTAIN: {
        "name": "Maintain",
        "description": "Steady state - minimum effective dose, hold the line",
        "color": "#5a7fb8",
    },
    LoopStateType.RECOVER: {
        "name": "Recover",
        "description": "Restoration - minimal output, focus on healing",
        "color": "#F4B942",
    },
    LoopStateType.HIBERNATE: {
        "name": "Hibernate",
        "description": "Dormant - no tasks generated, loop is paused",
        "color": "#737390",
    },
}


@dataclass(frozen=True)
class ExternalFactors:
    """Signals from health/calendar/custody sources, already validated by the caller."""

    sleep_score: float | None = None
    energy_level: float | None = None
    day_of_week: int | None = None  # 0=Sunday
    is_custody_week: bool = False
    is_travel: bool = False
    is_sick: bool = False

    @property
    def is_weekend(self) -> bool:
        return self.day_of_week in WEEKEND_DAYS

    @classmethod
    def for_date(cls, day: date, **kwargs: Any) -> ExternalFactors:
        return cls(day_of_week=sunday_weekday(day), **kwargs)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> ExternalFactors:
        return cls(
            sleep_score=data.get("sleep_score", data.get("sleepScore")),
            energy_level=data.get("energy_level", data.get("energyLevel")),
            day_of_week=data.get("day_of_week", data.get("dayOfWeek")),
            is_custody_week=bool(data.get("is_custody_week", data.get("isCustodyWeek", False))),
            is_travel=bool(data.get("is_travel", data.get("isTravel", False))),
            is_sick=bool(data.get("is_sick", data.get("isSick", False))),
        )


# ─────────────────────────────────────────────────────────────────────────────
# Transitions
# ─────────────────────────────────────────────────────────────────────────────


def transition(
    loop_state: LoopState,
    target_state: LoopStateType,
    reason: str = "User requested",
    all_states: AllLoopStates | None = None,
) -> TransitionResult:
    """
    Validate a transition without applying it.

    Checks run in order: graph edge, floor, ceiling. The first failure wins
    and the result keeps the current state.

    Args:
        loop_state: Current record for the Loop
        target_state: Requested state
        reason: Human-readable reason carried into the result
        all_states: Optional snapshot of every Loop; when given, a successful
            result lists advisory cascade effects for dependent Loops

    Returns:
        TransitionResult
    """
    current = loop_state.current_state

    if not is_valid_transition(current, target_state):
        logger.debug(
            f"{loop_state.loop_id.value}: rejected {current.value} -> {target_state.value} (graph)"
        )
        return TransitionResult(
            success=False,
            new_state=current,
            reason=(
                f"Invalid transition: cannot transition directly from "
                f"{current.value} to {target_state.value}"
            ),
            from_state=current,
        )

    if not is_state_at_or_above(target_state, loop_state.floor):
        logger.debug(
            f"{loop_state.loop_id.value}: rejected {current.value} -> {target_state.value} (floor)"
        )
        return TransitionResult(
            success=False,
            new_state=current,
            reason=f"Floor violation: cannot go below floor state of {loop_state.floor.value}",
            from_state=current,
        )

    if not is_state_at_or_below(target_state, loop_state.ceiling):
        logger.debug(
            f"{loop_state.loop_id.value}: rejected {current.value} -> {target_state.value} (ceiling)"
        )
        return TransitionResult(
            success=False,
            new_state=current,
            reason=(
                f"Ceiling violation: cannot exceed ceiling state of {loop_state.ceiling.value}"
            ),
            from_state=current,
        )

    cascade: tuple[CascadeEffect, ...] = ()
    if all_states is not None:
        cascade = cascade_effects(loop_state.loop_id, target_state, all_states)

    return TransitionResult(
        success=True,
        new_state=target_state,
        reason=reason,
        from_state=current,
        cascade_effects=cascade,
    )


def cascade_effects(
    loop_id: LoopId, new_state: LoopStateType, all_states: AllLoopStates
) -> tuple[CascadeEffect, ...]:
    """
    Recommendations for Loops that read loop_id's state, evaluated as if
    loop_id were already in new_state. Only changes are reported.
    """
    dependents = DEPENDENT_LOOPS.get(loop_id, ())
    if not dependents or loop_id not in all_states:
        return ()

    hypothetical = dict(all_states)
    hypothetical[loop_id] = all_states[loop_id].with_state(new_state)

    effects = []
    for dependent in dependents:
        if dependent not in hypothetical:
            continue
        rec = recommend(dependent, hypothetical, ExternalFactors())
        if rec.state != hypothetical[dependent].current_state:
            effects.append(
                CascadeEffect(loop_id=dependent, suggested_state=rec.state, reason=rec.reason)
            )
    return tuple(effects)


def create_history_entry(
    from_state: LoopStateType,
    to_state: LoopStateType,
    reason: str,
    triggered_by: TriggerType = TriggerType.USER,
    at: datetime | None = None,
) -> StateHistoryEntry:
    return StateHistoryEntry(
        from_state=from_state,
        to_state=to_state,
        timestamp=(at or datetime.now()).isoformat(),
        reason=reason,
        triggered_by=triggered_by,
    )


def apply_transition(
    loop_state: LoopState,
    result: TransitionResult,
    triggered_by: TriggerType = TriggerType.USER,
    at: datetime | None = None,
) -> LoopState:
    """
    Return a new LoopState reflecting a successful TransitionResult.

    The history gains exactly one entry. A failed result returns the input
    unchanged.
    """
    if not result.success:
        return loop_state

    entry = create_history_entry(
        loop_state.current_state, result.new_state, result.reason, triggered_by, at
    )
    return loop_state.with_state(
        result.new_state,
        state_history=loop_state.state_history + (entry,),
        last_state_change=entry.timestamp,
    )


# ─────────────────────────────────────────────────────────────────────────────
# Recommendations
# ─────────────────────────────────────────────────────────────────────────────


def _state_of(all_states: AllLoopStates, loop_id: LoopId) -> LoopStateType | None:
    loop_state = all_states.get(loop_id)
    return loop_state.current_state if loop_state else None


def recommend(
    loop_id: LoopId,
    all_states: AllLoopStates,
    factors: ExternalFactors | None = None,
) -> Recommendation:
    """
    Recommend a state for one Loop from external signals.

    Rules short-circuit in order within each Loop. Fun is the only Loop
    whose rule reads another Loop's state (Health, then Work). Unmatched
    cases fall through to MAINTAIN. The caller decides whether to apply
    the recommendation through transition().
    """
    factors = factors or ExternalFactors()

    if loop_id == LoopId.HEALTH:
        if factors.is_sick:
            return Recommendation(LoopStateType.RECOVER, "Illness detected - prioritize recovery")
        if factors.sleep_score is not None and factors.sleep_score < LOW_SLEEP_SCORE:
            return Recommendation(LoopStateType.RECOVER, "Poor sleep - focus on recovery")
        if factors.energy_level is not None and factors.energy_level < LOW_ENERGY_LEVEL:
            return Recommendation(LoopStateType.RECOVER, "Low energy - rest needed")

    elif loop_id == LoopId.WORK:
        # Custody weeks keep a work baseline, weekends included
        if factors.is_custody_week:
            return Recommendation(LoopStateType.MAINTAIN, "Custody week - maintain work baseline")
        if factors.is_weekend:
            return Recommendation(LoopStateType.HIBERNATE, "Weekend - work hibernates")

    elif loop_id == LoopId.FAMILY:
        if factors.is_custody_week:
            return Recommendation(LoopStateType.BUILD, "Custody week - maximize family time")

    elif loop_id == LoopId.FUN:
        if _state_of(all_states, LoopId.HEALTH) == LoopStateType.RECOVER:
            return Recommendation(
                LoopStateType.RECOVER, "Health in recovery - limit high-energy fun"
            )
        if _state_of(all_states, LoopId.WORK) == LoopStateType.BUILD:
            return Recommendation(LoopStateType.MAINTAIN, "Work in build mode - moderate fun")

    elif loop_id == LoopId.MAINTENANCE:
        if factors.is_travel:
            return Recommendation(
                LoopStateType.HIBERNATE, "Travel mode - maintenance hibernates"
            )
        if factors.is_weekend:
            return Recommendation(
                LoopStateType.BUILD, "Weekend - good time for maintenance tasks"
            )

    elif loop_id == LoopId.MEANING:
        return Recommendation(LoopStateType.MAINTAIN, "Maintain spiritual/reflective practices")

    return Recommendation(LoopStateType.MAINTAIN, DEFAULT_REASON)


def recommend_all(
    all_states: AllLoopStates, factors: ExternalFactors | None = None
) -> dict[LoopId, Recommendation]:
    """Recommendations for every Loop present in the snapshot, in loop order."""
    return {
        loop_id: recommend(loop_id, all_states, factors)
        for loop_id in ALL_LOOPS
        if loop_id in all_states
    }


# ─────────────────────────────────────────────────────────────────────────────
# Defaults and reporting
# ─────────────────────────────────────────────────────────────────────────────


def create_default_loop_state(
    loop_id: LoopId,
    current_state: LoopStateType = LoopStateType.MAINTAIN,
    floor: LoopStateType = LoopStateType.RECOVER,
    ceiling: LoopStateType = LoopStateType.BUILD,
) -> LoopState:
    return LoopState(
        loop_id=loop_id,
        current_state=current_state,
        floor=floor,
        ceiling=ceiling,
        min_tasks=1,
        max_tasks=5,
    )


def create_default_states(**kwargs: Any) -> AllLoopStates:
    return {loop_id: create_default_loop_state(loop_id, **kwargs) for loop_id in ALL_LOOPS}


def states_summary(all_states: AllLoopStates) -> dict[str, list[LoopId]]:
    """Group Loops by their current state, in loop order."""
    buckets = {
        LoopStateType.BUILD: "building",
        LoopStateType.MAINTAIN: "maintaining",
        LoopStateType.RECOVER: "recovering",
        LoopStateType.HIBERNATE: "hibernating",
    }
    summary: dict[str, list[LoopId]] = {name: [] for name in buckets.values()}
    for loop_id in ALL_LOOPS:
        if loop_id in all_states:
            summary[buckets[all_states[loop_id].current_state]].append(loop_id)
    return summary


def state_display(state: LoopStateType) -> dict[str, str]:
    return dict(STATE_DISPLAY[state])

"""Loop State Engine - capacity states for each life domain

Components:
    models.py: LoopId, LoopStateType, LoopState and the transition graph
    state_machine.py: Validated transitions, recommendations, history
    capacity.py: Task/energy budgets per state

Usage:
    from looops.loops.models import LoopId, LoopStateType
    from looops.loops.state_machine import create_default_states, transition

    states = create_default_states()
    result = transition(states[LoopId.WORK], LoopStateType.BUILD, all_states=states)
"""

from looops.loops.models import (
    ALL_LOOPS,
    STATE_PRIORITY,
    VALID_TRANSITIONS,
    LoopId,
    LoopState,
    LoopStateType,
    TriggerType,
)

__all__ = [
    "ALL_LOOPS",
    "STATE_PRIORITY",
    "VALID_TRANSITIONS",
    "LoopId",
    "LoopState",
    "LoopStateType",
    "TriggerType",
]

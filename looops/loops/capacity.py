"""
Tool: Capacity Planner
Purpose: Turn a Loop's state into daily task and energy budgets

The table is fixed: every state has an entry and min_tasks <= max_tasks.
energy_budget() reports over-commitment (total > 1.0) instead of clamping
it, since whether that is acceptable is the caller's call.

Usage:
    from looops.loops.capacity import capacity_for, energy_budget

    capacity_for(LoopStateType.BUILD)
    # Capacity(min_tasks=3, max_tasks=8, energy_allocation=0.3)
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from looops.loops.models import ALL_LOOPS, AllLoopStates, LoopId, LoopStateType


@dataclass(frozen=True)
class Capacity:
    min_tasks: int
    max_tasks: int
    energy_allocation: float

    def to_dict(self) -> dict[str, Any]:
        return {
            "min_tasks": self.min_tasks,
            "max_tasks": self.max_tasks,
            "energy_allocation": self.energy_allocation,
        }


CAPACITY_TABLE: dict[LoopStateType, Capacity] = {
    LoopStateType.BUILD: Capacity(min_tasks=3, max_tasks=8, energy_allocation=0.30),
    LoopStateType.MAINTAIN: Capacity(min_tasks=1, max_tasks=4, energy_allocation=0.15),
    LoopStateType.RECOVER: Capacity(min_tasks=0, max_tasks=2, energy_allocation=0.05),
    LoopStateType.HIBERNATE: Capacity(min_tasks=0, max_tasks=0, energy_allocation=0.0),
}


def capacity_for(state: LoopStateType) -> Capacity:
    return CAPACITY_TABLE[state]


@dataclass(frozen=True)
class EnergyBudget:
    total_allocated: float
    remaining: float
    by_loop: dict[LoopId, float]

    @property
    def over_committed(self) -> bool:
        return self.total_allocated > 1.0

    def to_dict(self) -> dict[str, Any]:
        return {
            "total_allocated": round(self.total_allocated, 4),
            "remaining": round(self.remaining, 4),
            "over_committed": self.over_committed,
            "by_loop": {loop_id.value: value for loop_id, value in self.by_loop.items()},
        }


def energy_budget(all_states: AllLoopStates) -> EnergyBudget:
    """
    Sum energy allocation across Loops.

    Args:
        all_states: Snapshot of Loop states; missing Loops contribute nothing

    Returns:
        EnergyBudget with remaining = max(0, 1 - total)
    """
    by_loop: dict[LoopId, float] = {}
    total = 0.0

    for loop_id in ALL_LOOPS:
        if loop_id not in all_states:
            continue
        allocation = capacity_for(all_states[loop_id].current_state).energy_allocation
        by_loop[loop_id] = allocation
        total += allocation

    return EnergyBudget(total_allocated=total, remaining=max(0.0, 1.0 - total), by_loop=by_loop)

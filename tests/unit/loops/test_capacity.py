"""Tests for per-state capacity and the energy budget."""

import pytest

from looops.loops.capacity import CAPACITY_TABLE, capacity_for, energy_budget
from looops.loops.models import LoopId, LoopStateType


class TestCapacityTable:
    """Every state has a well-formed entry."""

    @pytest.mark.parametrize("state,expected", [
        (LoopStateType.BUILD, (3, 8, 0.30)),
        (LoopStateType.MAINTAIN, (1, 4, 0.15)),
        (LoopStateType.RECOVER, (0, 2, 0.05)),
        (LoopStateType.HIBERNATE, (0, 0, 0.0)),
    ])
    def test_values(self, state, expected):
        capacity = capacity_for(state)
        assert (capacity.min_tasks, capacity.max_tasks, capacity.energy_allocation) == expected

    def test_min_never_exceeds_max(self):
        for capacity in CAPACITY_TABLE.values():
            assert capacity.min_tasks <= capacity.max_tasks


class TestEnergyBudget:
    def test_all_maintaining(self, default_states):
        budget = energy_budget(default_states)

        assert budget.total_allocated == pytest.approx(1.05)
        assert budget.remaining == 0.0
        assert budget.over_committed is True

    def test_partial_snapshot(self, default_states):
        states = {
            LoopId.HEALTH: default_states[LoopId.HEALTH].with_state(LoopStateType.BUILD),
            LoopId.WORK: default_states[LoopId.WORK].with_state(LoopStateType.RECOVER),
        }

        budget = energy_budget(states)

        assert budget.total_allocated == pytest.approx(0.35)
        assert budget.remaining == pytest.approx(0.65)
        assert budget.over_committed is False
        assert set(budget.by_loop) == {LoopId.HEALTH, LoopId.WORK}

    def test_empty_snapshot(self):
        budget = energy_budget({})
        assert budget.total_allocated == 0.0
        assert budget.remaining == 1.0
        assert budget.to_dict()["by_loop"] == {}

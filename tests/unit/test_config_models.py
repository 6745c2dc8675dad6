"""Tests for args/looops.yaml validation and schedule building."""

from datetime import date

import pytest
from pydantic import ValidationError

from looops import ARGS_DIR
from looops.config_models import (
    DayTypeOverrideConfig,
    LoopDefaultsConfig,
    LooopsConfig,
    _merge_day_type,
    load_and_validate,
)
from looops.loops.models import LoopId, LoopStateType
from looops.scheduling.day_types import day_type_config, day_type_for
from looops.scheduling.models import DEFAULT_DAY_TYPE_CONFIGS, DayType, DayTypeConfig


# =============================================================================
# Models
# =============================================================================


class TestLooopsConfigDefaults:
    def test_empty_config(self):
        config = LooopsConfig()
        assert config.scheduling.enabled is True
        assert config.scheduling.marked_dates == []
        assert config.recurrence.month_overflow == "clamp"
        assert config.loops.defaults.current_state == LoopStateType.MAINTAIN

    def test_extra_keys_allowed(self):
        config = LooopsConfig.model_validate({"scheduling": {"enabled": False, "theme": "dark"}})
        assert config.scheduling.enabled is False


class TestValidation:
    def test_unknown_day_type_key_rejected(self):
        with pytest.raises(ValidationError):
            LooopsConfig.model_validate({"scheduling": {"day_types": {"vacation": {}}}})

    def test_unknown_marked_day_type_rejected(self):
        with pytest.raises(ValidationError):
            LooopsConfig.model_validate(
                {"scheduling": {"marked_dates": [{"date": "2024-01-01", "day_type": "party"}]}}
            )

    def test_negative_multiplier_rejected(self):
        with pytest.raises(ValidationError):
            DayTypeOverrideConfig.model_validate({"loop_capacity_multipliers": {"Work": -1}})

    def test_unknown_loop_rejected(self):
        with pytest.raises(ValidationError):
            DayTypeOverrideConfig.model_validate({"loop_capacity_multipliers": {"Sleep": 1.0}})

    def test_bad_overflow_rejected(self):
        with pytest.raises(ValidationError):
            LooopsConfig.model_validate({"recurrence": {"month_overflow": "wrap"}})

    def test_default_state_outside_bounds_rejected(self):
        with pytest.raises(ValidationError):
            LoopDefaultsConfig.model_validate({"current_state": "HIBERNATE", "floor": "RECOVER"})

    def test_min_above_max_rejected(self):
        with pytest.raises(ValidationError):
            LoopDefaultsConfig.model_validate({"min_tasks": 6, "max_tasks": 2})


# =============================================================================
# Schedule building
# =============================================================================


class TestToSchedule:
    def test_override_merged_over_builtin(self):
        config = LooopsConfig.model_validate(
            {
                "scheduling": {
                    "day_types": {
                        "weekend": {
                            "label": "Slow Day",
                            "loop_capacity_multipliers": {"Work": 0.0},
                        }
                    }
                }
            }
        )

        schedule = config.to_schedule()
        weekend = day_type_config(DayType.WEEKEND, schedule)

        assert weekend.label == "Slow Day"
        assert weekend.loop_capacity_multipliers[LoopId.WORK] == 0.0
        # untouched multipliers keep the built-in value
        assert weekend.loop_capacity_multipliers[LoopId.FUN] == 1.5
        assert weekend.icon == DEFAULT_DAY_TYPE_CONFIGS[DayType.WEEKEND].icon

    def test_empty_list_clears_base_routines(self):
        base = DayTypeConfig(
            day_type=DayType.HOLIDAY,
            label="Holiday",
            enabled_routines=("walk",),
            disabled_routines=("standup",),
        )
        override = DayTypeOverrideConfig.model_validate({"disabled_routines": []})

        merged = _merge_day_type(base, override)

        assert merged.disabled_routines == ()
        # keys absent from the section keep the base value
        assert merged.enabled_routines == ("walk",)
        assert merged.label == "Holiday"

    def test_set_routine_list_replaces_base(self):
        base = DayTypeConfig(day_type=DayType.TRAVEL, label="Travel", disabled_routines=("gym",))
        override = DayTypeOverrideConfig.model_validate({"disabled_routines": ["standup"]})

        assert _merge_day_type(base, override).disabled_routines == ("standup",)

    def test_custom_day_types(self):
        config = LooopsConfig.model_validate(
            {
                "scheduling": {
                    "marked_dates": [{"date": "2024-09-10", "day_type": "custom_offsite"}],
                    "day_types": {"custom_offsite": {"label": "Offsite", "icon": "🏕️"}},
                }
            }
        )

        schedule = config.to_schedule()

        assert day_type_for("2024-09-10", schedule) == "custom_offsite"
        assert day_type_config("custom_offsite", schedule).label == "Offsite"

    def test_marked_dates_converted(self):
        config = LooopsConfig.model_validate(
            {
                "scheduling": {
                    "marked_dates": [
                        {"date": "2024-12-25", "day_type": "holiday", "repeats_yearly": True}
                    ]
                }
            }
        )

        schedule = config.to_schedule()

        assert schedule.marked_dates[0].date == date(2024, 12, 25)
        assert schedule.marked_dates[0].day_type is DayType.HOLIDAY
        assert day_type_for("2026-12-25", schedule) == DayType.HOLIDAY

    def test_default_loop_states(self):
        config = LooopsConfig.model_validate(
            {"loops": {"defaults": {"current_state": "BUILD", "max_tasks": 8}}}
        )
        states = config.default_loop_states()

        assert len(states) == 7
        assert states[LoopId.FUN].current_state == LoopStateType.BUILD
        assert states[LoopId.FUN].max_tasks == 8


# =============================================================================
# Loading
# =============================================================================


class TestLoadAndValidate:
    def test_shipped_config_is_valid(self):
        config = load_and_validate("looops", path=ARGS_DIR / "looops.yaml")

        assert isinstance(config, LooopsConfig)
        assert len(config.scheduling.marked_dates) == 2
        assert day_type_for("2030-12-25", config.to_schedule()) == DayType.HOLIDAY

    def test_missing_file_gives_defaults(self, tmp_path):
        config = load_and_validate("looops", path=tmp_path / "missing.yaml")
        assert config == LooopsConfig()

    def test_invalid_file_falls_back(self, tmp_path, caplog):
        path = tmp_path / "looops.yaml"
        path.write_text("recurrence:\n  month_overflow: sideways\n")

        with caplog.at_level("WARNING", logger="looops.config_models"):
            config = load_and_validate("looops", path=path)

        assert config.recurrence.month_overflow == "clamp"
        assert "using defaults" in caplog.text

    def test_roll_policy_loaded(self, tmp_path):
        path = tmp_path / "looops.yaml"
        path.write_text("recurrence:\n  month_overflow: roll\n")

        config = load_and_validate("looops", path=path)

        assert config.recurrence.month_overflow == "roll"

    def test_unknown_config_name(self):
        with pytest.raises(ValueError, match="Unknown config"):
            load_and_validate("nope")

from __future__ import annotations

import datetime
import logging
from pathlib import Path
from typing import Literal, Optional

import yaml
from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from looops import ARGS_DIR
from looops.dates import OVERFLOW_CLAMP
from looops.loops.models import (
    ALL_LOOPS,
    AllLoopStates,
    LoopId,
    LoopState,
    LoopStateType,
    is_state_at_or_above,
    is_state_at_or_below,
)
from looops.scheduling.models import (
    DEFAULT_DAY_TYPE_CONFIGS,
    DayType,
    DayTypeConfig,
    MarkedDate,
    SmartSchedule,
    as_day_type,
)

logger = logging.getLogger(__name__)


# =============================================================================
# Scheduling (args/looops.yaml -> scheduling)
# =============================================================================

class MarkedDateConfig(BaseModel):
    model_config = ConfigDict(extra="allow")
    date: datetime.date
    day_type: str
    label: Optional[str] = None
    repeats_yearly: bool = Field(default=False)

    @field_validator("day_type")
    @classmethod
    def check_day_type(cls, value: str) -> str:
        as_day_type(value)
        return value


class DayTypeOverrideConfig(BaseModel):
    model_config = ConfigDict(extra="allow")
    label: Optional[str] = None
    color: Optional[str] = None
    icon: Optional[str] = None
    enabled_routines: list[str] = Field(default_factory=list)
    disabled_routines: list[str] = Field(default_factory=list)
    loop_capacity_multipliers: dict[LoopId, float] = Field(default_factory=dict)

    @field_validator("loop_capacity_multipliers")
    @classmethod
    def check_multipliers(cls, value: dict[LoopId, float]) -> dict[LoopId, float]:
        for loop_id, multiplier in value.items():
            if multiplier < 0:
                raise ValueError(f"multiplier for {loop_id.value} must be >= 0")
        return value


class SchedulingConfig(BaseModel):
    model_config = ConfigDict(extra="allow")
    enabled: bool = Field(default=True)
    marked_dates: list[MarkedDateConfig] = Field(default_factory=list)
    day_types: dict[str, DayTypeOverrideConfig] = Field(default_factory=dict)

    @field_validator("day_types")
    @classmethod
    def check_day_types(
        cls, value: dict[str, DayTypeOverrideConfig]
    ) -> dict[str, DayTypeOverrideConfig]:
        for key in value:
            as_day_type(key)
        return value


# =============================================================================
# Recurrence (args/looops.yaml -> recurrence)
# =============================================================================

class RecurrenceConfig(BaseModel):
    model_config = ConfigDict(extra="allow")
    month_overflow: Literal["clamp", "roll"] = Field(default=OVERFLOW_CLAMP)


# =============================================================================
# Loops (args/looops.yaml -> loops)
# =============================================================================

class LoopDefaultsConfig(BaseModel):
    model_config = ConfigDict(extra="allow")
    current_state: LoopStateType = Field(default=LoopStateType.MAINTAIN)
    floor: LoopStateType = Field(default=LoopStateType.RECOVER)
    ceiling: LoopStateType = Field(default=LoopStateType.BUILD)
    min_tasks: int = Field(default=1, ge=0)
    max_tasks: int = Field(default=5, ge=0)

    @model_validator(mode="after")
    def check_state_bounds(self) -> LoopDefaultsConfig:
        if not is_state_at_or_below(self.floor, self.ceiling):
            raise ValueError("floor must not be above ceiling")
        if not (
            is_state_at_or_above(self.current_state, self.floor)
            and is_state_at_or_below(self.current_state, self.ceiling)
        ):
            raise ValueError("current_state must lie between floor and ceiling")
        if self.min_tasks > self.max_tasks:
            raise ValueError("min_tasks must not exceed max_tasks")
        return self


class LoopsConfig(BaseModel):
    model_config = ConfigDict(extra="allow")
    defaults: LoopDefaultsConfig = Field(default_factory=LoopDefaultsConfig)


# =============================================================================
# LooopsConfig (args/looops.yaml)
# =============================================================================

class LooopsConfig(BaseModel):
    model_config = ConfigDict(extra="allow")
    scheduling: SchedulingConfig = Field(default_factory=SchedulingConfig)
    recurrence: RecurrenceConfig = Field(default_factory=RecurrenceConfig)
    loops: LoopsConfig = Field(default_factory=LoopsConfig)

    def to_schedule(self) -> SmartSchedule:
        """
        Build a SmartSchedule from the config.

        Built-in day type sections are merged over the defaults; sections
        keyed custom_* become custom day types.
        """
        configs: dict = dict(DEFAULT_DAY_TYPE_CONFIGS)
        custom: list[DayTypeConfig] = []

        for key, override in self.scheduling.day_types.items():
            day_type = as_day_type(key)
            if isinstance(day_type, DayType):
                configs[day_type] = _merge_day_type(DEFAULT_DAY_TYPE_CONFIGS[day_type], override)
            else:
                custom.append(
                    _merge_day_type(DayTypeConfig(day_type=day_type, label=key), override)
                )

        marks = tuple(
            MarkedDate(
                date=m.date,
                day_type=as_day_type(m.day_type),
                label=m.label,
                repeats_yearly=m.repeats_yearly,
            )
            for m in self.scheduling.marked_dates
        )

        return SmartSchedule(
            enabled=self.scheduling.enabled,
            marked_dates=marks,
            day_type_configs=configs,
            custom_day_types=tuple(custom),
        )

    def default_loop_states(self) -> AllLoopStates:
        defaults = self.loops.defaults
        return {
            loop_id: LoopState(
                loop_id=loop_id,
                current_state=defaults.current_state,
                floor=defaults.floor,
                ceiling=defaults.ceiling,
                min_tasks=defaults.min_tasks,
                max_tasks=defaults.max_tasks,
            )
            for loop_id in ALL_LOOPS
        }


def _merge_day_type(base: DayTypeConfig, override: DayTypeOverrideConfig) -> DayTypeConfig:
    """Apply only the keys the YAML section actually sets; an explicit [] clears a list."""
    given = override.model_fields_set

    def pick(name: str):
        if name not in given or getattr(override, name) is None:
            return getattr(base, name)
        value = getattr(override, name)
        return tuple(value) if isinstance(value, list) else value

    return DayTypeConfig(
        day_type=base.day_type,
        label=pick("label"),
        color=pick("color"),
        icon=pick("icon"),
        enabled_routines=pick("enabled_routines"),
        disabled_routines=pick("disabled_routines"),
        loop_capacity_multipliers={
            **base.loop_capacity_multipliers,
            **override.loop_capacity_multipliers,
        },
    )


# =============================================================================
# load_and_validate
# =============================================================================

_CONFIG_MAP: dict[str, type[BaseModel]] = {
    "looops": LooopsConfig,
}


def load_and_validate(
    config_name: str = "looops",
    model_class: type[BaseModel] | None = None,
    path: Path | None = None,
) -> BaseModel:
    if model_class is None:
        model_class = _CONFIG_MAP.get(config_name)
        if model_class is None:
            raise ValueError(f"Unknown config: {config_name}. Available: {list(_CONFIG_MAP.keys())}")

    yaml_path = path or ARGS_DIR / f"{config_name}.yaml"

    try:
        if yaml_path.exists():
            with open(yaml_path) as f:
                raw = yaml.safe_load(f) or {}
        else:
            raw = {}

        return model_class.model_validate(raw)
    except Exception as e:
        logger.warning(f"Config validation failed for {config_name}: {e}, using defaults")
        return model_class()

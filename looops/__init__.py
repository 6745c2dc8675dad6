"""
Looops - Loop State & Scheduling Engine

Manages recurring obligations across parallel life domains ("Loops").
Each Loop carries a capacity state (BUILD / MAINTAIN / RECOVER / HIBERNATE)
that decides how much new work it should take on, and the scheduler decides
which Routines are due on a date and at what capacity.

Components:
    loops/: Loop state machine, recommendations, capacity planning
    scheduling/: Day-type resolution and schedule adjustment
    recurrence/: Next-occurrence calculation for repeating tasks
    config_models.py: args/looops.yaml validation
    logging_config.py: structlog setup
    cli.py: `looops` command

Usage:
    from looops.loops.state_machine import transition
    from looops.scheduling.day_types import resolve_day_type
    from looops.recurrence.calculator import next_due_date

Everything in the engine is a pure function over caller-supplied data.
Nothing here reads or writes storage.
"""

from pathlib import Path

__version__ = "0.1.0"

# Project paths
PROJECT_ROOT = Path(__file__).parent.parent
ARGS_DIR = PROJECT_ROOT / "args"
CONFIG_PATH = ARGS_DIR / "looops.yaml"

__all__ = [
    "__version__",
    "PROJECT_ROOT",
    "ARGS_DIR",
    "CONFIG_PATH",
]

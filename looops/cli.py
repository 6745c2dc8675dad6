#!/usr/bin/env python3
"""
Looops Command Line Interface

Main entry point for the `looops` command. Every subcommand prints
`OK <message>` followed by the result as JSON, or `ERROR <message>` and
exits 1.

Usage:
    looops day-type 2024-12-25
    looops summary 2024-07-06 --routines routines.yaml
    looops next-due --from 2024-01-31 --frequency monthly --day-of-month 31
    looops transition --loop Health --from MAINTAIN --to HIBERNATE --floor RECOVER
    looops recommend --date 2024-07-06 --sleep-score 52
    looops capacity BUILD
    looops custody --start 2024-01-01 --pattern every_other_weekend --months 6
    looops --config ./my.yaml day-type 2024-07-04
"""

import argparse
import json
import sys
from datetime import date
from pathlib import Path

import yaml

from looops import CONFIG_PATH, __version__
from looops.config_models import LooopsConfig, load_and_validate
from looops.dates import parse_date
from looops.logging_config import get_logger, setup_logging
from looops.loops.capacity import capacity_for, energy_budget
from looops.loops.models import ALL_LOOPS, LoopId, LoopState, LoopStateType
from looops.loops.state_machine import (
    ExternalFactors,
    recommend,
    recommend_all,
    state_display,
    states_summary,
    transition,
)
from looops.recurrence.calculator import (
    RecurrenceFrequency,
    RecurrencePattern,
    next_due_date,
    recurrence_label,
    should_stop,
)
from looops.scheduling.adjuster import daily_summary, plan_day
from looops.scheduling.day_types import bulk_generate, day_type_config, resolve_with_source
from looops.scheduling.models import CustodyPattern, Routine, day_type_value

logger = get_logger(__name__)

STATE_CHOICES = [s.value for s in LoopStateType]
LOOP_CHOICES = [loop.value for loop in LoopId]


def _load_config(args) -> LooopsConfig:
    path = Path(args.config) if args.config else CONFIG_PATH
    return load_and_validate("looops", path=path)


def _parse_days(value: str | None) -> tuple[int, ...]:
    """Parse "1,3,5" into weekday numbers (0=Sunday)."""
    if not value:
        return ()
    try:
        return tuple(int(part) for part in value.split(",") if part.strip())
    except ValueError:
        raise ValueError(f"Invalid --days-of-week '{value}', expected e.g. 1,3,5") from None


def _parse_state_overrides(values: list[str] | None) -> dict[LoopId, LoopStateType]:
    """Parse repeated LOOP=STATE flags."""
    overrides = {}
    for item in values or []:
        loop_name, sep, state_name = item.partition("=")
        if not sep:
            raise ValueError(f"Invalid --state '{item}', expected LOOP=STATE")
        overrides[LoopId(loop_name.strip())] = LoopStateType(state_name.strip().upper())
    return overrides


def _load_routines(path: str) -> list[Routine]:
    """Read Routines from a YAML or JSON file (a list, or a mapping with a routines key)."""
    with open(path) as f:
        raw = yaml.safe_load(f) or []
    if isinstance(raw, dict):
        raw = raw.get("routines", [])
    return [Routine.from_dict(item) for item in raw]


# =============================================================================
# Commands
# =============================================================================


def cmd_day_type(args) -> dict:
    """Resolve a date's day type and show its config."""
    config = _load_config(args)
    schedule = config.to_schedule()
    day = parse_date(args.date)

    day_type, source = resolve_with_source(day, schedule.marked_dates, schedule.enabled)
    type_config = day_type_config(day_type, schedule)

    return {
        "success": True,
        "message": f"{day.isoformat()} is {type_config.label}",
        "date": day.isoformat(),
        "day_type": day_type_value(day_type),
        "source": source,
        "config": type_config.to_dict(),
    }


def cmd_summary(args) -> dict:
    """Plan a date: due Routines plus scaled Loop capacities."""
    config = _load_config(args)
    schedule = config.to_schedule()
    routines = _load_routines(args.routines) if args.routines else []
    loop_states = config.default_loop_states()

    overrides = _parse_state_overrides(args.state)
    for loop_id, state in overrides.items():
        loop_states[loop_id] = loop_states[loop_id].with_state(state)

    summary = daily_summary(routines, schedule, args.date)
    plan = plan_day(routines, loop_states, schedule, args.date)

    return {
        "success": True,
        "message": (
            f"{plan.day.isoformat()} ({plan.label}): "
            f"{len(plan.routines)} routine(s) due"
        ),
        "summary": summary.to_dict(),
        "plan": plan.to_dict(),
    }


def cmd_next_due(args) -> dict:
    """Compute the next due date for a recurrence pattern."""
    config = _load_config(args)
    pattern = RecurrencePattern(
        frequency=RecurrenceFrequency(args.frequency),
        interval=args.interval,
        days_of_week=_parse_days(args.days_of_week),
        day_of_month=args.day_of_month,
        end_date=args.end_date,
        count=args.count,
    )
    today = parse_date(args.today) if args.today else date.today()

    next_date = next_due_date(
        args.from_date, pattern, today=today, overflow=config.recurrence.month_overflow
    )
    stopped = should_stop(pattern, next_date, today=today, occurrences=args.occurrences)

    return {
        "success": True,
        "message": "Recurrence ended" if stopped else f"Next due {next_date.isoformat()}",
        "next_due": next_date.isoformat(),
        "stopped": stopped,
        "label": recurrence_label(pattern),
        "pattern": pattern.to_dict(),
    }


def cmd_transition(args) -> dict:
    """Validate a single Loop state transition."""
    config = _load_config(args)
    loop_id = LoopId(args.loop)
    loop_state = LoopState(
        loop_id=loop_id,
        current_state=LoopStateType(args.from_state),
        floor=LoopStateType(args.floor),
        ceiling=LoopStateType(args.ceiling),
    )

    all_states = config.default_loop_states()
    all_states[loop_id] = loop_state

    result = transition(loop_state, LoopStateType(args.to_state), args.reason, all_states)
    if not result.success:
        return {"success": False, "error": result.reason, "result": result.to_dict()}

    return {
        "success": True,
        "message": f"{loop_id.value}: {args.from_state} -> {result.new_state.value}",
        "result": result.to_dict(),
    }


def cmd_recommend(args) -> dict:
    """Recommend states from external factors."""
    config = _load_config(args)
    day = parse_date(args.date) if args.date else date.today()

    all_states = config.default_loop_states()
    for loop_id, state in _parse_state_overrides(args.state).items():
        all_states[loop_id] = all_states[loop_id].with_state(state)

    factors = ExternalFactors.for_date(
        day,
        sleep_score=args.sleep_score,
        energy_level=args.energy_level,
        is_custody_week=args.custody_week,
        is_travel=args.travel,
        is_sick=args.sick,
    )

    if args.loop:
        loop_id = LoopId(args.loop)
        recommendations = {loop_id: recommend(loop_id, all_states, factors)}
    else:
        recommendations = recommend_all(all_states, factors)

    return {
        "success": True,
        "message": f"{len(recommendations)} recommendation(s) for {day.isoformat()}",
        "date": day.isoformat(),
        "recommendations": {
            loop_id.value: rec.to_dict() for loop_id, rec in recommendations.items()
        },
        "current": {
            name: [loop_id.value for loop_id in loops]
            for name, loops in states_summary(all_states).items()
        },
    }


def cmd_capacity(args) -> dict:
    """Show the task range and energy share of a state."""
    state = LoopStateType(args.state.upper())
    capacity = capacity_for(state)
    budget = energy_budget(
        {
            loop_id: LoopState(loop_id=loop_id, current_state=state, floor=state, ceiling=state)
            for loop_id in ALL_LOOPS
        }
    )

    return {
        "success": True,
        "message": f"{state.value}: {capacity.min_tasks}-{capacity.max_tasks} tasks",
        "state": state.value,
        "display": state_display(state),
        "capacity": capacity.to_dict(),
        "all_loops_budget": budget.to_dict(),
    }


def cmd_custody(args) -> dict:
    """Generate marks for a custody-style pattern."""
    marks = bulk_generate(args.start, CustodyPattern(args.pattern), args.day_type, args.months)
    return {
        "success": True,
        "message": f"Generated {len(marks)} marked date(s)",
        "marked_dates": [m.to_dict() for m in marks],
    }


# =============================================================================
# Entry point
# =============================================================================


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="looops",
        description="Looops - Loop state and scheduling engine",
    )
    parser.add_argument("--version", "-V", action="version", version=f"looops {__version__}")
    parser.add_argument(
        "--config", default=None, help=f"Path to config YAML (default: {CONFIG_PATH})"
    )

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    # day-type
    day_type_parser = subparsers.add_parser("day-type", help="Resolve the day type of a date")
    day_type_parser.add_argument("date", help="Date (YYYY-MM-DD)")
    day_type_parser.set_defaults(func=cmd_day_type)

    # summary
    summary_parser = subparsers.add_parser(
        "summary", help="Plan a date: due routines and Loop capacities"
    )
    summary_parser.add_argument("date", help="Date (YYYY-MM-DD)")
    summary_parser.add_argument("--routines", help="YAML/JSON file with routines")
    summary_parser.add_argument(
        "--state", action="append", help="Override a Loop's state, e.g. Fun=BUILD (repeatable)"
    )
    summary_parser.set_defaults(func=cmd_summary)

    # next-due
    next_due_parser = subparsers.add_parser("next-due", help="Compute the next due date")
    next_due_parser.add_argument(
        "--from", dest="from_date", default=None, help="Current due date (default: today)"
    )
    next_due_parser.add_argument(
        "--frequency",
        required=True,
        choices=[f.value for f in RecurrenceFrequency],
        help="Recurrence frequency",
    )
    next_due_parser.add_argument("--interval", type=int, default=1, help="Repeat every N units")
    next_due_parser.add_argument(
        "--days-of-week", dest="days_of_week", help="Weekdays, 0=Sunday (e.g. 1,3,5)"
    )
    next_due_parser.add_argument(
        "--day-of-month", dest="day_of_month", type=int, help="Day of month (1-31)"
    )
    next_due_parser.add_argument("--end-date", dest="end_date", help="Last allowed date")
    next_due_parser.add_argument("--count", type=int, help="Maximum occurrences")
    next_due_parser.add_argument(
        "--occurrences", type=int, help="Occurrences fired so far (for --count)"
    )
    next_due_parser.add_argument("--today", help="Reference date (default: today)")
    next_due_parser.set_defaults(func=cmd_next_due)

    # transition
    transition_parser = subparsers.add_parser("transition", help="Validate a state transition")
    transition_parser.add_argument("--loop", default=LoopId.HEALTH.value, choices=LOOP_CHOICES)
    transition_parser.add_argument(
        "--from", dest="from_state", required=True, choices=STATE_CHOICES, help="Current state"
    )
    transition_parser.add_argument(
        "--to", dest="to_state", required=True, choices=STATE_CHOICES, help="Target state"
    )
    transition_parser.add_argument("--floor", default="RECOVER", choices=STATE_CHOICES)
    transition_parser.add_argument("--ceiling", default="BUILD", choices=STATE_CHOICES)
    transition_parser.add_argument("--reason", default="User requested")
    transition_parser.set_defaults(func=cmd_transition)

    # recommend
    recommend_parser = subparsers.add_parser("recommend", help="Recommend Loop states")
    recommend_parser.add_argument("--loop", choices=LOOP_CHOICES, help="Single Loop (default: all)")
    recommend_parser.add_argument("--date", help="Date the factors apply to (default: today)")
    recommend_parser.add_argument("--sleep-score", dest="sleep_score", type=float)
    recommend_parser.add_argument("--energy-level", dest="energy_level", type=float)
    recommend_parser.add_argument("--custody-week", dest="custody_week", action="store_true")
    recommend_parser.add_argument("--travel", action="store_true")
    recommend_parser.add_argument("--sick", action="store_true")
    recommend_parser.add_argument(
        "--state", action="append", help="Current state of a Loop, e.g. Health=RECOVER (repeatable)"
    )
    recommend_parser.set_defaults(func=cmd_recommend)

    # capacity
    capacity_parser = subparsers.add_parser("capacity", help="Show capacity for a state")
    capacity_parser.add_argument("state", help="BUILD, MAINTAIN, RECOVER or HIBERNATE")
    capacity_parser.set_defaults(func=cmd_capacity)

    # custody
    custody_parser = subparsers.add_parser("custody", help="Bulk-generate custody marks")
    custody_parser.add_argument("--start", required=True, help="First eligible date")
    custody_parser.add_argument(
        "--pattern",
        default=CustodyPattern.EVERY_OTHER_WEEKEND.value,
        choices=[p.value for p in CustodyPattern],
    )
    custody_parser.add_argument("--day-type", dest="day_type", default="custody")
    custody_parser.add_argument("--months", type=int, default=6)
    custody_parser.set_defaults(func=cmd_custody)

    return parser


def main(argv: list[str] | None = None):
    """Main CLI entry point."""
    setup_logging()
    parser = build_parser()
    args = parser.parse_args(argv)

    # If no command given, show help
    if not args.command:
        parser.print_help()
        return

    logger.debug("command", command=args.command)

    try:
        result = args.func(args)
    except (KeyError, ValueError, OSError, yaml.YAMLError) as e:
        result = {"success": False, "error": str(e)}

    if result.get("success"):
        print(f"OK {result.get('message', 'Success')}")
    else:
        print(f"ERROR {result.get('error')}")
        sys.exit(1)

    print(json.dumps(result, indent=2, default=str))


if __name__ == "__main__":
    main()

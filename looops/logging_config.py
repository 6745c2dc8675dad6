"""
Structured logging for the looops CLI, built on structlog over stdlib.

The engine modules (loops, scheduling, recurrence) stay free of structlog and
log through plain ``logging.getLogger(__name__)`` at DEBUG. Those records never
pass through structlog's own processor chain, so the handler's
``ProcessorFormatter`` runs the same shared processors on them as a
``foreign_pre_chain``. That gives engine records and CLI events the same
timestamp, level and logger fields in one output stream.

Environment:
    LOOOPS_LOG_LEVEL   Root level, default WARNING so CLI output stays quiet
    LOOOPS_LOG_FORMAT  "json" for one JSON object per line, console otherwise

Usage:
    from looops.logging_config import get_logger, setup_logging
    setup_logging()
    log = get_logger(__name__)
"""

from __future__ import annotations

import logging
import os
import sys

import structlog

DEFAULT_LEVEL = "WARNING"


def _shared_processors() -> list[structlog.types.Processor]:
    return [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.UnicodeDecoder(),
    ]


def _renderer(json_output: bool) -> structlog.types.Processor:
    if json_output:
        return structlog.processors.JSONRenderer()
    return structlog.dev.ConsoleRenderer()


def setup_logging(level: str | None = None, json_output: bool | None = None) -> None:
    """
    Route structlog and stdlib records to a single stderr handler.

    Replaces any handlers already on the root logger. Arguments left as
    None are read from LOOOPS_LOG_LEVEL and LOOOPS_LOG_FORMAT.
    """
    if level is None:
        level = os.environ.get("LOOOPS_LOG_LEVEL", DEFAULT_LEVEL)
    if json_output is None:
        json_output = os.environ.get("LOOOPS_LOG_FORMAT", "").lower() == "json"

    shared = _shared_processors()

    structlog.configure(
        processors=[*shared, structlog.stdlib.ProcessorFormatter.wrap_for_formatter],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    formatter = structlog.stdlib.ProcessorFormatter(
        foreign_pre_chain=shared,
        processors=[
            structlog.stdlib.ProcessorFormatter.remove_processors_meta,
            _renderer(json_output),
        ],
    )

    # stderr keeps stdout clean for the CLI's JSON output
    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(formatter)

    root = logging.getLogger()
    root.handlers.clear()
    root.addHandler(handler)
    root.setLevel(getattr(logging, level.upper(), logging.WARNING))


def get_logger(name: str | None = None) -> structlog.stdlib.BoundLogger:
    return structlog.get_logger(name)


__all__ = ["get_logger", "setup_logging"]

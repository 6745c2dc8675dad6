"""Tests for structlog setup and the stdlib bridge used by engine modules."""

import json
import logging

import pytest
import structlog

from looops.logging_config import setup_logging


@pytest.fixture(autouse=True)
def reset_root_logging():
    yield
    root = logging.getLogger()
    for handler in root.handlers[:]:
        if isinstance(handler.formatter, structlog.stdlib.ProcessorFormatter):
            root.removeHandler(handler)
    root.setLevel(logging.WARNING)


class TestStdlibBridge:
    def test_engine_record_rendered_as_json(self, capsys):
        setup_logging(level="DEBUG", json_output=True)

        logging.getLogger("looops.scheduling.day_types").debug("resolved %s", "2024-07-06")

        line = capsys.readouterr().err.strip().splitlines()[-1]
        data = json.loads(line)
        assert data["event"] == "resolved 2024-07-06"
        assert data["logger"] == "looops.scheduling.day_types"
        assert data["level"] == "debug"
        assert "timestamp" in data

    def test_default_level_hides_debug(self, capsys, monkeypatch):
        monkeypatch.delenv("LOOOPS_LOG_LEVEL", raising=False)
        setup_logging(json_output=True)

        logging.getLogger("looops.loops.state_machine").debug("quiet")

        assert capsys.readouterr().err == ""
        assert logging.getLogger().level == logging.WARNING


class TestEnvironment:
    def test_level_from_env(self, monkeypatch):
        monkeypatch.setenv("LOOOPS_LOG_LEVEL", "info")
        setup_logging()
        assert logging.getLogger().level == logging.INFO

    def test_single_handler_after_repeat_setup(self):
        setup_logging()
        setup_logging()
        assert len(logging.getLogger().handlers) == 1

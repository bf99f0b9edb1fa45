"""
Tests for logging setup and formatters.
"""

from __future__ import annotations

import json
import logging

import pytest

from outrider.logging_config import HumanFormatter, JSONFormatter, setup_logging


@pytest.fixture(autouse=True)
def restore_root_logger():
    root = logging.getLogger()
    handlers, level = list(root.handlers), root.level
    yield
    root.handlers[:] = handlers
    root.setLevel(level)


def _record(msg="copied", **extra):
    record = logging.LogRecord("outrider.sync.manager", logging.INFO, __file__, 1, msg, None, None)
    for key, value in extra.items():
        setattr(record, key, value)
    return record


class TestJSONFormatter:

    def test_basic_fields(self):
        entry = json.loads(JSONFormatter().format(_record()))

        assert entry["level"] == "INFO"
        assert entry["logger"] == "outrider.sync.manager"
        assert entry["message"] == "copied"
        assert "ts" in entry

    def test_context_fields_promoted(self):
        entry = json.loads(JSONFormatter().format(_record(secret="app/s1", cluster="c1")))

        assert entry["secret"] == "app/s1"
        assert entry["cluster"] == "c1"
        assert "event" not in entry

    def test_exception_included(self):
        try:
            raise ValueError("boom")
        except ValueError:
            import sys
            record = logging.LogRecord(
                "outrider", logging.ERROR, __file__, 1, "failed", None, sys.exc_info()
            )

        entry = json.loads(JSONFormatter().format(record))

        assert "ValueError: boom" in entry["exception"]


class TestHumanFormatter:

    def test_module_column(self):
        line = HumanFormatter().format(_record())

        assert "[manager" in line
        assert line.endswith("copied")


class TestSetupLogging:

    def test_json_format(self):
        setup_logging(level="DEBUG", format_type="json")

        root = logging.getLogger()
        assert root.level == logging.DEBUG
        assert isinstance(root.handlers[0].formatter, JSONFormatter)
        assert logging.getLogger("urllib3").level == logging.WARNING

    def test_env_defaults(self, monkeypatch):
        monkeypatch.setenv("LOG_LEVEL", "warning")
        monkeypatch.delenv("LOG_FORMAT", raising=False)

        setup_logging()

        root = logging.getLogger()
        assert root.level == logging.WARNING
        assert isinstance(root.handlers[0].formatter, HumanFormatter)

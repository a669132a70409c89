"""
Tests for core/logging module

Formatters, the logger adapter, correlation context variables and LogTimer.
"""

import json
import logging
from unittest.mock import MagicMock

import pytest

from studycast.core.logging import (
    DevelopmentFormatter,
    LoggerAdapter,
    LogTimer,
    StructuredFormatter,
    clear_context,
    get_logger,
    project_id_var,
    request_id_var,
    set_project_id,
    set_request_id,
    set_stage,
    setup_logging,
    stage_var,
)


def _record(msg="Test message", **attrs):
    record = logging.LogRecord(
        name="test.module",
        level=logging.INFO,
        pathname="/path/to/file.py",
        lineno=42,
        msg=msg,
        args=(),
        exc_info=None,
    )
    for key, value in attrs.items():
        setattr(record, key, value)
    return record


@pytest.fixture(autouse=True)
def reset_context():
    clear_context()
    yield
    clear_context()


class TestStructuredFormatter:

    def test_format_basic_log(self):
        """Test basic log record formatting to JSON"""
        parsed = json.loads(StructuredFormatter().format(_record()))

        assert parsed["level"] == "INFO"
        assert parsed["message"] == "Test message"
        assert parsed["timestamp"].endswith("Z")
        assert "extra" not in parsed

    def test_context_variables_are_included(self):
        set_request_id("req-1")
        set_project_id(12)
        set_stage("audio")

        parsed = json.loads(StructuredFormatter().format(_record()))

        assert parsed["request_id"] == "req-1"
        assert parsed["project_id"] == 12
        assert parsed["stage"] == "audio"

    def test_extra_fields_are_sanitized(self):
        record = _record(segment=2, api_key="secret-value", payload={"token": "abc", "name": "ok"})

        parsed = json.loads(StructuredFormatter().format(record))

        assert parsed["extra"]["segment"] == 2
        assert parsed["extra"]["api_key"] == "***REDACTED***"
        assert parsed["extra"]["payload"] == {"token": "***REDACTED***", "name": "ok"}

    def test_format_with_exception(self):
        try:
            raise ValueError("Test exception")
        except ValueError:
            import sys
            record = _record(exc_info=sys.exc_info())

        parsed = json.loads(StructuredFormatter().format(record))

        assert parsed["exception"]["type"] == "ValueError"
        assert "Test exception" in parsed["exception"]["traceback"]


class TestDevelopmentFormatter:

    def test_context_is_shown(self):
        set_request_id("abcdefghijkl")
        set_project_id(4)

        line = DevelopmentFormatter().format(_record())

        assert "req:abcdefgh" in line
        assert "project:4" in line
        assert "Test message" in line

    def test_no_context(self):
        line = DevelopmentFormatter().format(_record())
        assert "project:" not in line
        assert "req:" not in line


class TestLoggerAdapter:

    def test_adds_context_and_static_extra(self):
        set_project_id(9)
        set_stage("script")
        adapter = LoggerAdapter(MagicMock(), {"component": "test"})

        _msg, kwargs = adapter.process("hello", {})

        assert kwargs["extra"] == {"project_id": 9, "stage": "script", "component": "test"}

    def test_get_logger_returns_adapter(self):
        logger = get_logger("studycast.test", component="x")
        assert isinstance(logger, LoggerAdapter)
        assert logger.extra == {"component": "x"}


def test_clear_context():
    set_request_id("r")
    set_project_id(1)
    set_stage("outline")

    clear_context()

    assert request_id_var.get() is None
    assert project_id_var.get() is None
    assert stage_var.get() is None


def test_setup_logging_with_file(tmp_path):
    log_file = tmp_path / "logs" / "app.log"
    root = logging.getLogger()
    previous = root.handlers[:]
    try:
        setup_logging(level="DEBUG", log_file=log_file, use_json=True)
        assert root.level == logging.DEBUG
        assert log_file.parent.exists()
        assert any(isinstance(h.formatter, StructuredFormatter) for h in root.handlers)
    finally:
        for handler in root.handlers[:]:
            root.removeHandler(handler)
            handler.close()
        for handler in previous:
            root.addHandler(handler)


class TestLogTimer:

    def test_success(self):
        logger = MagicMock()

        with LogTimer(logger, "outline") as timer:
            pass

        assert timer.duration is not None
        messages = [c.args[1] for c in logger.log.call_args_list]
        assert messages == ["Starting: outline", "Completed: outline"]

    def test_failure_is_logged_and_propagated(self):
        logger = MagicMock()

        with pytest.raises(RuntimeError):
            with LogTimer(logger, "audio"):
                raise RuntimeError("boom")

        logger.error.assert_called_once()
        assert logger.error.call_args.args[0] == "Failed: audio"

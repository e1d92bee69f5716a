"""
Tests for QIA logging utilities.
"""

import json
import logging

import pytest
from rich.logging import RichHandler

from qia.monitoring.logger import (
    ContextLogAdapter,
    JSONFormatter,
    SanitizingHandler,
    get_logger,
    log_performance_metric,
    setup_logging,
)


@pytest.fixture(autouse=True)
def restore_root_logger():
    root = logging.getLogger()
    handlers = root.handlers[:]
    level = root.level
    yield
    root.handlers = handlers
    root.setLevel(level)


def _record(msg: str, **extra) -> logging.LogRecord:
    record = logging.LogRecord(
        name="qia.agents.executor",
        level=logging.INFO,
        pathname=__file__,
        lineno=42,
        msg=msg,
        args=(),
        exc_info=None,
    )
    for key, value in extra.items():
        setattr(record, key, value)
    return record


class TestJSONFormatter:
    """Tests for the JSON formatter."""

    def test_includes_standard_fields_and_extras(self):
        output = json.loads(JSONFormatter().format(_record("Running", artifact="login.spec.ts")))

        assert output["level"] == "INFO"
        assert output["logger"] == "qia.agents.executor"
        assert output["message"] == "Running"
        assert output["line"] == 42
        assert output["artifact"] == "login.spec.ts"
        assert "timestamp" in output

    def test_sanitizes_message(self):
        output = json.loads(JSONFormatter().format(_record("using Bearer abc123")))
        assert "abc123" not in output["message"]

    def test_without_sanitization(self):
        output = json.loads(JSONFormatter(sanitize=False).format(_record("using Bearer abc123")))
        assert "abc123" in output["message"]


class TestSanitizingHandler:
    """Tests for the sanitizing wrapper."""

    def test_emits_sanitized_record(self):
        emitted = []

        class ListHandler(logging.Handler):
            def emit(self, record):
                emitted.append(record.getMessage())

        handler = SanitizingHandler(ListHandler())
        handler.emit(_record("password=hunter2"))

        assert emitted == ["password=[REDACTED]"]


class TestSetupLogging:
    """Tests for root logger configuration."""

    def test_text_format_uses_rich(self):
        root = setup_logging(log_level="DEBUG", log_format="text")

        assert root.level == logging.DEBUG
        assert len(root.handlers) == 1
        handler = root.handlers[0]
        assert isinstance(handler, SanitizingHandler)
        assert isinstance(handler.handler, RichHandler)

    def test_json_format(self):
        root = setup_logging(log_level="INFO", log_format="json")

        handler = root.handlers[0]
        assert isinstance(handler.formatter, JSONFormatter)

    def test_log_file(self, tmp_path):
        log_file = tmp_path / "qia.log"
        root = setup_logging(log_level="INFO", log_format="text", log_file=str(log_file))

        assert len(root.handlers) == 2
        logging.getLogger("qia.test").info("written to file")
        for handler in root.handlers:
            handler.flush()

        assert "written to file" in log_file.read_text()

    def test_noisy_loggers_pinned(self):
        setup_logging(log_level="DEBUG")
        assert logging.getLogger("openai").level == logging.WARNING
        assert logging.getLogger("httpx").level == logging.WARNING


class TestGetLogger:
    """Tests for logger lookup."""

    def test_plain_logger(self):
        logger = get_logger("qia.sample")
        assert isinstance(logger, logging.Logger)

    def test_context_adapter_merges_extra(self):
        adapter = get_logger("qia.sample", agent="HealerAgent")
        assert isinstance(adapter, ContextLogAdapter)

        _, kwargs = adapter.process("msg", {"extra": {"locator": ".btn"}})
        assert kwargs["extra"] == {"agent": "HealerAgent", "locator": ".btn"}


def test_log_performance_metric(caplog):
    with caplog.at_level(logging.INFO, logger="qia.performance"):
        log_performance_metric("artifact_execution", 1500, context={"artifact": "a.spec.ts"})

    record = caplog.records[-1]
    assert record.name == "qia.performance"
    assert record.metric_name == "artifact_execution"
    assert record.value == 1500
    assert record.unit == "ms"
    assert record.artifact == "a.spec.ts"

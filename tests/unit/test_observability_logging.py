"""Tests for structured logging utilities."""

import io
import json
import logging
import sys
from pathlib import Path

import pytest

from dbtable_session.infra.observability.logging import (
    CorrelationIDFilter,
    JSONFormatter,
    get_correlation_id,
    set_correlation_id,
    setup_logging,
)


@pytest.fixture
def restore_root_logger():
    root_logger = logging.getLogger()
    original_handlers = list(root_logger.handlers)
    original_level = root_logger.level
    yield root_logger
    for handler in root_logger.handlers:
        if handler not in original_handlers:
            handler.close()
    root_logger.handlers = original_handlers
    root_logger.setLevel(original_level)


def test_correlation_id_generation_and_override() -> None:
    """Correlation IDs should be generated and overridable."""
    cid1 = get_correlation_id()
    assert cid1
    assert get_correlation_id() == cid1

    set_correlation_id("fixed-id")
    assert get_correlation_id() == "fixed-id"


def test_json_formatter_includes_session_fields() -> None:
    """JSON formatter should inject correlation ID and session extras."""
    formatter = JSONFormatter()
    record = logging.LogRecord(
        name="dbtable_session.session.dbtable",
        level=logging.INFO,
        pathname=__file__,
        lineno=10,
        msg="Session written",
        args=(),
        exc_info=None,
    )
    record.session_id = "abc"
    record.session_name = "PHPSESSID"
    record.rows_affected = 1
    record.correlation_id = "cid-123"

    payload = json.loads(formatter.format(record))

    assert payload["message"] == "Session written"
    assert payload["component"] == "dbtable_session.session.dbtable"
    assert payload["level"] == "INFO"
    assert payload["correlation_id"] == "cid-123"
    assert payload["session_id"] == "abc"
    assert payload["session_name"] == "PHPSESSID"
    assert payload["rows_affected"] == 1
    assert "operation" not in payload


def test_json_formatter_includes_exception() -> None:
    formatter = JSONFormatter()
    try:
        raise RuntimeError("boom")
    except RuntimeError:
        record = logging.LogRecord(
            "test", logging.ERROR, __file__, 1, "failed", args=(), exc_info=sys.exc_info()
        )

    payload = json.loads(formatter.format(record))
    assert "RuntimeError: boom" in payload["exception"]


def test_correlation_filter_injects_default_id() -> None:
    """CorrelationIDFilter should attach a placeholder when none is set."""
    record = logging.LogRecord("test", logging.INFO, __file__, 1, "msg", args=(), exc_info=None)
    filt = CorrelationIDFilter()

    assert filt.filter(record) is True
    assert record.correlation_id  # type: ignore[attr-defined]


def test_setup_logging_configures_json_handler(
    monkeypatch: pytest.MonkeyPatch, restore_root_logger: logging.Logger
) -> None:
    """setup_logging should configure a JSON console handler with correlation IDs."""
    stream = io.StringIO()
    monkeypatch.setattr("sys.stderr", stream)

    setup_logging(level="INFO", json_format=True, log_file=None)
    set_correlation_id("cid-setup")
    logging.getLogger("test_setup_logging").info("test message", extra={"session_id": "s1"})

    lines = [json.loads(line) for line in stream.getvalue().splitlines()]
    entry = lines[-1]
    assert entry["message"] == "test message"
    assert entry["session_id"] == "s1"
    assert entry["correlation_id"] == "cid-setup"
    assert logging.getLogger("sqlalchemy.engine").level == logging.WARNING


def test_setup_logging_text_format_and_file(
    monkeypatch: pytest.MonkeyPatch, restore_root_logger: logging.Logger, tmp_path: Path
) -> None:
    stream = io.StringIO()
    monkeypatch.setattr("sys.stderr", stream)
    log_file = tmp_path / "app.log"

    setup_logging(level="DEBUG", json_format=False, log_file=str(log_file))
    logging.getLogger("test_text").debug("plain message")

    assert " - test_text - DEBUG - " in stream.getvalue()
    for handler in restore_root_logger.handlers:
        handler.flush()
    file_entries = [json.loads(line) for line in log_file.read_text().splitlines()]
    assert file_entries[-1]["message"] == "plain message"

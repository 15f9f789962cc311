"""Unit tests for logging configuration and helpers."""

import json
import logging
import sys

import pytest

from soundshelf.infrastructure.observability.logger_template import log_operation
from soundshelf.infrastructure.observability.logging import (
    CompactExceptionFormatter,
    CorrelationIdFilter,
    CustomJsonFormatter,
    bind_user_id,
    configure_logging,
    get_correlation_id,
    set_correlation_id,
)


def _record(msg: str = "hello", exc_info: object = None) -> logging.LogRecord:
    return logging.LogRecord(
        name="soundshelf.test",
        level=logging.INFO,
        pathname=__file__,
        lineno=10,
        msg=msg,
        args=(),
        exc_info=exc_info,  # type: ignore[arg-type]
    )


class TestCorrelationId:
    """Tests for correlation id helpers."""

    def test_set_explicit_id(self) -> None:
        assert set_correlation_id("abc") == "abc"
        assert get_correlation_id() == "abc"

    def test_generates_uuid(self) -> None:
        generated = set_correlation_id()

        assert len(generated) == 36
        assert get_correlation_id() == generated

    def test_filter_adds_attribute(self) -> None:
        set_correlation_id("xyz")
        record = _record()

        assert CorrelationIdFilter().filter(record) is True
        assert record.correlation_id == "xyz"  # type: ignore[attr-defined]

    def test_filter_adds_user_id(self) -> None:
        bind_user_id("alice")
        record = _record()

        CorrelationIdFilter().filter(record)

        assert record.user_id == "alice"  # type: ignore[attr-defined]


class TestFormatters:
    """Tests for the JSON and compact formatters."""

    def test_json_formatter_fields(self) -> None:
        formatter = CustomJsonFormatter("%(timestamp)s %(level)s %(name)s %(message)s")
        record = _record()
        record.correlation_id = "req-1"

        payload = json.loads(formatter.format(record))

        assert payload["message"] == "hello"
        assert payload["level"] == "INFO"
        assert payload["logger"] == "soundshelf.test"
        assert payload["correlation_id"] == "req-1"
        assert "user_id" not in payload

    def test_json_formatter_includes_user(self) -> None:
        formatter = CustomJsonFormatter("%(timestamp)s %(level)s %(name)s %(message)s")
        record = _record()
        record.correlation_id = ""
        record.user_id = "alice"

        payload = json.loads(formatter.format(record))

        assert payload["user_id"] == "alice"
        assert "correlation_id" not in payload

    def test_compact_exception_shows_root_cause_first(self) -> None:
        try:
            try:
                raise ValueError("root cause")
            except ValueError as inner:
                raise RuntimeError("wrapper") from inner
        except RuntimeError:
            text = CompactExceptionFormatter().formatException(sys.exc_info())

        lines = [line for line in text.splitlines() if line.startswith("╰─►")]
        assert lines == ["╰─► ValueError: root cause", "╰─► RuntimeError: wrapper"]


class TestConfigureLogging:
    """Tests for configure_logging."""

    def test_replaces_root_handlers(self) -> None:
        root = logging.getLogger()
        saved_handlers, saved_level = root.handlers[:], root.level
        try:
            configure_logging("DEBUG", json_format=True)
            configure_logging("WARNING", json_format=False)

            assert len(root.handlers) == 1
            assert root.level == logging.WARNING
            assert isinstance(root.handlers[0].formatter, CompactExceptionFormatter)
        finally:
            root.handlers[:] = saved_handlers
            root.setLevel(saved_level)


class TestLogOperation:
    """Tests for the log_operation context manager."""

    async def test_logs_started_and_completed(self, caplog: pytest.LogCaptureFixture) -> None:
        logger = logging.getLogger("soundshelf.test.ops")

        with caplog.at_level(logging.INFO, logger="soundshelf.test.ops"):
            async with log_operation(logger, "repository_scan", location="x"):
                pass

        messages = [r.getMessage() for r in caplog.records]
        assert messages == ["repository_scan.started", "repository_scan.completed"]
        assert caplog.records[1].duration_ms >= 0  # type: ignore[attr-defined]
        assert caplog.records[1].location == "x"  # type: ignore[attr-defined]

    async def test_logs_failure_and_reraises(self, caplog: pytest.LogCaptureFixture) -> None:
        logger = logging.getLogger("soundshelf.test.ops")

        with caplog.at_level(logging.INFO, logger="soundshelf.test.ops"):
            with pytest.raises(KeyError):
                async with log_operation(logger, "source_import"):
                    raise KeyError("boom")

        failed = caplog.records[-1]
        assert failed.getMessage() == "source_import.failed"
        assert failed.levelno == logging.WARNING
        assert failed.error_type == "KeyError"  # type: ignore[attr-defined]

"""Structured logging: JSON or compact console output, request context on every line."""

import contextvars
import logging
import sys
import traceback
import uuid
from pathlib import Path
from typing import Any

from pythonjsonlogger.json import JsonFormatter

# Hey future me, an import is one request but many log lines, some of them from
# the scanner's concurrent folder listings (asyncio tasks copy the context they
# were created in). Both values below ride along into every one of those lines,
# so "alice says her import failed" is a single grep for her user id.
correlation_id_var: contextvars.ContextVar[str] = contextvars.ContextVar(
    "correlation_id", default=""
)
user_id_var: contextvars.ContextVar[str] = contextvars.ContextVar("user_id", default="")

# Libraries that log every connection/statement at INFO
_NOISY_LOGGERS = ("httpx", "httpcore", "asyncio", "aiosqlite", "uvicorn.access")


def get_correlation_id() -> str:
    """Correlation ID of the current request ("" outside a request)."""
    return correlation_id_var.get()


def set_correlation_id(correlation_id: str | None = None) -> str:
    """Bind a correlation ID to the current context, generating one if None."""
    correlation_id = correlation_id or str(uuid.uuid4())
    correlation_id_var.set(correlation_id)
    return correlation_id


def bind_user_id(user_id: str) -> None:
    """Attach the calling user to every following log line of this request."""
    user_id_var.set(user_id)


class CorrelationIdFilter(logging.Filter):
    """Copies the request context (correlation id, user id) onto each record."""

    def filter(self, record: logging.LogRecord) -> bool:
        record.correlation_id = correlation_id_var.get()
        record.user_id = user_id_var.get()
        return True


class CompactExceptionFormatter(logging.Formatter):
    """Console formatter that prints exception chains root cause first.

    One ``╰─►`` line per exception in the chain, each followed only by the
    frames inside the soundshelf package::

        WARNING │ soundshelf.application.services.repository_scanner:88 │ Skipping folder Live
        ╰─► ConnectError: All connection attempts failed
        ╰─► RemoteFetchFailedError: Fetching Live failed: ConnectError: ...
            File "github_client.py", line 104, in _rate_limited_get
              raise RemoteFetchFailedError(path, f"{type(e).__name__}: {e}") from e
    """

    def formatException(self, ei: Any) -> str:
        exc_value = ei[1]
        if exc_value is None:
            return ""

        chain: list[BaseException] = []
        current: BaseException | None = exc_value
        while current is not None and current not in chain:
            chain.append(current)
            current = current.__cause__ or current.__context__

        lines: list[str] = []
        for exc in reversed(chain):
            lines.append(f"╰─► {type(exc).__name__}: {exc}")
            lines.extend(_own_frames(exc))
        return "\n".join(lines)


def _own_frames(exc: BaseException) -> list[str]:
    if exc.__traceback__ is None:
        return []
    lines = []
    for frame in traceback.extract_tb(exc.__traceback__):
        if "soundshelf" not in frame.filename or "/site-packages/" in frame.filename:
            continue
        lines.append(f'    File "{Path(frame.filename).name}", line {frame.lineno}, in {frame.name}')
        if frame.line:
            lines.append(f"      {frame.line.strip()}")
    return lines


class CustomJsonFormatter(JsonFormatter):
    """JSON formatter adding level, origin and request context fields."""

    def add_fields(
        self,
        log_record: dict[str, Any],
        record: logging.LogRecord,
        message_dict: dict[str, Any],
    ) -> None:
        super().add_fields(log_record, record, message_dict)

        log_record["timestamp"] = self.formatTime(record, self.datefmt)
        log_record["level"] = record.levelname
        log_record["logger"] = record.name
        log_record["function"] = record.funcName
        log_record["line"] = record.lineno

        # Empty context values are left out rather than logged as ""
        for key in ("correlation_id", "user_id"):
            value = getattr(record, key, "")
            if value:
                log_record[key] = value
            else:
                log_record.pop(key, None)

        if record.exc_info:
            log_record["exc_info"] = self.formatException(record.exc_info)


def configure_logging(
    log_level: str = "INFO",
    json_format: bool = False,
    app_name: str = "soundshelf",
) -> None:
    """Install the single root handler.

    Safe to call more than once (tests, reloads): previous root handlers are
    removed first.

    Args:
        log_level: DEBUG, INFO, WARNING, ERROR or CRITICAL
        json_format: JSON lines for log shippers instead of the console format
        app_name: Reported in the "Logging configured" line
    """
    root_logger = logging.getLogger()
    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)

    level = getattr(logging, log_level.upper(), logging.INFO)
    root_logger.setLevel(level)

    handler = logging.StreamHandler(sys.stdout)
    handler.setLevel(level)
    handler.addFilter(CorrelationIdFilter())
    if json_format:
        handler.setFormatter(
            CustomJsonFormatter(
                "%(timestamp)s %(level)s %(name)s %(message)s",
                datefmt="%Y-%m-%d %H:%M:%S",
            )
        )
    else:
        handler.setFormatter(
            CompactExceptionFormatter(
                fmt="%(asctime)s │ %(levelname)-7s │ %(name)s:%(lineno)d │ %(message)s",
                datefmt="%H:%M:%S",
            )
        )
    root_logger.addHandler(handler)

    for name in _NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)

    logging.getLogger(__name__).info(
        "Logging configured",
        extra={"app_name": app_name, "log_level": log_level, "json_format": json_format},
    )

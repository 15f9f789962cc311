"""Observability infrastructure for structured logging."""

from soundshelf.infrastructure.observability.logger_template import log_operation
from soundshelf.infrastructure.observability.logging import (
    bind_user_id,
    configure_logging,
    get_correlation_id,
    set_correlation_id,
)
from soundshelf.infrastructure.observability.middleware import RequestLoggingMiddleware

__all__ = [
    "RequestLoggingMiddleware",
    "bind_user_id",
    "configure_logging",
    "get_correlation_id",
    "log_operation",
    "set_correlation_id",
]

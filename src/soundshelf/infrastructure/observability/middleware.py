"""Request logging middleware."""

import logging
import time
from collections.abc import Awaitable, Callable

from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware

from soundshelf.infrastructure.observability.logging import (
    bind_user_id,
    set_correlation_id,
)

logger = logging.getLogger(__name__)

CORRELATION_HEADER = "X-Correlation-ID"


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """Logs one line when a request arrives and one when it is answered.

    The request context (correlation id from ``X-Correlation-ID`` or a fresh
    one, plus the forwarded ``X-User-Id``) is bound before the route runs, so
    everything the route logs carries it too. The correlation id is echoed in
    the response.
    """

    async def dispatch(
        self, request: Request, call_next: Callable[[Request], Awaitable[Response]]
    ) -> Response:
        correlation_id = set_correlation_id(request.headers.get(CORRELATION_HEADER))
        bind_user_id(request.headers.get("X-User-Id", "").strip())

        fields = {"method": request.method, "path": request.url.path}
        logger.info(
            f"→ {request.method} {request.url.path}",
            extra={**fields, "client_ip": request.client.host if request.client else "unknown"},
        )

        started = time.monotonic()
        try:
            response = await call_next(request)
        except Exception as e:
            logger.exception(
                f"Request failed: {request.method} {request.url.path}",
                extra={**fields, "duration_ms": _elapsed_ms(started), "error_type": type(e).__name__},
            )
            raise

        duration_ms = _elapsed_ms(started)
        mark = "✓" if response.status_code < 400 else "✗"
        logger.info(
            f"{mark} {request.method} {request.url.path} → {response.status_code} ({duration_ms}ms)",
            extra={**fields, "status_code": response.status_code, "duration_ms": duration_ms},
        )

        response.headers[CORRELATION_HEADER] = correlation_id
        return response


def _elapsed_ms(started: float) -> int:
    return int((time.monotonic() - started) * 1000)

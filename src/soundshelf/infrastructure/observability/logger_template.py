"""Timed operation logging.

    logger = logging.getLogger(__name__)

    async with log_operation(logger, "source_import", location="https://github.com/a/b"):
        await do_import()
"""

import logging
import time
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from typing import Any


# Hey future me, wrap every scan and every import/refresh in this. Searching
# the logs for "repository_scan.failed" then gives you every broken repo with
# its location and how long we waited on GitHub before giving up. The
# exception always propagates.
@asynccontextmanager
async def log_operation(
    logger: logging.Logger,
    operation: str,
    **context: Any,
) -> AsyncIterator[None]:
    """Log ``<operation>.started`` and then ``.completed`` or ``.failed``.

    ``context`` is attached to all lines as extra fields; the closing line
    also gets ``duration_ms`` (and ``error``/``error_type`` on failure, logged
    at WARNING).
    """
    started = time.monotonic()
    logger.info(f"{operation}.started", extra=context)

    try:
        yield
    except Exception as e:
        logger.warning(
            f"{operation}.failed",
            extra={
                **context,
                "duration_ms": int((time.monotonic() - started) * 1000),
                "error": str(e),
                "error_type": type(e).__name__,
            },
        )
        raise

    logger.info(
        f"{operation}.completed",
        extra={**context, "duration_ms": int((time.monotonic() - started) * 1000)},
    )

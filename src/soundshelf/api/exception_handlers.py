"""Custom exception handlers for FastAPI application.

Converts domain exceptions into JSON responses ``{"detail": ...}`` with the
right status code. Starlette picks the handler of the most specific class in
the exception's MRO, so e.g. AlreadyImportedError (a DuplicateEntityException)
gets 409 and RateLimitExceededError (an ExternalServiceError) gets 429.
"""

import logging
from typing import Any

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from soundshelf.domain.exceptions import (
    AuthenticationError,
    DomainException,
    DuplicateEntityException,
    EntityNotFoundException,
    ExternalServiceError,
    NoPlayableContentError,
    PersistenceConflictError,
    RateLimitExceededError,
    ValidationException,
)

logger = logging.getLogger(__name__)


# Pydantic's exc.errors() may carry the raw body as bytes in 'input', which
# JSONResponse can't serialize.
def _sanitize_validation_errors(
    errors: list[dict[str, Any]],
) -> list[dict[str, Any]]:
    """Sanitize validation errors by converting bytes to strings."""

    def _sanitize_value(value: Any) -> Any:
        if isinstance(value, bytes):
            return value.decode("utf-8", errors="replace")
        if isinstance(value, dict):
            return {k: _sanitize_value(v) for k, v in value.items()}
        if isinstance(value, list | tuple):
            return [_sanitize_value(item) for item in value]
        if isinstance(value, Exception):
            return str(value)
        return value

    return [_sanitize_value(error) for error in errors]


def _json(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"detail": message})


def register_exception_handlers(app: FastAPI) -> None:
    """Register handlers for domain and request validation exceptions.

    Args:
        app: FastAPI application instance
    """

    @app.exception_handler(ValidationException)
    async def validation_exception_handler(
        request: Request, exc: ValidationException
    ) -> JSONResponse:
        """Handle domain validation exceptions (incl. invalid locations) with 422."""
        logger.warning(
            "Validation error at %s: %s",
            request.url.path,
            exc.message,
            extra={"path": request.url.path, "error": exc.message},
        )
        return _json(status.HTTP_422_UNPROCESSABLE_ENTITY, exc.message)

    @app.exception_handler(NoPlayableContentError)
    async def no_playable_content_handler(
        request: Request, exc: NoPlayableContentError
    ) -> JSONResponse:
        """Handle scans that found nothing playable with 422."""
        logger.info(
            "No playable content at %s: %s",
            request.url.path,
            exc.location,
            extra={"path": request.url.path, "root_unreachable": exc.root_unreachable},
        )
        return _json(status.HTTP_422_UNPROCESSABLE_ENTITY, exc.message)

    @app.exception_handler(EntityNotFoundException)
    async def entity_not_found_exception_handler(
        request: Request, exc: EntityNotFoundException
    ) -> JSONResponse:
        """Handle entity not found exceptions with 404 Not Found."""
        logger.info(
            "Entity not found at %s: %s %s",
            request.url.path,
            exc.entity_type,
            exc.entity_id,
            extra={"path": request.url.path, "entity_type": exc.entity_type},
        )
        return _json(status.HTTP_404_NOT_FOUND, exc.message)

    @app.exception_handler(DuplicateEntityException)
    async def duplicate_entity_exception_handler(
        request: Request, exc: DuplicateEntityException
    ) -> JSONResponse:
        """Handle duplicates (incl. already imported) with 409 Conflict."""
        logger.warning(
            "Duplicate entity at %s: %s %s",
            request.url.path,
            exc.entity_type,
            exc.entity_id,
            extra={"path": request.url.path, "entity_type": exc.entity_type},
        )
        return _json(status.HTTP_409_CONFLICT, exc.message)

    @app.exception_handler(PersistenceConflictError)
    async def persistence_conflict_handler(
        request: Request, exc: PersistenceConflictError
    ) -> JSONResponse:
        """Handle an unrecovered unique-constraint race with 409 Conflict."""
        logger.warning(
            "Persistence conflict at %s: %s",
            request.url.path,
            exc.message,
            extra={"path": request.url.path, "entity_type": exc.entity_type},
        )
        return _json(status.HTTP_409_CONFLICT, exc.message)

    @app.exception_handler(AuthenticationError)
    async def authentication_error_handler(
        request: Request, exc: AuthenticationError
    ) -> JSONResponse:
        """Handle authentication errors with 401 Unauthorized."""
        logger.warning(
            "Authentication error at %s: %s",
            request.url.path,
            exc.message,
            extra={"path": request.url.path, "error": exc.message},
        )
        return _json(status.HTTP_401_UNAUTHORIZED, exc.message)

    @app.exception_handler(ExternalServiceError)
    async def external_service_error_handler(
        request: Request, exc: ExternalServiceError
    ) -> JSONResponse:
        """Handle external service errors with 502 Bad Gateway."""
        logger.error(
            "External service error at %s: %s",
            request.url.path,
            exc.message,
            extra={"path": request.url.path, "error": exc.message},
        )
        return _json(status.HTTP_502_BAD_GATEWAY, exc.message)

    @app.exception_handler(RateLimitExceededError)
    async def rate_limit_exceeded_handler(
        request: Request, exc: RateLimitExceededError
    ) -> JSONResponse:
        """Handle rate limit errors with 429 Too Many Requests."""
        logger.warning(
            "Rate limit exceeded at %s: %s",
            request.url.path,
            exc.message,
            extra={"path": request.url.path, "error": exc.message},
        )
        response = _json(status.HTTP_429_TOO_MANY_REQUESTS, exc.message)
        if exc.retry_after is not None:
            response.headers["Retry-After"] = str(exc.retry_after)
        return response

    # Catch-all for domain errors without a dedicated handler
    @app.exception_handler(DomainException)
    async def domain_exception_handler(
        request: Request, exc: DomainException
    ) -> JSONResponse:
        """Handle any other domain exception with 400 Bad Request."""
        logger.warning(
            "Domain error at %s: %s",
            request.url.path,
            exc.message,
            extra={"path": request.url.path, "error": exc.message},
        )
        return _json(status.HTTP_400_BAD_REQUEST, exc.message)

    @app.exception_handler(RequestValidationError)
    async def request_validation_exception_handler(
        request: Request, exc: RequestValidationError
    ) -> JSONResponse:
        """Handle Pydantic request validation errors with 422."""
        sanitized_errors = _sanitize_validation_errors(list(exc.errors()))
        logger.warning(
            "Request validation error at %s: %s",
            request.url.path,
            sanitized_errors,
            extra={"path": request.url.path},
        )
        return JSONResponse(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            content={"detail": sanitized_errors},
        )

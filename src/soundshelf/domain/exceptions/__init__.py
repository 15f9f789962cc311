"""Domain exceptions."""

from typing import Any


class DomainException(Exception):
    """Base exception for all domain exceptions."""

    # message is kept as an attribute so handlers can read it without parsing str(exc).
    # Don't raise this directly, always use a subclass so callers can catch precisely.
    def __init__(self, message: str, *args: Any) -> None:
        super().__init__(message, *args)
        self.message = message


class EntityNotFoundException(DomainException):
    """Raised when an entity is not found."""

    def __init__(self, entity_type: str, entity_id: Any) -> None:
        super().__init__(f"{entity_type} with id {entity_id} not found")
        self.entity_type = entity_type
        self.entity_id = entity_id


class ValidationException(DomainException):
    """Raised when entity validation fails.

    Used to signal that an entity's invariants or business rules
    have been violated (e.g., empty playlist name, negative duration).
    """

    pass


class DuplicateEntityException(DomainException):
    """Raised when trying to create a duplicate entity."""

    # Business-rule uniqueness, not the DB constraint itself. For the latter see
    # PersistenceConflictError below.
    def __init__(self, entity_type: str, entity_id: Any) -> None:
        super().__init__(f"{entity_type} with id {entity_id} already exists")
        self.entity_type = entity_type
        self.entity_id = entity_id


class AuthenticationError(DomainException):
    """User is not authenticated.

    HTTP Status: 401
    """

    pass


class ConfigurationError(DomainException):
    """Application configuration is invalid or unusable (e.g. unwritable DB path)."""

    pass


class ExternalServiceError(DomainException):
    """External service (GitHub, source list host) returned an error.

    HTTP Status: 502 (Bad Gateway)
    """

    pass


class RateLimitExceededError(ExternalServiceError):
    """External service rate limit was exceeded and retries were exhausted.

    HTTP Status: 429
    """

    def __init__(self, message: str, retry_after: int | None = None) -> None:
        super().__init__(message)
        self.retry_after = retry_after


# =============================================================================
# Import engine errors
# Only InvalidLocationFormatError, NoPlayableContentError and
# AlreadyImportedError abort a whole import. Everything else degrades to a
# partial result and ends up in the report's per_item_errors.
# =============================================================================


class InvalidLocationFormatError(ValidationException):
    """The location is not a recognisable GitHub repository URL.

    HTTP Status: 422
    """

    def __init__(self, location: str) -> None:
        super().__init__(f"Invalid GitHub repository URL: {location!r}")
        self.location = location


class NoPlayableContentError(DomainException):
    """A scan found no folder with at least one playable audio file.

    root_unreachable is True when the repository root listing itself could not
    be fetched, as opposed to a reachable repository with nothing playable.
    failed_directories lists the (path, reason) of folders whose listing failed.

    HTTP Status: 422
    """

    def __init__(
        self,
        location: str,
        root_unreachable: bool = False,
        message: str | None = None,
        failed_directories: tuple[tuple[str, str], ...] = (),
    ) -> None:
        if message is None:
            if root_unreachable:
                message = f"Repository {location} could not be read"
            else:
                message = (
                    f"No audio files found in {location}. Make sure the repository "
                    "contains folders with audio files."
                )
        super().__init__(message)
        self.location = location
        self.root_unreachable = root_unreachable
        self.failed_directories = failed_directories


class AlreadyImportedError(DuplicateEntityException):
    """The user already has playlists from this repository.

    HTTP Status: 409
    """

    def __init__(self, location: str, user_id: str) -> None:
        DomainException.__init__(
            self, "You have already added this repository to your library"
        )
        self.entity_type = "Source"
        self.entity_id = location
        self.location = location
        self.user_id = user_id


class RemoteFetchFailedError(ExternalServiceError):
    """A remote listing request failed (non-2xx or transport error)."""

    def __init__(
        self, path: str, reason: str, status_code: int | None = None
    ) -> None:
        super().__init__(f"Fetching {path or '/'} failed: {reason}")
        self.path = path
        self.reason = reason
        self.status_code = status_code


class PersistenceConflictError(DomainException):
    """A unique constraint rejected an insert because a concurrent writer won.

    Recovered locally by re-reading the existing row.

    HTTP Status: 409
    """

    def __init__(self, entity_type: str, key: Any) -> None:
        super().__init__(f"{entity_type} with key {key!r} was created concurrently")
        self.entity_type = entity_type
        self.key = key


class PerItemWriteFailedError(DomainException):
    """A single playlist or song could not be persisted."""

    def __init__(self, item_type: str, item: str, reason: str) -> None:
        super().__init__(f"Failed to save {item_type} '{item}': {reason}")
        self.item_type = item_type
        self.item = item
        self.reason = reason


__all__ = [
    # Base
    "DomainException",
    # Entity exceptions
    "EntityNotFoundException",
    "DuplicateEntityException",
    "ValidationException",
    # Auth
    "AuthenticationError",
    # Configuration
    "ConfigurationError",
    # External services
    "ExternalServiceError",
    "RateLimitExceededError",
    # Import engine
    "InvalidLocationFormatError",
    "NoPlayableContentError",
    "AlreadyImportedError",
    "RemoteFetchFailedError",
    "PersistenceConflictError",
    "PerItemWriteFailedError",
]

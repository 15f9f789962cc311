"""Use case for importing every repository listed in a text resource.

Hey future me - the list is usually a README or a gist full of
https://github.com/owner/repo links. Each repository is imported on its own:

- its own transaction (one bad repo never rolls back the others),
- strictly one after another with a fixed pause in between, because every
  import is a burst of GitHub calls and a bulk run would otherwise blow
  through the rate limit in seconds,
- every outcome is recorded, nothing stops the batch.
"""

import asyncio
import logging
from collections.abc import Callable
from contextlib import AbstractAsyncContextManager
from dataclasses import dataclass, field

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from soundshelf.application.use_cases import UseCase
from soundshelf.application.use_cases.import_source import (
    ImportSourceRequest,
    ImportSourceUseCase,
)
from soundshelf.domain.exceptions import DomainException, ValidationException
from soundshelf.domain.ports import ISourceListClient
from soundshelf.domain.value_objects.repository_location import extract_location_urls
from soundshelf.infrastructure.observability.logger_template import log_operation

logger = logging.getLogger(__name__)

SessionScope = Callable[[], AbstractAsyncContextManager[AsyncSession]]
ImportUseCaseFactory = Callable[[AsyncSession], ImportSourceUseCase]


@dataclass
class BulkImportRequest:
    """Request to import all repositories listed at a URL."""

    source_list_url: str
    user_id: str


@dataclass
class BulkImportItemResult:
    """Outcome of one repository in a bulk import."""

    location_uri: str
    success: bool
    source_id: str | None = None
    playlists_created: int = 0
    songs_created: int = 0
    songs_skipped: int = 0
    error: str | None = None


@dataclass
class BulkImportReport:
    """Summary of a bulk import."""

    source_list_url: str
    results: list[BulkImportItemResult] = field(default_factory=list)

    @property
    def total(self) -> int:
        return len(self.results)

    @property
    def succeeded(self) -> int:
        return sum(1 for r in self.results if r.success)

    @property
    def failed(self) -> int:
        return self.total - self.succeeded


class BulkImportSourcesUseCase(UseCase[BulkImportRequest, BulkImportReport]):
    """Import many repositories sequentially, one transaction each."""

    def __init__(
        self,
        source_list_client: ISourceListClient,
        session_scope: SessionScope,
        import_use_case_factory: ImportUseCaseFactory,
        delay_seconds: float = 1.0,
    ) -> None:
        """Initialize the use case.

        Args:
            source_list_client: Fetches the text resource
            session_scope: Opens a committing session (Database.session_scope)
            import_use_case_factory: Builds an import use case bound to a session
            delay_seconds: Pause between two repositories
        """
        self._source_list_client = source_list_client
        self._session_scope = session_scope
        self._import_use_case_factory = import_use_case_factory
        self._delay_seconds = delay_seconds

    async def execute(self, request: BulkImportRequest) -> BulkImportReport:
        """Execute the bulk import.

        Raises:
            ExternalServiceError: The list itself could not be fetched
            ValidationException: The list contains no repository URLs
        """
        text = await self._source_list_client.fetch_text(request.source_list_url)
        urls = extract_location_urls(text)
        if not urls:
            raise ValidationException(
                f"No GitHub repository URLs found in {request.source_list_url}"
            )

        report = BulkImportReport(source_list_url=request.source_list_url)

        async with log_operation(
            logger,
            "bulk_import",
            source_list_url=request.source_list_url,
            user_id=request.user_id,
            repositories=len(urls),
        ):
            for index, url in enumerate(urls):
                if index > 0 and self._delay_seconds > 0:
                    await asyncio.sleep(self._delay_seconds)
                report.results.append(await self._import_one(url, request.user_id))

        logger.info(
            f"Bulk import from {request.source_list_url}: "
            f"{report.succeeded}/{report.total} repositories imported"
        )
        return report

    async def _import_one(self, url: str, user_id: str) -> BulkImportItemResult:
        try:
            async with self._session_scope() as session:
                use_case = self._import_use_case_factory(session)
                import_report = await use_case.execute(
                    ImportSourceRequest(location_uri=url, user_id=user_id)
                )
        except DomainException as e:
            logger.warning(f"Bulk import of {url} failed: {e.message}")
            return BulkImportItemResult(location_uri=url, success=False, error=e.message)
        except SQLAlchemyError as e:
            logger.error(f"Bulk import of {url} failed on storage: {e}", exc_info=True)
            return BulkImportItemResult(
                location_uri=url, success=False, error=f"Storage error: {type(e).__name__}"
            )

        # Same verdict as a single import: a repo that added no songs (all of
        # them already placed elsewhere) did not succeed.
        return BulkImportItemResult(
            location_uri=url,
            success=import_report.success,
            source_id=import_report.source_id,
            playlists_created=import_report.playlists_created,
            songs_created=import_report.songs_created,
            songs_skipped=import_report.songs_skipped,
            error="; ".join(import_report.per_item_errors) or None,
        )

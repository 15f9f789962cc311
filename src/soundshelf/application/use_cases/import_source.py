"""Use case for adding a GitHub repository to a user's library.

Hey future me - the ORDER of steps matters more than anything else here:

1. Parse the URL                      -> InvalidLocationFormatError
2. Find an existing Source            (read only)
3. Already imported by this user?     -> AlreadyImportedError
4. Scan the repository                -> NoPlayableContentError
5. Create or reuse the Source         (first write!)
6. Create playlists, place songs      (per-item failures are recorded, not raised)

The three fatal errors all happen BEFORE step 5, so a failed import never leaves
a half-registered Source behind. Don't move the scan after the Source insert
"to save a lookup" - you'd get orphan sources for every typo'd repository.
"""

import logging
from dataclasses import dataclass, field

from soundshelf.application.services.catalog_writer import CatalogWriter
from soundshelf.application.services.repository_scanner import RepositoryScanner
from soundshelf.application.services.song_placement_service import SongPlacementService
from soundshelf.application.services.source_service import SourceService
from soundshelf.application.use_cases import UseCase
from soundshelf.domain.exceptions import AlreadyImportedError
from soundshelf.domain.ports import (
    IPlaylistRepository,
    ISongRepository,
    ISourceRepository,
)
from soundshelf.domain.value_objects import RepositoryLocation
from soundshelf.infrastructure.observability.logger_template import log_operation

logger = logging.getLogger(__name__)


@dataclass
class ImportSourceRequest:
    """Request to import a repository into a user's library."""

    location_uri: str
    user_id: str
    display_name: str | None = None


@dataclass
class ImportReport:
    """Summary of one import."""

    source_id: str
    source_name: str
    location_uri: str
    source_created: bool = False
    playlists_created: int = 0
    songs_created: int = 0
    songs_skipped: int = 0
    per_item_errors: list[str] = field(default_factory=list)

    @property
    def success(self) -> bool:
        """True if at least one playlist and one song were created."""
        return self.playlists_created > 0 and self.songs_created > 0


class ImportSourceUseCase(UseCase[ImportSourceRequest, ImportReport]):
    """Import a repository: scan it and materialise playlists for one user."""

    def __init__(
        self,
        source_repository: ISourceRepository,
        playlist_repository: IPlaylistRepository,
        song_repository: ISongRepository,
        scanner: RepositoryScanner,
        public_base_url: str = "",
    ) -> None:
        """Initialize the use case.

        Args:
            source_repository: Repository for shared sources
            playlist_repository: Repository for user playlists
            song_repository: Repository for songs
            scanner: Repository scanner
            public_base_url: Origin used for song unique links
        """
        self._playlist_repository = playlist_repository
        self._scanner = scanner
        self._source_service = SourceService(source_repository)
        self._writer = CatalogWriter(
            playlist_repository,
            SongPlacementService(song_repository, public_base_url),
        )

    async def execute(self, request: ImportSourceRequest) -> ImportReport:
        """Execute the import.

        Args:
            request: Location, requesting user and optional display name

        Returns:
            Report with counts and per-item errors

        Raises:
            InvalidLocationFormatError: URL is not a GitHub repository
            AlreadyImportedError: The user already imported this repository
            NoPlayableContentError: Nothing playable found (or root unreachable)
        """
        location = RepositoryLocation.parse(request.location_uri)

        async with log_operation(
            logger,
            "source_import",
            location=location.canonical_url,
            user_id=request.user_id,
        ):
            existing = await self._source_service.find(location)
            if existing is not None and await self._playlist_repository.exists_for_source_and_user(
                existing.id, request.user_id
            ):
                raise AlreadyImportedError(location.canonical_url, request.user_id)

            catalog = await self._scanner.scan(location)

            source, created = await self._source_service.resolve(
                location, request.display_name, request.user_id, existing=existing
            )

            result = await self._writer.write(
                location, source, request.user_id, catalog.playlists
            )

            report = ImportReport(
                source_id=str(source.id),
                source_name=source.name,
                location_uri=source.location_uri,
                source_created=created,
                playlists_created=result.playlists_created,
                songs_created=result.songs_created,
                songs_skipped=result.songs_skipped,
                per_item_errors=catalog.fetch_errors() + result.per_item_errors,
            )
            logger.info(
                f"Imported {location.slug} for {request.user_id}: "
                f"{report.playlists_created} playlists, {report.songs_created} songs "
                f"({report.songs_skipped} already in other playlists, "
                f"{len(report.per_item_errors)} errors)"
            )
            return report

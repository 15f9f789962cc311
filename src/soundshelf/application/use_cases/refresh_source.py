"""Use case for re-syncing an imported repository.

Refresh only ADDS. New top-level folders (by folder path, compared against the
user's existing playlists for this source) become playlists; existing
playlists and songs are never renamed, moved or deleted, even if the folder
disappeared upstream.

last_synced_at is bumped on every completed refresh, including "nothing new".
If the repository root can't be read at all, the refresh fails and the marker
stays where it was.
"""

import logging
from dataclasses import dataclass, field
from datetime import datetime

from soundshelf.application.services.catalog_writer import CatalogWriter
from soundshelf.application.services.library_service import parse_entity_id
from soundshelf.application.services.repository_scanner import RepositoryScanner
from soundshelf.application.services.song_placement_service import SongPlacementService
from soundshelf.application.services.source_service import SourceService
from soundshelf.application.use_cases import UseCase
from soundshelf.domain.entities import PlaylistCandidate, folder_fetch_errors
from soundshelf.domain.exceptions import EntityNotFoundException, NoPlayableContentError
from soundshelf.domain.ports import (
    IPlaylistRepository,
    ISongRepository,
    ISourceRepository,
)
from soundshelf.domain.value_objects import RepositoryLocation, SourceId
from soundshelf.infrastructure.observability.logger_template import log_operation

logger = logging.getLogger(__name__)


@dataclass
class RefreshSourceRequest:
    """Request to refresh one source for one user."""

    source_id: str
    user_id: str


@dataclass
class RefreshReport:
    """Summary of one refresh."""

    source_id: str
    last_synced_at: datetime
    playlists_created: int = 0
    songs_created: int = 0
    songs_skipped: int = 0
    per_item_errors: list[str] = field(default_factory=list)

    @property
    def has_changes(self) -> bool:
        """False for a refresh that found nothing new."""
        return self.playlists_created > 0 or self.songs_created > 0


class RefreshSourceUseCase(UseCase[RefreshSourceRequest, RefreshReport]):
    """Import only the folders a user doesn't have yet."""

    def __init__(
        self,
        source_repository: ISourceRepository,
        playlist_repository: IPlaylistRepository,
        song_repository: ISongRepository,
        scanner: RepositoryScanner,
        public_base_url: str = "",
    ) -> None:
        self._source_repository = source_repository
        self._playlist_repository = playlist_repository
        self._scanner = scanner
        self._source_service = SourceService(source_repository)
        self._writer = CatalogWriter(
            playlist_repository,
            SongPlacementService(song_repository, public_base_url),
        )

    async def execute(self, request: RefreshSourceRequest) -> RefreshReport:
        """Execute the refresh.

        Raises:
            EntityNotFoundException: Unknown source
            NoPlayableContentError: Repository root could not be read
        """
        source_id = parse_entity_id(SourceId, request.source_id, "Source")
        source = await self._source_repository.get_by_id(source_id)
        if source is None:
            raise EntityNotFoundException("Source", request.source_id)

        location = RepositoryLocation.parse(source.location_uri)

        async with log_operation(
            logger,
            "source_refresh",
            location=source.location_uri,
            user_id=request.user_id,
        ):
            existing_playlists = await self._playlist_repository.list_by_source_and_user(
                source.id, request.user_id
            )
            known_paths = {playlist.folder_path for playlist in existing_playlists}

            delta: list[PlaylistCandidate] = []
            # Folders the user already has are not re-imported, so a failed
            # listing of one of them costs nothing worth reporting.
            fetch_errors: list[str] = []
            try:
                catalog = await self._scanner.scan(location)
                delta = [c for c in catalog.playlists if c.path not in known_paths]
                fetch_errors = catalog.fetch_errors(exclude=known_paths)
            except NoPlayableContentError as e:
                if e.root_unreachable:
                    raise
                # Reachable but nothing playable: valid refresh, just no delta
                logger.info(f"Refresh of {location.slug} found no playable content")
                fetch_errors = folder_fetch_errors(e.failed_directories, exclude=known_paths)

            result = await self._writer.write(location, source, request.user_id, delta)
            await self._source_service.mark_synced(source)

            report = RefreshReport(
                source_id=str(source.id),
                last_synced_at=source.last_synced_at,
                playlists_created=result.playlists_created,
                songs_created=result.songs_created,
                songs_skipped=result.songs_skipped,
                per_item_errors=fetch_errors + result.per_item_errors,
            )
            if report.has_changes:
                logger.info(
                    f"Refreshed {location.slug} for {request.user_id}: "
                    f"{report.playlists_created} new playlists, "
                    f"{report.songs_created} new songs"
                )
            else:
                logger.info(f"Refreshed {location.slug} for {request.user_id}: no changes")
            return report

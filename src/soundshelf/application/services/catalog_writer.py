"""Writes scanned playlist candidates into a user's library.

Shared by import and refresh. Every playlist and every song is its own
SAVEPOINT (see the repositories), so one bad item is recorded in the result
and the rest of the batch still commits.
"""

import logging
from collections.abc import Iterable
from dataclasses import dataclass, field

from sqlalchemy.exc import SQLAlchemyError

from soundshelf.application.services.song_placement_service import (
    PlacementOutcome,
    SongPlacementService,
)
from soundshelf.domain.entities import Playlist, PlaylistCandidate, Source
from soundshelf.domain.exceptions import DomainException, PerItemWriteFailedError
from soundshelf.domain.ports import IPlaylistRepository
from soundshelf.domain.value_objects import PlaylistId, RepositoryLocation

logger = logging.getLogger(__name__)

# Failures that only cost one item. Anything else is a bug and propagates.
_PER_ITEM_ERRORS = (DomainException, SQLAlchemyError, ValueError)


@dataclass
class WriteResult:
    """Counters of one catalog write."""

    playlists_created: int = 0
    songs_created: int = 0
    songs_skipped: int = 0
    per_item_errors: list[str] = field(default_factory=list)

    def record_failure(self, item_type: str, item: str, error: Exception) -> None:
        reason = error.message if isinstance(error, DomainException) else str(error)
        failure = PerItemWriteFailedError(item_type, item, reason)
        logger.warning(failure.message)
        self.per_item_errors.append(failure.message)


class CatalogWriter:
    """Creates playlists and places songs for a list of candidates."""

    def __init__(
        self,
        playlist_repository: IPlaylistRepository,
        placement_service: SongPlacementService,
    ) -> None:
        self._playlists = playlist_repository
        self._placement = placement_service

    async def write(
        self,
        location: RepositoryLocation,
        source: Source,
        user_id: str,
        candidates: Iterable[PlaylistCandidate],
    ) -> WriteResult:
        """Persist candidates for a user. Never raises for a single item."""
        result = WriteResult()

        for candidate in candidates:
            try:
                playlist = Playlist(
                    id=PlaylistId.generate(),
                    user_id=user_id,
                    source_id=source.id,
                    name=candidate.name,
                    folder_path=candidate.path,
                )
                await self._playlists.add(playlist)
            except _PER_ITEM_ERRORS as e:
                result.record_failure("playlist", candidate.path, e)
                continue

            result.playlists_created += 1

            for scanned in candidate.songs:
                try:
                    outcome = await self._placement.place(location, playlist, scanned)
                except _PER_ITEM_ERRORS as e:
                    result.record_failure("song", scanned.path, e)
                    continue

                if outcome is PlacementOutcome.CREATED:
                    result.songs_created += 1
                elif outcome is PlacementOutcome.KEPT_ELSEWHERE:
                    result.songs_skipped += 1

        return result

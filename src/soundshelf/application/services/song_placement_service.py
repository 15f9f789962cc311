"""Song placement - decides what happens to every scanned file during an import.

Hey future me - a song's identity is its unique_link, NOT its row id and NOT
the playlist it was found in. The same file seen by a second user (or by a
re-import after deleting a playlist) maps to the SAME link, and songs.unique_link
is UNIQUE. So for each scanned file there are exactly three outcomes:

    link unknown                        -> CREATED (new row in this playlist)
    link known, row already here        -> ALREADY_PLACED (no-op)
    link known, row in another playlist -> KEPT_ELSEWHERE (leave it alone)

KEPT_ELSEWHERE means the first importer keeps the song. We never move rows
between users' playlists. Import, refresh and bulk import all go through this
one class so the rule can't drift between code paths.
"""

import logging
from enum import Enum

from soundshelf.domain.entities import Playlist, ScannedSong, Song
from soundshelf.domain.exceptions import PersistenceConflictError
from soundshelf.domain.ports import ISongRepository
from soundshelf.domain.value_objects import (
    RepositoryLocation,
    SongId,
    derive_unique_link,
)

logger = logging.getLogger(__name__)


class PlacementOutcome(str, Enum):
    """Result of placing one scanned file."""

    CREATED = "created"
    ALREADY_PLACED = "already_placed"
    KEPT_ELSEWHERE = "kept_elsewhere"


class SongPlacementService:
    """Applies the song placement policy for one playlist at a time."""

    def __init__(self, song_repository: ISongRepository, public_base_url: str = "") -> None:
        self._songs = song_repository
        self._base_url = public_base_url

    def unique_link_for(self, location: RepositoryLocation, scanned: ScannedSong) -> str:
        """Link a scanned file will be stored under."""
        return derive_unique_link(
            location.owner, location.repo, scanned.path, self._base_url
        )

    async def place(
        self,
        location: RepositoryLocation,
        playlist: Playlist,
        scanned: ScannedSong,
    ) -> PlacementOutcome:
        """Place one scanned file into a playlist.

        Raises:
            PersistenceConflictError: Insert lost a race and the winner vanished
            SQLAlchemyError / ValueError: Storage or validation failure
        """
        unique_link = self.unique_link_for(location, scanned)

        existing = await self._songs.get_by_unique_link(unique_link)
        if existing is None:
            song = Song(
                id=SongId.generate(),
                playlist_id=playlist.id,
                title=scanned.name,
                file_uri=scanned.download_uri,
                unique_link=unique_link,
            )
            try:
                await self._songs.add(song)
                return PlacementOutcome.CREATED
            except PersistenceConflictError:
                # A concurrent import inserted the same link between our
                # lookup and insert. Re-read the winner and classify it.
                existing = await self._songs.get_by_unique_link(unique_link)
                if existing is None:
                    raise
                logger.debug(f"Recovered from concurrent insert of {unique_link}")

        if existing.playlist_id == playlist.id:
            return PlacementOutcome.ALREADY_PLACED

        logger.info(
            f"Song '{scanned.path}' already belongs to playlist "
            f"{existing.playlist_id}, keeping it there"
        )
        return PlacementOutcome.KEPT_ELSEWHERE

"""Library service - everything a user does with already-imported music.

Read side of the library plus the small writes that don't involve a scan:
deleting one's own playlist, favourites, and the duration that playback
reports back once it actually loaded a file.
"""

import logging
from dataclasses import dataclass
from typing import TypeVar

from soundshelf.domain.entities import Favourite, Playlist, Song, Source
from soundshelf.domain.exceptions import (
    EntityNotFoundException,
    PersistenceConflictError,
    ValidationException,
)
from soundshelf.domain.ports import (
    IFavouriteRepository,
    IPlaylistRepository,
    ISongRepository,
    ISourceRepository,
)
from soundshelf.domain.value_objects import (
    PLAY_PATH,
    FavouriteId,
    PlaylistId,
    SongId,
    SourceId,
    decode_unique_link,
    extract_token,
)

logger = logging.getLogger(__name__)

TId = TypeVar("TId", SourceId, PlaylistId, SongId)


# A malformed id can't match any row, so it is a 404 like any other unknown id.
def parse_entity_id(id_type: type[TId], value: str, entity_type: str) -> TId:
    """Parse a path/body id or raise EntityNotFoundException."""
    try:
        return id_type.from_string(value)
    except ValueError as e:
        raise EntityNotFoundException(entity_type, value) from e


@dataclass
class PlaylistWithSongs:
    """A playlist together with its songs (ordered by title)."""

    playlist: Playlist
    songs: list[Song]


@dataclass
class SourceWithPlaylistCount:
    """A source and how many playlists (of any user) point at it."""

    source: Source
    playlist_count: int


class LibraryService:
    """Queries and small writes on a user's library."""

    def __init__(
        self,
        source_repository: ISourceRepository,
        playlist_repository: IPlaylistRepository,
        song_repository: ISongRepository,
        favourite_repository: IFavouriteRepository,
        public_base_url: str = "",
        duration_tolerance_seconds: int = 5,
    ) -> None:
        self._sources = source_repository
        self._playlists = playlist_repository
        self._songs = song_repository
        self._favourites = favourite_repository
        self._base_url = public_base_url
        self._duration_tolerance = duration_tolerance_seconds

    # =========================================================================
    # Sources & playlists
    # =========================================================================

    async def list_sources(
        self, limit: int = 100, offset: int = 0
    ) -> list[SourceWithPlaylistCount]:
        """List registered sources, newest first, with their playlist counts."""
        sources = await self._sources.list_all(limit=limit, offset=offset)
        counts = await self._playlists.count_by_sources([source.id for source in sources])
        return [
            SourceWithPlaylistCount(source=source, playlist_count=counts.get(source.id, 0))
            for source in sources
        ]

    async def list_playlists(self, user_id: str) -> list[PlaylistWithSongs]:
        """List a user's playlists with their songs."""
        playlists = await self._playlists.list_by_user(user_id)
        return [
            PlaylistWithSongs(
                playlist=playlist,
                songs=await self._songs.list_by_playlist(playlist.id),
            )
            for playlist in playlists
        ]

    async def get_playlist(self, user_id: str, playlist_id: str) -> PlaylistWithSongs:
        """Get one of the user's playlists.

        Raises:
            EntityNotFoundException: Unknown playlist or owned by someone else
        """
        playlist = await self._get_owned_playlist(user_id, playlist_id)
        songs = await self._songs.list_by_playlist(playlist.id)
        return PlaylistWithSongs(playlist=playlist, songs=songs)

    async def delete_playlist(self, user_id: str, playlist_id: str) -> None:
        """Delete one of the user's playlists. Its songs go with it.

        Raises:
            EntityNotFoundException: Unknown playlist or owned by someone else
        """
        playlist = await self._get_owned_playlist(user_id, playlist_id)
        await self._playlists.delete(playlist.id)
        logger.info(f"User {user_id} deleted playlist '{playlist.name}' ({playlist.id})")

    # Someone else's playlist is reported as missing, not forbidden, so the ids
    # of other users' playlists can't be discovered.
    async def _get_owned_playlist(self, user_id: str, playlist_id: str) -> Playlist:
        pid = parse_entity_id(PlaylistId, playlist_id, "Playlist")
        playlist = await self._playlists.get_by_id(pid)
        if playlist is None or playlist.user_id != user_id:
            raise EntityNotFoundException("Playlist", playlist_id)
        return playlist

    # =========================================================================
    # Songs
    # =========================================================================

    async def resolve_unique_link(self, link_or_token: str) -> Song:
        """Find the song behind a shareable link (or its bare token).

        Raises:
            ValidationException: Token doesn't decode
            EntityNotFoundException: No song has this link
        """
        token = extract_token(link_or_token)
        decode_unique_link(token)
        link = f"{self._base_url}{PLAY_PATH}{token}"
        song = await self._songs.get_by_unique_link(link)
        if song is None:
            raise EntityNotFoundException("Song", token)
        return song

    async def report_duration(self, song_id: str, seconds: int) -> Song:
        """Store the duration playback measured.

        Small differences (within the tolerance) are ignored so players that
        round differently don't keep rewriting the row.

        Raises:
            ValidationException: Negative duration
            EntityNotFoundException: Unknown song
        """
        if seconds < 0:
            raise ValidationException("Duration cannot be negative")

        sid = parse_entity_id(SongId, song_id, "Song")
        song = await self._songs.get_by_id(sid)
        if song is None:
            raise EntityNotFoundException("Song", song_id)

        if song.update_duration(seconds, tolerance=self._duration_tolerance):
            await self._songs.update_duration(song.id, song.duration_seconds)
            logger.debug(f"Updated duration of song {song.id} to {seconds}s")
        return song

    # =========================================================================
    # Favourites
    # =========================================================================

    async def add_favourite(self, user_id: str, song_id: str) -> Favourite:
        """Mark a song as favourite. Adding twice is a no-op.

        Raises:
            EntityNotFoundException: Unknown song
        """
        sid = parse_entity_id(SongId, song_id, "Song")
        if await self._songs.get_by_id(sid) is None:
            raise EntityNotFoundException("Song", song_id)

        existing = await self._favourites.get(user_id, sid)
        if existing is not None:
            return existing

        favourite = Favourite(id=FavouriteId.generate(), user_id=user_id, song_id=sid)
        try:
            await self._favourites.add(favourite)
        except PersistenceConflictError:
            winner = await self._favourites.get(user_id, sid)
            if winner is None:
                raise
            return winner
        return favourite

    async def remove_favourite(self, user_id: str, song_id: str) -> None:
        """Unmark a favourite.

        Raises:
            EntityNotFoundException: The song is not a favourite of this user
        """
        sid = parse_entity_id(SongId, song_id, "Song")
        if not await self._favourites.remove(user_id, sid):
            raise EntityNotFoundException("Favourite", song_id)

    async def list_favourites(self, user_id: str) -> list[Song]:
        """List the user's favourite songs, most recently added first."""
        favourites = await self._favourites.list_by_user(user_id)
        songs = await self._songs.list_by_ids([f.song_id for f in favourites])
        by_id = {song.id: song for song in songs}
        return [by_id[f.song_id] for f in favourites if f.song_id in by_id]

"""Repository implementations for domain entities."""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import delete, exists, func, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from soundshelf.domain.entities import Favourite, Playlist, Song, Source
from soundshelf.domain.exceptions import (
    EntityNotFoundException,
    PersistenceConflictError,
)
from soundshelf.domain.ports import (
    IFavouriteRepository,
    IPlaylistRepository,
    ISongRepository,
    ISourceRepository,
)
from soundshelf.domain.value_objects import FavouriteId, PlaylistId, SongId, SourceId

from .models import (
    FavouriteModel,
    PlaylistModel,
    SongModel,
    SourceModel,
    ensure_utc_aware,
)


# Every insert runs in its own SAVEPOINT and is flushed right away. That way a
# UNIQUE violation surfaces HERE (as PersistenceConflictError) instead of at
# commit time, and only the savepoint is rolled back - the rest of the import
# transaction stays usable.
async def _insert(session: AsyncSession, model: object, entity_type: str, key: str) -> None:
    try:
        async with session.begin_nested():
            session.add(model)
            await session.flush()
    except IntegrityError as e:
        raise PersistenceConflictError(entity_type, key) from e


class SourceRepository(ISourceRepository):
    """SQLAlchemy implementation of Source repository."""

    def __init__(self, session: AsyncSession) -> None:
        """Initialize repository with session."""
        self.session = session

    async def add(self, source: Source) -> None:
        """Add a new source."""
        model = SourceModel(
            id=str(source.id.value),
            name=source.name,
            location_uri=source.location_uri,
            created_by=source.created_by,
            is_active=source.is_active,
            last_synced_at=source.last_synced_at,
            created_at=source.created_at,
        )
        await _insert(self.session, model, "Source", source.location_uri)

    async def get_by_id(self, source_id: SourceId) -> Source | None:
        """Get a source by ID."""
        stmt = select(SourceModel).where(SourceModel.id == str(source_id.value))
        result = await self.session.execute(stmt)
        model = result.scalar_one_or_none()
        return self._to_entity(model) if model else None

    async def get_by_location(self, location_uri: str) -> Source | None:
        """Get a source by its canonical location URI."""
        stmt = select(SourceModel).where(SourceModel.location_uri == location_uri)
        result = await self.session.execute(stmt)
        model = result.scalar_one_or_none()
        return self._to_entity(model) if model else None

    async def touch_last_synced(self, source_id: SourceId, synced_at: datetime) -> None:
        """Update only the last_synced_at marker."""
        stmt = (
            update(SourceModel)
            .where(SourceModel.id == str(source_id.value))
            .values(last_synced_at=synced_at)
        )
        result = await self.session.execute(stmt)
        if result.rowcount == 0:  # type: ignore[attr-defined]
            raise EntityNotFoundException("Source", source_id.value)

    async def list_all(self, limit: int = 100, offset: int = 0) -> list[Source]:
        """List sources, newest first."""
        stmt = (
            select(SourceModel)
            .order_by(SourceModel.created_at.desc())
            .limit(limit)
            .offset(offset)
        )
        result = await self.session.execute(stmt)
        return [self._to_entity(model) for model in result.scalars().all()]

    @staticmethod
    def _to_entity(model: SourceModel) -> Source:
        return Source(
            id=SourceId.from_string(model.id),
            name=model.name,
            location_uri=model.location_uri,
            created_by=model.created_by,
            created_at=ensure_utc_aware(model.created_at),
            last_synced_at=ensure_utc_aware(model.last_synced_at),
            is_active=model.is_active,
        )


class PlaylistRepository(IPlaylistRepository):
    """SQLAlchemy implementation of Playlist repository."""

    def __init__(self, session: AsyncSession) -> None:
        """Initialize repository with session."""
        self.session = session

    async def add(self, playlist: Playlist) -> None:
        """Add a new playlist."""
        model = PlaylistModel(
            id=str(playlist.id.value),
            user_id=playlist.user_id,
            source_id=str(playlist.source_id.value),
            name=playlist.name,
            folder_path=playlist.folder_path,
            created_at=playlist.created_at,
        )
        await _insert(self.session, model, "Playlist", playlist.folder_path)

    async def get_by_id(self, playlist_id: PlaylistId) -> Playlist | None:
        """Get a playlist by ID."""
        stmt = select(PlaylistModel).where(PlaylistModel.id == str(playlist_id.value))
        result = await self.session.execute(stmt)
        model = result.scalar_one_or_none()
        return self._to_entity(model) if model else None

    async def list_by_source_and_user(
        self, source_id: SourceId, user_id: str
    ) -> list[Playlist]:
        """List a user's playlists that point at one source."""
        stmt = (
            select(PlaylistModel)
            .where(PlaylistModel.source_id == str(source_id.value))
            .where(PlaylistModel.user_id == user_id)
            .order_by(PlaylistModel.name)
        )
        result = await self.session.execute(stmt)
        return [self._to_entity(model) for model in result.scalars().all()]

    async def exists_for_source_and_user(self, source_id: SourceId, user_id: str) -> bool:
        """Check whether the user owns at least one playlist of this source."""
        stmt = select(
            exists().where(
                PlaylistModel.source_id == str(source_id.value),
                PlaylistModel.user_id == user_id,
            )
        )
        result = await self.session.execute(stmt)
        return bool(result.scalar())

    async def list_by_user(self, user_id: str) -> list[Playlist]:
        """List all playlists owned by a user, by name."""
        stmt = (
            select(PlaylistModel)
            .where(PlaylistModel.user_id == user_id)
            .order_by(PlaylistModel.name)
        )
        result = await self.session.execute(stmt)
        return [self._to_entity(model) for model in result.scalars().all()]

    async def count_by_sources(self, source_ids: list[SourceId]) -> dict[SourceId, int]:
        """Playlists per source across all users, in one grouped query.

        Sources without playlists are left out of the result.
        """
        if not source_ids:
            return {}
        stmt = (
            select(PlaylistModel.source_id, func.count(PlaylistModel.id))
            .where(PlaylistModel.source_id.in_([str(s.value) for s in source_ids]))
            .group_by(PlaylistModel.source_id)
        )
        result = await self.session.execute(stmt)
        return {SourceId.from_string(source_id): count for source_id, count in result.all()}

    async def delete(self, playlist_id: PlaylistId) -> None:
        """Delete a playlist."""
        stmt = delete(PlaylistModel).where(PlaylistModel.id == str(playlist_id.value))
        result = await self.session.execute(stmt)
        if result.rowcount == 0:  # type: ignore[attr-defined]
            raise EntityNotFoundException("Playlist", playlist_id.value)

    @staticmethod
    def _to_entity(model: PlaylistModel) -> Playlist:
        return Playlist(
            id=PlaylistId.from_string(model.id),
            user_id=model.user_id,
            source_id=SourceId.from_string(model.source_id),
            name=model.name,
            folder_path=model.folder_path,
            created_at=ensure_utc_aware(model.created_at),
        )


class SongRepository(ISongRepository):
    """SQLAlchemy implementation of Song repository."""

    def __init__(self, session: AsyncSession) -> None:
        """Initialize repository with session."""
        self.session = session

    async def add(self, song: Song) -> None:
        """Add a new song."""
        model = SongModel(
            id=str(song.id.value),
            playlist_id=str(song.playlist_id.value),
            title=song.title,
            duration_seconds=song.duration_seconds,
            file_uri=song.file_uri,
            cover_art_uri=song.cover_art_uri,
            unique_link=song.unique_link,
            created_at=song.created_at,
            updated_at=song.updated_at,
        )
        await _insert(self.session, model, "Song", song.unique_link)

    async def get_by_id(self, song_id: SongId) -> Song | None:
        """Get a song by ID."""
        stmt = select(SongModel).where(SongModel.id == str(song_id.value))
        result = await self.session.execute(stmt)
        model = result.scalar_one_or_none()
        return self._to_entity(model) if model else None

    async def get_by_unique_link(self, unique_link: str) -> Song | None:
        """Get a song by its unique link."""
        stmt = select(SongModel).where(SongModel.unique_link == unique_link)
        result = await self.session.execute(stmt)
        model = result.scalar_one_or_none()
        return self._to_entity(model) if model else None

    async def update_duration(self, song_id: SongId, duration_seconds: int) -> None:
        """Store the real duration of a song."""
        stmt = (
            update(SongModel)
            .where(SongModel.id == str(song_id.value))
            .values(duration_seconds=duration_seconds)
        )
        result = await self.session.execute(stmt)
        if result.rowcount == 0:  # type: ignore[attr-defined]
            raise EntityNotFoundException("Song", song_id.value)

    async def list_by_playlist(self, playlist_id: PlaylistId) -> list[Song]:
        """List songs of a playlist ordered by title."""
        stmt = (
            select(SongModel)
            .where(SongModel.playlist_id == str(playlist_id.value))
            .order_by(SongModel.title)
        )
        result = await self.session.execute(stmt)
        return [self._to_entity(model) for model in result.scalars().all()]

    async def list_by_ids(self, song_ids: list[SongId]) -> list[Song]:
        """Get several songs at once."""
        if not song_ids:
            return []
        stmt = select(SongModel).where(
            SongModel.id.in_([str(song_id.value) for song_id in song_ids])
        )
        result = await self.session.execute(stmt)
        return [self._to_entity(model) for model in result.scalars().all()]

    @staticmethod
    def _to_entity(model: SongModel) -> Song:
        return Song(
            id=SongId.from_string(model.id),
            playlist_id=PlaylistId.from_string(model.playlist_id),
            title=model.title,
            file_uri=model.file_uri,
            unique_link=model.unique_link,
            duration_seconds=model.duration_seconds,
            cover_art_uri=model.cover_art_uri,
            created_at=ensure_utc_aware(model.created_at),
            updated_at=ensure_utc_aware(model.updated_at),
        )


class FavouriteRepository(IFavouriteRepository):
    """SQLAlchemy implementation of Favourite repository."""

    def __init__(self, session: AsyncSession) -> None:
        """Initialize repository with session."""
        self.session = session

    async def add(self, favourite: Favourite) -> None:
        """Add a favourite."""
        model = FavouriteModel(
            id=str(favourite.id.value),
            user_id=favourite.user_id,
            song_id=str(favourite.song_id.value),
            created_at=favourite.created_at,
        )
        await _insert(
            self.session,
            model,
            "Favourite",
            f"{favourite.user_id}:{favourite.song_id.value}",
        )

    async def get(self, user_id: str, song_id: SongId) -> Favourite | None:
        """Get a favourite by (user, song)."""
        stmt = select(FavouriteModel).where(
            FavouriteModel.user_id == user_id,
            FavouriteModel.song_id == str(song_id.value),
        )
        result = await self.session.execute(stmt)
        model = result.scalar_one_or_none()
        return self._to_entity(model) if model else None

    async def remove(self, user_id: str, song_id: SongId) -> bool:
        """Remove a favourite."""
        stmt = delete(FavouriteModel).where(
            FavouriteModel.user_id == user_id,
            FavouriteModel.song_id == str(song_id.value),
        )
        result = await self.session.execute(stmt)
        return bool(result.rowcount)  # type: ignore[attr-defined]

    async def list_by_user(self, user_id: str) -> list[Favourite]:
        """List a user's favourites, newest first."""
        stmt = (
            select(FavouriteModel)
            .where(FavouriteModel.user_id == user_id)
            .order_by(FavouriteModel.created_at.desc())
        )
        result = await self.session.execute(stmt)
        return [self._to_entity(model) for model in result.scalars().all()]

    @staticmethod
    def _to_entity(model: FavouriteModel) -> Favourite:
        return Favourite(
            id=FavouriteId.from_string(model.id),
            user_id=model.user_id,
            song_id=SongId.from_string(model.song_id),
            created_at=ensure_utc_aware(model.created_at),
        )

"""Unit tests for LibraryService."""

import uuid
from typing import Any

import pytest
from sqlalchemy.ext.asyncio import AsyncSession

from soundshelf.application.services.library_service import LibraryService
from soundshelf.application.services.repository_scanner import RepositoryScanner
from soundshelf.application.use_cases.import_source import (
    ImportSourceRequest,
    ImportSourceUseCase,
)
from soundshelf.domain.exceptions import EntityNotFoundException, ValidationException
from soundshelf.domain.value_objects import derive_unique_link, extract_token
from soundshelf.infrastructure.persistence import (
    FavouriteRepository,
    PlaylistRepository,
    SongRepository,
    SourceRepository,
)

BASE_URL = "http://music.test"


@pytest.fixture
async def library(db_session: AsyncSession, rock_repo: Any) -> LibraryService:
    """Library with alice/mymusic imported for user-1."""
    await ImportSourceUseCase(
        source_repository=SourceRepository(db_session),
        playlist_repository=PlaylistRepository(db_session),
        song_repository=SongRepository(db_session),
        scanner=RepositoryScanner(rock_repo),
        public_base_url=BASE_URL,
    ).execute(ImportSourceRequest(location_uri="https://github.com/alice/mymusic", user_id="user-1"))

    return LibraryService(
        source_repository=SourceRepository(db_session),
        playlist_repository=PlaylistRepository(db_session),
        song_repository=SongRepository(db_session),
        favourite_repository=FavouriteRepository(db_session),
        public_base_url=BASE_URL,
        duration_tolerance_seconds=5,
    )


class TestPlaylists:
    """Tests for playlist queries and deletion."""

    async def test_list_playlists_with_songs(self, library: LibraryService) -> None:
        views = await library.list_playlists("user-1")

        assert len(views) == 1
        assert views[0].playlist.name == "Rock Hits"
        assert [s.title for s in views[0].songs] == ["Song One", "Song Two"]

    async def test_other_users_see_nothing(self, library: LibraryService) -> None:
        assert await library.list_playlists("user-2") == []

    async def test_get_foreign_playlist_is_not_found(self, library: LibraryService) -> None:
        playlist_id = str((await library.list_playlists("user-1"))[0].playlist.id)

        with pytest.raises(EntityNotFoundException):
            await library.get_playlist("user-2", playlist_id)

    async def test_get_with_malformed_id_is_not_found(self, library: LibraryService) -> None:
        with pytest.raises(EntityNotFoundException):
            await library.get_playlist("user-1", "definitely-not-a-uuid")

    async def test_delete_playlist(self, library: LibraryService) -> None:
        playlist_id = str((await library.list_playlists("user-1"))[0].playlist.id)

        await library.delete_playlist("user-1", playlist_id)

        assert await library.list_playlists("user-1") == []
        with pytest.raises(EntityNotFoundException):
            await library.get_playlist("user-1", playlist_id)

    async def test_cannot_delete_foreign_playlist(self, library: LibraryService) -> None:
        playlist_id = str((await library.list_playlists("user-1"))[0].playlist.id)

        with pytest.raises(EntityNotFoundException):
            await library.delete_playlist("user-2", playlist_id)

        assert len(await library.list_playlists("user-1")) == 1

    async def test_list_sources_with_playlist_counts(self, library: LibraryService) -> None:
        views = await library.list_sources()

        assert [v.source.location_uri for v in views] == ["https://github.com/alice/mymusic"]
        assert views[0].playlist_count == 1


class TestSongs:
    """Tests for unique link resolution and duration reports."""

    async def _first_song(self, library: LibraryService) -> Any:
        return (await library.list_playlists("user-1"))[0].songs[0]

    async def test_resolve_full_link_and_bare_token(self, library: LibraryService) -> None:
        song = await self._first_song(library)

        assert (await library.resolve_unique_link(song.unique_link)).id == song.id
        assert (await library.resolve_unique_link(extract_token(song.unique_link))).id == song.id

    async def test_resolve_unknown_but_valid_token(self, library: LibraryService) -> None:
        link = derive_unique_link("alice", "mymusic", "Nope/missing.mp3", BASE_URL)

        with pytest.raises(EntityNotFoundException):
            await library.resolve_unique_link(link)

    async def test_resolve_garbage_token(self, library: LibraryService) -> None:
        with pytest.raises(ValidationException):
            await library.resolve_unique_link("bm9zbGFzaGVz")

    async def test_report_duration(self, library: LibraryService) -> None:
        song = await self._first_song(library)

        updated = await library.report_duration(str(song.id), 215)
        ignored = await library.report_duration(str(song.id), 217)

        assert updated.duration_seconds == 215
        assert ignored.duration_seconds == 215

    async def test_report_negative_duration(self, library: LibraryService) -> None:
        song = await self._first_song(library)

        with pytest.raises(ValidationException):
            await library.report_duration(str(song.id), -1)

    async def test_report_duration_unknown_song(self, library: LibraryService) -> None:
        with pytest.raises(EntityNotFoundException):
            await library.report_duration(str(uuid.uuid4()), 100)


class TestFavourites:
    """Tests for favourites."""

    async def test_add_list_remove(self, library: LibraryService) -> None:
        song = (await library.list_playlists("user-1"))[0].songs[1]

        await library.add_favourite("user-1", str(song.id))

        assert [s.id for s in await library.list_favourites("user-1")] == [song.id]
        assert await library.list_favourites("user-2") == []

        await library.remove_favourite("user-1", str(song.id))

        assert await library.list_favourites("user-1") == []

    async def test_add_twice_is_idempotent(self, library: LibraryService) -> None:
        song = (await library.list_playlists("user-1"))[0].songs[0]

        first = await library.add_favourite("user-1", str(song.id))
        second = await library.add_favourite("user-1", str(song.id))

        assert first.id == second.id
        assert len(await library.list_favourites("user-1")) == 1

    async def test_any_user_can_favourite_a_shared_song(self, library: LibraryService) -> None:
        song = (await library.list_playlists("user-1"))[0].songs[0]

        await library.add_favourite("user-2", str(song.id))

        assert [s.id for s in await library.list_favourites("user-2")] == [song.id]

    async def test_add_unknown_song(self, library: LibraryService) -> None:
        with pytest.raises(EntityNotFoundException):
            await library.add_favourite("user-1", str(uuid.uuid4()))

    async def test_remove_missing_favourite(self, library: LibraryService) -> None:
        song = (await library.list_playlists("user-1"))[0].songs[0]

        with pytest.raises(EntityNotFoundException):
            await library.remove_favourite("user-1", str(song.id))

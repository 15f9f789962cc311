"""Domain ports (interfaces) for dependency inversion."""

from abc import ABC, abstractmethod
from datetime import datetime
from typing import Any

from soundshelf.domain.entities import Favourite, Playlist, Song, Source
from soundshelf.domain.value_objects import PlaylistId, SongId, SourceId


class ISourceRepository(ABC):
    """Repository interface for Source entities."""

    @abstractmethod
    async def add(self, source: Source) -> None:
        """Add a new source.

        Raises:
            PersistenceConflictError: If location_uri is already registered
        """
        pass

    @abstractmethod
    async def get_by_id(self, source_id: SourceId) -> Source | None:
        """Get a source by ID."""
        pass

    @abstractmethod
    async def get_by_location(self, location_uri: str) -> Source | None:
        """Get a source by its exact (canonical) location URI."""
        pass

    @abstractmethod
    async def touch_last_synced(self, source_id: SourceId, synced_at: datetime) -> None:
        """Update only the last_synced_at marker."""
        pass

    @abstractmethod
    async def list_all(self, limit: int = 100, offset: int = 0) -> list[Source]:
        """List sources, newest first."""
        pass


class IPlaylistRepository(ABC):
    """Repository interface for Playlist entities."""

    @abstractmethod
    async def add(self, playlist: Playlist) -> None:
        """Add a new playlist."""
        pass

    @abstractmethod
    async def get_by_id(self, playlist_id: PlaylistId) -> Playlist | None:
        """Get a playlist by ID."""
        pass

    @abstractmethod
    async def list_by_source_and_user(
        self, source_id: SourceId, user_id: str
    ) -> list[Playlist]:
        """List a user's playlists that point at one source."""
        pass

    @abstractmethod
    async def exists_for_source_and_user(self, source_id: SourceId, user_id: str) -> bool:
        """Check whether the user owns at least one playlist of this source."""
        pass

    @abstractmethod
    async def list_by_user(self, user_id: str) -> list[Playlist]:
        """List all playlists owned by a user."""
        pass

    @abstractmethod
    async def count_by_sources(self, source_ids: list[SourceId]) -> dict[SourceId, int]:
        """Count playlists per source over all users (sources without any are absent)."""
        pass

    @abstractmethod
    async def delete(self, playlist_id: PlaylistId) -> None:
        """Delete a playlist (songs cascade)."""
        pass


class ISongRepository(ABC):
    """Repository interface for Song entities."""

    @abstractmethod
    async def add(self, song: Song) -> None:
        """Add a new song.

        Raises:
            PersistenceConflictError: If unique_link already exists
        """
        pass

    @abstractmethod
    async def get_by_id(self, song_id: SongId) -> Song | None:
        """Get a song by ID."""
        pass

    @abstractmethod
    async def get_by_unique_link(self, unique_link: str) -> Song | None:
        """Get a song by its unique link."""
        pass

    @abstractmethod
    async def update_duration(self, song_id: SongId, duration_seconds: int) -> None:
        """Store the real duration of a song."""
        pass

    @abstractmethod
    async def list_by_playlist(self, playlist_id: PlaylistId) -> list[Song]:
        """List songs of a playlist ordered by title."""
        pass

    @abstractmethod
    async def list_by_ids(self, song_ids: list[SongId]) -> list[Song]:
        """Get several songs at once (missing IDs are ignored)."""
        pass


class IFavouriteRepository(ABC):
    """Repository interface for Favourite entities."""

    @abstractmethod
    async def add(self, favourite: Favourite) -> None:
        """Add a favourite.

        Raises:
            PersistenceConflictError: If the pair already exists
        """
        pass

    @abstractmethod
    async def get(self, user_id: str, song_id: SongId) -> Favourite | None:
        """Get a favourite by (user, song)."""
        pass

    @abstractmethod
    async def remove(self, user_id: str, song_id: SongId) -> bool:
        """Remove a favourite. Returns False if it did not exist."""
        pass

    @abstractmethod
    async def list_by_user(self, user_id: str) -> list[Favourite]:
        """List a user's favourites, newest first."""
        pass


# The scanner only needs "list this folder". Keeping the port that small means
# tests can fake a whole repository tree with a dict.
class IRepositoryContentClient(ABC):
    """Port for a remote repository contents listing API."""

    @abstractmethod
    async def list_contents(
        self, owner: str, repo: str, path: str = ""
    ) -> list[dict[str, Any]]:
        """List one folder.

        Returns:
            Entries shaped like ``{name, path, type: "file"|"dir", download_url, size}``

        Raises:
            RemoteFetchFailedError: On non-2xx responses or transport errors
        """
        pass


class ISourceListClient(ABC):
    """Port for fetching a plain-text list of repository URLs."""

    @abstractmethod
    async def fetch_text(self, url: str) -> str:
        """Fetch a text resource.

        Raises:
            ExternalServiceError: If the resource cannot be fetched
        """
        pass


__all__ = [
    "IFavouriteRepository",
    "IPlaylistRepository",
    "IRepositoryContentClient",
    "ISongRepository",
    "ISourceListClient",
    "ISourceRepository",
]

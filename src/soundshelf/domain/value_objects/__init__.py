"""Domain value objects."""

from dataclasses import dataclass
from typing import Self
from uuid import UUID, uuid4

from soundshelf.domain.value_objects.naming import (
    AUDIO_EXTENSIONS,
    format_playlist_name,
    format_song_title,
    is_audio_file,
)
from soundshelf.domain.value_objects.repository_location import RepositoryLocation
from soundshelf.domain.value_objects.unique_link import (
    PLAY_PATH,
    decode_unique_link,
    derive_unique_link,
    extract_token,
)


# All entity IDs share the same shape: a frozen wrapper around a UUID so a
# SongId can never be passed where a PlaylistId is expected.
@dataclass(frozen=True)
class _EntityId:
    value: UUID

    @classmethod
    def generate(cls) -> Self:
        """Generate a new random ID."""
        return cls(uuid4())

    @classmethod
    def from_string(cls, value: str) -> Self:
        """Parse an ID from its string form.

        Raises:
            ValueError: If value is not a valid UUID
        """
        return cls(UUID(str(value)))

    def __str__(self) -> str:
        return str(self.value)


@dataclass(frozen=True)
class SourceId(_EntityId):
    """Source identifier."""


@dataclass(frozen=True)
class PlaylistId(_EntityId):
    """Playlist identifier."""


@dataclass(frozen=True)
class SongId(_EntityId):
    """Song identifier."""


@dataclass(frozen=True)
class FavouriteId(_EntityId):
    """Favourite identifier."""


__all__ = [
    "AUDIO_EXTENSIONS",
    "FavouriteId",
    "PLAY_PATH",
    "PlaylistId",
    "RepositoryLocation",
    "SongId",
    "SourceId",
    "decode_unique_link",
    "derive_unique_link",
    "extract_token",
    "format_playlist_name",
    "format_song_title",
    "is_audio_file",
]

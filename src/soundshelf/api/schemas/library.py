"""API schemas for playlists, songs and favourites."""

from datetime import datetime

from pydantic import BaseModel, Field

from soundshelf.application.services.library_service import PlaylistWithSongs
from soundshelf.domain.entities import Song


class SongSchema(BaseModel):
    """A song as shown in the library."""

    id: str
    playlist_id: str
    title: str
    duration_seconds: int = Field(..., description="0 until playback reported it")
    file_uri: str
    cover_art_uri: str | None = None
    unique_link: str

    @classmethod
    def from_entity(cls, song: Song) -> "SongSchema":
        return cls(
            id=str(song.id),
            playlist_id=str(song.playlist_id),
            title=song.title,
            duration_seconds=song.duration_seconds,
            file_uri=song.file_uri,
            cover_art_uri=song.cover_art_uri,
            unique_link=song.unique_link,
        )


class PlaylistSchema(BaseModel):
    """A user's playlist with its songs."""

    id: str
    source_id: str
    name: str
    folder_path: str
    created_at: datetime
    songs: list[SongSchema]

    @classmethod
    def from_view(cls, view: PlaylistWithSongs) -> "PlaylistSchema":
        playlist = view.playlist
        return cls(
            id=str(playlist.id),
            source_id=str(playlist.source_id),
            name=playlist.name,
            folder_path=playlist.folder_path,
            created_at=playlist.created_at,
            songs=[SongSchema.from_entity(song) for song in view.songs],
        )


class DurationReportBody(BaseModel):
    """Duration measured by the player."""

    duration_seconds: int = Field(..., ge=0, description="True media duration in seconds")

"""Domain entities."""

from collections.abc import Iterable, Iterator
from dataclasses import dataclass, field
from datetime import UTC, datetime, timedelta

from soundshelf.domain.value_objects import (
    FavouriteId,
    PlaylistId,
    SongId,
    SourceId,
)

# Songs are created before playback ever saw the file, so the real length is
# unknown. 0 means "unknown" until the player reports the true duration.
UNKNOWN_DURATION_SECONDS = 0


def _utc_now() -> datetime:
    return datetime.now(UTC)


# A Source is SHARED across all users: one row per repository, found by
# location_uri (canonical https://github.com/owner/repo). Users never own a
# Source, they own Playlists pointing at it. created_by is only provenance.
@dataclass
class Source:
    """A registered GitHub repository that music is imported from."""

    id: SourceId
    name: str
    location_uri: str
    created_by: str | None = None
    created_at: datetime = field(default_factory=_utc_now)
    last_synced_at: datetime = field(default_factory=_utc_now)
    is_active: bool = True

    def __post_init__(self) -> None:
        """Validate source data."""
        if not self.name or not self.name.strip():
            raise ValueError("Source name cannot be empty")
        if not self.location_uri or not self.location_uri.strip():
            raise ValueError("Source location cannot be empty")

    def mark_synced(self, now: datetime | None = None) -> datetime:
        """Advance last_synced_at.

        The marker is strictly increasing: if the clock has not moved past the
        stored value (coarse clocks, back-to-back refreshes) it is bumped by
        one microsecond instead.
        """
        now = now or _utc_now()
        previous = self.last_synced_at
        if previous.tzinfo is None:
            previous = previous.replace(tzinfo=UTC)
        if now <= previous:
            now = previous + timedelta(microseconds=1)
        self.last_synced_at = now
        return now


# Playlists are per-user. Two users importing the same repository each get
# their own rows; (source_id, folder_path) is what makes them "the same"
# logical playlist.
@dataclass
class Playlist:
    """A user's playlist materialised from one repository folder."""

    id: PlaylistId
    user_id: str
    source_id: SourceId
    name: str
    folder_path: str
    created_at: datetime = field(default_factory=_utc_now)

    def __post_init__(self) -> None:
        """Validate playlist data."""
        if not self.name or not self.name.strip():
            raise ValueError("Playlist name cannot be empty")
        if not self.user_id:
            raise ValueError("Playlist must belong to a user")
        if not self.folder_path:
            raise ValueError("Playlist folder path cannot be empty")


@dataclass
class Song:
    """A playable audio file. Belongs to exactly one playlist."""

    id: SongId
    playlist_id: PlaylistId
    title: str
    file_uri: str
    unique_link: str
    duration_seconds: int = UNKNOWN_DURATION_SECONDS
    cover_art_uri: str | None = None
    created_at: datetime = field(default_factory=_utc_now)
    updated_at: datetime = field(default_factory=_utc_now)

    def __post_init__(self) -> None:
        """Validate song data."""
        if not self.title or not self.title.strip():
            raise ValueError("Song title cannot be empty")
        if self.duration_seconds < 0:
            raise ValueError("Duration cannot be negative")
        if not self.unique_link:
            raise ValueError("Song unique link cannot be empty")

    @property
    def has_known_duration(self) -> bool:
        """True once playback reported a real duration."""
        return self.duration_seconds != UNKNOWN_DURATION_SECONDS

    def update_duration(self, seconds: int, tolerance: int = 0) -> bool:
        """Store a reported duration if it differs by more than tolerance.

        Returns:
            True if the duration changed
        """
        if seconds < 0:
            raise ValueError("Duration cannot be negative")
        if self.has_known_duration and abs(seconds - self.duration_seconds) <= tolerance:
            return False
        if seconds == self.duration_seconds:
            return False
        self.duration_seconds = seconds
        self.updated_at = _utc_now()
        return True


@dataclass
class Favourite:
    """A user's favourite song. Unique per (user_id, song_id)."""

    id: FavouriteId
    user_id: str
    song_id: SongId
    created_at: datetime = field(default_factory=_utc_now)


# =============================================================================
# Scan catalog
# Produced by the repository scanner, consumed by import and refresh. Nothing
# here is persisted.
# =============================================================================


@dataclass(frozen=True)
class ScannedSong:
    """An audio file found in a repository folder."""

    name: str
    path: str
    download_uri: str
    size_bytes: int = 0


@dataclass(frozen=True)
class PlaylistCandidate:
    """A folder with at least one playable audio file, not yet persisted."""

    name: str
    path: str
    songs: tuple[ScannedSong, ...]


@dataclass(frozen=True)
class Catalog:
    """Result of scanning one repository."""

    playlists: tuple[PlaylistCandidate, ...]
    # Listed fine but held nothing playable
    empty_directories: tuple[str, ...] = ()
    # (path, reason) of folders whose listing failed
    failed_directories: tuple[tuple[str, str], ...] = ()

    def __len__(self) -> int:
        return len(self.playlists)

    def __iter__(self) -> Iterator[PlaylistCandidate]:
        return iter(self.playlists)

    @property
    def song_count(self) -> int:
        """Total number of songs across all candidates."""
        return sum(len(p.songs) for p in self.playlists)

    def fetch_errors(self, exclude: Iterable[str] = ()) -> list[str]:
        """Report lines for failed folders, leaving out the paths in exclude."""
        return folder_fetch_errors(self.failed_directories, exclude)


# A failed folder listing costs one playlist, so it is reported next to the
# per-item write failures of the same import.
def folder_fetch_errors(
    failed_directories: Iterable[tuple[str, str]], exclude: Iterable[str] = ()
) -> list[str]:
    """Format failed folder listings as per-item error messages."""
    skip = set(exclude)
    return [
        f"Skipped folder '{path}': {reason}"
        for path, reason in failed_directories
        if path not in skip
    ]


__all__ = [
    "UNKNOWN_DURATION_SECONDS",
    "Catalog",
    "Favourite",
    "Playlist",
    "PlaylistCandidate",
    "ScannedSong",
    "Song",
    "Source",
    "folder_fetch_errors",
]

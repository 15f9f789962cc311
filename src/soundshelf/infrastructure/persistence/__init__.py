"""Infrastructure persistence layer."""

from .database import Database
from .models import (
    Base,
    FavouriteModel,
    PlaylistModel,
    SongModel,
    SourceModel,
)
from .repositories import (
    FavouriteRepository,
    PlaylistRepository,
    SongRepository,
    SourceRepository,
)

__all__ = [
    # Database
    "Database",
    "Base",
    # Models
    "SourceModel",
    "PlaylistModel",
    "SongModel",
    "FavouriteModel",
    # Repositories
    "SourceRepository",
    "PlaylistRepository",
    "SongRepository",
    "FavouriteRepository",
]

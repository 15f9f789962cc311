"""Application services."""

from soundshelf.application.services.catalog_writer import CatalogWriter, WriteResult
from soundshelf.application.services.library_service import (
    LibraryService,
    PlaylistWithSongs,
    SourceWithPlaylistCount,
    parse_entity_id,
)
from soundshelf.application.services.repository_scanner import RepositoryScanner
from soundshelf.application.services.song_placement_service import (
    PlacementOutcome,
    SongPlacementService,
)
from soundshelf.application.services.source_service import SourceService

__all__ = [
    "CatalogWriter",
    "LibraryService",
    "PlacementOutcome",
    "PlaylistWithSongs",
    "RepositoryScanner",
    "SongPlacementService",
    "SourceService",
    "SourceWithPlaylistCount",
    "WriteResult",
    "parse_entity_id",
]

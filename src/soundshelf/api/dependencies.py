"""Dependency injection for API endpoints."""

import logging
from collections.abc import AsyncGenerator
from typing import cast

from fastapi import Depends, Header, HTTPException, Request
from sqlalchemy.ext.asyncio import AsyncSession

from soundshelf.application.services.library_service import LibraryService
from soundshelf.application.services.repository_scanner import RepositoryScanner
from soundshelf.application.use_cases.bulk_import_sources import BulkImportSourcesUseCase
from soundshelf.application.use_cases.import_source import ImportSourceUseCase
from soundshelf.application.use_cases.refresh_source import RefreshSourceUseCase
from soundshelf.config import Settings, get_settings
from soundshelf.domain.exceptions import AuthenticationError
from soundshelf.domain.ports import IRepositoryContentClient, ISourceListClient
from soundshelf.infrastructure.persistence.database import Database
from soundshelf.infrastructure.persistence.repositories import (
    FavouriteRepository,
    PlaylistRepository,
    SongRepository,
    SourceRepository,
)

logger = logging.getLogger(__name__)


def get_database(request: Request) -> Database:
    """Get the Database created during startup (see lifecycle.lifespan)."""
    if not hasattr(request.app.state, "db"):
        raise HTTPException(status_code=503, detail="Database not initialized")
    return cast(Database, request.app.state.db)


# One session per request. Every dependency below that asks for it gets the SAME
# session (FastAPI caches dependencies per request), so repositories built for
# one endpoint all share one transaction. Commit happens when the request ends.
async def get_db_session(
    db: Database = Depends(get_database),
) -> AsyncGenerator[AsyncSession, None]:
    """Get database session from app state."""
    async with db.session_scope() as session:
        yield session


# Hey future me - we do NOT do auth here. The reverse proxy / auth gateway in
# front of us validates the user and forwards the id in X-User-Id. No header
# means the request didn't come through the gateway.
async def get_current_user(
    x_user_id: str | None = Header(default=None, alias="X-User-Id"),
) -> str:
    """Get the authenticated user id forwarded by the auth layer.

    Raises:
        AuthenticationError: Header missing or blank (401)
    """
    if x_user_id is None or not x_user_id.strip():
        raise AuthenticationError("Missing X-User-Id header")
    return x_user_id.strip()


def get_github_client(request: Request) -> IRepositoryContentClient:
    """Get the shared GitHub contents client from app state."""
    if not hasattr(request.app.state, "github_client"):
        raise HTTPException(status_code=503, detail="GitHub client not initialized")
    return cast(IRepositoryContentClient, request.app.state.github_client)


def get_source_list_client(request: Request) -> ISourceListClient:
    """Get the shared source list client from app state."""
    if not hasattr(request.app.state, "source_list_client"):
        raise HTTPException(status_code=503, detail="Source list client not initialized")
    return cast(ISourceListClient, request.app.state.source_list_client)


def get_source_repository(
    session: AsyncSession = Depends(get_db_session),
) -> SourceRepository:
    """Get source repository instance."""
    return SourceRepository(session)


def get_playlist_repository(
    session: AsyncSession = Depends(get_db_session),
) -> PlaylistRepository:
    """Get playlist repository instance."""
    return PlaylistRepository(session)


def get_song_repository(
    session: AsyncSession = Depends(get_db_session),
) -> SongRepository:
    """Get song repository instance."""
    return SongRepository(session)


def get_favourite_repository(
    session: AsyncSession = Depends(get_db_session),
) -> FavouriteRepository:
    """Get favourite repository instance."""
    return FavouriteRepository(session)


def get_repository_scanner(
    client: IRepositoryContentClient = Depends(get_github_client),
    settings: Settings = Depends(get_settings),
) -> RepositoryScanner:
    """Get repository scanner bound to the shared GitHub client."""
    return RepositoryScanner(client, concurrency=settings.library.scan_concurrency)


def get_import_source_use_case(
    source_repository: SourceRepository = Depends(get_source_repository),
    playlist_repository: PlaylistRepository = Depends(get_playlist_repository),
    song_repository: SongRepository = Depends(get_song_repository),
    scanner: RepositoryScanner = Depends(get_repository_scanner),
    settings: Settings = Depends(get_settings),
) -> ImportSourceUseCase:
    """Get import source use case instance."""
    return ImportSourceUseCase(
        source_repository=source_repository,
        playlist_repository=playlist_repository,
        song_repository=song_repository,
        scanner=scanner,
        public_base_url=settings.library.public_base_url,
    )


def get_refresh_source_use_case(
    source_repository: SourceRepository = Depends(get_source_repository),
    playlist_repository: PlaylistRepository = Depends(get_playlist_repository),
    song_repository: SongRepository = Depends(get_song_repository),
    scanner: RepositoryScanner = Depends(get_repository_scanner),
    settings: Settings = Depends(get_settings),
) -> RefreshSourceUseCase:
    """Get refresh source use case instance."""
    return RefreshSourceUseCase(
        source_repository=source_repository,
        playlist_repository=playlist_repository,
        song_repository=song_repository,
        scanner=scanner,
        public_base_url=settings.library.public_base_url,
    )


# Bulk import does NOT use the request session: each repository gets its own
# session_scope() so one failure can't roll back the others.
def get_bulk_import_use_case(
    db: Database = Depends(get_database),
    source_list_client: ISourceListClient = Depends(get_source_list_client),
    scanner: RepositoryScanner = Depends(get_repository_scanner),
    settings: Settings = Depends(get_settings),
) -> BulkImportSourcesUseCase:
    """Get bulk import use case instance."""

    def import_use_case_factory(session: AsyncSession) -> ImportSourceUseCase:
        return ImportSourceUseCase(
            source_repository=SourceRepository(session),
            playlist_repository=PlaylistRepository(session),
            song_repository=SongRepository(session),
            scanner=scanner,
            public_base_url=settings.library.public_base_url,
        )

    return BulkImportSourcesUseCase(
        source_list_client=source_list_client,
        session_scope=db.session_scope,
        import_use_case_factory=import_use_case_factory,
        delay_seconds=settings.library.bulk_import_delay_seconds,
    )


def get_library_service(
    source_repository: SourceRepository = Depends(get_source_repository),
    playlist_repository: PlaylistRepository = Depends(get_playlist_repository),
    song_repository: SongRepository = Depends(get_song_repository),
    favourite_repository: FavouriteRepository = Depends(get_favourite_repository),
    settings: Settings = Depends(get_settings),
) -> LibraryService:
    """Get library service instance."""
    return LibraryService(
        source_repository=source_repository,
        playlist_repository=playlist_repository,
        song_repository=song_repository,
        favourite_repository=favourite_repository,
        public_base_url=settings.library.public_base_url,
        duration_tolerance_seconds=settings.library.duration_tolerance_seconds,
    )

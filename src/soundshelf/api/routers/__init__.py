"""API router initialization."""

# Main router, mounted at /api in main.py. Each sub-router gets its prefix here,
# so endpoints become /api/sources, /api/playlists/{id}, /api/songs/play/{token}...

from fastapi import APIRouter

from soundshelf.api.routers import favourites, health, playlists, songs, sources

api_router = APIRouter()

api_router.include_router(sources.router, prefix="/sources", tags=["Sources"])
api_router.include_router(playlists.router, prefix="/playlists", tags=["Playlists"])
api_router.include_router(songs.router, prefix="/songs", tags=["Songs"])
api_router.include_router(favourites.router, prefix="/favourites", tags=["Favourites"])
api_router.include_router(health.router, prefix="/health", tags=["Health"])

__all__ = [
    "api_router",
    "favourites",
    "health",
    "playlists",
    "songs",
    "sources",
]

"""Playlist endpoints (always scoped to the calling user)."""

from fastapi import APIRouter, Depends, Response, status

from soundshelf.api.dependencies import get_current_user, get_library_service
from soundshelf.api.schemas.library import PlaylistSchema
from soundshelf.application.services.library_service import LibraryService

router = APIRouter()


@router.get("", response_model=list[PlaylistSchema])
async def list_playlists(
    user_id: str = Depends(get_current_user),
    library: LibraryService = Depends(get_library_service),
) -> list[PlaylistSchema]:
    """List the caller's playlists with their songs."""
    views = await library.list_playlists(user_id)
    return [PlaylistSchema.from_view(view) for view in views]


@router.get("/{playlist_id}", response_model=PlaylistSchema)
async def get_playlist(
    playlist_id: str,
    user_id: str = Depends(get_current_user),
    library: LibraryService = Depends(get_library_service),
) -> PlaylistSchema:
    """Get one of the caller's playlists."""
    return PlaylistSchema.from_view(await library.get_playlist(user_id, playlist_id))


@router.delete("/{playlist_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_playlist(
    playlist_id: str,
    user_id: str = Depends(get_current_user),
    library: LibraryService = Depends(get_library_service),
) -> Response:
    """Delete one of the caller's playlists and its songs."""
    await library.delete_playlist(user_id, playlist_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)

"""Favourite endpoints."""

from fastapi import APIRouter, Depends, Response, status

from soundshelf.api.dependencies import get_current_user, get_library_service
from soundshelf.api.schemas.library import SongSchema
from soundshelf.application.services.library_service import LibraryService

router = APIRouter()


@router.get("", response_model=list[SongSchema])
async def list_favourites(
    user_id: str = Depends(get_current_user),
    library: LibraryService = Depends(get_library_service),
) -> list[SongSchema]:
    """List the caller's favourite songs."""
    songs = await library.list_favourites(user_id)
    return [SongSchema.from_entity(song) for song in songs]


@router.post("/{song_id}", status_code=status.HTTP_204_NO_CONTENT)
async def add_favourite(
    song_id: str,
    user_id: str = Depends(get_current_user),
    library: LibraryService = Depends(get_library_service),
) -> Response:
    """Mark a song as favourite (idempotent)."""
    await library.add_favourite(user_id, song_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.delete("/{song_id}", status_code=status.HTTP_204_NO_CONTENT)
async def remove_favourite(
    song_id: str,
    user_id: str = Depends(get_current_user),
    library: LibraryService = Depends(get_library_service),
) -> Response:
    """Unmark a favourite."""
    await library.remove_favourite(user_id, song_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)

"""Song endpoints: unique link resolution and duration reports."""

from fastapi import APIRouter, Depends

from soundshelf.api.dependencies import get_current_user, get_library_service
from soundshelf.api.schemas.library import DurationReportBody, SongSchema
from soundshelf.application.services.library_service import LibraryService

router = APIRouter()


# Shareable links are public: anyone holding the link may resolve it, no user
# header needed.
@router.get("/play/{token}", response_model=SongSchema)
async def resolve_song_link(
    token: str,
    library: LibraryService = Depends(get_library_service),
) -> SongSchema:
    """Resolve a song from the token of its unique link."""
    return SongSchema.from_entity(await library.resolve_unique_link(token))


@router.put("/{song_id}/duration", response_model=SongSchema)
async def report_song_duration(
    song_id: str,
    body: DurationReportBody,
    _user_id: str = Depends(get_current_user),
    library: LibraryService = Depends(get_library_service),
) -> SongSchema:
    """Record the duration the player measured for a song."""
    song = await library.report_duration(song_id, body.duration_seconds)
    return SongSchema.from_entity(song)

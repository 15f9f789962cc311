"""Source endpoints: import, bulk import, refresh and listing."""

import logging

from fastapi import APIRouter, Depends, Query, status

from soundshelf.api.dependencies import (
    get_bulk_import_use_case,
    get_current_user,
    get_import_source_use_case,
    get_library_service,
    get_refresh_source_use_case,
)
from soundshelf.api.schemas.sources import (
    BulkImportBody,
    BulkImportReportSchema,
    ImportReportSchema,
    ImportSourceBody,
    RefreshReportSchema,
    SourceSchema,
)
from soundshelf.application.services.library_service import LibraryService
from soundshelf.application.use_cases.bulk_import_sources import (
    BulkImportRequest,
    BulkImportSourcesUseCase,
)
from soundshelf.application.use_cases.import_source import (
    ImportSourceRequest,
    ImportSourceUseCase,
)
from soundshelf.application.use_cases.refresh_source import (
    RefreshSourceRequest,
    RefreshSourceUseCase,
)

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("", response_model=list[SourceSchema])
async def list_sources(
    limit: int = Query(100, ge=1, le=500),
    offset: int = Query(0, ge=0),
    _user_id: str = Depends(get_current_user),
    library: LibraryService = Depends(get_library_service),
) -> list[SourceSchema]:
    """List all registered sources, newest first, with their playlist counts."""
    views = await library.list_sources(limit=limit, offset=offset)
    return [SourceSchema.from_entity(view.source, view.playlist_count) for view in views]


# Fatal outcomes come back as errors via the exception handlers (422 invalid
# URL / nothing playable, 409 already imported). A 201 can still carry
# per_item_errors - partial success is a success.
@router.post("", response_model=ImportReportSchema, status_code=status.HTTP_201_CREATED)
async def import_source(
    body: ImportSourceBody,
    user_id: str = Depends(get_current_user),
    use_case: ImportSourceUseCase = Depends(get_import_source_use_case),
) -> ImportReportSchema:
    """Import a GitHub repository into the caller's library."""
    report = await use_case.execute(
        ImportSourceRequest(
            location_uri=body.location_uri,
            user_id=user_id,
            display_name=body.name,
        )
    )
    return ImportReportSchema.from_report(report)


# Hey future me - this runs INLINE and sleeps between repositories, so a list of
# 50 repos keeps the request open for a minute or more. Fine for a personal
# library; put it behind a job queue before exposing it to many users.
@router.post("/bulk-import", response_model=BulkImportReportSchema)
async def bulk_import_sources(
    body: BulkImportBody,
    user_id: str = Depends(get_current_user),
    use_case: BulkImportSourcesUseCase = Depends(get_bulk_import_use_case),
) -> BulkImportReportSchema:
    """Import every repository listed in a text resource."""
    report = await use_case.execute(
        BulkImportRequest(source_list_url=body.source_list_url, user_id=user_id)
    )
    return BulkImportReportSchema.from_report(report)


@router.post("/{source_id}/refresh", response_model=RefreshReportSchema)
async def refresh_source(
    source_id: str,
    user_id: str = Depends(get_current_user),
    use_case: RefreshSourceUseCase = Depends(get_refresh_source_use_case),
) -> RefreshReportSchema:
    """Import folders added to the repository since the last sync."""
    report = await use_case.execute(
        RefreshSourceRequest(source_id=source_id, user_id=user_id)
    )
    return RefreshReportSchema.from_report(report)

"""API schemas for sources, imports and refreshes."""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field

from soundshelf.application.use_cases.bulk_import_sources import (
    BulkImportItemResult,
    BulkImportReport,
)
from soundshelf.application.use_cases.import_source import ImportReport
from soundshelf.application.use_cases.refresh_source import RefreshReport
from soundshelf.domain.entities import Source


class ImportSourceBody(BaseModel):
    """Request schema for importing a repository."""

    location_uri: str = Field(
        ...,
        min_length=1,
        description="GitHub repository URL, e.g. https://github.com/alice/mymusic",
    )
    name: str | None = Field(
        default=None,
        max_length=255,
        description="Display name for a new source (defaults to owner/repo)",
    )


class BulkImportBody(BaseModel):
    """Request schema for a bulk import."""

    source_list_url: str = Field(
        ..., min_length=1, description="URL of a text resource listing repository URLs"
    )


class SourceSchema(BaseModel):
    """A registered source."""

    model_config = ConfigDict(from_attributes=True)

    id: str
    name: str
    location_uri: str
    created_by: str | None
    created_at: datetime
    last_synced_at: datetime
    is_active: bool
    playlist_count: int = 0

    @classmethod
    def from_entity(cls, source: Source, playlist_count: int = 0) -> "SourceSchema":
        return cls(
            id=str(source.id),
            name=source.name,
            location_uri=source.location_uri,
            created_by=source.created_by,
            created_at=source.created_at,
            last_synced_at=source.last_synced_at,
            is_active=source.is_active,
            playlist_count=playlist_count,
        )


class ImportReportSchema(BaseModel):
    """Result of an import."""

    source_id: str
    source_name: str
    location_uri: str
    source_created: bool
    playlists_created: int
    songs_created: int
    songs_skipped: int
    per_item_errors: list[str]
    success: bool

    @classmethod
    def from_report(cls, report: ImportReport) -> "ImportReportSchema":
        return cls(
            source_id=report.source_id,
            source_name=report.source_name,
            location_uri=report.location_uri,
            source_created=report.source_created,
            playlists_created=report.playlists_created,
            songs_created=report.songs_created,
            songs_skipped=report.songs_skipped,
            per_item_errors=list(report.per_item_errors),
            success=report.success,
        )


class RefreshReportSchema(BaseModel):
    """Result of a refresh."""

    source_id: str
    last_synced_at: datetime
    playlists_created: int
    songs_created: int
    songs_skipped: int
    per_item_errors: list[str]
    has_changes: bool

    @classmethod
    def from_report(cls, report: RefreshReport) -> "RefreshReportSchema":
        return cls(
            source_id=report.source_id,
            last_synced_at=report.last_synced_at,
            playlists_created=report.playlists_created,
            songs_created=report.songs_created,
            songs_skipped=report.songs_skipped,
            per_item_errors=list(report.per_item_errors),
            has_changes=report.has_changes,
        )


class BulkImportItemSchema(BaseModel):
    """Outcome of one repository in a bulk import."""

    model_config = ConfigDict(from_attributes=True)

    location_uri: str
    success: bool
    source_id: str | None = None
    playlists_created: int = 0
    songs_created: int = 0
    songs_skipped: int = 0
    error: str | None = None


class BulkImportReportSchema(BaseModel):
    """Result of a bulk import."""

    source_list_url: str
    total: int
    succeeded: int
    failed: int
    results: list[BulkImportItemSchema]

    @classmethod
    def from_report(cls, report: BulkImportReport) -> "BulkImportReportSchema":
        return cls(
            source_list_url=report.source_list_url,
            total=report.total,
            succeeded=report.succeeded,
            failed=report.failed,
            results=[_item(result) for result in report.results],
        )


def _item(result: BulkImportItemResult) -> BulkImportItemSchema:
    return BulkImportItemSchema.model_validate(result)

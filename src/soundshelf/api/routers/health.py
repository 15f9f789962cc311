"""Health check endpoints for container probes."""

from datetime import UTC, datetime

from fastapi import APIRouter, Depends, status
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field

from soundshelf import __version__
from soundshelf.api.dependencies import get_database
from soundshelf.infrastructure.persistence.database import Database

router = APIRouter()


class LivenessStatus(BaseModel):
    """Liveness probe response."""

    status: str = Field(description="alive")
    timestamp: str = Field(description="ISO timestamp")
    version: str = Field(default=__version__)


class ReadinessStatus(BaseModel):
    """Readiness probe response."""

    status: str = Field(description="ready or not_ready")
    timestamp: str = Field(description="ISO timestamp")
    database: bool = Field(description="Database answered a ping")


@router.get("", response_model=LivenessStatus)
async def liveness_probe() -> LivenessStatus:
    """200 as long as the process serves requests."""
    return LivenessStatus(status="alive", timestamp=datetime.now(UTC).isoformat())


# Imports need the database for every step, so "ready" means exactly "the
# database answers". GitHub being down only fails individual imports.
@router.get("/ready", response_model=ReadinessStatus)
async def readiness_probe(db: Database = Depends(get_database)) -> JSONResponse:
    """200 when the database answers, 503 otherwise."""
    database_ok = await db.ping()
    payload = ReadinessStatus(
        status="ready" if database_ok else "not_ready",
        timestamp=datetime.now(UTC).isoformat(),
        database=database_ok,
    )
    return JSONResponse(
        status_code=status.HTTP_200_OK if database_ok else status.HTTP_503_SERVICE_UNAVAILABLE,
        content=payload.model_dump(),
    )

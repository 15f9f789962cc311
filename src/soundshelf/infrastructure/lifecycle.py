"""Application lifecycle management for startup and shutdown tasks.

Startup: logging, SQLite path check, database (tables are created if missing;
Alembic owns real migrations), shared HTTP clients. Everything routes need is
stored on ``app.state``. Shutdown closes the clients and disposes the engine.
"""

import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI

from soundshelf.config import Settings, get_settings
from soundshelf.domain.exceptions import ConfigurationError
from soundshelf.infrastructure.integrations import GitHubContentClient, HttpSourceListClient
from soundshelf.infrastructure.observability import configure_logging
from soundshelf.infrastructure.persistence import Database
from soundshelf.infrastructure.rate_limiter import get_github_limiter

logger = logging.getLogger(__name__)


# Runs BEFORE the engine exists. SQLite needs to create -journal/-wal files
# next to the .db, so the directory must be writable, not just the file.
# We don't pre-create the .db file; SQLite initialises it on first connect.
def _validate_sqlite_path(settings: Settings) -> None:
    """Validate SQLite database path accessibility before engine creation."""
    db_path = settings._get_sqlite_db_path()
    if db_path is None:
        return

    try:
        if db_path.parent and str(db_path.parent) != ".":
            db_path.parent.mkdir(parents=True, exist_ok=True)
            logger.debug("Ensured SQLite parent directory exists: %s", db_path.parent)
    except OSError as exc:
        raise ConfigurationError(
            f"Unable to create SQLite database directory '{db_path.parent}': {exc}. "
            "Update DATABASE__URL or adjust directory permissions."
        ) from exc

    try:
        test_file = db_path.parent / f".{db_path.stem}_write_test"
        test_file.write_bytes(b"test")
        test_file.unlink()
    except OSError as exc:
        raise ConfigurationError(
            f"Unable to write files in database directory '{db_path.parent}': {exc}. "
            "SQLite requires write permissions to create database and journal files."
        ) from exc


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan manager."""
    settings: Settings = getattr(app.state, "settings", None) or get_settings()

    configure_logging(
        log_level=settings.observability.log_level,
        json_format=settings.observability.log_json_format,
        app_name=settings.app_name,
    )
    logger.info("Starting application: %s", settings.app_name)

    db: Database | None = None
    github_client: GitHubContentClient | None = None
    source_list_client: HttpSourceListClient | None = None
    try:
        _validate_sqlite_path(settings)

        db = Database(settings)
        await db.create_tables()
        app.state.db = db
        logger.info("Database initialized: %s", settings.database.url)

        github_client = GitHubContentClient(
            settings.github, rate_limiter=get_github_limiter(settings.github)
        )
        app.state.github_client = github_client
        if not settings.github.token:
            logger.warning(
                "No GITHUB__TOKEN configured - anonymous GitHub access is limited "
                "to 60 requests per hour"
            )

        source_list_client = HttpSourceListClient(settings.github)
        app.state.source_list_client = source_list_client
        app.state.settings = settings

        logger.info("Application startup complete")
        yield
    finally:
        logger.info("Shutting down application")
        if github_client is not None:
            await github_client.close()
        if source_list_client is not None:
            await source_list_client.close()
        if db is not None:
            await db.close()
        logger.info("Application shutdown complete")

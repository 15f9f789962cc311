"""Shared test fixtures.

Hey future me - application and repository tests run against a REAL SQLite
file (one per test, under tmp_path), not mocks. The savepoint-per-insert
behaviour and the UNIQUE constraints are the whole point of the import engine,
and only a real database exercises them. GitHub is always faked.
"""

from collections.abc import AsyncGenerator, Callable
from pathlib import Path
from typing import Any

import pytest
from sqlalchemy.ext.asyncio import AsyncSession

from soundshelf.config import DatabaseSettings, LibrarySettings, Settings
from soundshelf.domain.exceptions import ExternalServiceError, RemoteFetchFailedError
from soundshelf.domain.ports import IRepositoryContentClient, ISourceListClient
from soundshelf.infrastructure.persistence import Database

RAW_BASE = "https://raw.githubusercontent.com"


def dir_entry(path: str) -> dict[str, Any]:
    """A folder entry as returned by the GitHub contents API."""
    return {"name": path.rsplit("/", 1)[-1], "path": path, "type": "dir", "download_url": None}


def file_entry(owner: str, repo: str, path: str, size: int = 1024) -> dict[str, Any]:
    """A file entry as returned by the GitHub contents API."""
    return {
        "name": path.rsplit("/", 1)[-1],
        "path": path,
        "type": "file",
        "size": size,
        "download_url": f"{RAW_BASE}/{owner}/{repo}/main/{path}",
    }


class FakeContentClient(IRepositoryContentClient):
    """In-memory repository tree keyed by (owner, repo, path).

    A value may be a list of entries or an exception to raise. Unknown paths
    behave like GitHub's 404.
    """

    def __init__(self) -> None:
        self.tree: dict[tuple[str, str, str], list[dict[str, Any]] | Exception] = {}
        self.calls: list[tuple[str, str, str]] = []

    def add_repo(
        self,
        owner: str,
        repo: str,
        folders: dict[str, list[str]],
        root_files: tuple[str, ...] = (),
    ) -> None:
        """Register a two-level repository: {folder: [filenames]}."""
        root = [dir_entry(folder) for folder in folders]
        root += [file_entry(owner, repo, name) for name in root_files]
        self.tree[(owner, repo, "")] = root
        for folder, filenames in folders.items():
            self.tree[(owner, repo, folder)] = [
                file_entry(owner, repo, f"{folder}/{name}") for name in filenames
            ]

    async def list_contents(
        self, owner: str, repo: str, path: str = ""
    ) -> list[dict[str, Any]]:
        self.calls.append((owner, repo, path))
        value = self.tree.get((owner, repo, path))
        if value is None:
            raise RemoteFetchFailedError(path, "HTTP 404: Not Found", status_code=404)
        if isinstance(value, Exception):
            raise value
        return value


class FakeSourceListClient(ISourceListClient):
    """Serves fixed text per URL."""

    def __init__(self) -> None:
        self.documents: dict[str, str] = {}

    async def fetch_text(self, url: str) -> str:
        if url not in self.documents:
            raise ExternalServiceError(f"Failed to fetch source list: HTTP 404 for {url}")
        return self.documents[url]


@pytest.fixture
def test_settings(tmp_path: Path) -> Settings:
    """Settings pointing at a throwaway SQLite file."""
    return Settings(
        database=DatabaseSettings(url=f"sqlite+aiosqlite:///{tmp_path / 'test.db'}"),
        library=LibrarySettings(
            public_base_url="http://music.test",
            bulk_import_delay_seconds=0,
        ),
    )


@pytest.fixture
async def db(test_settings: Settings) -> AsyncGenerator[Database, None]:
    """Database with all tables created."""
    database = Database(test_settings)
    await database.create_tables()
    yield database
    await database.close()


@pytest.fixture
async def db_session(db: Database) -> AsyncGenerator[AsyncSession, None]:
    """A session that commits when the test finishes."""
    async with db.session_scope() as session:
        yield session


@pytest.fixture
def content_client() -> FakeContentClient:
    """Empty fake GitHub tree. Use add_repo() to populate it."""
    return FakeContentClient()


@pytest.fixture
def rock_repo(content_client: FakeContentClient) -> FakeContentClient:
    """alice/mymusic with one playable folder, one empty folder and a README."""
    content_client.add_repo(
        "alice",
        "mymusic",
        {
            "Rock_Hits": ["song_one.mp3", "song-two.flac", "cover.jpg"],
            "empty_folder": [],
        },
        root_files=("README.md",),
    )
    return content_client


@pytest.fixture
def source_list_client() -> FakeSourceListClient:
    """Empty fake source list host."""
    return FakeSourceListClient()


@pytest.fixture
def make_entry() -> Callable[..., dict[str, Any]]:
    """Factory for single GitHub file entries."""
    return file_entry

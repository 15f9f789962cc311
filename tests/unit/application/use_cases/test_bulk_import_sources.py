"""Unit tests for BulkImportSourcesUseCase."""

from contextlib import asynccontextmanager
from typing import Any
from unittest.mock import AsyncMock, MagicMock

import pytest
from sqlalchemy import func, select
from sqlalchemy.exc import OperationalError
from sqlalchemy.ext.asyncio import AsyncSession

from soundshelf.application.services.repository_scanner import RepositoryScanner
from soundshelf.application.use_cases.bulk_import_sources import (
    BulkImportRequest,
    BulkImportSourcesUseCase,
)
from soundshelf.application.use_cases.import_source import ImportReport, ImportSourceUseCase
from soundshelf.domain.exceptions import ExternalServiceError, ValidationException
from soundshelf.infrastructure.persistence import (
    Database,
    PlaylistRepository,
    SongRepository,
    SourceModel,
    SourceRepository,
)

LIST_URL = "https://example.com/awesome-music.md"


def _use_case(db: Database, content_client: Any, list_client: Any) -> BulkImportSourcesUseCase:
    def factory(session: AsyncSession) -> ImportSourceUseCase:
        return ImportSourceUseCase(
            source_repository=SourceRepository(session),
            playlist_repository=PlaylistRepository(session),
            song_repository=SongRepository(session),
            scanner=RepositoryScanner(content_client),
        )

    return BulkImportSourcesUseCase(
        source_list_client=list_client,
        session_scope=db.session_scope,
        import_use_case_factory=factory,
        delay_seconds=0,
    )


class TestBulkImportSourcesUseCase:
    """Tests for BulkImportSourcesUseCase.execute."""

    async def test_imports_every_listed_repository(
        self, db: Database, content_client: Any, source_list_client: Any
    ) -> None:
        content_client.add_repo("alice", "mymusic", {"Rock": ["a.mp3"]})
        content_client.add_repo("bob", "jazz", {"Cool": ["b.mp3", "c.mp3"]})
        source_list_client.documents[LIST_URL] = (
            "* https://github.com/alice/mymusic\n"
            "* https://github.com/bob/jazz\n"
            "* https://github.com/alice/mymusic (dup)\n"
        )

        report = await _use_case(db, content_client, source_list_client).execute(
            BulkImportRequest(source_list_url=LIST_URL, user_id="user-1")
        )

        assert report.total == 2
        assert report.succeeded == 2
        assert report.failed == 0
        assert [r.location_uri for r in report.results] == [
            "https://github.com/alice/mymusic",
            "https://github.com/bob/jazz",
        ]
        assert report.results[1].songs_created == 2

    async def test_failures_are_recorded_and_batch_continues(
        self, db: Database, content_client: Any, source_list_client: Any
    ) -> None:
        """Unreachable repo in the middle: the others still get imported and committed."""
        content_client.add_repo("alice", "mymusic", {"Rock": ["a.mp3"]})
        content_client.add_repo("carol", "pop", {"Hits": ["c.mp3"]})
        source_list_client.documents[LIST_URL] = (
            "https://github.com/alice/mymusic https://github.com/ghost/missing "
            "https://github.com/carol/pop"
        )

        report = await _use_case(db, content_client, source_list_client).execute(
            BulkImportRequest(source_list_url=LIST_URL, user_id="user-1")
        )

        assert [r.success for r in report.results] == [True, False, True]
        assert report.results[1].error is not None
        assert report.results[1].source_id is None
        async with db.session_scope() as session:
            count = (
                await session.execute(select(func.count()).select_from(SourceModel))
            ).scalar_one()
        assert count == 2

    async def test_already_imported_repository_is_a_failed_item(
        self, db: Database, content_client: Any, source_list_client: Any
    ) -> None:
        content_client.add_repo("alice", "mymusic", {"Rock": ["a.mp3"]})
        source_list_client.documents[LIST_URL] = "https://github.com/alice/mymusic"
        use_case = _use_case(db, content_client, source_list_client)
        request = BulkImportRequest(source_list_url=LIST_URL, user_id="user-1")
        await use_case.execute(request)

        report = await use_case.execute(request)

        assert report.failed == 1
        assert "already added" in (report.results[0].error or "")

    async def test_shared_repository_without_new_songs_is_not_a_success(
        self, db: Database, rock_repo: Any, source_list_client: Any
    ) -> None:
        """user-2 gets a playlist, but every song already sits in user-1's."""
        source_list_client.documents[LIST_URL] = "https://github.com/alice/mymusic"
        use_case = _use_case(db, rock_repo, source_list_client)
        await use_case.execute(BulkImportRequest(source_list_url=LIST_URL, user_id="user-1"))

        report = await use_case.execute(
            BulkImportRequest(source_list_url=LIST_URL, user_id="user-2")
        )

        item = report.results[0]
        assert item.playlists_created == 1
        assert item.songs_created == 0
        assert item.songs_skipped == 2
        assert item.success is False
        assert report.succeeded == 0
        assert report.failed == 1

    async def test_list_without_urls_raises(
        self, db: Database, content_client: Any, source_list_client: Any
    ) -> None:
        source_list_client.documents[LIST_URL] = "just some prose, no links"

        with pytest.raises(ValidationException):
            await _use_case(db, content_client, source_list_client).execute(
                BulkImportRequest(source_list_url=LIST_URL, user_id="user-1")
            )

    async def test_unfetchable_list_raises(
        self, db: Database, content_client: Any, source_list_client: Any
    ) -> None:
        with pytest.raises(ExternalServiceError):
            await _use_case(db, content_client, source_list_client).execute(
                BulkImportRequest(source_list_url=LIST_URL, user_id="user-1")
            )


class TestBulkImportPacing:
    """Sequencing and error isolation, without a database."""

    @staticmethod
    def _session_scope() -> Any:
        @asynccontextmanager
        async def scope() -> Any:
            yield MagicMock()

        return scope

    async def test_pauses_between_repositories_only(self, source_list_client: Any, mocker) -> None:
        sleep = mocker.patch(
            "soundshelf.application.use_cases.bulk_import_sources.asyncio.sleep",
            new_callable=AsyncMock,
        )
        source_list_client.documents[LIST_URL] = (
            "https://github.com/a/one https://github.com/b/two https://github.com/c/three"
        )
        import_use_case = MagicMock()
        import_use_case.execute = AsyncMock(
            side_effect=lambda request: ImportReport(
                source_id="s", source_name="n", location_uri=request.location_uri
            )
        )

        report = await BulkImportSourcesUseCase(
            source_list_client=source_list_client,
            session_scope=self._session_scope(),
            import_use_case_factory=lambda session: import_use_case,
            delay_seconds=0.5,
        ).execute(BulkImportRequest(source_list_url=LIST_URL, user_id="user-1"))

        assert report.total == 3
        assert sleep.await_count == 2
        sleep.assert_awaited_with(0.5)

    async def test_storage_errors_do_not_stop_the_batch(self, source_list_client: Any) -> None:
        source_list_client.documents[LIST_URL] = "https://github.com/a/one https://github.com/b/two"
        import_use_case = MagicMock()
        import_use_case.execute = AsyncMock(
            side_effect=[
                OperationalError("INSERT", {}, Exception("database is locked")),
                ImportReport(
                    source_id="s",
                    source_name="n",
                    location_uri="https://github.com/b/two",
                    playlists_created=1,
                    songs_created=1,
                ),
            ]
        )

        report = await BulkImportSourcesUseCase(
            source_list_client=source_list_client,
            session_scope=self._session_scope(),
            import_use_case_factory=lambda session: import_use_case,
            delay_seconds=0,
        ).execute(BulkImportRequest(source_list_url=LIST_URL, user_id="user-1"))

        assert [r.success for r in report.results] == [False, True]
        assert report.results[0].error == "Storage error: OperationalError"

"""Unit tests for RepositoryScanner."""

import asyncio
from typing import Any

import pytest

from soundshelf.application.services.repository_scanner import RepositoryScanner
from soundshelf.domain.exceptions import (
    NoPlayableContentError,
    RateLimitExceededError,
    RemoteFetchFailedError,
)
from soundshelf.domain.value_objects import RepositoryLocation

ALICE = RepositoryLocation(owner="alice", repo="mymusic")


class TestRepositoryScannerScan:
    """Tests for RepositoryScanner.scan."""

    async def test_two_level_layout(self, rock_repo: Any) -> None:
        """Rock_Hits becomes one playlist, non-audio files and empty folders are skipped."""
        catalog = await RepositoryScanner(rock_repo).scan(ALICE)

        assert len(catalog) == 1
        candidate = catalog.playlists[0]
        assert candidate.name == "Rock Hits"
        assert candidate.path == "Rock_Hits"
        assert [s.name for s in candidate.songs] == ["Song One", "Song Two"]
        assert [s.path for s in candidate.songs] == [
            "Rock_Hits/song_one.mp3",
            "Rock_Hits/song-two.flac",
        ]
        assert candidate.songs[0].download_uri.endswith("/Rock_Hits/song_one.mp3")
        assert catalog.empty_directories == ("empty_folder",)
        assert catalog.failed_directories == ()

    async def test_root_files_and_deeper_folders_ignored(self, content_client: Any) -> None:
        content_client.add_repo("alice", "mymusic", {"Jazz": ["take_five.mp3"]}, ("intro.mp3",))
        content_client.tree[("alice", "mymusic", "Jazz")].append(
            {"name": "bonus", "path": "Jazz/bonus", "type": "dir", "download_url": None}
        )

        catalog = await RepositoryScanner(content_client).scan(ALICE)

        assert [s.path for c in catalog for s in c.songs] == ["Jazz/take_five.mp3"]
        # Root + one folder, never the third level
        assert ("alice", "mymusic", "Jazz/bonus") not in content_client.calls

    async def test_keeps_root_order_not_completion_order(self, content_client: Any) -> None:
        """Folders listed first in the root come first, even if they answer last."""
        content_client.add_repo(
            "alice",
            "mymusic",
            {"Slow": ["a.mp3"], "Fast": ["b.mp3"], "Medium": ["c.mp3"]},
        )
        delays = {"Slow": 0.05, "Fast": 0.0, "Medium": 0.02}
        original = content_client.list_contents

        async def delayed(owner: str, repo: str, path: str = "") -> list[dict[str, Any]]:
            await asyncio.sleep(delays.get(path, 0))
            return await original(owner, repo, path)

        content_client.list_contents = delayed

        catalog = await RepositoryScanner(content_client, concurrency=3).scan(ALICE)

        assert [c.path for c in catalog] == ["Slow", "Fast", "Medium"]

    async def test_failing_folder_is_skipped(self, content_client: Any) -> None:
        content_client.add_repo("alice", "mymusic", {"Good": ["a.mp3"], "Broken": ["b.mp3"]})
        content_client.tree[("alice", "mymusic", "Broken")] = RemoteFetchFailedError(
            "Broken", "HTTP 500", status_code=500
        )

        catalog = await RepositoryScanner(content_client).scan(ALICE)

        assert [c.path for c in catalog] == ["Good"]
        assert catalog.failed_directories == (("Broken", "Fetching Broken failed: HTTP 500"),)
        assert catalog.empty_directories == ()
        assert catalog.fetch_errors() == [
            "Skipped folder 'Broken': Fetching Broken failed: HTTP 500"
        ]
        assert catalog.fetch_errors(exclude={"Broken"}) == []

    async def test_files_without_download_url_skipped(self, content_client: Any) -> None:
        content_client.add_repo("alice", "mymusic", {"Mixed": ["a.mp3", "b.mp3"]})
        content_client.tree[("alice", "mymusic", "Mixed")][1]["download_url"] = None

        catalog = await RepositoryScanner(content_client).scan(ALICE)

        assert [s.path for s in catalog.playlists[0].songs] == ["Mixed/a.mp3"]

    async def test_nothing_playable_raises(self, content_client: Any) -> None:
        content_client.add_repo("alice", "mymusic", {"Docs": ["readme.txt"]}, ("song.mp3",))

        with pytest.raises(NoPlayableContentError) as exc_info:
            await RepositoryScanner(content_client).scan(ALICE)

        assert exc_info.value.root_unreachable is False
        assert "No audio files found" in exc_info.value.message

    async def test_all_folders_failing_carries_failures(self, content_client: Any) -> None:
        content_client.add_repo("alice", "mymusic", {"A": ["a.mp3"], "B": ["b.mp3"]})
        for folder in ("A", "B"):
            content_client.tree[("alice", "mymusic", folder)] = RemoteFetchFailedError(
                folder, "HTTP 500", status_code=500
            )

        with pytest.raises(NoPlayableContentError) as exc_info:
            await RepositoryScanner(content_client).scan(ALICE)

        assert exc_info.value.root_unreachable is False
        assert [path for path, _ in exc_info.value.failed_directories] == ["A", "B"]

    async def test_unreachable_root_raises(self, content_client: Any) -> None:
        """Unknown repository: the fake answers 404 for the root."""
        with pytest.raises(NoPlayableContentError) as exc_info:
            await RepositoryScanner(content_client).scan(ALICE)

        assert exc_info.value.root_unreachable is True
        assert exc_info.value.location == "https://github.com/alice/mymusic"

    async def test_rate_limited_root_propagates(self, content_client: Any) -> None:
        content_client.tree[("alice", "mymusic", "")] = RateLimitExceededError(
            "GitHub API rate limit exceeded", retry_after=60
        )

        with pytest.raises(RateLimitExceededError):
            await RepositoryScanner(content_client).scan(ALICE)

    async def test_programming_errors_are_not_hidden(self, content_client: Any) -> None:
        content_client.add_repo("alice", "mymusic", {"Good": ["a.mp3"], "Weird": ["b.mp3"]})
        content_client.tree[("alice", "mymusic", "Weird")] = KeyError("boom")

        with pytest.raises(KeyError):
            await RepositoryScanner(content_client).scan(ALICE)

    async def test_concurrency_is_bounded(self, content_client: Any) -> None:
        folders = {f"F{i}": ["a.mp3"] for i in range(6)}
        content_client.add_repo("alice", "mymusic", folders)
        in_flight = 0
        peak = 0
        original = content_client.list_contents

        async def tracking(owner: str, repo: str, path: str = "") -> list[dict[str, Any]]:
            nonlocal in_flight, peak
            if not path:
                return await original(owner, repo, path)
            in_flight += 1
            peak = max(peak, in_flight)
            await asyncio.sleep(0.01)
            in_flight -= 1
            return await original(owner, repo, path)

        content_client.list_contents = tracking

        catalog = await RepositoryScanner(content_client, concurrency=2).scan(ALICE)

        assert len(catalog) == 6
        assert peak <= 2

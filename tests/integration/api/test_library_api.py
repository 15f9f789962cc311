"""Integration tests for the HTTP API.

The whole app runs (lifespan, middleware, exception handlers, real SQLite
under tmp_path). Only GitHub and the source list host are replaced by fakes
through dependency overrides.
"""

from collections.abc import Iterator
from typing import Any

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from soundshelf.api.dependencies import get_github_client, get_source_list_client
from soundshelf.config import Settings, get_settings
from soundshelf.domain.exceptions import RateLimitExceededError
from soundshelf.domain.value_objects import extract_token
from soundshelf.main import create_app

REPO_URL = "https://github.com/alice/mymusic"
USER_1 = {"X-User-Id": "user-1"}
USER_2 = {"X-User-Id": "user-2"}


@pytest.fixture
def app(test_settings: Settings, rock_repo: Any, source_list_client: Any) -> FastAPI:
    """App wired to the test database and fake remote services."""
    app = create_app(test_settings)
    app.dependency_overrides[get_settings] = lambda: test_settings
    app.dependency_overrides[get_github_client] = lambda: rock_repo
    app.dependency_overrides[get_source_list_client] = lambda: source_list_client
    return app


@pytest.fixture
def client(app: FastAPI) -> Iterator[TestClient]:
    """Test client with the lifespan running."""
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def imported(client: TestClient) -> dict[str, Any]:
    """alice/mymusic imported by user-1."""
    response = client.post("/api/sources", json={"location_uri": REPO_URL}, headers=USER_1)
    assert response.status_code == 201
    return response.json()


def _first_playlist(client: TestClient, headers: dict[str, str] = USER_1) -> dict[str, Any]:
    response = client.get("/api/playlists", headers=headers)
    assert response.status_code == 200
    return response.json()[0]


class TestHealth:
    """Health endpoints."""

    def test_liveness(self, client: TestClient) -> None:
        response = client.get("/api/health")

        assert response.status_code == 200
        assert response.json()["status"] == "alive"

    def test_readiness(self, client: TestClient) -> None:
        response = client.get("/api/health/ready")

        assert response.status_code == 200
        assert response.json()["database"] is True

    def test_correlation_id_header(self, client: TestClient) -> None:
        response = client.get("/api/health", headers={"X-Correlation-ID": "trace-me"})

        assert response.headers["X-Correlation-ID"] == "trace-me"


class TestImportEndpoint:
    """POST /api/sources."""

    def test_requires_user(self, client: TestClient) -> None:
        response = client.post("/api/sources", json={"location_uri": REPO_URL})

        assert response.status_code == 401

    def test_import(self, client: TestClient, imported: dict[str, Any]) -> None:
        assert imported["location_uri"] == REPO_URL
        assert imported["source_created"] is True
        assert imported["playlists_created"] == 1
        assert imported["songs_created"] == 2
        assert imported["per_item_errors"] == []
        assert imported["success"] is True

        playlist = _first_playlist(client)
        assert playlist["name"] == "Rock Hits"
        assert [s["title"] for s in playlist["songs"]] == ["Song One", "Song Two"]
        assert all(s["unique_link"].startswith("http://music.test/play/") for s in playlist["songs"])

        sources = client.get("/api/sources", headers=USER_1).json()
        assert [s["location_uri"] for s in sources] == [REPO_URL]
        assert sources[0]["playlist_count"] == 1

    def test_import_twice_conflicts(self, client: TestClient, imported: dict[str, Any]) -> None:
        response = client.post(
            "/api/sources", json={"location_uri": REPO_URL + ".git"}, headers=USER_1
        )

        assert response.status_code == 409
        assert "already added" in response.json()["detail"]

    def test_second_user_gets_own_playlists(
        self, client: TestClient, imported: dict[str, Any]
    ) -> None:
        response = client.post("/api/sources", json={"location_uri": REPO_URL}, headers=USER_2)

        assert response.status_code == 201
        body = response.json()
        assert body["source_id"] == imported["source_id"]
        assert body["songs_skipped"] == 2
        assert _first_playlist(client, USER_2)["songs"] == []

        sources = client.get("/api/sources", headers=USER_2).json()
        assert sources[0]["playlist_count"] == 2

    def test_invalid_url(self, client: TestClient) -> None:
        response = client.post(
            "/api/sources", json={"location_uri": "https://gitlab.com/a/b"}, headers=USER_1
        )

        assert response.status_code == 422
        assert "Invalid GitHub repository URL" in response.json()["detail"]

    def test_missing_body_field(self, client: TestClient) -> None:
        response = client.post("/api/sources", json={}, headers=USER_1)

        assert response.status_code == 422

    def test_unknown_repository(self, client: TestClient) -> None:
        response = client.post(
            "/api/sources", json={"location_uri": "https://github.com/ghost/nothing"}, headers=USER_1
        )

        assert response.status_code == 422
        assert client.get("/api/sources", headers=USER_1).json() == []

    def test_rate_limited(self, client: TestClient, rock_repo: Any) -> None:
        rock_repo.tree[("alice", "mymusic", "")] = RateLimitExceededError(
            "GitHub API rate limit exceeded, try again later", retry_after=30
        )

        response = client.post("/api/sources", json={"location_uri": REPO_URL}, headers=USER_1)

        assert response.status_code == 429
        assert response.headers["Retry-After"] == "30"


class TestRefreshEndpoint:
    """POST /api/sources/{id}/refresh."""

    def test_refresh_without_changes(self, client: TestClient, imported: dict[str, Any]) -> None:
        response = client.post(f"/api/sources/{imported['source_id']}/refresh", headers=USER_1)

        assert response.status_code == 200
        assert response.json()["has_changes"] is False

    def test_refresh_picks_up_new_folder(
        self, client: TestClient, imported: dict[str, Any], rock_repo: Any
    ) -> None:
        rock_repo.add_repo(
            "alice",
            "mymusic",
            {"Rock_Hits": ["song_one.mp3", "song-two.flac"], "Jazz": ["blue.mp3"]},
        )

        response = client.post(f"/api/sources/{imported['source_id']}/refresh", headers=USER_1)

        assert response.status_code == 200
        assert response.json()["playlists_created"] == 1
        assert len(client.get("/api/playlists", headers=USER_1).json()) == 2

    @pytest.mark.parametrize("source_id", ["not-a-uuid", "00000000-0000-0000-0000-000000000000"])
    def test_unknown_source(self, client: TestClient, source_id: str) -> None:
        response = client.post(f"/api/sources/{source_id}/refresh", headers=USER_1)

        assert response.status_code == 404


class TestBulkImportEndpoint:
    """POST /api/sources/bulk-import."""

    def test_bulk_import(
        self, client: TestClient, rock_repo: Any, source_list_client: Any
    ) -> None:
        source_list_client.documents["https://example.com/list.md"] = (
            f"- {REPO_URL}\n- https://github.com/ghost/nothing\n"
        )

        response = client.post(
            "/api/sources/bulk-import",
            json={"source_list_url": "https://example.com/list.md"},
            headers=USER_1,
        )

        assert response.status_code == 200
        body = response.json()
        assert body["total"] == 2
        assert body["succeeded"] == 1
        assert body["failed"] == 1
        assert body["results"][0]["songs_created"] == 2
        assert body["results"][1]["error"]

    def test_unreachable_list(self, client: TestClient) -> None:
        response = client.post(
            "/api/sources/bulk-import",
            json={"source_list_url": "https://example.com/missing.md"},
            headers=USER_1,
        )

        assert response.status_code == 502


class TestPlaylistEndpoints:
    """GET/DELETE /api/playlists."""

    def test_get_and_delete(self, client: TestClient, imported: dict[str, Any]) -> None:
        playlist = _first_playlist(client)

        assert client.get(f"/api/playlists/{playlist['id']}", headers=USER_1).status_code == 200
        assert client.get(f"/api/playlists/{playlist['id']}", headers=USER_2).status_code == 404
        assert client.delete(f"/api/playlists/{playlist['id']}", headers=USER_2).status_code == 404

        assert client.delete(f"/api/playlists/{playlist['id']}", headers=USER_1).status_code == 204
        assert client.get("/api/playlists", headers=USER_1).json() == []


class TestSongEndpoints:
    """Song links, durations and favourites."""

    def test_play_link_is_public(self, client: TestClient, imported: dict[str, Any]) -> None:
        song = _first_playlist(client)["songs"][0]

        response = client.get(f"/api/songs/play/{extract_token(song['unique_link'])}")

        assert response.status_code == 200
        assert response.json()["id"] == song["id"]

    def test_play_link_garbage(self, client: TestClient) -> None:
        assert client.get("/api/songs/play/bm9zbGFzaGVz").status_code == 422

    def test_report_duration(self, client: TestClient, imported: dict[str, Any]) -> None:
        song = _first_playlist(client)["songs"][0]

        response = client.put(
            f"/api/songs/{song['id']}/duration", json={"duration_seconds": 187}, headers=USER_1
        )
        negative = client.put(
            f"/api/songs/{song['id']}/duration", json={"duration_seconds": -3}, headers=USER_1
        )

        assert response.status_code == 200
        assert response.json()["duration_seconds"] == 187
        assert negative.status_code == 422
        assert _first_playlist(client)["songs"][0]["duration_seconds"] == 187

    def test_favourites(self, client: TestClient, imported: dict[str, Any]) -> None:
        song = _first_playlist(client)["songs"][0]

        assert client.post(f"/api/favourites/{song['id']}", headers=USER_1).status_code == 204
        assert client.post(f"/api/favourites/{song['id']}", headers=USER_1).status_code == 204
        favourites = client.get("/api/favourites", headers=USER_1).json()
        assert [s["id"] for s in favourites] == [song["id"]]

        assert client.delete(f"/api/favourites/{song['id']}", headers=USER_1).status_code == 204
        assert client.delete(f"/api/favourites/{song['id']}", headers=USER_1).status_code == 404
        assert client.get("/api/favourites", headers=USER_1).json() == []

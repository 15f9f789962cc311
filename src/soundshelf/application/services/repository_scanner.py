"""Repository scanner - turns a GitHub repository into a Catalog.

Hey future me - the layout contract is TWO levels, nothing more:

    <repo root>/
        Rock_Hits/           -> playlist "Rock Hits"
            song_one.mp3     -> song "Song One"
            song-two.flac    -> song "Song Two"
            deeper/          -> ignored (depth 3 is never listed)
        empty_folder/        -> no audio, silently skipped
        README.md            -> files at the root are ignored

Each top-level folder is listed concurrently (bounded by a semaphore), but the
Catalog is built in ROOT LISTING ORDER, never completion order. A folder whose
listing fails is skipped and recorded in Catalog.failed_directories, so the
import report can name it; only the root listing is mandatory.
"""

import asyncio
import logging
from typing import Any

from soundshelf.domain.entities import Catalog, PlaylistCandidate, ScannedSong
from soundshelf.domain.exceptions import (
    ExternalServiceError,
    NoPlayableContentError,
    RemoteFetchFailedError,
)
from soundshelf.domain.ports import IRepositoryContentClient
from soundshelf.domain.value_objects import (
    RepositoryLocation,
    format_playlist_name,
    format_song_title,
    is_audio_file,
)
from soundshelf.infrastructure.observability.logger_template import log_operation

logger = logging.getLogger(__name__)


class RepositoryScanner:
    """Discovers playlist candidates in a two-level repository tree."""

    def __init__(
        self, content_client: IRepositoryContentClient, concurrency: int = 4
    ) -> None:
        """Initialize scanner.

        Args:
            content_client: Client listing repository folders
            concurrency: Max folder listings in flight at once
        """
        self._client = content_client
        self._concurrency = max(1, concurrency)

    async def scan(self, location: RepositoryLocation) -> Catalog:
        """Scan a repository.

        Args:
            location: Repository to scan

        Returns:
            Catalog with at least one playlist candidate

        Raises:
            NoPlayableContentError: Root unreachable, or no folder holds audio
            RateLimitExceededError: GitHub kept rate limiting the root listing
        """
        async with log_operation(
            logger, "repository_scan", location=location.canonical_url
        ):
            try:
                root_entries = await self._client.list_contents(
                    location.owner, location.repo
                )
            except RemoteFetchFailedError as e:
                raise NoPlayableContentError(
                    location.canonical_url,
                    root_unreachable=True,
                    message=f"Could not read repository {location.slug}: {e.reason}",
                ) from e

            directories = [entry for entry in root_entries if entry.get("type") == "dir"]
            semaphore = asyncio.Semaphore(self._concurrency)

            async def scan_directory(entry: dict[str, Any]) -> PlaylistCandidate | None:
                async with semaphore:
                    return await self._scan_directory(location, entry)

            # gather() returns results in argument order = root order
            results = await asyncio.gather(
                *(scan_directory(entry) for entry in directories),
                return_exceptions=True,
            )

            playlists: list[PlaylistCandidate] = []
            empty: list[str] = []
            failed: list[tuple[str, str]] = []
            for entry, result in zip(directories, results, strict=True):
                path = entry.get("path") or entry.get("name", "")
                if isinstance(result, ExternalServiceError):
                    logger.warning(
                        f"Skipping folder '{path}' in {location.slug}: {result.message}"
                    )
                    failed.append((path, result.message))
                elif isinstance(result, BaseException):
                    # Not a remote failure, that's a bug. Don't hide it.
                    raise result
                elif result is None:
                    empty.append(path)
                else:
                    playlists.append(result)

            if not playlists:
                raise NoPlayableContentError(
                    location.canonical_url, failed_directories=tuple(failed)
                )

            catalog = Catalog(
                playlists=tuple(playlists),
                empty_directories=tuple(empty),
                failed_directories=tuple(failed),
            )
            logger.info(
                f"Scanned {location.slug}: {len(catalog)} playlists, "
                f"{catalog.song_count} songs, {len(empty)} folders without audio, "
                f"{len(failed)} folders failed"
            )
            return catalog

    async def _scan_directory(
        self, location: RepositoryLocation, entry: dict[str, Any]
    ) -> PlaylistCandidate | None:
        """List one top-level folder. Returns None when it holds no audio.

        Raises:
            RemoteFetchFailedError: If the listing fails
            RateLimitExceededError: If GitHub keeps rate limiting
        """
        dirname = entry.get("name", "")
        dirpath = entry.get("path") or dirname

        files = await self._client.list_contents(location.owner, location.repo, dirpath)

        songs: list[ScannedSong] = []
        for item in files:
            if item.get("type") != "file":
                continue
            filename = item.get("name", "")
            if not is_audio_file(filename):
                continue
            download_url = item.get("download_url")
            if not download_url:
                # Submodules and LFS pointers have no raw URL, nothing to play
                logger.debug(f"Skipping {item.get('path')}: no download URL")
                continue
            songs.append(
                ScannedSong(
                    name=format_song_title(filename),
                    path=item.get("path") or f"{dirpath}/{filename}",
                    download_uri=download_url,
                    size_bytes=int(item.get("size") or 0),
                )
            )

        if not songs:
            logger.debug(f"Folder '{dirpath}' has no playable audio, skipping")
            return None

        return PlaylistCandidate(
            name=format_playlist_name(dirname),
            path=dirpath,
            songs=tuple(songs),
        )


__all__ = ["RepositoryScanner"]

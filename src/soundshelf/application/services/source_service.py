"""Resolve-or-create for shared Source records."""

import logging

from soundshelf.domain.entities import Source
from soundshelf.domain.exceptions import PersistenceConflictError
from soundshelf.domain.ports import ISourceRepository
from soundshelf.domain.value_objects import RepositoryLocation, SourceId

logger = logging.getLogger(__name__)


class SourceService:
    """Finds the one Source row for a repository, creating it if needed."""

    def __init__(self, source_repository: ISourceRepository) -> None:
        self._sources = source_repository

    async def find(self, location: RepositoryLocation) -> Source | None:
        """Look up a Source by the location's canonical URL."""
        return await self._sources.get_by_location(location.canonical_url)

    async def mark_synced(self, source: Source) -> Source:
        """Advance last_synced_at (strictly increasing) and persist it."""
        synced_at = source.mark_synced()
        await self._sources.touch_last_synced(source.id, synced_at)
        return source

    # Hey future me - an existing Source is REUSED even if the caller passed a
    # different display name. Names are cosmetic, location_uri is identity.
    async def resolve(
        self,
        location: RepositoryLocation,
        display_name: str | None,
        user_id: str,
        existing: Source | None = None,
    ) -> tuple[Source, bool]:
        """Reuse or create the Source for a location.

        Args:
            location: Parsed repository location
            display_name: Name for a new Source (defaults to "owner/repo")
            user_id: Recorded as created_by on a new Source
            existing: Result of an earlier find(), if the caller already has it

        Returns:
            (source, created)

        Raises:
            PersistenceConflictError: Insert lost a race and the winner vanished
        """
        if existing is not None:
            return await self.mark_synced(existing), False

        source = Source(
            id=SourceId.generate(),
            name=(display_name or "").strip() or location.slug,
            location_uri=location.canonical_url,
            created_by=user_id,
        )
        try:
            await self._sources.add(source)
        except PersistenceConflictError:
            winner = await self.find(location)
            if winner is None:
                raise
            logger.info(
                f"Source {location.canonical_url} was created concurrently, reusing it"
            )
            return await self.mark_synced(winner), False

        logger.info(f"Registered new source {location.canonical_url} ({source.name})")
        return source, True

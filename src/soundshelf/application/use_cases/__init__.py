"""Application use cases - Business logic orchestration."""

from abc import ABC, abstractmethod
from typing import Generic, TypeVar

# Type variables for generic use case pattern
TRequest = TypeVar("TRequest")
TResponse = TypeVar("TResponse")


class UseCase(ABC, Generic[TRequest, TResponse]):
    """Base class for all use cases following command pattern."""

    @abstractmethod
    async def execute(self, request: TRequest) -> TResponse:
        """Execute the use case with the given request."""
        pass


# Import concrete use cases (after UseCase definition to avoid circular imports)
from soundshelf.application.use_cases.bulk_import_sources import (  # noqa: E402
    BulkImportItemResult,
    BulkImportReport,
    BulkImportRequest,
    BulkImportSourcesUseCase,
)
from soundshelf.application.use_cases.import_source import (  # noqa: E402
    ImportReport,
    ImportSourceRequest,
    ImportSourceUseCase,
)
from soundshelf.application.use_cases.refresh_source import (  # noqa: E402
    RefreshReport,
    RefreshSourceRequest,
    RefreshSourceUseCase,
)

__all__ = [
    "UseCase",
    "BulkImportItemResult",
    "BulkImportReport",
    "BulkImportRequest",
    "BulkImportSourcesUseCase",
    "ImportReport",
    "ImportSourceRequest",
    "ImportSourceUseCase",
    "RefreshReport",
    "RefreshSourceRequest",
    "RefreshSourceUseCase",
]

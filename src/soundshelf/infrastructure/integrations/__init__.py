"""External service integrations."""

from soundshelf.infrastructure.integrations.github_client import GitHubContentClient
from soundshelf.infrastructure.integrations.source_list_client import (
    HttpSourceListClient,
)

__all__ = [
    "GitHubContentClient",
    "HttpSourceListClient",
]

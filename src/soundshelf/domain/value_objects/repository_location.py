"""RepositoryLocation value object.

A Source is identified by its repository URL. Users paste all sorts of
spellings of the same repository ("https://github.com/alice/mymusic.git",
".../alice/mymusic/tree/main", trailing slashes), so every URL is reduced to
``owner`` + ``repo`` and stored in one canonical form.
"""

import re
from dataclasses import dataclass

from soundshelf.domain.exceptions import InvalidLocationFormatError

# owner/repo characters follow GitHub's naming rules: word chars, dash, dot
_NAME = r"[\w.-]+"
# The host must start the string or follow "//", so gist.github.com and
# notgithub.com never pass for a repository.
LOCATION_PATTERN = re.compile(
    rf"(?:^|//)(?:www\.)?github\.com/({_NAME})/({_NAME})", re.IGNORECASE
)
# Used for bulk extraction from arbitrary text
LOCATION_URL_PATTERN = re.compile(rf"https://github\.com/{_NAME}/{_NAME}")


@dataclass(frozen=True)
class RepositoryLocation:
    """Owner and repository name of a GitHub repository."""

    owner: str
    repo: str

    def __post_init__(self) -> None:
        if not self.owner or not self.repo:
            raise InvalidLocationFormatError(f"{self.owner}/{self.repo}")

    @classmethod
    def parse(cls, url: str) -> "RepositoryLocation":
        """Parse a repository URL.

        Args:
            url: Anything containing ``github.com/<owner>/<repo>[.git]``

        Returns:
            Parsed location

        Raises:
            InvalidLocationFormatError: If the URL does not match
        """
        match = LOCATION_PATTERN.search(url.strip()) if url else None
        if not match:
            raise InvalidLocationFormatError(url)

        owner = match.group(1)
        repo = re.sub(r"\.git$", "", match.group(2))
        if not repo or repo in {".", ".."} or owner in {".", ".."}:
            raise InvalidLocationFormatError(url)
        return cls(owner=owner, repo=repo)

    @property
    def canonical_url(self) -> str:
        """Canonical URL used as the Source lookup key."""
        return f"https://github.com/{self.owner}/{self.repo}"

    @property
    def slug(self) -> str:
        """``owner/repo`` - the default Source name."""
        return f"{self.owner}/{self.repo}"

    def __str__(self) -> str:
        return self.canonical_url


def extract_location_urls(text: str) -> list[str]:
    """Extract repository URLs from free text.

    Returns canonical URLs. Spellings of the same repository (".git", a
    trailing path) count as duplicates; first-seen order is kept. Matches
    that are not a valid location are skipped.
    """
    seen: dict[str, None] = {}
    for url in LOCATION_URL_PATTERN.findall(text or ""):
        try:
            location = RepositoryLocation.parse(url)
        except InvalidLocationFormatError:
            continue
        seen.setdefault(location.canonical_url, None)
    return list(seen)

"""Song identity links.

Every song gets a link derived ONLY from owner, repo and file path:

    <public_base_url>/play/<urlsafe-base64("owner/repo/path")>

No size, sha or timestamp goes in, so the same file always maps to the same
link no matter who imports it or how often. A file edited in place stays the
same song. The link is both the dedup key (songs.unique_link is UNIQUE) and a
shareable URL.
"""

import base64
import binascii

from soundshelf.domain.exceptions import ValidationException

PLAY_PATH = "/play/"


def derive_unique_link(
    owner: str, repo: str, file_path: str, base_url: str = ""
) -> str:
    """Derive the stable link for a file in a repository.

    Args:
        owner: Repository owner
        repo: Repository name
        file_path: Path of the file inside the repository
        base_url: Public origin of this service. Empty gives a relative link.

    Returns:
        Deterministic shareable link
    """
    raw = f"{owner}/{repo}/{file_path}".encode()
    token = base64.urlsafe_b64encode(raw).decode("ascii").rstrip("=")
    return f"{base_url.rstrip('/')}{PLAY_PATH}{token}"


def extract_token(link_or_token: str) -> str:
    """Return the token part of a link (a bare token is returned unchanged)."""
    if PLAY_PATH in link_or_token:
        return link_or_token.rsplit(PLAY_PATH, 1)[1]
    return link_or_token


def decode_unique_link(link_or_token: str) -> tuple[str, str, str]:
    """Reverse a link (or bare token) into (owner, repo, file_path).

    Raises:
        ValidationException: If the token is not a valid song link
    """
    token = extract_token(link_or_token).strip()
    padded = token + "=" * (-len(token) % 4)
    try:
        raw = base64.urlsafe_b64decode(padded.encode("ascii")).decode("utf-8")
    except (binascii.Error, UnicodeError, ValueError) as e:
        raise ValidationException(f"Invalid song link: {link_or_token!r}") from e

    parts = raw.split("/", 2)
    if len(parts) != 3 or not all(parts):
        raise ValidationException(f"Invalid song link: {link_or_token!r}")
    return parts[0], parts[1], parts[2]

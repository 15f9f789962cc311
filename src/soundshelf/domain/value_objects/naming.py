"""Display-name rules for scanned folders and audio files.

Folder "Rock_Hits" becomes playlist "Rock Hits", file "song_one.mp3" becomes
song "Song One". Only the first character of every word is upper-cased, the
rest of the word is left alone ("DJ_mix" -> "DJ Mix", not "Dj Mix").

Usage:
    from soundshelf.domain.value_objects.naming import format_song_title

    format_song_title("late-night_drive.flac")  # "Late Night Drive"
"""

import re

# Lower-case, without the dot. Matching is case-insensitive.
AUDIO_EXTENSIONS: frozenset[str] = frozenset(
    {"mp3", "wav", "flac", "aac", "ogg", "m4a", "wma"}
)

_EXTENSION_RE = re.compile(r"\.[^/.]+$")
_SEPARATOR_RE = re.compile(r"[_-]")
_WORD_START_RE = re.compile(r"\b\w")


def _capitalize_words(text: str) -> str:
    return _WORD_START_RE.sub(lambda m: m.group(0).upper(), text)


def strip_extension(filename: str) -> str:
    """Remove the last extension from a filename ("a.b.mp3" -> "a.b")."""
    return _EXTENSION_RE.sub("", filename)


def format_playlist_name(dirname: str) -> str:
    """Turn a directory name into a playlist display name."""
    return _capitalize_words(_SEPARATOR_RE.sub(" ", dirname))


def format_song_title(filename: str) -> str:
    """Turn an audio filename into a song display title."""
    return _capitalize_words(_SEPARATOR_RE.sub(" ", strip_extension(filename)))


def is_audio_file(filename: str) -> bool:
    """Check whether a filename has one of the supported audio extensions."""
    _, dot, extension = filename.rpartition(".")
    if not dot:
        return False
    return extension.lower() in AUDIO_EXTENSIONS

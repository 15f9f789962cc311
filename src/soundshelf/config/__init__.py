"""Configuration module for SoundShelf."""

from .settings import (
    APISettings,
    DatabaseSettings,
    GitHubSettings,
    LibrarySettings,
    ObservabilitySettings,
    Settings,
    get_settings,
)

__all__ = [
    "APISettings",
    "DatabaseSettings",
    "GitHubSettings",
    "LibrarySettings",
    "ObservabilitySettings",
    "Settings",
    "get_settings",
]

"""Application settings loaded from environment variables and .env.

Every section is its own BaseSettings class so it can be instantiated on its
own in tests (e.g. ``GitHubSettings(token="x")``). The root ``Settings`` nests
them; override nested values with a double underscore, e.g.
``DATABASE__URL=postgresql+asyncpg://...`` or ``LIBRARY__SCAN_CONCURRENCY=8``.
"""

from functools import lru_cache
from pathlib import Path

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class DatabaseSettings(BaseSettings):
    """Database connection settings."""

    model_config = SettingsConfigDict(env_prefix="DATABASE_", extra="ignore")

    url: str = Field(
        default="sqlite+aiosqlite:///./soundshelf.db",
        description="SQLAlchemy async database URL",
    )
    echo: bool = Field(default=False, description="Log every SQL statement")
    pool_size: int = Field(default=5, ge=1)
    max_overflow: int = Field(default=10, ge=0)
    pool_timeout: int = Field(default=30, ge=1)
    pool_recycle: int = Field(default=1800, ge=-1)
    pool_pre_ping: bool = True

    @property
    def is_sqlite(self) -> bool:
        return self.url.startswith("sqlite")


class GitHubSettings(BaseSettings):
    """GitHub contents API settings."""

    model_config = SettingsConfigDict(env_prefix="GITHUB_", extra="ignore")

    api_base_url: str = Field(default="https://api.github.com")
    # Anonymous access works for public repositories but is limited to
    # 60 requests/hour. A token raises that to 5000/hour.
    token: str | None = Field(default=None, description="Personal access token")
    timeout: float = Field(default=30.0, gt=0)
    user_agent: str = Field(default="SoundShelf/0.1")
    rate_limit_per_second: float = Field(default=2.0, gt=0)
    rate_limit_burst: int = Field(default=10, ge=1)
    max_retries: int = Field(default=2, ge=0)

    @field_validator("api_base_url")
    @classmethod
    def _strip_trailing_slash(cls, value: str) -> str:
        return value.rstrip("/")


class LibrarySettings(BaseSettings):
    """Import and library behaviour."""

    model_config = SettingsConfigDict(env_prefix="LIBRARY_", extra="ignore")

    public_base_url: str = Field(
        default="http://localhost:8000",
        description="Origin used to build shareable /play/ links",
    )
    scan_concurrency: int = Field(default=4, ge=1, le=32)
    bulk_import_delay_seconds: float = Field(default=1.0, ge=0)
    duration_tolerance_seconds: int = Field(default=5, ge=0)

    @field_validator("public_base_url")
    @classmethod
    def _strip_trailing_slash(cls, value: str) -> str:
        return value.rstrip("/")


class ObservabilitySettings(BaseSettings):
    """Logging settings."""

    model_config = SettingsConfigDict(env_prefix="OBSERVABILITY_", extra="ignore")

    log_level: str = Field(default="INFO")
    log_json_format: bool = Field(default=False)

    @field_validator("log_level")
    @classmethod
    def _validate_level(cls, value: str) -> str:
        level = value.upper()
        if level not in {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}:
            raise ValueError(f"Invalid log level: {value}")
        return level


class APISettings(BaseSettings):
    """HTTP server settings."""

    model_config = SettingsConfigDict(env_prefix="API_", extra="ignore")

    host: str = Field(default="0.0.0.0")
    port: int = Field(default=8000, ge=1, le=65535)
    cors_origins: list[str] = Field(default_factory=list)


class Settings(BaseSettings):
    """Root settings object."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_nested_delimiter="__",
        extra="ignore",
    )

    app_name: str = Field(default="SoundShelf")
    debug: bool = Field(default=False)

    database: DatabaseSettings = Field(default_factory=DatabaseSettings)
    github: GitHubSettings = Field(default_factory=GitHubSettings)
    library: LibrarySettings = Field(default_factory=LibrarySettings)
    observability: ObservabilitySettings = Field(default_factory=ObservabilitySettings)
    api: APISettings = Field(default_factory=APISettings)

    def _get_sqlite_db_path(self) -> Path | None:
        """Return the SQLite database file path, or None for other backends."""
        url = self.database.url
        if not url.startswith("sqlite"):
            return None
        _, _, path = url.partition(":///")
        if not path or path.startswith(":memory:"):
            return None
        return Path(path)


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()

"""SQLAlchemy ORM models for SoundShelf."""

import uuid
from datetime import UTC, datetime

import sqlalchemy as sa
from sqlalchemy import (
    Boolean,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column, relationship


# ALL timestamps are UTC. Never use a naive datetime.now().
def utc_now() -> datetime:
    """Get current UTC time."""
    return datetime.now(UTC)


# SQLite doesn't preserve tzinfo, values come back naive. Use this before
# comparing anything read from the DB with datetime.now(UTC).
def ensure_utc_aware(dt: datetime) -> datetime:
    """Ensure datetime is UTC-aware, assuming naive datetimes are UTC."""
    if dt.tzinfo is None:
        return dt.replace(tzinfo=UTC)
    return dt


class Base(DeclarativeBase):
    """Base class for all ORM models.

    All models inherit from this to use the same metadata registry.
    """

    pass


# location_uri is THE identity of a source, not id. The UNIQUE constraint is
# what lets two concurrent imports of the same repository end up with one row:
# the loser gets an IntegrityError and re-reads the winner.
class SourceModel(Base):
    """SQLAlchemy model for Source entity (shared across users)."""

    __tablename__ = "sources"

    id: Mapped[str] = mapped_column(
        String(36), primary_key=True, default=lambda: str(uuid.uuid4())
    )
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    location_uri: Mapped[str] = mapped_column(String(512), nullable=False, unique=True)
    # Provenance only. Users are owned by the external auth system.
    created_by: Mapped[str | None] = mapped_column(String(100), nullable=True)
    is_active: Mapped[bool] = mapped_column(
        Boolean, nullable=False, default=True, server_default=sa.true()
    )
    last_synced_at: Mapped[datetime] = mapped_column(
        sa.DateTime(timezone=True), default=utc_now, nullable=False
    )
    created_at: Mapped[datetime] = mapped_column(
        sa.DateTime(timezone=True), default=utc_now, nullable=False
    )

    playlists: Mapped[list["PlaylistModel"]] = relationship(
        "PlaylistModel", back_populates="source", cascade="all, delete-orphan"
    )


class PlaylistModel(Base):
    """SQLAlchemy model for Playlist entity (one row per user)."""

    __tablename__ = "playlists"

    id: Mapped[str] = mapped_column(
        String(36), primary_key=True, default=lambda: str(uuid.uuid4())
    )
    user_id: Mapped[str] = mapped_column(String(100), nullable=False, index=True)
    source_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("sources.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    folder_path: Mapped[str] = mapped_column(Text, nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        sa.DateTime(timezone=True), default=utc_now, nullable=False
    )

    source: Mapped["SourceModel"] = relationship("SourceModel", back_populates="playlists")
    songs: Mapped[list["SongModel"]] = relationship(
        "SongModel",
        back_populates="playlist",
        cascade="all, delete-orphan",
        order_by="SongModel.title",
    )

    __table_args__ = (
        Index("ix_playlists_source_user", "source_id", "user_id"),
    )


# unique_link is globally UNIQUE - that constraint IS the cross-user dedup.
# One song row lives in exactly one playlist (no join table on purpose).
class SongModel(Base):
    """SQLAlchemy model for Song entity."""

    __tablename__ = "songs"

    id: Mapped[str] = mapped_column(
        String(36), primary_key=True, default=lambda: str(uuid.uuid4())
    )
    playlist_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("playlists.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    title: Mapped[str] = mapped_column(String(512), nullable=False)
    duration_seconds: Mapped[int] = mapped_column(
        Integer, nullable=False, default=0, server_default="0"
    )
    file_uri: Mapped[str] = mapped_column(Text, nullable=False)
    cover_art_uri: Mapped[str | None] = mapped_column(Text, nullable=True)
    unique_link: Mapped[str] = mapped_column(String(1024), nullable=False, unique=True)
    created_at: Mapped[datetime] = mapped_column(
        sa.DateTime(timezone=True), default=utc_now, nullable=False
    )
    updated_at: Mapped[datetime] = mapped_column(
        sa.DateTime(timezone=True), default=utc_now, onupdate=utc_now, nullable=False
    )

    playlist: Mapped["PlaylistModel"] = relationship("PlaylistModel", back_populates="songs")


class FavouriteModel(Base):
    """SQLAlchemy model for a user's favourite song."""

    __tablename__ = "favourites"

    id: Mapped[str] = mapped_column(
        String(36), primary_key=True, default=lambda: str(uuid.uuid4())
    )
    user_id: Mapped[str] = mapped_column(String(100), nullable=False, index=True)
    song_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("songs.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    created_at: Mapped[datetime] = mapped_column(
        sa.DateTime(timezone=True), default=utc_now, nullable=False
    )

    __table_args__ = (
        UniqueConstraint("user_id", "song_id", name="uq_favourites_user_song"),
    )

"""initial schema: sources, playlists, songs, favourites

Revision ID: 0001
Revises:
Create Date: 2026-10-18 09:00:00.000000

Hey future me - the two UNIQUE constraints here carry the whole dedup story:

1. sources.location_uri: one source row per repository, shared by all users.
   When two imports of the same repo race, the loser hits IntegrityError
   and re-reads the winner's row.
2. songs.unique_link: one song row per (repository, folder, file) across ALL
   users. A second user importing the same repo gets their own playlists but
   the songs stay where the first import put them.

All FKs cascade: source -> playlists -> songs -> favourites.
SQLite only honours that with PRAGMA foreign_keys=ON (set in Database).
"""

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = "0001"
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    """Create the library tables."""
    op.create_table(
        "sources",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("location_uri", sa.String(512), nullable=False),
        sa.Column("created_by", sa.String(100), nullable=True),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("last_synced_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.UniqueConstraint("location_uri", name="uq_sources_location_uri"),
    )

    op.create_table(
        "playlists",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column("user_id", sa.String(100), nullable=False),
        sa.Column(
            "source_id",
            sa.String(36),
            sa.ForeignKey("sources.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("folder_path", sa.Text(), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
    )
    op.create_index("ix_playlists_user_id", "playlists", ["user_id"])
    op.create_index("ix_playlists_source_id", "playlists", ["source_id"])
    op.create_index("ix_playlists_source_user", "playlists", ["source_id", "user_id"])

    op.create_table(
        "songs",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column(
            "playlist_id",
            sa.String(36),
            sa.ForeignKey("playlists.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("title", sa.String(512), nullable=False),
        sa.Column("duration_seconds", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("file_uri", sa.Text(), nullable=False),
        sa.Column("cover_art_uri", sa.Text(), nullable=True),
        sa.Column("unique_link", sa.String(1024), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
        sa.UniqueConstraint("unique_link", name="uq_songs_unique_link"),
    )
    op.create_index("ix_songs_playlist_id", "songs", ["playlist_id"])

    op.create_table(
        "favourites",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column("user_id", sa.String(100), nullable=False),
        sa.Column(
            "song_id",
            sa.String(36),
            sa.ForeignKey("songs.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.UniqueConstraint("user_id", "song_id", name="uq_favourites_user_song"),
    )
    op.create_index("ix_favourites_user_id", "favourites", ["user_id"])
    op.create_index("ix_favourites_song_id", "favourites", ["song_id"])


def downgrade() -> None:
    """Drop the library tables (children first)."""
    op.drop_index("ix_favourites_song_id", table_name="favourites")
    op.drop_index("ix_favourites_user_id", table_name="favourites")
    op.drop_table("favourites")
    op.drop_index("ix_songs_playlist_id", table_name="songs")
    op.drop_table("songs")
    op.drop_index("ix_playlists_source_user", table_name="playlists")
    op.drop_index("ix_playlists_source_id", table_name="playlists")
    op.drop_index("ix_playlists_user_id", table_name="playlists")
    op.drop_table("playlists")
    op.drop_table("sources")

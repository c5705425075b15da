"""Search index schema

Revision ID: 0001
Revises:
Create Date: 2026-10-19

Creates the denormalized search_videos table:
- one row per approved upstream video, keyed by the upstream id
- tag arrays (amendments, participants) with GIN indexes for overlap filters
- flattened primary location with btree indexes for state and bbox filters
- generated stored tsvector (title weighted A, description weighted B) + GIN index
"""

from collections.abc import Sequence

import sqlalchemy as sa
from alembic import op

# revision identifiers, used by Alembic.
revision: str = "0001"
down_revision: str | None = None
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None


def upgrade() -> None:
    # ==========================================================================
    # Step 1: Create search_videos table
    # ==========================================================================
    op.create_table(
        "search_videos",
        sa.Column("id", sa.UUID(), primary_key=True),
        sa.Column("external_id", sa.String(32), nullable=False),
        sa.Column("title", sa.String(500), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("thumbnail_url", sa.String(500), nullable=True),
        sa.Column("duration_seconds", sa.Integer(), nullable=True),
        sa.Column("channel_id", sa.String(64), nullable=True),
        sa.Column("channel_name", sa.Text(), nullable=True),
        sa.Column("video_date", sa.Date(), nullable=True),
        sa.Column(
            "amendments",
            sa.dialects.postgresql.ARRAY(sa.String(20)),
            nullable=False,
            server_default=sa.text("'{}'"),
        ),
        sa.Column(
            "participants",
            sa.dialects.postgresql.ARRAY(sa.String(20)),
            nullable=False,
            server_default=sa.text("'{}'"),
        ),
        sa.Column("primary_location_id", sa.UUID(), nullable=True),
        sa.Column("primary_location_name", sa.Text(), nullable=True),
        sa.Column("primary_location_city", sa.Text(), nullable=True),
        sa.Column("primary_location_state", sa.String(64), nullable=True),
        sa.Column("primary_location_lat", sa.Double(), nullable=True),
        sa.Column("primary_location_lng", sa.Double(), nullable=True),
        sa.Column("indexed_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column(
            "search_vector",
            sa.dialects.postgresql.TSVECTOR(),
            sa.Computed(
                "setweight(to_tsvector('english', coalesce(title, '')), 'A') || "
                "setweight(to_tsvector('english', coalesce(description, '')), 'B')",
                persisted=True,
            ),
        ),
        sa.CheckConstraint(
            "(primary_location_lat IS NULL) = (primary_location_lng IS NULL)",
            name="ck_search_videos_coordinates_paired",
        ),
    )

    # ==========================================================================
    # Step 2: GIN indexes for full-text search and tag overlap
    # ==========================================================================
    op.create_index(
        "idx_search_videos_search_vector",
        "search_videos",
        ["search_vector"],
        postgresql_using="gin",
    )
    op.create_index(
        "idx_search_videos_amendments",
        "search_videos",
        ["amendments"],
        postgresql_using="gin",
    )
    op.create_index(
        "idx_search_videos_participants",
        "search_videos",
        ["participants"],
        postgresql_using="gin",
    )

    # ==========================================================================
    # Step 3: btree indexes for location filters and recency ordering
    # ==========================================================================
    op.create_index("idx_search_videos_state", "search_videos", ["primary_location_state"])
    op.create_index(
        "idx_search_videos_coordinates",
        "search_videos",
        ["primary_location_lat", "primary_location_lng"],
    )
    op.create_index("idx_search_videos_indexed_at", "search_videos", ["indexed_at"])


def downgrade() -> None:
    op.drop_index("idx_search_videos_indexed_at", table_name="search_videos")
    op.drop_index("idx_search_videos_coordinates", table_name="search_videos")
    op.drop_index("idx_search_videos_state", table_name="search_videos")
    op.drop_index("idx_search_videos_participants", table_name="search_videos")
    op.drop_index("idx_search_videos_amendments", table_name="search_videos")
    op.drop_index("idx_search_videos_search_vector", table_name="search_videos")
    op.drop_table("search_videos")

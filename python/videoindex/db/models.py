"""SQLAlchemy ORM models for the search index.

Defines the denormalized ``search_videos`` table using SQLAlchemy 2.x
declarative patterns, plus the fixed tag vocabularies that the index stores
and that search filters are whitelisted against.
"""

from datetime import date, datetime
from enum import Enum as PyEnum
from uuid import UUID

from sqlalchemy import CheckConstraint, Computed, Date, Double, Index, Integer, String, Text, text
from sqlalchemy.dialects.postgresql import ARRAY, TIMESTAMP, TSVECTOR
from sqlalchemy.dialects.postgresql import UUID as PG_UUID
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


class Base(DeclarativeBase):
    """Base class for all ORM models."""

    pass


# =============================================================================
# Enums
# =============================================================================


class Amendment(str, PyEnum):
    """Constitutional amendments a video can be tagged with."""

    FIRST = "FIRST"
    SECOND = "SECOND"
    FOURTH = "FOURTH"
    FIFTH = "FIFTH"
    SIXTH = "SIXTH"
    EIGHTH = "EIGHTH"
    FOURTEENTH = "FOURTEENTH"


class Participant(str, PyEnum):
    """Roles of the parties appearing in a video."""

    POLICE = "POLICE"
    GOVERNMENT = "GOVERNMENT"
    BUSINESS = "BUSINESS"
    CITIZEN = "CITIZEN"
    SECURITY = "SECURITY"


# Expression for the generated search vector. Title terms weigh more than
# description terms so ts_rank_cd favours title matches.
SEARCH_VECTOR_EXPRESSION = (
    "setweight(to_tsvector('english', coalesce(title, '')), 'A') || "
    "setweight(to_tsvector('english', coalesce(description, '')), 'B')"
)


# =============================================================================
# Models
# =============================================================================


class SearchVideo(Base):
    """Search-optimized projection of an approved upstream video.

    The id is the upstream video id, never generated here. The primary
    location is flattened into nullable columns; lat/lng are either both
    set or both NULL. ``search_vector`` is maintained by PostgreSQL.
    """

    __tablename__ = "search_videos"

    id: Mapped[UUID] = mapped_column(PG_UUID(as_uuid=True), primary_key=True)
    external_id: Mapped[str] = mapped_column(String(32), nullable=False)
    title: Mapped[str] = mapped_column(String(500), nullable=False)
    description: Mapped[str | None] = mapped_column(Text)
    thumbnail_url: Mapped[str | None] = mapped_column(String(500))
    duration_seconds: Mapped[int | None] = mapped_column(Integer)
    channel_id: Mapped[str | None] = mapped_column(String(64))
    channel_name: Mapped[str | None] = mapped_column(Text)
    video_date: Mapped[date | None] = mapped_column(Date)

    amendments: Mapped[list[str]] = mapped_column(
        ARRAY(String(20)), nullable=False, server_default=text("'{}'")
    )
    participants: Mapped[list[str]] = mapped_column(
        ARRAY(String(20)), nullable=False, server_default=text("'{}'")
    )

    primary_location_id: Mapped[UUID | None] = mapped_column(PG_UUID(as_uuid=True))
    primary_location_name: Mapped[str | None] = mapped_column(Text)
    primary_location_city: Mapped[str | None] = mapped_column(Text)
    primary_location_state: Mapped[str | None] = mapped_column(String(64))
    primary_location_lat: Mapped[float | None] = mapped_column(Double)
    primary_location_lng: Mapped[float | None] = mapped_column(Double)

    indexed_at: Mapped[datetime] = mapped_column(TIMESTAMP(timezone=True), nullable=False)

    search_vector: Mapped[str | None] = mapped_column(
        TSVECTOR,
        Computed(SEARCH_VECTOR_EXPRESSION, persisted=True),
        deferred=True,
    )

    __table_args__ = (
        CheckConstraint(
            "(primary_location_lat IS NULL) = (primary_location_lng IS NULL)",
            name="ck_search_videos_coordinates_paired",
        ),
        Index("idx_search_videos_search_vector", "search_vector", postgresql_using="gin"),
        Index("idx_search_videos_amendments", "amendments", postgresql_using="gin"),
        Index("idx_search_videos_participants", "participants", postgresql_using="gin"),
        Index("idx_search_videos_state", "primary_location_state"),
        Index("idx_search_videos_coordinates", "primary_location_lat", "primary_location_lng"),
        Index("idx_search_videos_indexed_at", "indexed_at"),
    )


# Mutable columns rewritten on every upsert (everything but the key and the
# generated search vector).
MUTABLE_COLUMNS: tuple[str, ...] = tuple(
    column.name
    for column in SearchVideo.__table__.columns
    if not column.primary_key and column.computed is None
)

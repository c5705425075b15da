"""Persistence boundary for the search index.

Primitives:
- upsert_search_video: insert-or-replace one record in a single statement
- delete_search_video / search_video_exists / get_search_video
- query_search_videos: the filtered, ranked, paginated read

Query construction rules:
- SQL text is assembled only from constant fragments defined in this module
- Every caller-supplied value travels as a bound parameter
- Tag filters must already be whitelisted by the caller (see services.search)
"""

from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any
from uuid import UUID

from sqlalchemy import delete, text
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.orm import Session

from videoindex.db.models import MUTABLE_COLUMNS, SearchVideo

TEXT_SEARCH_CONFIG = "english"

# Columns returned by the search read, in SELECT order
RESULT_COLUMNS: tuple[str, ...] = (
    "id",
    "external_id",
    "title",
    "description",
    "thumbnail_url",
    "duration_seconds",
    "channel_id",
    "channel_name",
    "video_date",
    "amendments",
    "participants",
    "primary_location_id",
    "primary_location_name",
    "primary_location_city",
    "primary_location_state",
    "primary_location_lat",
    "primary_location_lng",
    "indexed_at",
)

_TS_QUERY_SQL = f"plainto_tsquery('{TEXT_SEARCH_CONFIG}', :query)"

_CONDITION_TEXT = f"v.search_vector @@ {_TS_QUERY_SQL}"
_CONDITION_AMENDMENTS = "v.amendments && CAST(:amendments AS VARCHAR[])"
_CONDITION_PARTICIPANTS = "v.participants && CAST(:participants AS VARCHAR[])"
_CONDITION_STATE = "v.primary_location_state = :state"
_CONDITION_BBOX = (
    "v.primary_location_lat BETWEEN :min_lat AND :max_lat "
    "AND v.primary_location_lng BETWEEN :min_lng AND :max_lng"
)

_ORDER_BY_RELEVANCE = f"ts_rank_cd(v.search_vector, {_TS_QUERY_SQL}) DESC, v.indexed_at DESC, v.id"
_ORDER_BY_RECENCY = "v.indexed_at DESC, v.id"


# =============================================================================
# Query Criteria
# =============================================================================


@dataclass(frozen=True)
class BoundingBox:
    """Rectangular geographic filter. Bounds are inclusive."""

    min_lng: float
    min_lat: float
    max_lng: float
    max_lat: float


@dataclass(frozen=True)
class SearchCriteria:
    """Normalized, validated search predicates.

    None means "no restriction" for every field. Tag sets are expected to be
    whitelisted and non-empty when present.
    """

    query: str | None = None
    amendments: frozenset[str] | None = None
    participants: frozenset[str] | None = None
    state: str | None = None
    bbox: BoundingBox | None = None


@dataclass(frozen=True)
class SearchQuerySql:
    """Compiled pieces of the search read."""

    where: str
    order_by: str
    params: dict[str, Any]


def build_search_sql(criteria: SearchCriteria) -> SearchQuerySql:
    """Translate criteria into a WHERE/ORDER BY pair plus bound parameters.

    Absent predicates are omitted entirely. All present predicates are ANDed.
    """
    conditions: list[str] = []
    params: dict[str, Any] = {}

    if criteria.query:
        conditions.append(_CONDITION_TEXT)
        params["query"] = criteria.query

    if criteria.amendments:
        conditions.append(_CONDITION_AMENDMENTS)
        params["amendments"] = sorted(criteria.amendments)

    if criteria.participants:
        conditions.append(_CONDITION_PARTICIPANTS)
        params["participants"] = sorted(criteria.participants)

    if criteria.state:
        conditions.append(_CONDITION_STATE)
        params["state"] = criteria.state

    if criteria.bbox is not None:
        conditions.append(_CONDITION_BBOX)
        params.update(
            min_lat=criteria.bbox.min_lat,
            max_lat=criteria.bbox.max_lat,
            min_lng=criteria.bbox.min_lng,
            max_lng=criteria.bbox.max_lng,
        )

    where = " AND ".join(f"({c})" for c in conditions) if conditions else "TRUE"
    order_by = _ORDER_BY_RELEVANCE if criteria.query else _ORDER_BY_RECENCY

    return SearchQuerySql(where=where, order_by=order_by, params=params)


# =============================================================================
# Reads
# =============================================================================


def query_search_videos(
    db: Session,
    criteria: SearchCriteria,
    offset: int,
    limit: int,
) -> tuple[list[Mapping[str, Any]], int]:
    """Execute the filtered, ranked, paginated read.

    Returns:
        (rows for the requested page, total number of matching records)
    """
    compiled = build_search_sql(criteria)
    columns = ", ".join(f"v.{name}" for name in RESULT_COLUMNS)

    page_sql = f"""
        SELECT {columns}
        FROM search_videos v
        WHERE {compiled.where}
        ORDER BY {compiled.order_by}
        LIMIT :limit OFFSET :offset
    """
    count_sql = f"""
        SELECT COUNT(*)
        FROM search_videos v
        WHERE {compiled.where}
    """

    rows = (
        db.execute(text(page_sql), {**compiled.params, "limit": limit, "offset": offset})
        .mappings()
        .all()
    )
    total = db.execute(text(count_sql), compiled.params).scalar_one()

    return list(rows), int(total)


def get_search_video(db: Session, video_id: UUID) -> SearchVideo | None:
    return db.get(SearchVideo, video_id)


def search_video_exists(db: Session, video_id: UUID) -> bool:
    result = db.execute(
        text("SELECT EXISTS(SELECT 1 FROM search_videos WHERE id = :id)"),
        {"id": video_id},
    )
    return bool(result.scalar())


# =============================================================================
# Mutations (caller owns the transaction)
# =============================================================================


def upsert_search_video(db: Session, values: Mapping[str, Any]) -> None:
    """Insert a record, or overwrite every mutable column of the existing one.

    Runs as one INSERT ... ON CONFLICT statement, so concurrent redeliveries
    of the same event cannot interleave into a partial record.

    Args:
        db: Database session.
        values: Column values; must contain ``id`` and every mutable column.
    """
    missing = [name for name in ("id", *MUTABLE_COLUMNS) if name not in values]
    if missing:
        raise ValueError(f"Missing search_videos columns: {', '.join(missing)}")

    stmt = pg_insert(SearchVideo).values(**values)
    stmt = stmt.on_conflict_do_update(
        index_elements=[SearchVideo.id],
        set_={name: stmt.excluded[name] for name in MUTABLE_COLUMNS},
    )
    db.execute(stmt)


def delete_search_video(db: Session, video_id: UUID) -> bool:
    """Delete a record if present. Returns True when a row was removed."""
    result = db.execute(delete(SearchVideo).where(SearchVideo.id == video_id))
    return (result.rowcount or 0) > 0


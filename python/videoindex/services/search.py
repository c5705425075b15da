"""Search service layer.

Turns a free-text query, multi-valued tag filters, a state, a bounding box and
a page request into a ranked page of approved videos using PostgreSQL
full-text search.

Key design decisions:
- Tag filters are intersected with the fixed Amendment/Participant vocabularies
  before they reach SQL; unknown values are dropped, and an empty intersection
  means "no restriction" rather than "match nothing"
- Malformed bbox input is a client error (E_INVALID_BBOX), never a 500
- Relevance uses ts_rank_cd over the generated search vector; recency
  (indexed_at) breaks ties and is the only ordering without a text query
- Page size is silently capped at MAX_PAGE_SIZE
- No raw queries logged (only hash for debugging)
"""

import hashlib
import math
import time
from collections.abc import Iterable, Mapping
from typing import Any

from sqlalchemy.orm import Session

from videoindex.db.models import Amendment, Participant
from videoindex.errors import ApiErrorCode, InvalidRequestError
from videoindex.logging import get_logger
from videoindex.schemas.search import (
    CoordinatesOut,
    LocationSummaryOut,
    PaginationOut,
    SearchResponse,
    VideoSearchResultOut,
)
from videoindex.services.index_store import BoundingBox, SearchCriteria, query_search_videos

logger = get_logger(__name__)

# =============================================================================
# Constants
# =============================================================================

DEFAULT_PAGE_SIZE = 20
MAX_PAGE_SIZE = 100

# Whitelists for tag filters, computed once and shared by all requests
VALID_AMENDMENTS: frozenset[str] = frozenset(a.value for a in Amendment)
VALID_PARTICIPANTS: frozenset[str] = frozenset(p.value for p in Participant)

BBOX_FORMAT_MESSAGE = "Invalid bbox format. Expected: minLng,minLat,maxLng,maxLat"


# =============================================================================
# Input Normalization
# =============================================================================


def hash_query(q: str) -> str:
    """Hash a normalized query for logging (privacy-safe)."""
    q_normalized = q.strip().lower()
    return hashlib.sha256(q_normalized.encode("utf-8")).hexdigest()[:16]


def normalize_query(query: str | None) -> str | None:
    """Trim the text query; blank means absent."""
    if query is None:
        return None
    query = query.strip()
    return query or None


def normalize_state(state: str | None) -> str | None:
    if state is None:
        return None
    state = state.strip()
    return state or None


def split_filter_values(values: Iterable[str] | None) -> list[str]:
    """Flatten repeated and comma-separated filter params into trimmed values.

    ``["FIRST,FOURTH", " POLICE "]`` -> ``["FIRST", "FOURTH", "POLICE"]``
    """
    if not values:
        return []
    return [part.strip() for value in values for part in value.split(",") if part.strip()]


def whitelist_tags(values: Iterable[str] | None, valid: frozenset[str]) -> frozenset[str] | None:
    """Intersect requested tags with a fixed vocabulary.

    Returns:
        The known tags, or None (no restriction) when none survive.
    """
    accepted = frozenset(split_filter_values(values)) & valid
    return accepted or None


def parse_bbox(bbox: str | None) -> BoundingBox | None:
    """Parse ``minLng,minLat,maxLng,maxLat``.

    Returns:
        BoundingBox, or None if bbox is absent or blank.

    Raises:
        InvalidRequestError: If there are not exactly four finite numbers.
    """
    if bbox is None or not bbox.strip():
        return None

    parts = bbox.split(",")
    if len(parts) != 4:
        raise InvalidRequestError(ApiErrorCode.E_INVALID_BBOX, BBOX_FORMAT_MESSAGE)

    try:
        min_lng, min_lat, max_lng, max_lat = (float(part) for part in parts)
    except ValueError:
        raise InvalidRequestError(ApiErrorCode.E_INVALID_BBOX, BBOX_FORMAT_MESSAGE) from None

    if not all(math.isfinite(v) for v in (min_lng, min_lat, max_lng, max_lat)):
        raise InvalidRequestError(ApiErrorCode.E_INVALID_BBOX, BBOX_FORMAT_MESSAGE)

    return BoundingBox(min_lng=min_lng, min_lat=min_lat, max_lng=max_lng, max_lat=max_lat)


def clamp_page_size(size: int) -> int:
    """Clamp a requested page size into [1, MAX_PAGE_SIZE]."""
    return min(max(1, size), MAX_PAGE_SIZE)


def build_criteria(
    query: str | None = None,
    amendments: Iterable[str] | None = None,
    participants: Iterable[str] | None = None,
    state: str | None = None,
    bbox: BoundingBox | None = None,
) -> SearchCriteria:
    """Normalize raw request values into store criteria."""
    return SearchCriteria(
        query=normalize_query(query),
        amendments=whitelist_tags(amendments, VALID_AMENDMENTS),
        participants=whitelist_tags(participants, VALID_PARTICIPANTS),
        state=normalize_state(state),
        bbox=bbox,
    )


# =============================================================================
# Search Implementation
# =============================================================================


def search(
    db: Session,
    query: str | None = None,
    amendments: Iterable[str] | None = None,
    participants: Iterable[str] | None = None,
    state: str | None = None,
    bbox: BoundingBox | None = None,
    page: int = 0,
    page_size: int = DEFAULT_PAGE_SIZE,
) -> SearchResponse:
    """Execute a filtered, ranked, paginated search over the index.

    Args:
        db: Database session.
        query: Free-text query; blank means no text filter.
        amendments: Requested amendment tags (repeated or comma-separated).
        participants: Requested participant tags (repeated or comma-separated).
        state: Exact primary-location state.
        bbox: Parsed bounding box (see parse_bbox).
        page: Zero-based page number.
        page_size: Requested page size, capped at MAX_PAGE_SIZE.

    Returns:
        SearchResponse with results, pagination and query time.

    Raises:
        InvalidRequestError: If page is negative.
    """
    if page < 0:
        raise InvalidRequestError(ApiErrorCode.E_INVALID_REQUEST, "page must be >= 0")

    size = clamp_page_size(page_size)
    criteria = build_criteria(query, amendments, participants, state, bbox)

    start = time.perf_counter()
    rows, total = query_search_videos(db, criteria, offset=page * size, limit=size)
    query_time_ms = int((time.perf_counter() - start) * 1000)

    _log_search(criteria, len(rows), total, query_time_ms)

    return SearchResponse(
        results=[row_to_result(row) for row in rows],
        pagination=PaginationOut(
            page=page,
            size=size,
            total_elements=total,
            total_pages=math.ceil(total / size),
        ),
        query_time=query_time_ms,
        query=query,
    )


def row_to_result(row: Mapping[str, Any]) -> VideoSearchResultOut:
    """Shape one search_videos row for the API."""
    locations: list[LocationSummaryOut] = []
    if row["primary_location_id"] is not None:
        coordinates = None
        if row["primary_location_lat"] is not None and row["primary_location_lng"] is not None:
            coordinates = CoordinatesOut(
                latitude=row["primary_location_lat"],
                longitude=row["primary_location_lng"],
            )
        locations.append(
            LocationSummaryOut(
                id=row["primary_location_id"],
                display_name=row["primary_location_name"],
                city=row["primary_location_city"],
                state=row["primary_location_state"],
                coordinates=coordinates,
            )
        )

    return VideoSearchResultOut(
        id=row["id"],
        external_id=row["external_id"],
        title=row["title"],
        description=row["description"],
        thumbnail_url=row["thumbnail_url"],
        duration_seconds=row["duration_seconds"],
        channel_id=row["channel_id"],
        channel_name=row["channel_name"],
        video_date=row["video_date"],
        amendments=list(row["amendments"] or []),
        participants=list(row["participants"] or []),
        locations=locations,
    )


def _log_search(
    criteria: SearchCriteria,
    results_count: int,
    total: int,
    query_time_ms: int,
) -> None:
    """Log search metrics (privacy-safe - no raw query)."""
    logger.info(
        "search_executed",
        query_len=len(criteria.query) if criteria.query else 0,
        query_hash=hash_query(criteria.query) if criteria.query else None,
        amendments_count=len(criteria.amendments) if criteria.amendments else 0,
        participants_count=len(criteria.participants) if criteria.participants else 0,
        has_state=criteria.state is not None,
        has_bbox=criteria.bbox is not None,
        results_count=results_count,
        total_elements=total,
        latency_ms=query_time_ms,
    )

"""Index synchronization: apply moderation decisions to the search index.

Per event: Received -> Fetching -> {Approved-Write | Rejected-Delete | Skipped} -> Acked.

Approve path (index_video):
- NOT_FOUND upstream: the video disappeared after approval; log and skip
- any other fetch failure: raise VideoServiceError so the event is redelivered
  (retryable) or dead-lettered (not retryable); nothing is written
- detail no longer APPROVED (raced with a rejection): skip without writing
- otherwise: map detail -> record and upsert in one statement

Reject path (remove_video): delete if present; absence is a no-op.

Both paths are idempotent under redelivery. Persistence errors propagate after
rollback; they are never swallowed.
"""

from collections.abc import Iterable
from datetime import UTC, datetime
from enum import Enum
from typing import Any, Protocol
from uuid import UUID

from sqlalchemy.orm import Session

from videoindex.clients.video_service import FetchFailure, FetchFailureKind, VideoServiceError
from videoindex.db.session import transaction
from videoindex.logging import get_logger
from videoindex.schemas.video_detail import VideoDetail
from videoindex.services.index_store import delete_search_video, upsert_search_video

logger = get_logger(__name__)


class VideoDetailFetcher(Protocol):
    def fetch(self, video_id: UUID) -> VideoDetail | FetchFailure: ...


class IndexOutcome(str, Enum):
    """Terminal state of a successfully handled approve event."""

    INDEXED = "indexed"
    SKIPPED_NOT_FOUND = "skipped_not_found"
    SKIPPED_NOT_APPROVED = "skipped_not_approved"


# =============================================================================
# Field mapping
# =============================================================================


def _unique_tags(values: Iterable[str] | None) -> list[str]:
    """Deduplicate tags preserving first-seen order; None maps to []."""
    if not values:
        return []
    return list(dict.fromkeys(values))


def _primary_location_columns(detail: VideoDetail) -> dict[str, Any]:
    columns: dict[str, Any] = {
        "primary_location_id": None,
        "primary_location_name": None,
        "primary_location_city": None,
        "primary_location_state": None,
        "primary_location_lat": None,
        "primary_location_lng": None,
    }

    primary = next((loc for loc in detail.locations or [] if loc.is_primary), None)
    if primary is None or primary.location is None:
        return columns

    location = primary.location
    columns.update(
        primary_location_id=location.id,
        primary_location_name=location.display_name,
        primary_location_city=location.city,
        primary_location_state=location.state,
    )

    coordinates = location.coordinates
    if (
        coordinates is not None
        and coordinates.latitude is not None
        and coordinates.longitude is not None
    ):
        columns.update(
            primary_location_lat=coordinates.latitude,
            primary_location_lng=coordinates.longitude,
        )

    return columns


def map_detail_to_record(detail: VideoDetail, indexed_at: datetime) -> dict[str, Any]:
    """Project an upstream detail onto a full set of search_videos column values.

    Every mutable column is present in the result so an upsert fully replaces
    the previous version of the record.
    """
    return {
        "id": detail.id,
        "external_id": detail.external_id,
        "title": detail.title,
        "description": detail.description,
        "thumbnail_url": detail.thumbnail_url,
        "duration_seconds": detail.duration_seconds,
        "channel_id": detail.channel_id,
        "channel_name": detail.channel_name,
        "video_date": detail.video_date,
        "amendments": _unique_tags(detail.amendments),
        "participants": _unique_tags(detail.participants),
        **_primary_location_columns(detail),
        "indexed_at": indexed_at,
    }


# =============================================================================
# Synchronization
# =============================================================================


def index_video(db: Session, fetcher: VideoDetailFetcher, video_id: UUID) -> IndexOutcome:
    """Index (or re-index) an approved video.

    Args:
        db: Database session.
        fetcher: Source of upstream video detail.
        video_id: The approved video.

    Returns:
        The outcome of a handled event.

    Raises:
        VideoServiceError: If the fetch failed for any reason other than not-found.
        ValueError: If upstream answered with a different video than requested.
    """
    logger.info("video_indexing_started", video_id=str(video_id))

    outcome = fetcher.fetch(video_id)

    if isinstance(outcome, FetchFailure):
        if outcome.kind == FetchFailureKind.NOT_FOUND:
            logger.warning(
                "video_not_found_upstream",
                video_id=str(video_id),
                detail="skipping indexing, video may have been deleted after approval",
            )
            return IndexOutcome.SKIPPED_NOT_FOUND
        raise VideoServiceError(outcome)

    detail = outcome
    if detail.id != video_id:
        raise ValueError(f"Video service returned video {detail.id} for requested {video_id}")

    if not detail.is_approved:
        logger.warning("video_not_approved_skipping", video_id=str(video_id), status=detail.status)
        return IndexOutcome.SKIPPED_NOT_APPROVED

    values = map_detail_to_record(detail, indexed_at=datetime.now(UTC))
    with transaction(db):
        upsert_search_video(db, values)

    logger.info("video_indexed", video_id=str(video_id))
    return IndexOutcome.INDEXED


def remove_video(db: Session, video_id: UUID) -> bool:
    """Remove a rejected video from the index.

    Returns:
        True if a record was deleted, False if none existed.
    """
    with transaction(db):
        removed = delete_search_video(db, video_id)

    if removed:
        logger.info("video_removed_from_index", video_id=str(video_id))
    else:
        logger.debug("video_not_in_index", video_id=str(video_id))
    return removed

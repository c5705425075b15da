"""Pydantic schemas for upstream payloads, moderation events and API responses.

All schemas are re-exported here for convenient imports.
"""

from videoindex.schemas.events import (
    ModerationEvent,
    VideoApprovedEvent,
    VideoRejectedEvent,
    parse_moderation_event,
)
from videoindex.schemas.search import (
    CoordinatesOut,
    LocationSummaryOut,
    PaginationOut,
    SearchResponse,
    VideoSearchResultOut,
)
from videoindex.schemas.video_detail import (
    Coordinates,
    LocationSummary,
    VideoDetail,
    VideoLocationDetail,
)

__all__ = [
    # Moderation events
    "ModerationEvent",
    "VideoApprovedEvent",
    "VideoRejectedEvent",
    "parse_moderation_event",
    # Upstream video detail
    "Coordinates",
    "LocationSummary",
    "VideoDetail",
    "VideoLocationDetail",
    # Search
    "CoordinatesOut",
    "LocationSummaryOut",
    "PaginationOut",
    "SearchResponse",
    "VideoSearchResultOut",
]

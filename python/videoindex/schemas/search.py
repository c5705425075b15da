"""Search Pydantic schemas.

Response models for ``GET /search``. Attributes are snake_case in Python and
serialized camelCase (``model_dump(by_alias=True)``) to match the public
contract:

    {"results": [...],
     "pagination": {"page", "size", "totalElements", "totalPages"},
     "queryTime": <ms>,
     "query": <echoed q or null>}
"""

from datetime import date
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class _CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class CoordinatesOut(_CamelModel):
    latitude: float
    longitude: float


class LocationSummaryOut(_CamelModel):
    id: UUID
    display_name: str | None = None
    city: str | None = None
    state: str | None = None
    coordinates: CoordinatesOut | None = None


class VideoSearchResultOut(_CamelModel):
    """Response schema for a single search hit.

    ``locations`` holds the primary location only (zero or one entries).
    """

    id: UUID
    external_id: str
    title: str
    description: str | None = None
    thumbnail_url: str | None = None
    duration_seconds: int | None = None
    channel_id: str | None = None
    channel_name: str | None = None
    video_date: date | None = None
    amendments: list[str] = Field(default_factory=list)
    participants: list[str] = Field(default_factory=list)
    locations: list[LocationSummaryOut] = Field(default_factory=list)


class PaginationOut(_CamelModel):
    page: int
    size: int
    total_elements: int
    total_pages: int


class SearchResponse(_CamelModel):
    """Response for the search endpoint."""

    results: list[VideoSearchResultOut] = Field(default_factory=list)
    pagination: PaginationOut
    query_time: int  # milliseconds
    query: str | None = None

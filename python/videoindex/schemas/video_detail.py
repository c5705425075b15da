"""Pydantic models for the upstream video service's detail response.

Mirrors ``GET /videos/{id}`` from the video service. Field names on the wire
are camelCase; unknown fields are ignored so the upstream can add fields
without breaking indexing. Only the fields the index needs are required.
"""

from datetime import date, datetime
from uuid import UUID

from pydantic import AliasChoices, BaseModel, ConfigDict, Field

APPROVED_STATUS = "APPROVED"


class _UpstreamModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore", frozen=True)


class Coordinates(_UpstreamModel):
    """Point coordinates. Either value may be missing on the wire."""

    latitude: float | None = Field(
        default=None, validation_alias=AliasChoices("latitude", "lat")
    )
    longitude: float | None = Field(
        default=None, validation_alias=AliasChoices("longitude", "lng")
    )


class LocationSummary(_UpstreamModel):
    id: UUID
    display_name: str | None = Field(default=None, alias="displayName")
    city: str | None = None
    state: str | None = None
    coordinates: Coordinates | None = None


class VideoLocationDetail(_UpstreamModel):
    """Link between a video and a location, with the primary flag."""

    id: UUID | None = None
    location_id: UUID | None = Field(default=None, alias="locationId")
    is_primary: bool = Field(default=False, alias="isPrimary")
    location: LocationSummary | None = None


class VideoDetail(_UpstreamModel):
    """Authoritative representation of a video, fetched on demand."""

    id: UUID
    external_id: str = Field(
        validation_alias=AliasChoices("externalId", "youtubeId", "external_id")
    )
    title: str
    description: str | None = None
    thumbnail_url: str | None = Field(default=None, alias="thumbnailUrl")
    duration_seconds: int | None = Field(default=None, alias="durationSeconds")
    channel_id: str | None = Field(default=None, alias="channelId")
    channel_name: str | None = Field(default=None, alias="channelName")
    video_date: date | None = Field(default=None, alias="videoDate")
    amendments: list[str] | None = None
    participants: list[str] | None = None
    status: str
    created_at: datetime | None = Field(default=None, alias="createdAt")
    locations: list[VideoLocationDetail] | None = None

    @property
    def is_approved(self) -> bool:
        return self.status == APPROVED_STATUS

"""Moderation event schemas.

Moderation decisions arrive as JSON objects tagged by ``eventType``:

    {"eventType": "VIDEO_APPROVED", "videoId": "...", "reviewerId": "...",
     "timestamp": "2024-01-15T10:00:00Z"}
    {"eventType": "VIDEO_REJECTED", "videoId": "...", "reviewerId": "...",
     "timestamp": "...", "reason": "OFF_TOPIC"}

``parse_moderation_event`` turns a raw payload into exactly one of the two
event models; anything else is a validation error.
"""

from datetime import datetime
from typing import Annotated, Any, Literal
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter

VIDEO_APPROVED = "VIDEO_APPROVED"
VIDEO_REJECTED = "VIDEO_REJECTED"


class _ModerationEventBase(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore", frozen=True)

    video_id: UUID = Field(alias="videoId")
    reviewer_id: UUID = Field(alias="reviewerId")
    timestamp: datetime


class VideoApprovedEvent(_ModerationEventBase):
    """A video passed moderation."""

    event_type: Literal["VIDEO_APPROVED"] = Field(default=VIDEO_APPROVED, alias="eventType")


class VideoRejectedEvent(_ModerationEventBase):
    """A video failed moderation."""

    event_type: Literal["VIDEO_REJECTED"] = Field(default=VIDEO_REJECTED, alias="eventType")
    reason: str | None = None


ModerationEvent = Annotated[
    VideoApprovedEvent | VideoRejectedEvent,
    Field(discriminator="event_type"),
]

_moderation_event_adapter: TypeAdapter[ModerationEvent] = TypeAdapter(ModerationEvent)


def parse_moderation_event(payload: dict[str, Any]) -> VideoApprovedEvent | VideoRejectedEvent:
    """Validate a raw moderation payload.

    Raises:
        pydantic.ValidationError: If the payload is not a known, well-formed event.
    """
    return _moderation_event_adapter.validate_python(payload)

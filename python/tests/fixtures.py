"""Shared test data: upstream video detail payloads and moderation events.

Stable IDs and payload builders used by unit tests, integration tests and
scripts/seed_dev.py (single source of truth for sample content).
"""

from uuid import UUID

# =============================================================================
# Stable Fixture IDs
# =============================================================================

FIXTURE_VIDEO_ID = UUID("00000000-0000-0000-0000-00000000a001")
FIXTURE_REVIEWER_ID = UUID("00000000-0000-0000-0000-00000000b001")
FIXTURE_LOCATION_ID = UUID("00000000-0000-0000-0000-00000000c001")

SAN_FRANCISCO = {"latitude": 37.7749, "longitude": -122.4194}
SAN_ANTONIO = {"latitude": 29.4241, "longitude": -98.4936}


# =============================================================================
# Payload builders
# =============================================================================


def location_payload(
    location_id: UUID = FIXTURE_LOCATION_ID,
    display_name: str = "San Francisco, CA",
    city: str = "San Francisco",
    state: str = "CA",
    coordinates: dict | None = None,
    is_primary: bool = True,
) -> dict:
    """Build one entry of an upstream detail's ``locations`` list."""
    return {
        "id": str(location_id),
        "locationId": str(location_id),
        "isPrimary": is_primary,
        "location": {
            "id": str(location_id),
            "displayName": display_name,
            "city": city,
            "state": state,
            "coordinates": SAN_FRANCISCO if coordinates is None else coordinates,
        },
    }


def video_detail_payload(video_id: UUID = FIXTURE_VIDEO_ID, **overrides) -> dict:
    """Build an upstream ``GET /videos/{id}`` body for an approved video."""
    payload = {
        "id": str(video_id),
        "externalId": "dQw4w9WgXcQ",
        "title": "First Amendment audit at city hall",
        "description": "Citizen journalist records a public building.",
        "thumbnailUrl": "https://img.example.com/dQw4w9WgXcQ.jpg",
        "durationSeconds": 754,
        "channelId": "UC1234567890",
        "channelName": "Audit Channel",
        "videoDate": "2024-01-10",
        "amendments": ["FIRST", "FOURTH"],
        "participants": ["POLICE", "CITIZEN"],
        "status": "APPROVED",
        "locations": [location_payload()],
    }
    payload.update(overrides)
    return payload


def approved_event(video_id: UUID = FIXTURE_VIDEO_ID) -> dict:
    return {
        "eventType": "VIDEO_APPROVED",
        "videoId": str(video_id),
        "reviewerId": str(FIXTURE_REVIEWER_ID),
        "timestamp": "2024-01-15T10:00:00Z",
    }


def rejected_event(video_id: UUID = FIXTURE_VIDEO_ID, reason: str = "OFF_TOPIC") -> dict:
    return {
        "eventType": "VIDEO_REJECTED",
        "videoId": str(video_id),
        "reviewerId": str(FIXTURE_REVIEWER_ID),
        "timestamp": "2024-01-15T10:00:00Z",
        "reason": reason,
    }


# =============================================================================
# Seed content for local development
# =============================================================================

SEED_VIDEOS: list[dict] = [
    video_detail_payload(
        UUID("00000000-0000-0000-0000-00000000d001"),
        externalId="seed0000001",
        title="Police audit at San Francisco city hall",
        description="Officers respond to a First Amendment audit.",
    ),
    video_detail_payload(
        UUID("00000000-0000-0000-0000-00000000d002"),
        externalId="seed0000002",
        title="Traffic stop ends in search dispute",
        description="Driver refuses consent to a vehicle search.",
        amendments=["FOURTH"],
        participants=["POLICE", "CITIZEN"],
        locations=[
            location_payload(
                UUID("00000000-0000-0000-0000-00000000c002"),
                display_name="San Antonio, TX",
                city="San Antonio",
                state="TX",
                coordinates=SAN_ANTONIO,
            )
        ],
    ),
    video_detail_payload(
        UUID("00000000-0000-0000-0000-00000000d003"),
        externalId="seed0000003",
        title="Post office filming encounter",
        description="Security guard asks a citizen to stop recording.",
        amendments=["FIRST"],
        participants=["SECURITY", "GOVERNMENT"],
        locations=[],
    ),
]

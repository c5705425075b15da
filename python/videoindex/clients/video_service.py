"""HTTP client for the upstream video service.

Fetches one video's detail and classifies every failure mode into a closed set
of outcomes. The classification decides whether a moderation event is retried,
dead-lettered, or dropped:

    HTTP 404, or 2xx with an empty body    -> NOT_FOUND        (not retryable)
    HTTP 503 / 504                         -> UNAVAILABLE      (retryable)
    connect / DNS failure, timeout         -> CONNECT_FAILED   (retryable)
    any other non-2xx                      -> UPSTREAM_ERROR   (retryable iff 5xx)
    bad JSON, schema mismatch, anything else -> UNEXPECTED_ERROR (retryable)

``fetch`` never raises for these cases. It returns a ``VideoDetail`` on success
and a ``FetchFailure`` otherwise, so callers decide retry policy by reading
``failure.retryable``.
"""

import json
from dataclasses import dataclass
from enum import Enum
from uuid import UUID

import httpx
from pydantic import ValidationError

from videoindex.config import Settings, get_settings
from videoindex.logging import get_logger
from videoindex.schemas.video_detail import VideoDetail

logger = get_logger(__name__)

USER_AGENT = "videoindex/0.1"

UNAVAILABLE_STATUS_CODES = frozenset({503, 504})


class FetchFailureKind(str, Enum):
    """Closed set of ways a detail fetch can fail."""

    NOT_FOUND = "not_found"
    UNAVAILABLE = "unavailable"
    CONNECT_FAILED = "connect_failed"
    UPSTREAM_ERROR = "upstream_error"
    UNEXPECTED_ERROR = "unexpected_error"


@dataclass(frozen=True)
class FetchFailure:
    """Typed outcome of a failed detail fetch.

    Attributes:
        kind: Failure classification.
        video_id: The video that was requested.
        message: Human-readable cause, safe to log.
        status_code: Upstream HTTP status, when a response was received.
    """

    kind: FetchFailureKind
    video_id: UUID
    message: str
    status_code: int | None = None

    @property
    def retryable(self) -> bool:
        if self.kind == FetchFailureKind.NOT_FOUND:
            return False
        if self.kind == FetchFailureKind.UPSTREAM_ERROR:
            return self.status_code is not None and self.status_code >= 500
        return True


def classify_status(video_id: UUID, status_code: int) -> FetchFailure:
    """Classify a non-2xx status code."""
    if status_code == 404:
        return FetchFailure(FetchFailureKind.NOT_FOUND, video_id, "Video not found", status_code)
    if status_code in UNAVAILABLE_STATUS_CODES:
        return FetchFailure(
            FetchFailureKind.UNAVAILABLE,
            video_id,
            f"Video service temporarily unavailable (status {status_code})",
            status_code,
        )
    return FetchFailure(
        FetchFailureKind.UPSTREAM_ERROR,
        video_id,
        f"Video service returned status {status_code}",
        status_code,
    )


class VideoServiceClient:
    """Synchronous client for ``GET /videos/{id}``.

    One ``httpx.Client`` is created per instance and reused across calls.
    Use as a context manager, or call ``close()`` when done.

    Args:
        base_url: Video service base URL (no trailing slash required).
        timeout_s: Total per-request timeout.
        connect_timeout_s: Connection establishment timeout.
        http_client: Optional pre-built client (tests, shared pools).
    """

    def __init__(
        self,
        base_url: str,
        timeout_s: float = 10.0,
        connect_timeout_s: float = 5.0,
        http_client: httpx.Client | None = None,
    ):
        self.base_url = base_url.rstrip("/")
        self._client = http_client or httpx.Client(
            base_url=self.base_url,
            timeout=httpx.Timeout(timeout_s, connect=connect_timeout_s),
            headers={"User-Agent": USER_AGENT, "Accept": "application/json"},
            follow_redirects=False,
        )

    @classmethod
    def from_settings(cls, settings: Settings | None = None) -> "VideoServiceClient":
        settings = settings or get_settings()
        return cls(
            base_url=settings.normalized_video_service_base_url,
            timeout_s=settings.video_service_timeout_s,
            connect_timeout_s=settings.video_service_connect_timeout_s,
        )

    def close(self) -> None:
        self._client.close()

    def __enter__(self) -> "VideoServiceClient":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()

    def fetch(self, video_id: UUID) -> VideoDetail | FetchFailure:
        """Fetch one video's detail.

        Returns:
            VideoDetail on a 2xx response with a body, FetchFailure otherwise.
        """
        outcome = self._fetch(video_id)

        if isinstance(outcome, FetchFailure) and outcome.kind != FetchFailureKind.NOT_FOUND:
            logger.warning(
                "video_service_fetch_failed",
                video_id=str(video_id),
                kind=outcome.kind.value,
                status_code=outcome.status_code,
                retryable=outcome.retryable,
                error=outcome.message,
            )
        return outcome

    def _fetch(self, video_id: UUID) -> VideoDetail | FetchFailure:
        try:
            response = self._client.get(f"/videos/{video_id}")
        except (httpx.TimeoutException, httpx.NetworkError) as e:
            return FetchFailure(
                FetchFailureKind.CONNECT_FAILED,
                video_id,
                f"Failed to connect to video service: {type(e).__name__}: {e}",
            )
        except Exception as e:
            return FetchFailure(
                FetchFailureKind.UNEXPECTED_ERROR,
                video_id,
                f"Unexpected error calling video service: {type(e).__name__}: {e}",
            )

        if not response.is_success:
            return classify_status(video_id, response.status_code)

        # A 2xx without a body means the video is gone
        if not response.content.strip():
            return FetchFailure(
                FetchFailureKind.NOT_FOUND, video_id, "Empty response body", response.status_code
            )

        try:
            payload = response.json()
        except (json.JSONDecodeError, UnicodeDecodeError) as e:
            return FetchFailure(
                FetchFailureKind.UNEXPECTED_ERROR,
                video_id,
                f"Invalid JSON from video service: {e}",
                response.status_code,
            )

        if payload is None:
            return FetchFailure(
                FetchFailureKind.NOT_FOUND, video_id, "Empty response body", response.status_code
            )

        try:
            return VideoDetail.model_validate(payload)
        except ValidationError as e:
            return FetchFailure(
                FetchFailureKind.UNEXPECTED_ERROR,
                video_id,
                f"Unexpected video detail shape: {e.error_count()} validation error(s)",
                response.status_code,
            )


class VideoServiceError(Exception):
    """Raised by callers that cannot proceed after a failed fetch.

    Wraps the FetchFailure so retry policy stays a single field lookup.

    Attributes:
        failure: The classified fetch outcome.
        video_id: The video that was requested.
        retryable: Whether the triggering event should be redelivered.
    """

    def __init__(self, failure: FetchFailure):
        self.failure = failure
        self.video_id = failure.video_id
        self.retryable = failure.retryable
        super().__init__(f"{failure.message} (video {failure.video_id}, kind={failure.kind.value})")

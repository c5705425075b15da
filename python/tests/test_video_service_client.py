"""Tests for the video service client.

Tests cover:
- Successful detail fetch and camelCase mapping
- Failure classification for every outcome kind
- Retryability derived from kind and status
- Request shape (path, base URL normalization)
"""

import httpx
import pytest
import respx
from httpx import Response

from tests.fixtures import FIXTURE_VIDEO_ID, video_detail_payload
from videoindex.clients.video_service import (
    FetchFailure,
    FetchFailureKind,
    VideoServiceClient,
    VideoServiceError,
    classify_status,
)
from videoindex.schemas.video_detail import VideoDetail

BASE_URL = "http://video-service.test"
DETAIL_URL = f"{BASE_URL}/videos/{FIXTURE_VIDEO_ID}"


@pytest.fixture
def video_client():
    with VideoServiceClient(BASE_URL, timeout_s=1.0, connect_timeout_s=0.5) as client:
        yield client


class TestFetchSuccess:
    @respx.mock
    def test_returns_video_detail(self, video_client):
        respx.get(DETAIL_URL).mock(return_value=Response(200, json=video_detail_payload()))

        detail = video_client.fetch(FIXTURE_VIDEO_ID)

        assert isinstance(detail, VideoDetail)
        assert detail.id == FIXTURE_VIDEO_ID
        assert detail.external_id == "dQw4w9WgXcQ"
        assert detail.amendments == ["FIRST", "FOURTH"]
        assert detail.is_approved
        primary = detail.locations[0]
        assert primary.is_primary
        assert primary.location.state == "CA"
        assert primary.location.coordinates.latitude == pytest.approx(37.7749)

    @respx.mock
    def test_accepts_youtube_id_alias(self, video_client):
        payload = video_detail_payload()
        payload["youtubeId"] = payload.pop("externalId")
        respx.get(DETAIL_URL).mock(return_value=Response(200, json=payload))

        detail = video_client.fetch(FIXTURE_VIDEO_ID)

        assert isinstance(detail, VideoDetail)
        assert detail.external_id == "dQw4w9WgXcQ"

    @respx.mock
    def test_ignores_unknown_fields(self, video_client):
        payload = video_detail_payload(viewCount=12, moderationNotes="n/a")
        respx.get(DETAIL_URL).mock(return_value=Response(200, json=payload))

        assert isinstance(video_client.fetch(FIXTURE_VIDEO_ID), VideoDetail)

    @respx.mock
    def test_trailing_slash_in_base_url(self):
        route = respx.get(DETAIL_URL).mock(
            return_value=Response(200, json=video_detail_payload())
        )

        with VideoServiceClient(BASE_URL + "/") as client:
            client.fetch(FIXTURE_VIDEO_ID)

        assert route.called
        assert route.calls.last.request.url.path == f"/videos/{FIXTURE_VIDEO_ID}"


class TestFetchFailureClassification:
    @respx.mock
    def test_404_is_not_found(self, video_client):
        respx.get(DETAIL_URL).mock(return_value=Response(404))

        outcome = video_client.fetch(FIXTURE_VIDEO_ID)

        assert isinstance(outcome, FetchFailure)
        assert outcome.kind == FetchFailureKind.NOT_FOUND
        assert outcome.retryable is False
        assert outcome.video_id == FIXTURE_VIDEO_ID

    @respx.mock
    def test_empty_body_is_not_found(self, video_client):
        respx.get(DETAIL_URL).mock(return_value=Response(200, content=b""))

        outcome = video_client.fetch(FIXTURE_VIDEO_ID)

        assert isinstance(outcome, FetchFailure)
        assert outcome.kind == FetchFailureKind.NOT_FOUND

    @respx.mock
    def test_json_null_is_not_found(self, video_client):
        respx.get(DETAIL_URL).mock(return_value=Response(200, content=b"null"))

        outcome = video_client.fetch(FIXTURE_VIDEO_ID)

        assert isinstance(outcome, FetchFailure)
        assert outcome.kind == FetchFailureKind.NOT_FOUND

    @pytest.mark.parametrize("status_code", [503, 504])
    @respx.mock
    def test_gateway_statuses_are_unavailable(self, video_client, status_code):
        respx.get(DETAIL_URL).mock(return_value=Response(status_code))

        outcome = video_client.fetch(FIXTURE_VIDEO_ID)

        assert outcome.kind == FetchFailureKind.UNAVAILABLE
        assert outcome.status_code == status_code
        assert outcome.retryable is True

    @respx.mock
    def test_connect_error_is_connect_failed(self, video_client):
        respx.get(DETAIL_URL).mock(side_effect=httpx.ConnectError("connection refused"))

        outcome = video_client.fetch(FIXTURE_VIDEO_ID)

        assert outcome.kind == FetchFailureKind.CONNECT_FAILED
        assert outcome.retryable is True
        assert outcome.status_code is None

    @respx.mock
    def test_timeout_is_connect_failed(self, video_client):
        respx.get(DETAIL_URL).mock(side_effect=httpx.ReadTimeout("timed out"))

        outcome = video_client.fetch(FIXTURE_VIDEO_ID)

        assert outcome.kind == FetchFailureKind.CONNECT_FAILED
        assert outcome.retryable is True

    @respx.mock
    def test_500_is_retryable_upstream_error(self, video_client):
        respx.get(DETAIL_URL).mock(return_value=Response(500))

        outcome = video_client.fetch(FIXTURE_VIDEO_ID)

        assert outcome.kind == FetchFailureKind.UPSTREAM_ERROR
        assert outcome.retryable is True

    @pytest.mark.parametrize("status_code", [400, 401, 403, 409])
    @respx.mock
    def test_other_4xx_is_not_retryable(self, video_client, status_code):
        respx.get(DETAIL_URL).mock(return_value=Response(status_code))

        outcome = video_client.fetch(FIXTURE_VIDEO_ID)

        assert outcome.kind == FetchFailureKind.UPSTREAM_ERROR
        assert outcome.status_code == status_code
        assert outcome.retryable is False

    @respx.mock
    def test_invalid_json_is_unexpected_error(self, video_client):
        respx.get(DETAIL_URL).mock(return_value=Response(200, content=b"{not json"))

        outcome = video_client.fetch(FIXTURE_VIDEO_ID)

        assert outcome.kind == FetchFailureKind.UNEXPECTED_ERROR
        assert outcome.retryable is True

    @respx.mock
    def test_schema_mismatch_is_unexpected_error(self, video_client):
        respx.get(DETAIL_URL).mock(return_value=Response(200, json={"id": "not-a-uuid"}))

        outcome = video_client.fetch(FIXTURE_VIDEO_ID)

        assert outcome.kind == FetchFailureKind.UNEXPECTED_ERROR

    @respx.mock
    def test_redirect_is_not_followed(self, video_client):
        respx.get(DETAIL_URL).mock(
            return_value=Response(302, headers={"Location": "http://elsewhere.test/"})
        )

        outcome = video_client.fetch(FIXTURE_VIDEO_ID)

        assert outcome.kind == FetchFailureKind.UPSTREAM_ERROR
        assert outcome.retryable is False


class TestClassifyStatus:
    def test_404(self):
        assert classify_status(FIXTURE_VIDEO_ID, 404).kind == FetchFailureKind.NOT_FOUND

    def test_502_is_upstream_error_and_retryable(self):
        failure = classify_status(FIXTURE_VIDEO_ID, 502)
        assert failure.kind == FetchFailureKind.UPSTREAM_ERROR
        assert failure.retryable is True


class TestVideoServiceError:
    def test_carries_failure_and_retryability(self):
        failure = FetchFailure(
            FetchFailureKind.UNAVAILABLE, FIXTURE_VIDEO_ID, "down", status_code=503
        )

        error = VideoServiceError(failure)

        assert error.failure is failure
        assert error.video_id == FIXTURE_VIDEO_ID
        assert error.retryable is True
        assert "unavailable" in str(error)
        assert str(FIXTURE_VIDEO_ID) in str(error)

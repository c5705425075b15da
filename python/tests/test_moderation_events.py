"""Tests for moderation event handling.

Tests cover:
- Dispatch of approve/reject events to the index operations
- Retry with exponential backoff for retryable failures
- Dead-lettering: malformed payloads, non-retryable failures, exhausted retries
- The dead-letter task itself

The Celery task is executed in-process via ``run`` with a pushed request
context, so no broker is needed. Dead-letter publishing is patched.
"""

from unittest.mock import MagicMock, patch

import pytest
from celery.exceptions import Retry
from pydantic import ValidationError

from tests.fixtures import FIXTURE_VIDEO_ID, approved_event, rejected_event
from videoindex.clients.video_service import FetchFailure, FetchFailureKind, VideoServiceError
from videoindex.config import clear_settings_cache
from videoindex.services.indexing import IndexOutcome
from videoindex.tasks.moderation_events import (
    DEAD_LETTER_INVALID_PAYLOAD,
    DEAD_LETTER_NOT_RETRYABLE,
    DEAD_LETTER_RETRIES_EXHAUSTED,
    handle_moderation_event,
    moderation_event_dead_letter,
    retry_countdown,
    run_moderation_event_sync,
)

MODULE = "videoindex.tasks.moderation_events"


def _run_task(payload, retries: int = 0, request_id: str | None = None):
    """Execute the task body as a worker would on delivery number ``retries + 1``."""
    handle_moderation_event.push_request(id="task-1", retries=retries)
    try:
        return handle_moderation_event.run(payload, request_id=request_id)
    finally:
        handle_moderation_event.pop_request()


def _failure(kind: FetchFailureKind, status_code: int | None = None) -> VideoServiceError:
    return VideoServiceError(FetchFailure(kind, FIXTURE_VIDEO_ID, "boom", status_code))


@pytest.fixture
def retry_settings(monkeypatch):
    monkeypatch.setenv("MODERATION_MAX_RETRIES", "3")
    monkeypatch.setenv("MODERATION_RETRY_BACKOFF_S", "2")
    clear_settings_cache()


@pytest.fixture
def dead_letter():
    with patch(f"{MODULE}._publish_dead_letter") as publish:
        yield publish


@pytest.fixture
def mock_retry():
    """Replace Task.retry so the scheduled countdown can be inspected."""
    task_class = handle_moderation_event.__class__
    with patch.object(task_class, "retry", side_effect=Retry("retry scheduled")) as retry:
        yield retry


# =============================================================================
# Dispatch
# =============================================================================


class TestDispatch:
    def test_approved_event_indexes(self):
        db = MagicMock()
        fetcher = MagicMock()

        with patch(f"{MODULE}.index_video", return_value=IndexOutcome.INDEXED) as index:
            result = run_moderation_event_sync(db, fetcher, approved_event())

        index.assert_called_once_with(db, fetcher, FIXTURE_VIDEO_ID)
        assert result == {
            "event_type": "VIDEO_APPROVED",
            "video_id": str(FIXTURE_VIDEO_ID),
            "status": "indexed",
        }

    def test_rejected_event_removes(self):
        db = MagicMock()

        with patch(f"{MODULE}.remove_video", return_value=True) as remove:
            result = run_moderation_event_sync(db, None, rejected_event())

        remove.assert_called_once_with(db, FIXTURE_VIDEO_ID)
        assert result["status"] == "removed"

    def test_rejected_event_for_unindexed_video(self):
        with patch(f"{MODULE}.remove_video", return_value=False):
            result = run_moderation_event_sync(MagicMock(), None, rejected_event())

        assert result["status"] == "not_in_index"

    def test_rejected_event_never_fetches(self):
        fetcher = MagicMock()

        with patch(f"{MODULE}.remove_video", return_value=True):
            run_moderation_event_sync(MagicMock(), fetcher, rejected_event())

        fetcher.fetch.assert_not_called()

    def test_unknown_event_type_is_rejected(self):
        payload = {**approved_event(), "eventType": "VIDEO_FLAGGED"}

        with pytest.raises(ValidationError):
            run_moderation_event_sync(MagicMock(), MagicMock(), payload)

    def test_missing_video_id_is_rejected(self):
        payload = approved_event()
        del payload["videoId"]

        with pytest.raises(ValidationError):
            run_moderation_event_sync(MagicMock(), MagicMock(), payload)


# =============================================================================
# Task success path
# =============================================================================


class TestHandleModerationEvent:
    def test_returns_result_of_processing(self, dead_letter):
        expected = {"event_type": "VIDEO_APPROVED", "video_id": "x", "status": "indexed"}

        with patch(f"{MODULE}._process_event", return_value=expected) as process:
            result = _run_task(approved_event(), request_id="req-1")

        assert result == expected
        event = process.call_args.args[0]
        assert event.video_id == FIXTURE_VIDEO_ID
        dead_letter.assert_not_called()

    def test_task_is_acks_late(self):
        assert handle_moderation_event.acks_late is True


# =============================================================================
# Retry and dead-letter policy
# =============================================================================


class TestRetryPolicy:
    def test_countdown_doubles_per_retry(self):
        assert [retry_countdown(n, 2.0) for n in range(4)] == [2.0, 4.0, 8.0, 16.0]

    def test_retryable_failure_schedules_retry(self, retry_settings, dead_letter, mock_retry):
        error = _failure(FetchFailureKind.UNAVAILABLE, 503)

        with patch(f"{MODULE}._process_event", side_effect=error):
            with pytest.raises(Retry):
                _run_task(approved_event(), retries=1)

        kwargs = mock_retry.call_args.kwargs
        assert kwargs["exc"] is error
        assert kwargs["countdown"] == 4.0
        assert kwargs["max_retries"] == 3
        dead_letter.assert_not_called()

    def test_unexpected_exception_schedules_retry(self, retry_settings, dead_letter, mock_retry):
        with patch(f"{MODULE}._process_event", side_effect=RuntimeError("db down")):
            with pytest.raises(Retry):
                _run_task(rejected_event(), retries=0)

        assert mock_retry.call_args.kwargs["countdown"] == 2.0
        dead_letter.assert_not_called()

    def test_exhausted_retries_dead_letter_and_reraise(
        self, retry_settings, dead_letter, mock_retry
    ):
        error = _failure(FetchFailureKind.CONNECT_FAILED)
        payload = approved_event()

        with patch(f"{MODULE}._process_event", side_effect=error):
            with pytest.raises(VideoServiceError):
                _run_task(payload, retries=3, request_id="req-9")

        mock_retry.assert_not_called()
        dead_letter.assert_called_once()
        args = dead_letter.call_args.args
        assert args[0] == payload
        assert args[1] == DEAD_LETTER_RETRIES_EXHAUSTED
        assert args[3] == "req-9"

    def test_non_retryable_failure_dead_letters_immediately(
        self, retry_settings, dead_letter, mock_retry
    ):
        error = _failure(FetchFailureKind.UPSTREAM_ERROR, 403)

        with patch(f"{MODULE}._process_event", side_effect=error):
            with pytest.raises(VideoServiceError):
                _run_task(approved_event(), retries=0)

        mock_retry.assert_not_called()
        assert dead_letter.call_args.args[1] == DEAD_LETTER_NOT_RETRYABLE

    def test_malformed_payload_dead_letters_immediately(self, dead_letter, mock_retry):
        payload = {"eventType": "VIDEO_APPROVED", "videoId": "not-a-uuid"}

        with patch(f"{MODULE}._process_event") as process:
            with pytest.raises(ValidationError):
                _run_task(payload)

        process.assert_not_called()
        mock_retry.assert_not_called()
        assert dead_letter.call_args.args[0] == payload
        assert dead_letter.call_args.args[1] == DEAD_LETTER_INVALID_PAYLOAD

    def test_non_object_payload_dead_letters(self, dead_letter):
        with pytest.raises(ValidationError):
            _run_task("not an event")

        assert dead_letter.call_args.args[1] == DEAD_LETTER_INVALID_PAYLOAD


class TestDeadLetterPublishing:
    def test_published_to_dead_letter_queue(self, monkeypatch):
        monkeypatch.setenv("MODERATION_DEAD_LETTER_QUEUE", "custom-dlq")
        clear_settings_cache()

        with patch.object(moderation_event_dead_letter.__class__, "apply_async") as apply_async:
            with pytest.raises(ValidationError):
                _run_task({"eventType": "nope"}, request_id="req-2")

        kwargs = apply_async.call_args.kwargs
        assert kwargs["queue"] == "custom-dlq"
        assert kwargs["kwargs"]["payload"] == {"eventType": "nope"}
        assert kwargs["kwargs"]["reason"] == DEAD_LETTER_INVALID_PAYLOAD
        assert kwargs["kwargs"]["request_id"] == "req-2"

    def test_dead_letter_task_only_logs(self):
        with patch(f"{MODULE}.logger") as logger:
            result = moderation_event_dead_letter.run(
                payload=approved_event(), reason=DEAD_LETTER_RETRIES_EXHAUSTED, error="boom"
            )

        assert result is None
        logger.error.assert_called_once()
        assert logger.error.call_args.args[0] == "moderation_event_dead_lettered"
        assert logger.error.call_args.kwargs["reason"] == DEAD_LETTER_RETRIES_EXHAUSTED

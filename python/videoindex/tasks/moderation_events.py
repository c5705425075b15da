"""Celery tasks for moderation event handling.

handle_moderation_event consumes one moderation decision and applies it to the
search index:
- VIDEO_APPROVED -> fetch detail, upsert (index_video)
- VIDEO_REJECTED -> delete (remove_video)

Failure policy:
- retryable VideoServiceError, or any unexpected exception: retry with
  exponential backoff (MODERATION_RETRY_BACKOFF_S * 2**retries) up to
  MODERATION_MAX_RETRIES, then dead-letter and re-raise
- non-retryable VideoServiceError: dead-letter immediately and re-raise
- malformed payload: dead-letter immediately and re-raise

Dead-lettered payloads are published as moderation_event_dead_letter on
MODERATION_DEAD_LETTER_QUEUE, where they are logged for inspection and replay.
"""

from typing import Any

from pydantic import ValidationError
from sqlalchemy.orm import Session

from videoindex.celery import celery_app
from videoindex.clients.video_service import VideoServiceClient, VideoServiceError
from videoindex.config import get_settings
from videoindex.db.session import get_session_factory
from videoindex.logging import clear_task_context, configure_task_logging, get_logger
from videoindex.schemas.events import (
    VideoApprovedEvent,
    VideoRejectedEvent,
    parse_moderation_event,
)
from videoindex.services.indexing import VideoDetailFetcher, index_video, remove_video

logger = get_logger(__name__)

DEAD_LETTER_INVALID_PAYLOAD = "invalid_payload"
DEAD_LETTER_NOT_RETRYABLE = "not_retryable"
DEAD_LETTER_RETRIES_EXHAUSTED = "retries_exhausted"


def retry_countdown(retries: int, backoff_s: float) -> float:
    """Seconds to wait before redelivery number ``retries + 1``."""
    return backoff_s * (2**retries)


@celery_app.task(bind=True, acks_late=True, max_retries=None, name="handle_moderation_event")
def handle_moderation_event(
    self,
    payload: dict,
    request_id: str | None = None,
) -> dict:
    """Apply one moderation event to the search index.

    Args:
        payload: Raw event ``{eventType, videoId, reviewerId, timestamp, reason?}``.
        request_id: Optional correlation ID for log tracing.

    Returns:
        Dict with the event type, video id and handling status.
    """
    settings = get_settings()
    video_id = payload.get("videoId") if isinstance(payload, dict) else None
    configure_task_logging(
        request_id=request_id,
        task_name="handle_moderation_event",
        task_id=self.request.id,
        video_id=str(video_id) if video_id else None,
    )

    try:
        try:
            event = parse_moderation_event(payload)
        except ValidationError as e:
            logger.error("moderation_event_invalid", error_count=e.error_count())
            _publish_dead_letter(payload, DEAD_LETTER_INVALID_PAYLOAD, str(e), request_id)
            raise

        logger.info(
            "moderation_event_received",
            event_type=event.event_type,
            retries=self.request.retries,
        )

        try:
            result = _process_event(event)
        except VideoServiceError as e:
            if not e.retryable:
                logger.error(
                    "moderation_event_not_retryable",
                    kind=e.failure.kind.value,
                    error=str(e),
                )
                _publish_dead_letter(payload, DEAD_LETTER_NOT_RETRYABLE, str(e), request_id)
                raise
            _retry_or_dead_letter(self, payload, e, request_id, settings)
            raise
        except Exception as e:
            _retry_or_dead_letter(self, payload, e, request_id, settings)
            raise

        logger.info("moderation_event_handled", **result)
        return result
    finally:
        clear_task_context()


@celery_app.task(bind=True, name="moderation_event_dead_letter")
def moderation_event_dead_letter(
    self,
    payload: Any,
    reason: str,
    error: str | None = None,
    request_id: str | None = None,
) -> None:
    """Record a moderation event that failed terminally.

    The payload is logged verbatim so operators can inspect and replay it.
    """
    configure_task_logging(
        request_id=request_id,
        task_name="moderation_event_dead_letter",
        task_id=self.request.id,
    )
    try:
        logger.error(
            "moderation_event_dead_lettered",
            payload=payload,
            reason=reason,
            error=error,
        )
    finally:
        clear_task_context()


def _retry_or_dead_letter(task, payload: dict, exc: Exception, request_id, settings) -> None:
    """Schedule a retry, or dead-letter once retries are exhausted.

    Returns normally only when the event was dead-lettered; the caller then
    re-raises ``exc``.
    """
    retries = task.request.retries
    if retries >= settings.moderation_max_retries:
        logger.error(
            "moderation_event_retries_exhausted",
            retries=retries,
            error=str(exc),
            error_type=type(exc).__name__,
        )
        _publish_dead_letter(payload, DEAD_LETTER_RETRIES_EXHAUSTED, str(exc), request_id)
        return

    countdown = retry_countdown(retries, settings.moderation_retry_backoff_s)
    logger.warning(
        "moderation_event_retry_scheduled",
        retries=retries,
        countdown_s=countdown,
        error=str(exc),
        error_type=type(exc).__name__,
    )
    raise task.retry(exc=exc, countdown=countdown, max_retries=settings.moderation_max_retries)


def _publish_dead_letter(
    payload: Any,
    reason: str,
    error: str | None,
    request_id: str | None,
) -> None:
    moderation_event_dead_letter.apply_async(
        kwargs={
            "payload": payload,
            "reason": reason,
            "error": error,
            "request_id": request_id,
        },
        queue=get_settings().moderation_dead_letter_queue,
    )


def _process_event(event: VideoApprovedEvent | VideoRejectedEvent) -> dict:
    """Open a session (and, for approvals, a video service client) and apply."""
    session_factory = get_session_factory()
    db = session_factory()
    try:
        if isinstance(event, VideoApprovedEvent):
            with VideoServiceClient.from_settings() as client:
                return apply_moderation_event(db, client, event)
        return apply_moderation_event(db, None, event)
    finally:
        db.close()


def apply_moderation_event(
    db: Session,
    fetcher: VideoDetailFetcher | None,
    event: VideoApprovedEvent | VideoRejectedEvent,
) -> dict:
    """Dispatch a parsed event to the matching index operation.

    Raises:
        ValueError: If an approval arrives without a fetcher, or the event
            type is unknown.
    """
    if isinstance(event, VideoApprovedEvent):
        if fetcher is None:
            raise ValueError("A video detail fetcher is required for approvals")
        outcome = index_video(db, fetcher, event.video_id)
        return {
            "event_type": event.event_type,
            "video_id": str(event.video_id),
            "status": outcome.value,
        }

    if isinstance(event, VideoRejectedEvent):
        removed = remove_video(db, event.video_id)
        return {
            "event_type": event.event_type,
            "video_id": str(event.video_id),
            "status": "removed" if removed else "not_in_index",
        }

    raise ValueError(f"Unsupported moderation event: {type(event).__name__}")


# =============================================================================
# Synchronous execution helper (for tests and dev mode)
# =============================================================================


def run_moderation_event_sync(
    db: Session,
    fetcher: VideoDetailFetcher | None,
    payload: dict,
) -> dict:
    """Handle a moderation event synchronously (for tests and dev mode).

    Same dispatch as the Celery task but uses the provided session and
    fetcher, and applies no retry or dead-letter policy.

    Raises:
        pydantic.ValidationError: If the payload is malformed.
    """
    event = parse_moderation_event(payload)
    return apply_moderation_event(db, fetcher, event)

"""Celery worker entrypoint.

Run with:
    celery -A apps.worker.main:celery_app worker \
        -Q moderation-events,moderation-events-dlq --loglevel=info

This module imports the Celery app and explicitly registers all tasks.
Task definitions are in the videoindex.tasks package - no autodiscovery.

Logging Convention:
- All task log entries include request_id, task_name, task_id, video_id when available
- Tasks accept `request_id: str | None = None` parameter for correlation

Queue Configuration:
- moderation-events: approve/reject decisions to apply to the index
- moderation-events-dlq: events that failed terminally, logged for replay
"""

from celery.signals import worker_process_init

from videoindex.celery import celery_app
from videoindex.config import get_settings
from videoindex.logging import configure_logging, get_logger

# Import tasks to register them with Celery
from videoindex.tasks import handle_moderation_event, moderation_event_dead_letter  # noqa: F401


@worker_process_init.connect
def setup_worker_logging(**kwargs):
    """Configure structlog when a worker process starts.

    Worker logs use the same structured format as the API, so moderation
    handling can be correlated with request logs by request_id.
    """
    settings = get_settings()
    configure_logging(json_format=settings.log_json)
    logger = get_logger(__name__)
    logger.info(
        "celery_worker_started",
        queues=[settings.moderation_events_queue, settings.moderation_dead_letter_queue],
    )


# Command: celery -A apps.worker.main:celery_app worker ...
__all__ = ["celery_app"]

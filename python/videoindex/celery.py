"""Celery application configuration.

Central configuration for Celery used by the worker (for consuming moderation
events) and by any producer or operator tooling (for publishing and replaying
them).

Usage:
    from videoindex.celery import celery_app

    # Publish a moderation event:
    celery_app.send_task(
        "handle_moderation_event",
        args=[{"eventType": "VIDEO_APPROVED", "videoId": "...", ...}],
        queue="moderation-events",
    )
"""

from celery import Celery

from videoindex.config import get_settings

settings = get_settings()

celery_app = Celery("videoindex")

celery_app.conf.broker_url = settings.effective_celery_broker_url
celery_app.conf.result_backend = settings.effective_celery_result_backend

# Task configuration
celery_app.conf.task_serializer = "json"
celery_app.conf.result_serializer = "json"
celery_app.conf.accept_content = ["json"]
celery_app.conf.timezone = "UTC"
celery_app.conf.enable_utc = True

# A message is acknowledged only after its handler returns, so a worker crash
# mid-event redelivers it
celery_app.conf.task_acks_late = True
celery_app.conf.task_reject_on_worker_lost = True
celery_app.conf.worker_prefetch_multiplier = 1

# Queue routing for moderation events and their dead letters
celery_app.conf.task_routes = {
    "handle_moderation_event": {"queue": settings.moderation_events_queue},
    "moderation_event_dead_letter": {"queue": settings.moderation_dead_letter_queue},
}

celery_app.conf.task_default_queue = "default"

# For testing: allow eager mode (synchronous execution)
celery_app.conf.task_always_eager = False


def get_celery_app() -> Celery:
    """Get the Celery application instance."""
    return celery_app

"""Celery tasks for videoindex.

Tasks are explicitly imported here to register them with Celery.
No autodiscovery - all tasks must be imported in this module.

Usage in worker:
    from videoindex.tasks import handle_moderation_event
"""

from videoindex.tasks.moderation_events import (
    handle_moderation_event,
    moderation_event_dead_letter,
)

__all__ = ["handle_moderation_event", "moderation_event_dead_letter"]

"""Structured logging configuration using structlog.

Provides JSON-formatted logs with consistent context including:
- request_id: Correlation ID for request tracing
- path: Raw request path (never includes query string)
- method: HTTP method
- task_name / task_id: Celery task context
- video_id: Video being synchronized (moderation event handling only)
- timestamp: ISO8601 formatted timestamp

Usage:
    from videoindex.logging import get_logger, configure_logging

    # Configure once at startup
    configure_logging()

    # Get a logger for a module
    logger = get_logger(__name__)
    logger.info("something_happened", extra_field="value")

Celery Task Logging:
    @celery_app.task(bind=True)
    def my_task(self, payload, request_id: str | None = None):
        configure_task_logging(request_id=request_id, task_name="my_task", task_id=self.request.id)
        logger.info("task_started")
"""

import logging
import sys
from contextvars import ContextVar

import structlog

# Context variables for request-scoped logging
request_id_var: ContextVar[str | None] = ContextVar("request_id", default=None)
task_name_var: ContextVar[str | None] = ContextVar("task_name", default=None)
task_id_var: ContextVar[str | None] = ContextVar("task_id", default=None)
path_var: ContextVar[str | None] = ContextVar("path", default=None)
method_var: ContextVar[str | None] = ContextVar("method", default=None)
video_id_var: ContextVar[str | None] = ContextVar("video_id", default=None)


def add_request_context(logger: logging.Logger, method_name: str, event_dict: dict) -> dict:
    """Add request context to all log entries.

    Injects all non-None ContextVar values into the log event dict.
    Explicitly bound values win over context values.
    """
    context = {
        "request_id": request_id_var.get(),
        "task_name": task_name_var.get(),
        "task_id": task_id_var.get(),
        "path": path_var.get(),
        "method": method_var.get(),
        "video_id": video_id_var.get(),
    }
    for key, value in context.items():
        if value and key not in event_dict:
            event_dict[key] = value

    return event_dict


def configure_logging(json_format: bool = True) -> None:
    """Configure structlog for the application.

    Args:
        json_format: If True, output JSON logs. If False, output console-friendly logs.
    """
    # Shared processors for both stdlib and structlog loggers
    shared_processors = [
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.TimeStamper(fmt="iso"),
        add_request_context,
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
    ]

    if json_format:
        renderer = structlog.processors.JSONRenderer()
    else:
        renderer = structlog.dev.ConsoleRenderer()

    structlog.configure(
        processors=shared_processors
        + [
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    formatter = structlog.stdlib.ProcessorFormatter(
        foreign_pre_chain=shared_processors,
        processors=[
            structlog.stdlib.ProcessorFormatter.remove_processors_meta,
            renderer,
        ],
    )

    root_logger = logging.getLogger()
    root_logger.handlers.clear()

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(formatter)
    root_logger.addHandler(handler)
    root_logger.setLevel(logging.INFO)

    # Silence noisy loggers
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)


def get_logger(name: str | None = None) -> structlog.stdlib.BoundLogger:
    """Get a structlog logger for the given name.

    Args:
        name: Logger name (typically __name__).

    Returns:
        A bound structlog logger.
    """
    return structlog.get_logger(name)


def set_request_context(
    request_id: str | None,
    path: str | None = None,
    method: str | None = None,
) -> None:
    """Set request context for the current async context.

    Args:
        request_id: The request correlation ID.
        path: Raw request path (optional, no query string).
        method: HTTP method (optional).
    """
    request_id_var.set(request_id)
    if path is not None:
        path_var.set(path)
    if method is not None:
        method_var.set(method)


def clear_request_context() -> None:
    """Clear all request-scoped context at the end of a request."""
    request_id_var.set(None)
    path_var.set(None)
    method_var.set(None)


def get_request_id() -> str | None:
    """Get the current request ID from context."""
    return request_id_var.get()


def configure_task_logging(
    request_id: str | None = None,
    task_name: str | None = None,
    task_id: str | None = None,
    video_id: str | None = None,
) -> None:
    """Configure logging context for a Celery task.

    Call this at the start of each Celery task to set up proper logging context.
    All subsequent log entries in the task will include these fields.

    Args:
        request_id: Correlation ID carried with the message, if any.
        task_name: The name of the Celery task.
        task_id: The Celery task ID (from self.request.id).
        video_id: The video the task is synchronizing.
    """
    request_id_var.set(request_id)
    task_name_var.set(task_name)
    task_id_var.set(task_id)
    video_id_var.set(video_id)


def clear_task_context() -> None:
    """Clear task context at the end of a task."""
    request_id_var.set(None)
    task_name_var.set(None)
    task_id_var.set(None)
    video_id_var.set(None)

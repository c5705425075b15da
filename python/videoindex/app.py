"""FastAPI application creation and configuration.

This module creates and configures the FastAPI application instance.
It registers exception handlers, request-id middleware, and routes.

Middleware Ordering:
- Middleware runs in reverse order of registration
- RequestIDMiddleware is added LAST so it runs FIRST (outermost)
- This ensures every response, including errors, gets X-Request-ID

Error Handling:
- ApiError -> status from ERROR_CODE_TO_STATUS (e.g. E_INVALID_BBOX -> 400)
- Query parameter validation errors -> 400 E_INVALID_REQUEST
- Anything unhandled -> 500 E_INTERNAL, logged server-side only
"""

from fastapi import FastAPI
from fastapi.exceptions import RequestValidationError
from starlette.exceptions import HTTPException as StarletteHTTPException

from videoindex.api.routes import create_api_router
from videoindex.config import get_settings
from videoindex.errors import ApiError
from videoindex.logging import configure_logging, get_logger
from videoindex.middleware.request_id import RequestIDMiddleware
from videoindex.responses import (
    api_error_handler,
    http_exception_handler,
    unhandled_exception_handler,
    validation_exception_handler,
)

logger = get_logger(__name__)


def create_app() -> FastAPI:
    """Create and configure the FastAPI application.

    Returns:
        Configured FastAPI application instance.
    """
    settings = get_settings()
    configure_logging(json_format=settings.log_json)

    app = FastAPI(
        title="Video Index API",
        description="Search over moderated, approved videos",
        version="0.1.0",
        docs_url="/docs",
        redoc_url="/redoc",
    )

    # Register exception handlers
    app.add_exception_handler(ApiError, api_error_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(Exception, unhandled_exception_handler)

    # Use router factory to avoid import-time settings loading
    app.include_router(create_api_router())

    logger.info("app_created", env=settings.videoindex_env.value)
    return app


def add_request_id_middleware(app: FastAPI, log_requests: bool = True) -> None:
    """Add request-id middleware to the app.

    This should be called AFTER all other middleware is added, so it runs FIRST.

    Args:
        app: The FastAPI application.
        log_requests: Whether to log access entries for each request.
    """
    app.add_middleware(RequestIDMiddleware, log_requests=log_requests)
    logger.info("request_id_middleware_enabled")

"""X-Request-ID middleware for request correlation and access logging.

Incoming IDs are accepted when they are UUIDs (normalized to lowercase) or short
tokens of ``[A-Za-z0-9._-]``; anything else is replaced by a fresh UUID4. The
ID is placed on ``request.state``, bound into the logging context, echoed in the
response header and included in error envelopes.

Must be added LAST so it runs FIRST (outermost), wrapping every other middleware.
"""

import re
import time
import uuid

from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint

from videoindex.logging import clear_request_context, get_logger, set_request_context

REQUEST_ID_HEADER = "X-Request-ID"
MAX_REQUEST_ID_LENGTH = 128

VALID_REQUEST_ID_PATTERN = re.compile(r"^[A-Za-z0-9._-]{1,128}$")
UUID_PATTERN = re.compile(
    r"^[0-9a-fA-F]{8}-[0-9a-fA-F]{4}-[0-9a-fA-F]{4}-[0-9a-fA-F]{4}-[0-9a-fA-F]{12}$"
)

logger = get_logger(__name__)


def resolve_request_id(incoming: str | None) -> str:
    """Return a normalized incoming request ID, or a new one if unusable."""
    if incoming and len(incoming.encode("utf-8")) <= MAX_REQUEST_ID_LENGTH:
        if UUID_PATTERN.match(incoming):
            return incoming.lower()
        if VALID_REQUEST_ID_PATTERN.match(incoming):
            return incoming
    return str(uuid.uuid4())


class RequestIDMiddleware(BaseHTTPMiddleware):
    """Attach a request ID to every request and log one access entry per request.

    Args:
        app: The ASGI application.
        log_requests: If True, log access entries for each request.
    """

    def __init__(self, app, log_requests: bool = True):
        super().__init__(app)
        self.log_requests = log_requests

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        start_time = time.monotonic()

        request_id = resolve_request_id(request.headers.get(REQUEST_ID_HEADER))
        request.state.request_id = request_id

        # Path only: query strings may carry user search text
        set_request_context(request_id, path=request.url.path, method=request.method)

        try:
            response = await call_next(request)
            response.headers[REQUEST_ID_HEADER] = request_id

            if self.log_requests:
                duration_ms = (time.monotonic() - start_time) * 1000
                logger.info(
                    "request_completed",
                    status_code=response.status_code,
                    duration_ms=round(duration_ms, 2),
                )

            return response

        except Exception:
            logger.exception("request_failed")
            raise

        finally:
            clear_request_context()

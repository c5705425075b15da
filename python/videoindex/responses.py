"""API response envelope helpers and exception handlers.

Envelope conventions:
- Health and other service endpoints: { "data": ... }
- Search returns its documented body unwrapped (results/pagination/queryTime/query)
- Errors always: { "error": { "code": "E_...", "message": "...", "request_id": "..." } }
"""

from typing import Any

from fastapi import Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from videoindex.errors import ApiError, ApiErrorCode
from videoindex.logging import get_logger, get_request_id

logger = get_logger(__name__)

# Map common HTTP status codes raised by the framework to our error codes
_STATUS_TO_CODE = {
    400: ApiErrorCode.E_INVALID_REQUEST,
    404: ApiErrorCode.E_NOT_FOUND,
    405: ApiErrorCode.E_INVALID_REQUEST,
    422: ApiErrorCode.E_INVALID_REQUEST,
}


def success_response(data: Any) -> dict[str, Any]:
    """Wrap data in the success envelope."""
    return {"data": data}


def error_response(
    code: ApiErrorCode, message: str, request_id: str | None = None
) -> dict[str, Any]:
    """Create an error response envelope.

    Args:
        code: The error code enum value.
        message: Human-readable error message.
        request_id: Optional request ID for correlation (auto-populated from context if None).

    Returns:
        Dict with "error" key containing code, message, and request_id.
    """
    if request_id is None:
        request_id = get_request_id()

    error = {"code": code.value, "message": message}
    if request_id:
        error["request_id"] = request_id

    return {"error": error}


async def api_error_handler(request: Request, exc: ApiError) -> JSONResponse:
    """Handle ApiError exceptions and return proper JSON response."""
    return JSONResponse(
        status_code=exc.status_code,
        content=error_response(exc.code, exc.message),
    )


async def http_exception_handler(request: Request, exc: Any) -> JSONResponse:
    """Handle Starlette/FastAPI HTTPException with the error envelope."""
    code = _STATUS_TO_CODE.get(exc.status_code, ApiErrorCode.E_INTERNAL)
    message = str(exc.detail) if exc.detail else "An error occurred"
    return JSONResponse(
        status_code=exc.status_code,
        content=error_response(code, message),
    )


async def validation_exception_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    """Report query-parameter validation failures as 400 client errors.

    Names the offending parameters but never echoes their values.
    """
    fields = sorted(
        {str(err["loc"][-1]) for err in exc.errors() if err.get("loc")},
    )
    message = "Invalid request parameters"
    if fields:
        message = f"Invalid request parameters: {', '.join(fields)}"
    return JSONResponse(
        status_code=400,
        content=error_response(ApiErrorCode.E_INVALID_REQUEST, message),
    )


async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Handle unhandled exceptions and return 500 with E_INTERNAL.

    Logs the exception server-side but never leaks details to client.
    """
    logger.exception("unhandled_exception", error_type=type(exc).__name__)

    return JSONResponse(
        status_code=500,
        content=error_response(ApiErrorCode.E_INTERNAL, "Internal server error"),
    )

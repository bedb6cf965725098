"""Global exception handlers for consistent error responses.

Design:
- AppError subclasses map to HTTP status (400, 403, 429)
- Unexpected Exception falls back to a generic 500
- All responses include request_id for tracing
"""

import logging

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from termhunt.core.config import settings
from termhunt.core.errors import AppError, AuthenticationAppError, RateLimitAppError
from termhunt.core.logging import get_request_id
from termhunt.core.middleware import SECURITY_HEADERS

logger = logging.getLogger(__name__)


def _status_for(exc: AppError) -> int:
    if isinstance(exc, AuthenticationAppError):
        return 403
    if isinstance(exc, RateLimitAppError):
        return 429
    return 400


async def app_error_handler(request: Request, exc: AppError) -> JSONResponse:
    """Render domain errors as ``{"error": {code, message, request_id, details?}}``.

    - ValidationAppError → 400 Bad Request
    - AuthenticationAppError, CSRFAppError → 403 Forbidden
    - RateLimitAppError → 429 Too Many Requests, with Retry-After

    Args:
        request: FastAPI request object.
        exc: AppError instance (or subclass).

    Returns:
        JSONResponse with appropriate status code and error details.
    """
    status_code = _status_for(exc)

    logger.warning(
        "app_error_handled",
        extra={
            "error_code": exc.code,
            "error_message": exc.message,
            "status_code": status_code,
            "has_details": bool(exc.details),
            "request_path": request.url.path,
        },
    )

    error_content = {
        "code": exc.code,
        "message": exc.message,
        "request_id": get_request_id(),
    }
    if exc.details:
        error_content["details"] = exc.details

    headers: dict[str, str] | None = None
    if isinstance(exc, RateLimitAppError) and exc.headers:
        headers = dict(exc.headers)

    return JSONResponse(
        status_code=status_code,
        content={"error": error_content},
        headers=headers,
    )


async def general_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Fallback handler for unexpected errors.

    Logs the failure for debugging while returning a generic message, so no
    stack traces or internals reach the client.

    Starlette runs this handler outside the HTTP middleware stack, so the
    request id comes from request.state and security headers are added here.
    """
    request_id = getattr(request.state, "request_id", None) or get_request_id()
    logger.error(
        "unhandled_exception",
        extra={
            "error_type": type(exc).__name__,
            "error_msg": str(exc),
            "request_path": request.url.path,
            "request_method": request.method,
            "request_id": request_id,
        },
    )

    headers: dict[str, str] = {}
    if request_id:
        headers[settings.log.request_id_header] = request_id
    if settings.app.security_headers_enabled:
        headers.update(SECURITY_HEADERS)

    return JSONResponse(
        status_code=500,
        content={
            "error": {
                "code": "internal_server_error",
                "message": "An unexpected error occurred. Please try again later.",
                "request_id": request_id,
            }
        },
        headers=headers,
    )


def setup_exception_handlers(app: FastAPI) -> None:
    """Register all exception handlers with the FastAPI app."""
    app.exception_handler(AppError)(app_error_handler)
    app.exception_handler(Exception)(general_exception_handler)

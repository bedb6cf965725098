"""HTTP middleware for request correlation and browser security headers.

Usage:
    app.middleware("http")(security_headers_middleware)
    app.middleware("http")(request_id_middleware)
"""

from __future__ import annotations

import time
import uuid

from fastapi import Request, Response

from termhunt.core.config import settings
from termhunt.core.logging import clear_request_id, set_request_id

CONTENT_SECURITY_POLICY = "; ".join(
    [
        "default-src 'self'",
        "script-src 'self' 'unsafe-eval' 'unsafe-inline'",
        "style-src 'self' 'unsafe-inline'",
        "img-src 'self' data: https:",
        "font-src 'self' data:",
        "connect-src 'self' https:",
    ]
)

MAX_REQUEST_ID_LENGTH = 128

SECURITY_HEADERS: dict[str, str] = {
    "X-Frame-Options": "DENY",
    "X-Content-Type-Options": "nosniff",
    "Referrer-Policy": "strict-origin-when-cross-origin",
    "X-XSS-Protection": "1; mode=block",
    "Content-Security-Policy": CONTENT_SECURITY_POLICY,
}


def _incoming_request_id(request: Request, header_name: str) -> str:
    incoming = request.headers.get(header_name, "").strip()
    if incoming and len(incoming) <= MAX_REQUEST_ID_LENGTH:
        return incoming
    return uuid.uuid4().hex


async def request_id_middleware(request: Request, call_next) -> Response:
    """Propagate a correlation id through the request lifecycle.

    Uses the incoming request id header when present and sane (non-blank, at
    most MAX_REQUEST_ID_LENGTH chars), otherwise a new UUID.
    The id is stored in contextvars for log correlation, cleared once the
    handler returns, and echoed back together with the request duration.

    Args:
        request: The incoming HTTP request object.
        call_next: The next middleware/route handler in the stack.

    Returns:
        The downstream response with X-Request-ID and X-Request-Duration-ms.
    """

    header_name = settings.log.request_id_header
    request_id = _incoming_request_id(request, header_name)
    # request.state survives into handlers that run outside this middleware
    request.state.request_id = request_id
    set_request_id(request_id)

    started = time.perf_counter()
    try:
        response: Response = await call_next(request)
    finally:
        clear_request_id()

    response.headers[header_name] = request_id
    response.headers.setdefault(
        "X-Request-Duration-ms", f"{(time.perf_counter() - started) * 1000:.2f}"
    )
    return response


async def security_headers_middleware(request: Request, call_next) -> Response:
    """Add anti-framing, MIME sniffing, referrer and CSP headers.

    Headers already set by a handler are left untouched.
    """

    response: Response = await call_next(request)
    if settings.app.security_headers_enabled:
        for name, value in SECURITY_HEADERS.items():
            response.headers.setdefault(name, value)
    return response

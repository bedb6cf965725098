"""CSRF protection wiring for FastAPI routes.

Session ids are read from a header or cookie populated by the session layer;
how sessions are created is not this module's concern.

Usage:
    @router.post("/apps", dependencies=[Depends(require_csrf_token)])
    async def submit_app(...): ...
"""

from __future__ import annotations

import logging

from fastapi import Request

from termhunt.adapters.csrf import AbstractCSRFTokenStore, InMemoryCSRFTokenStore
from termhunt.core.config import settings
from termhunt.core.errors import CSRFAppError, ValidationAppError
from termhunt.core.logging import hash_for_log

logger = logging.getLogger(__name__)


_store: AbstractCSRFTokenStore | None = None
_store_config: tuple[int, int] | None = None


def get_csrf_store() -> AbstractCSRFTokenStore:
    """Return the process-wide CSRF token store, rebuilt on config change."""

    global _store, _store_config

    config = (settings.app.csrf_token_ttl_seconds, settings.app.csrf_token_bytes)
    if _store is None or _store_config != config:
        _store = InMemoryCSRFTokenStore(
            ttl_seconds=settings.app.csrf_token_ttl_seconds,
            token_bytes=settings.app.csrf_token_bytes,
        )
        _store_config = config

    return _store


def reset_csrf_store() -> None:
    global _store, _store_config
    _store = None
    _store_config = None


def resolve_session_id(request: Request) -> str:
    """Extract the caller's session id from the configured header or cookie.

    Raises:
        ValidationAppError: If neither carries a session id.
    """

    session_id = request.headers.get(settings.app.session_header_name) or request.cookies.get(
        settings.app.session_cookie_name
    )
    if not session_id:
        raise ValidationAppError(
            code="missing_session_id",
            message="A session is required for this operation",
            details={
                "hint": (
                    f"Send the {settings.app.session_header_name} header "
                    f"or the {settings.app.session_cookie_name} cookie"
                )
            },
        )
    return session_id


def issue_csrf_token(session_id: str) -> str:
    token = get_csrf_store().issue(session_id)
    logger.info("csrf.issued", extra={"session_hash": hash_for_log(session_id)})
    return token


def revoke_csrf_token(session_id: str) -> None:
    get_csrf_store().remove(session_id)
    logger.info("csrf.revoked", extra={"session_hash": hash_for_log(session_id)})


async def require_csrf_token(request: Request) -> str:
    """FastAPI dependency rejecting requests without a live CSRF token.

    Returns:
        The validated session id, so handlers can reuse it.

    Raises:
        ValidationAppError: If the request carries no session id.
        CSRFAppError: If the token is missing, wrong, or expired.
    """

    session_id = resolve_session_id(request)
    candidate = request.headers.get(settings.app.csrf_header_name)

    if candidate and get_csrf_store().validate(session_id, candidate):
        return session_id

    logger.warning(
        "csrf.rejected",
        extra={
            "session_hash": hash_for_log(session_id),
            "token_present": bool(candidate),
            "request_path": request.url.path,
        },
    )
    raise CSRFAppError(
        code="csrf_token_invalid",
        message="Missing, invalid or expired CSRF token",
        details={"header": settings.app.csrf_header_name},
    )

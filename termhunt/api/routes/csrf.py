from __future__ import annotations

from typing import Annotated

from fastapi import APIRouter, Depends, Request, Response, status

from termhunt.core.config import settings
from termhunt.core.csrf import (
    issue_csrf_token,
    require_csrf_token,
    resolve_session_id,
    revoke_csrf_token,
)
from termhunt.schemas.csrf import CSRFTokenResponse

router = APIRouter(tags=["CSRF"])


@router.get("/csrf/token", response_model=CSRFTokenResponse)
async def get_csrf_token(request: Request) -> CSRFTokenResponse:
    """Issue a CSRF token for the caller's session.

    Any token previously issued for the same session stops being valid.

    Returns:
        CSRFTokenResponse: The token, the header to send it in, and its lifetime.

    Raises:
        ValidationAppError: 400 if the request carries no session id.
    """
    session_id = resolve_session_id(request)
    token = issue_csrf_token(session_id)
    return CSRFTokenResponse(
        csrf_token=token,
        header_name=settings.app.csrf_header_name,
        expires_in=settings.app.csrf_token_ttl_seconds,
    )


@router.delete("/csrf/token", status_code=status.HTTP_204_NO_CONTENT)
async def delete_csrf_token(
    session_id: Annotated[str, Depends(require_csrf_token)],
) -> Response:
    """Revoke the session's CSRF token on sign-out."""
    revoke_csrf_token(session_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)

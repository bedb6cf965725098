from __future__ import annotations

from pydantic import BaseModel, Field


class CSRFTokenResponse(BaseModel):
    """Token issued for the caller's session."""

    csrf_token: str = Field(
        ...,
        description="Anti-forgery token to send back in the CSRF header on state-changing requests",
    )
    header_name: str = Field(
        ...,
        description="Request header the token must be sent in",
    )
    expires_in: int = Field(
        ...,
        description="Seconds until the token expires",
    )

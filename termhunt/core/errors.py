"""Application-level exception types.

This module defines domain errors raised by the HTTP wiring, enabling
consistent error handling, logging, and API responses.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, NotRequired, TypedDict


class ErrorDetails(TypedDict, total=False):
    """Structured error context for observability and clients."""

    code: str
    message: str
    hint: str
    retry_after: float
    header: str
    request_id: str
    context: NotRequired[dict[str, Any]]


@dataclass
class AppError(Exception):
    """Base error for application/domain failures.

    Attributes:
        code: Stable, machine-readable error code.
        message: Human-readable error message.
        details: Optional structured details for debugging/observability.
    """

    code: str
    message: str
    details: ErrorDetails | None = None

    def __post_init__(self) -> None:
        # Populate Exception args so str(error) is useful in logs/tracebacks.
        super().__init__(self.message)


class ValidationAppError(AppError):
    """Raised when request input or configuration is invalid."""


class AuthenticationAppError(AppError):
    """Raised when authentication/authorization fails."""


class CSRFAppError(AuthenticationAppError):
    """Raised when a state-changing request lacks a valid CSRF token."""


@dataclass
class RateLimitAppError(AppError):
    """Raised when an identifier has exhausted its attempt budget.

    Attributes:
        headers: Retry-After and X-RateLimit-* headers for the 429 response;
            empty when rate limit headers are disabled.
    """

    headers: dict[str, str] = field(default_factory=dict)

"""Rate limiting wiring for FastAPI routes.

This module connects the attempt limiter adapter to the HTTP layer.

Two entry points:
- ``check_login_attempt`` / ``clear_login_attempts`` for handlers that know
  the account being acted on (e.g., sign-in by email). Success does not reset
  the budget by itself; handlers forgive prior attempts explicitly.
- ``enforce_rate_limit``, a dependency keyed by client IP for state-changing
  endpoints without an account identifier.
"""

from __future__ import annotations

import logging

from fastapi import HTTPException, Request, status

from termhunt.adapters.rate_limit.base import AbstractRateLimiter, RateLimitResult
from termhunt.adapters.rate_limit.in_memory import InMemoryAttemptRateLimiter
from termhunt.core.config import settings
from termhunt.core.errors import RateLimitAppError
from termhunt.core.logging import hash_for_log

logger = logging.getLogger(__name__)


_limiter: AbstractRateLimiter | None = None
_limiter_config: tuple[int, int] | None = None


def get_rate_limiter() -> AbstractRateLimiter:
    """Return the process-wide rate limiter instance.

    The instance is cached in-module to preserve state across requests.
    If configuration changes (primarily in tests), the limiter is rebuilt.
    """

    global _limiter, _limiter_config

    config = (
        settings.app.rate_limit_max_attempts,
        settings.app.rate_limit_window_seconds,
    )

    if _limiter is None or _limiter_config != config:
        _limiter = InMemoryAttemptRateLimiter(
            max_attempts=settings.app.rate_limit_max_attempts,
            window_seconds=settings.app.rate_limit_window_seconds,
        )
        _limiter_config = config

    return _limiter


def reset_rate_limiter() -> None:
    """Drop the cached limiter so the next call starts from an empty table."""

    global _limiter, _limiter_config
    _limiter = None
    _limiter_config = None


def account_key(identifier: str) -> str:
    return f"account:{identifier}"


def client_ip_key(request: Request) -> str:
    client_host = request.client.host if request.client else "unknown"
    return f"ip:{client_host}"


def build_rate_limit_headers(result: RateLimitResult) -> dict[str, str]:
    """Build Retry-After and X-RateLimit-* headers for a rejected attempt."""

    if not settings.app.rate_limit_include_headers:
        return {}

    headers = {
        "Retry-After": str(result.retry_after_seconds or 0),
        "X-RateLimit-Limit": str(result.limit),
        "X-RateLimit-Remaining": str(result.remaining),
    }
    if result.reset_time is not None:
        headers["X-RateLimit-Reset"] = str(int(result.reset_time))
    return headers


def _record_attempt(key: str, key_type: str) -> RateLimitResult:
    result = get_rate_limiter().check(key)
    log_extra = {
        "key_type": key_type,
        "key_hash": hash_for_log(key),
        "limit": result.limit,
        "remaining": result.remaining,
        "window_s": settings.app.rate_limit_window_seconds,
    }

    if result.allowed:
        logger.info("rate_limit.allowed", extra=log_extra)
    else:
        logger.warning(
            "rate_limit.exceeded",
            extra={**log_extra, "retry_after_s": result.retry_after_seconds},
        )
    return result


def check_login_attempt(identifier: str) -> RateLimitResult | None:
    """Record an attempt against an account identifier.

    Args:
        identifier: Account identifier supplied by the caller (e.g., email).

    Returns:
        The limiter result, or None when rate limiting is disabled.

    Raises:
        RateLimitAppError: When the identifier has exhausted its budget.
    """

    if not settings.app.rate_limit_enabled:
        return None

    result = _record_attempt(account_key(identifier), "account")
    if result.allowed:
        return result

    raise RateLimitAppError(
        code="rate_limit_exceeded",
        message="Too many attempts. Try again later.",
        details={"retry_after": float(result.retry_after_seconds or 0)},
        headers=build_rate_limit_headers(result),
    )


def clear_login_attempts(identifier: str) -> None:
    """Forgive prior attempts for an account after a successful action."""

    get_rate_limiter().clear(account_key(identifier))
    logger.info(
        "rate_limit.cleared",
        extra={"key_type": "account", "key_hash": hash_for_log(account_key(identifier))},
    )


async def enforce_rate_limit(request: Request) -> None:
    """FastAPI dependency recording one attempt per request for the client IP.

    Args:
        request: FastAPI request.

    Raises:
        HTTPException: 429 Too Many Requests when the budget is exhausted.
    """

    if not settings.app.rate_limit_enabled:
        return

    result = _record_attempt(client_ip_key(request), "ip")
    if result.allowed:
        return

    headers = build_rate_limit_headers(result)
    raise HTTPException(
        status_code=status.HTTP_429_TOO_MANY_REQUESTS,
        detail="Rate limit exceeded. Try again later.",
        headers=headers or None,
    )

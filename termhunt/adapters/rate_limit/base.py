"""Rate limiter interfaces.

The HTTP layer depends on this abstraction (not the concrete implementation)
so the storage backend can be swapped later with minimal changes.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass


@dataclass(frozen=True)
class RateLimitResult:
    """Result of a check-and-record operation.

    Attributes:
        allowed: Whether the attempt is allowed to proceed.
        limit: Max attempts per window.
        remaining: Attempts left in the current window (0 when blocked).
        reset_time: UNIX epoch seconds when the window ends; only set when blocked.
        retry_after_seconds: Suggested wait time in seconds when blocked.
    """

    allowed: bool
    limit: int
    remaining: int
    reset_time: float | None = None
    retry_after_seconds: int | None = None


class AbstractRateLimiter(ABC):
    """Interface for attempt rate limiters."""

    @abstractmethod
    def check(self, identifier: str) -> RateLimitResult:
        """Record an attempt for identifier and decide whether it is allowed.

        Args:
            identifier: Opaque bucket key (e.g., account email, client IP).

        Returns:
            RateLimitResult describing whether the attempt was allowed.
        """
        raise NotImplementedError

    @abstractmethod
    def clear(self, identifier: str) -> None:
        """Forget every attempt recorded for identifier."""
        raise NotImplementedError

"""In-memory attempt rate limiter.

Notes:
- Per-process only: running multiple workers multiplies the effective limit.
- Thread-safe: a single lock guards the whole attempt table.
- Windows start at the first attempt of an identifier, not on clock boundaries.
"""

from __future__ import annotations

import math
import threading
import time
from dataclasses import dataclass
from typing import Callable

from termhunt.adapters.rate_limit.base import AbstractRateLimiter, RateLimitResult

DEFAULT_MAX_ATTEMPTS = 5
DEFAULT_WINDOW_SECONDS = 15 * 60


@dataclass
class AttemptRecord:
    count: int
    window_start: float


class InMemoryAttemptRateLimiter(AbstractRateLimiter):
    """Rate limiter counting attempts per identifier within a fixed window.

    The window opens on the first attempt for an identifier and lasts
    ``window_seconds``. Every attempt inside the window increments the count,
    including rejected ones; the count only resets once the window has elapsed
    or when ``clear`` is called.

    Important:
        This limiter is per-process only. If the API runs with multiple workers
        each worker will enforce its own independent limits, and state is lost
        on restart.
    """

    def __init__(
        self,
        *,
        max_attempts: int = DEFAULT_MAX_ATTEMPTS,
        window_seconds: float = DEFAULT_WINDOW_SECONDS,
        clock: Callable[[], float] = time.time,
    ) -> None:
        """Initialize the in-memory rate limiter.

        Args:
            max_attempts: Maximum number of allowed attempts per window.
            window_seconds: Size of the window in seconds.
            clock: Time source function returning UNIX time in seconds.

        Raises:
            ValueError: If max_attempts or window_seconds are invalid.
        """
        if max_attempts < 1:
            raise ValueError("max_attempts must be >= 1")
        if window_seconds <= 0:
            raise ValueError("window_seconds must be > 0")

        self._max_attempts = max_attempts
        self._window_seconds = window_seconds
        self._clock = clock
        self._lock = threading.RLock()
        self._attempts: dict[str, AttemptRecord] = {}

    @property
    def max_attempts(self) -> int:
        return self._max_attempts

    @property
    def window_seconds(self) -> float:
        return self._window_seconds

    def _open_window(self, identifier: str, now: float) -> RateLimitResult:
        self._attempts[identifier] = AttemptRecord(count=1, window_start=now)
        return RateLimitResult(
            allowed=True,
            limit=self._max_attempts,
            remaining=self._max_attempts - 1,
        )

    def check(self, identifier: str) -> RateLimitResult:
        """Record an attempt and decide whether it is allowed.

        An expired window is replaced, never incremented.

        Args:
            identifier: Opaque bucket key. Any string is accepted.

        Returns:
            RateLimitResult with the decision; ``reset_time`` is set only when
            the attempt is rejected.
        """
        with self._lock:
            now = self._clock()
            record = self._attempts.get(identifier)

            if record is None or now - record.window_start > self._window_seconds:
                return self._open_window(identifier, now)

            record.count += 1
            remaining = max(0, self._max_attempts - record.count)

            if record.count > self._max_attempts:
                reset_time = record.window_start + self._window_seconds
                return RateLimitResult(
                    allowed=False,
                    limit=self._max_attempts,
                    remaining=remaining,
                    reset_time=reset_time,
                    retry_after_seconds=max(0, int(math.ceil(reset_time - now))),
                )

            return RateLimitResult(
                allowed=True,
                limit=self._max_attempts,
                remaining=remaining,
            )

    def clear(self, identifier: str) -> None:
        """Remove any attempt record for identifier (no-op if absent)."""
        with self._lock:
            self._attempts.pop(identifier, None)

    def get_record(self, identifier: str) -> AttemptRecord | None:
        """Return a copy of the current record for identifier, if any."""
        with self._lock:
            record = self._attempts.get(identifier)
            if record is None:
                return None
            return AttemptRecord(count=record.count, window_start=record.window_start)

    def stats(self) -> dict[str, int | float]:
        """Return table size and configuration without exposing identifiers."""
        with self._lock:
            return {
                "max_attempts": self._max_attempts,
                "window_seconds": self._window_seconds,
                "tracked_identifiers": len(self._attempts),
            }

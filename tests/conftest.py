"""Pytest configuration and fixtures shared across all test modules.

Environment defaults are set before anything imports the settings module.
"""

import os

os.environ.setdefault("APP_ENV", "testing")
os.environ.setdefault("APP_RATE_LIMIT_ENABLED", "true")
os.environ.setdefault("LOG_LEVEL", "WARNING")

import pytest

from termhunt.core.csrf import reset_csrf_store
from termhunt.core.rate_limit import reset_rate_limiter


@pytest.fixture(autouse=True)
def fresh_security_state():
    """Give every test empty attempt and token tables."""
    reset_rate_limiter()
    reset_csrf_store()
    yield
    reset_rate_limiter()
    reset_csrf_store()


class FakeClock:
    """Deterministic clock used to test window and expiry logic."""

    def __init__(self, start: float = 1_000.0) -> None:
        self.current = start

    def __call__(self) -> float:
        return self.current

    def advance(self, seconds: float) -> None:
        self.current += seconds


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()

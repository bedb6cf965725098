"""Tests for the rate limiting wiring in the HTTP layer."""

import pytest
from fastapi import Depends, FastAPI, HTTPException
from fastapi.testclient import TestClient

from termhunt.core.config import settings
from termhunt.core.errors import RateLimitAppError
from termhunt.core.exception_handlers import setup_exception_handlers
from termhunt.core.rate_limit import (
    check_login_attempt,
    clear_login_attempts,
    enforce_rate_limit,
    get_rate_limiter,
)


@pytest.fixture
def tight_limit(monkeypatch):
    monkeypatch.setattr(settings.app, "rate_limit_enabled", True)
    monkeypatch.setattr(settings.app, "rate_limit_max_attempts", 2)
    monkeypatch.setattr(settings.app, "rate_limit_window_seconds", 60)


@pytest.fixture
def client(tight_limit) -> TestClient:
    app = FastAPI()
    setup_exception_handlers(app)

    @app.post("/vote", dependencies=[Depends(enforce_rate_limit)])
    async def vote():
        return {"ok": True}

    @app.post("/login")
    async def login(email: str, password: str):
        check_login_attempt(email)
        if password != "hunter2":
            return {"ok": False}
        clear_login_attempts(email)
        return {"ok": True}

    return TestClient(app)


class TestLimiterSingleton:
    def test_same_instance_across_calls(self, tight_limit) -> None:
        assert get_rate_limiter() is get_rate_limiter()

    def test_rebuilt_when_configuration_changes(self, tight_limit, monkeypatch) -> None:
        first = get_rate_limiter()
        monkeypatch.setattr(settings.app, "rate_limit_max_attempts", 10)

        second = get_rate_limiter()

        assert second is not first
        assert second.max_attempts == 10


class TestCheckLoginAttempt:
    def test_allows_until_budget_exhausted(self, tight_limit) -> None:
        assert check_login_attempt("a@example.com").allowed is True
        assert check_login_attempt("a@example.com").allowed is True

        with pytest.raises(RateLimitAppError) as exc_info:
            check_login_attempt("a@example.com")

        assert exc_info.value.code == "rate_limit_exceeded"
        assert exc_info.value.details["retry_after"] > 0
        assert exc_info.value.headers["X-RateLimit-Limit"] == "2"
        assert exc_info.value.headers["X-RateLimit-Remaining"] == "0"
        assert "X-RateLimit-Reset" in exc_info.value.headers

    def test_clear_restores_budget(self, tight_limit) -> None:
        check_login_attempt("a@example.com")
        check_login_attempt("a@example.com")

        clear_login_attempts("a@example.com")

        assert check_login_attempt("a@example.com").allowed is True

    def test_disabled_returns_none(self, tight_limit, monkeypatch) -> None:
        monkeypatch.setattr(settings.app, "rate_limit_enabled", False)

        for _ in range(5):
            assert check_login_attempt("a@example.com") is None

    def test_account_and_ip_buckets_are_separate(self, tight_limit) -> None:
        limiter = get_rate_limiter()
        limiter.check("ip:a@example.com")
        limiter.check("ip:a@example.com")

        assert check_login_attempt("a@example.com").allowed is True


class TestEnforceRateLimitDependency:
    def test_returns_429_with_headers(self, client: TestClient) -> None:
        assert client.post("/vote").status_code == 200
        assert client.post("/vote").status_code == 200

        response = client.post("/vote")

        assert response.status_code == 429
        assert int(response.headers["Retry-After"]) > 0
        assert response.headers["X-RateLimit-Limit"] == "2"
        assert response.headers["X-RateLimit-Remaining"] == "0"
        assert "X-RateLimit-Reset" in response.headers

    def test_headers_can_be_disabled(self, client: TestClient, monkeypatch) -> None:
        monkeypatch.setattr(settings.app, "rate_limit_include_headers", False)
        client.post("/vote")
        client.post("/vote")

        response = client.post("/vote")

        assert response.status_code == 429
        assert "Retry-After" not in response.headers

    @pytest.mark.asyncio
    async def test_noop_when_disabled(self, tight_limit, monkeypatch) -> None:
        monkeypatch.setattr(settings.app, "rate_limit_enabled", False)

        class _Request:
            client = None

        for _ in range(5):
            await enforce_rate_limit(_Request())  # type: ignore[arg-type]

        assert get_rate_limiter().stats()["tracked_identifiers"] == 0

    @pytest.mark.asyncio
    async def test_raises_http_exception_when_exhausted(self, tight_limit) -> None:
        class _Request:
            client = None

        await enforce_rate_limit(_Request())  # type: ignore[arg-type]
        await enforce_rate_limit(_Request())  # type: ignore[arg-type]

        with pytest.raises(HTTPException) as exc_info:
            await enforce_rate_limit(_Request())  # type: ignore[arg-type]

        assert exc_info.value.status_code == 429


class TestLoginFlow:
    def test_failed_logins_are_throttled(self, client: TestClient) -> None:
        params = {"email": "a@example.com", "password": "wrong"}
        assert client.post("/login", params=params).json() == {"ok": False}
        assert client.post("/login", params=params).json() == {"ok": False}

        response = client.post("/login", params=params)

        assert response.status_code == 429
        assert response.json()["error"]["code"] == "rate_limit_exceeded"
        assert int(response.headers["Retry-After"]) > 0
        assert response.headers["X-RateLimit-Limit"] == "2"
        assert response.headers["X-RateLimit-Remaining"] == "0"
        assert int(response.headers["X-RateLimit-Reset"]) > 0
        assert "http_status" not in response.json()["error"]["details"]

    def test_throttled_login_respects_header_toggle(self, client: TestClient, monkeypatch) -> None:
        monkeypatch.setattr(settings.app, "rate_limit_include_headers", False)
        params = {"email": "a@example.com", "password": "wrong"}
        client.post("/login", params=params)
        client.post("/login", params=params)

        response = client.post("/login", params=params)

        assert response.status_code == 429
        assert "Retry-After" not in response.headers
        assert "X-RateLimit-Limit" not in response.headers

    def test_successful_login_forgives_attempts(self, client: TestClient) -> None:
        client.post("/login", params={"email": "a@example.com", "password": "wrong"})
        assert client.post(
            "/login", params={"email": "a@example.com", "password": "hunter2"}
        ).json() == {"ok": True}

        for _ in range(2):
            response = client.post(
                "/login", params={"email": "a@example.com", "password": "wrong"}
            )
            assert response.status_code == 200

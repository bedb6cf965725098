"""Tests for CSRF token routes and the require_csrf_token dependency."""

import pytest
from fastapi import Depends, FastAPI
from fastapi.testclient import TestClient

from termhunt.core.config import settings
from termhunt.core.csrf import get_csrf_store, require_csrf_token
from termhunt.core.exception_handlers import setup_exception_handlers
from termhunt.main import app


@pytest.fixture
def client() -> TestClient:
    return TestClient(app)


@pytest.fixture
def session_headers() -> dict[str, str]:
    return {"X-Session-ID": "session-abc"}


def _issue(client: TestClient, headers: dict[str, str]) -> str:
    response = client.get("/v1/csrf/token", headers=headers)
    assert response.status_code == 200
    return response.json()["csrf_token"]


class TestIssueToken:
    def test_returns_token_and_metadata(self, client, session_headers) -> None:
        response = client.get("/v1/csrf/token", headers=session_headers)

        assert response.status_code == 200
        body = response.json()
        assert len(body["csrf_token"]) == 64
        assert body["header_name"] == "X-CSRF-Token"
        assert body["expires_in"] == settings.app.csrf_token_ttl_seconds

    def test_session_from_cookie(self, client) -> None:
        client.cookies.set("session_id", "cookie-session")
        token = _issue(client, {})

        assert get_csrf_store().validate("cookie-session", token) is True

    def test_missing_session_is_400(self, client) -> None:
        response = client.get("/v1/csrf/token")

        assert response.status_code == 400
        assert response.json()["error"]["code"] == "missing_session_id"

    def test_reissue_replaces_token(self, client, session_headers) -> None:
        first = _issue(client, session_headers)
        second = _issue(client, session_headers)

        assert first != second
        assert get_csrf_store().validate("session-abc", first) is False


class TestRevokeToken:
    def test_revoke_with_valid_token(self, client, session_headers) -> None:
        token = _issue(client, session_headers)

        response = client.delete(
            "/v1/csrf/token", headers={**session_headers, "X-CSRF-Token": token}
        )

        assert response.status_code == 204
        assert get_csrf_store().validate("session-abc", token) is False

    def test_revoke_without_token_is_403(self, client, session_headers) -> None:
        _issue(client, session_headers)

        response = client.delete("/v1/csrf/token", headers=session_headers)

        assert response.status_code == 403
        assert response.json()["error"]["code"] == "csrf_token_invalid"

    def test_revoke_with_other_sessions_token_is_403(self, client, session_headers) -> None:
        other_token = _issue(client, {"X-Session-ID": "someone-else"})
        _issue(client, session_headers)

        response = client.delete(
            "/v1/csrf/token", headers={**session_headers, "X-CSRF-Token": other_token}
        )

        assert response.status_code == 403

    def test_second_revoke_is_rejected(self, client, session_headers) -> None:
        token = _issue(client, session_headers)
        headers = {**session_headers, "X-CSRF-Token": token}

        assert client.delete("/v1/csrf/token", headers=headers).status_code == 204
        assert client.delete("/v1/csrf/token", headers=headers).status_code == 403


class TestRequireCSRFTokenDependency:
    @pytest.fixture
    def guarded_client(self) -> TestClient:
        guarded = FastAPI()
        setup_exception_handlers(guarded)

        @guarded.post("/apps")
        async def submit_app(session_id: str = Depends(require_csrf_token)):
            return {"session_id": session_id}

        return TestClient(guarded)

    def test_accepts_valid_token(self, guarded_client) -> None:
        token = get_csrf_store().issue("s1")

        response = guarded_client.post(
            "/apps", headers={"X-Session-ID": "s1", "X-CSRF-Token": token}
        )

        assert response.status_code == 200
        assert response.json() == {"session_id": "s1"}

    def test_wrong_token_allows_retry(self, guarded_client) -> None:
        token = get_csrf_store().issue("s1")

        bad = guarded_client.post("/apps", headers={"X-Session-ID": "s1", "X-CSRF-Token": "nope"})
        good = guarded_client.post("/apps", headers={"X-Session-ID": "s1", "X-CSRF-Token": token})

        assert bad.status_code == 403
        assert good.status_code == 200

    def test_custom_header_name(self, guarded_client, monkeypatch) -> None:
        monkeypatch.setattr(settings.app, "csrf_header_name", "X-Anti-Forgery")
        token = get_csrf_store().issue("s1")

        response = guarded_client.post(
            "/apps", headers={"X-Session-ID": "s1", "X-Anti-Forgery": token}
        )

        assert response.status_code == 200

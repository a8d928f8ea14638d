"""
tests/test_auth_routes.py -- Integration tests for the /api/v1/auth routes.

These tests exercise the full stack: FastAPI routing -> session dependency ->
auth service -> SQLAlchemy stores -> response model serialization -> cookies.
The TestClient keeps cookies across requests within a test, so each test
reads like one browser session.

Coverage:
  - The literal register/login examples and their error envelopes
  - Successful register/login set the session cookie; failures do not
  - me() before login, after login, after logout
  - Logout always deletes the cookie and reports store failures as false
  - Store faults become a structured 500, for writes and lookups alike;
    malformed bodies a structured 422
  - Login moves the session to a new cookie value
  - Password hashes never appear in responses
"""

from __future__ import annotations

from fastapi.testclient import TestClient
from sqlalchemy import text

from auth.models import Fault, SessionStoreError
from core.config import get_settings

COOKIE = get_settings().cookie_name


def _register(client: TestClient, username: str, password: str):
    return client.post("/api/v1/auth/register", json={"username": username, "password": password})


def _login(client: TestClient, username: str, password: str):
    return client.post("/api/v1/auth/login", json={"username": username, "password": password})


def _set_cookie_headers(resp) -> list[str]:
    return [v for k, v in resp.headers.multi_items() if k.lower() == "set-cookie"]


def _drop_users_table(client: TestClient) -> None:
    with client.app.state.user_store.engine.connect() as conn:
        conn.execute(text("DROP TABLE users"))
        conn.commit()


class TestRegister:
    def test_short_username(self, client: TestClient) -> None:
        resp = _register(client, "ab", "1234")
        assert resp.status_code == 200
        assert resp.json() == {
            "errors": [{"field": "username", "message": "username length must be greater than 2"}],
            "user": None,
        }
        assert COOKIE not in client.cookies

    def test_short_password(self, client: TestClient) -> None:
        resp = _register(client, "abc", "123")
        assert resp.json() == {
            "errors": [{"field": "password", "message": "password length must be greater than 3"}],
            "user": None,
        }

    def test_success_sets_cookie_and_logs_in(self, client: TestClient) -> None:
        resp = _register(client, "alice", "secret1")
        body = resp.json()
        assert body["errors"] is None
        assert body["user"]["username"] == "alice"
        assert isinstance(body["user"]["id"], int)
        assert COOKIE in client.cookies

        me = client.get("/api/v1/auth/me")
        assert me.json()["id"] == body["user"]["id"]

    def test_cookie_is_http_only(self, client: TestClient) -> None:
        resp = _register(client, "alice", "secret1")
        headers = _set_cookie_headers(resp)
        assert any(h.startswith(f"{COOKIE}=") and "httponly" in h.lower() for h in headers)

    def test_duplicate_username(self, client: TestClient) -> None:
        _register(client, "alice", "secret1")
        client.cookies.clear()
        resp = _register(client, "alice", "other2")
        assert resp.json() == {
            "errors": [{"field": "username", "message": "username is already taken"}],
            "user": None,
        }
        assert COOKIE not in client.cookies

    def test_response_never_contains_hash(self, client: TestClient) -> None:
        resp = _register(client, "alice", "secret1")
        assert "password" not in resp.text
        assert "argon2" not in resp.text

    def test_store_fault_is_structured_500(self, client: TestClient, monkeypatch) -> None:
        store = client.app.state.user_store
        monkeypatch.setattr(store, "create_user", lambda username, password_hash: Fault(detail="disk I/O error"))
        resp = _register(client, "alice", "secret1")
        assert resp.status_code == 500
        error = resp.json()["error"]
        assert error["code"] == "store_fault"
        assert "disk" not in resp.text
        assert COOKIE not in client.cookies

    def test_missing_field_is_422(self, client: TestClient) -> None:
        resp = client.post("/api/v1/auth/register", json={"username": "alice"})
        assert resp.status_code == 422
        assert resp.json()["error"]["code"] == "validation_error"


class TestLogin:
    def test_unknown_username(self, client: TestClient) -> None:
        resp = _login(client, "nouser", "x")
        assert resp.json() == {
            "errors": [{"field": "username", "message": "Username doesn't exist."}],
            "user": None,
        }
        assert COOKIE not in client.cookies

    def test_wrong_password(self, client: TestClient) -> None:
        _register(client, "alice", "secret1")
        client.cookies.clear()
        resp = _login(client, "alice", "wrong")
        assert resp.json() == {
            "errors": [{"field": "password", "message": "Incorrect password."}],
            "user": None,
        }
        assert COOKIE not in client.cookies

    def test_round_trip(self, client: TestClient) -> None:
        registered = _register(client, "alice", "secret1").json()["user"]
        client.cookies.clear()

        resp = _login(client, "alice", "secret1")
        assert resp.json()["user"]["id"] == registered["id"]
        assert resp.headers["Cache-Control"] == "no-store"
        assert client.get("/api/v1/auth/me").json()["id"] == registered["id"]

    def test_login_replaces_existing_cookie(self, client: TestClient) -> None:
        _register(client, "alice", "secret1")
        client.cookies.clear()
        _register(client, "bobby", "secret2")
        planted = client.cookies.get(COOKIE)

        resp = _login(client, "alice", "secret1")
        assert resp.json()["user"]["username"] == "alice"
        assert client.cookies.get(COOKIE) != planted

        client.cookies.set(COOKIE, planted)
        assert client.get("/api/v1/auth/me").json() is None

    def test_store_fault_is_structured_500(self, client: TestClient) -> None:
        _drop_users_table(client)
        resp = _login(client, "alice", "secret1")
        assert resp.status_code == 500
        assert resp.json()["error"]["code"] == "store_fault"
        assert "OperationalError" not in resp.text
        assert COOKIE not in client.cookies


class TestMeAndLogout:
    def test_me_anonymous_is_null(self, client: TestClient) -> None:
        resp = client.get("/api/v1/auth/me")
        assert resp.status_code == 200
        assert resp.json() is None

    def test_me_with_unknown_cookie_is_null(self, client: TestClient) -> None:
        client.cookies.set(COOKIE, "forged-token")
        assert client.get("/api/v1/auth/me").json() is None

    def test_logout_then_me_is_null(self, client: TestClient) -> None:
        _register(client, "alice", "secret1")
        token = client.cookies.get(COOKIE)

        resp = client.post("/api/v1/auth/logout")
        assert resp.json() is True
        assert COOKIE not in client.cookies
        assert client.get("/api/v1/auth/me").json() is None

        # Replaying the old cookie does not resurrect the session.
        client.cookies.set(COOKIE, token)
        assert client.get("/api/v1/auth/me").json() is None

    def test_me_store_fault_is_structured_500(self, client: TestClient) -> None:
        _register(client, "alice", "secret1")
        _drop_users_table(client)
        resp = client.get("/api/v1/auth/me")
        assert resp.status_code == 500
        assert resp.json()["error"]["code"] == "store_fault"

    def test_logout_without_session(self, client: TestClient) -> None:
        resp = client.post("/api/v1/auth/logout")
        assert resp.status_code == 200
        assert resp.json() is True

    def test_logout_store_failure_returns_false_and_clears_cookie(self, client: TestClient, monkeypatch) -> None:
        _register(client, "alice", "secret1")

        def broken_destroy(token: str) -> None:
            raise SessionStoreError("could not destroy session")

        monkeypatch.setattr(client.app.state.session_store, "destroy", broken_destroy)
        resp = client.post("/api/v1/auth/logout")
        assert resp.status_code == 200
        assert resp.json() is False
        assert any(h.startswith(f"{COOKIE}=") for h in _set_cookie_headers(resp))
        assert COOKIE not in client.cookies

"""
tests/test_api_routes.py -- Integration tests for message, user, login, and profile routes.

These tests exercise the full stack: FastAPI routing -> request validation ->
auth dependency injection -> UserStore -> response model serialization ->
exception handlers.

Coverage:
  - POST /api/message: 201 echo, 400 on missing or over-long fields
  - POST /api/users: 201 without password, 409 duplicate, 400 invalid body
  - POST /api/login: token + user on success, identical 401 for wrong password / unknown user
  - GET /api/protected/profile: missing_token, invalid_token, expired, unknown subject, success
  - End-to-end register -> login -> profile scenario

Fixtures used (from conftest.py):
  - api_client: (client, token, uid) -- user "testuser" / "testpass123" is pre-registered.
"""

from __future__ import annotations

from datetime import datetime, timedelta, timezone

import pytest
from fastapi.testclient import TestClient

from auth.tokens import create_access_token, decode_access_token

_OTHER_KEY = "a-completely-different-signing-key-0123456789"


class TestMessages:
    def test_submit_message(self, api_client: tuple[TestClient, str, str]) -> None:
        client, _, _ = api_client
        resp = client.post("/api/message", json={"content": "hello there", "author": "ann"})
        assert resp.status_code == 201, resp.text
        data = resp.json()
        assert data["message"] == "Message received successfully"
        assert data["data"] == {"content": "hello there", "author": "ann"}
        assert "timestamp" in data

    @pytest.mark.parametrize(
        "body",
        [
            {"author": "ann"},
            {"content": "hi"},
            {"content": "", "author": "ann"},
            {"content": "hi", "author": "   "},
            {"content": "x" * 101, "author": "ann"},
            {"content": "hi", "author": "y" * 51},
        ],
    )
    def test_invalid_message_rejected(self, api_client: tuple[TestClient, str, str], body: dict) -> None:
        client, _, _ = api_client
        resp = client.post("/api/message", json=body)
        assert resp.status_code == 400, resp.text
        assert resp.json()["error"]["code"] == "validation_error"

    def test_length_limits_are_inclusive(self, api_client: tuple[TestClient, str, str]) -> None:
        client, _, _ = api_client
        resp = client.post("/api/message", json={"content": "x" * 100, "author": "y" * 50})
        assert resp.status_code == 201

    def test_non_json_body_rejected(self, api_client: tuple[TestClient, str, str]) -> None:
        client, _, _ = api_client
        resp = client.post("/api/message", content=b"not json", headers={"Content-Type": "application/json"})
        assert resp.status_code == 400
        assert resp.json()["error"]["code"] == "validation_error"


class TestRegistration:
    def test_register_returns_public_fields(self, api_client: tuple[TestClient, str, str]) -> None:
        client, _, _ = api_client
        resp = client.post(
            "/api/users",
            json={"username": "reg_user", "email": "reg@example.com", "password": "s3cret!"},
        )
        assert resp.status_code == 201, resp.text
        data = resp.json()
        assert data["id"].startswith("user_")
        assert data["username"] == "reg_user"
        assert data["email"] == "reg@example.com"
        assert data["created_at"]
        assert "password" not in data
        assert "hashed_password" not in data

    def test_duplicate_username_conflict(self, api_client: tuple[TestClient, str, str]) -> None:
        client, _, _ = api_client
        resp = client.post(
            "/api/users",
            json={"username": "testuser", "email": "other@example.com", "password": "whatever"},
        )
        assert resp.status_code == 409
        assert resp.json()["error"]["code"] == "username_taken"

    @pytest.mark.parametrize(
        "body",
        [
            {"email": "a@x.com", "password": "pw"},
            {"username": "u1", "password": "pw"},
            {"username": "u1", "email": "a@x.com"},
            {"username": "", "email": "a@x.com", "password": "pw"},
            {"username": "u1", "email": "not-an-email", "password": "pw"},
            {"username": "u1", "email": "a@x.com", "password": ""},
            {"username": "u1", "email": "a@x.com", "password": "p" * 73},
        ],
    )
    def test_invalid_registration_rejected(self, api_client: tuple[TestClient, str, str], body: dict) -> None:
        client, _, _ = api_client
        resp = client.post("/api/users", json=body)
        assert resp.status_code == 400, resp.text
        assert resp.json()["error"]["code"] == "validation_error"

    def test_validation_error_does_not_echo_password(self, api_client: tuple[TestClient, str, str]) -> None:
        client, _, _ = api_client
        secret = "S" * 80
        resp = client.post("/api/users", json={"username": "u2", "email": "a@x.com", "password": secret})
        assert resp.status_code == 400
        assert secret not in resp.text


class TestLogin:
    def test_login_valid_credentials(self, api_client: tuple[TestClient, str, str]) -> None:
        client, _, uid = api_client
        resp = client.post("/api/login", json={"username": "testuser", "password": "testpass123"})
        assert resp.status_code == 200, resp.text
        assert resp.headers["cache-control"] == "no-store"
        data = resp.json()
        assert data["token_type"] == "bearer"
        assert data["expires_in"] == 24 * 60 * 60
        assert data["user"] == {"id": uid, "username": "testuser", "email": "testuser@example.com"}
        assert decode_access_token(data["token"]).subject == uid

    def test_wrong_password_and_unknown_user_look_identical(self, api_client: tuple[TestClient, str, str]) -> None:
        client, _, _ = api_client
        wrong_pw = client.post("/api/login", json={"username": "testuser", "password": "nope"})
        unknown = client.post("/api/login", json={"username": "ghost", "password": "testpass123"})
        assert wrong_pw.status_code == unknown.status_code == 401
        assert wrong_pw.json() == unknown.json()
        assert wrong_pw.json()["error"]["code"] == "invalid_credentials"
        assert wrong_pw.headers["www-authenticate"] == "Bearer"

    def test_empty_credentials_are_invalid_credentials(self, api_client: tuple[TestClient, str, str]) -> None:
        client, _, _ = api_client
        resp = client.post("/api/login", json={"username": "", "password": ""})
        assert resp.status_code == 401
        assert resp.json()["error"]["code"] == "invalid_credentials"

    def test_malformed_login_body(self, api_client: tuple[TestClient, str, str]) -> None:
        client, _, _ = api_client
        resp = client.post("/api/login", json={"username": "testuser"})
        assert resp.status_code == 400
        assert resp.json()["error"]["code"] == "validation_error"


class TestProfile:
    def test_profile_with_valid_token(self, api_client: tuple[TestClient, str, str]) -> None:
        client, token, uid = api_client
        resp = client.get("/api/protected/profile", headers={"Authorization": f"Bearer {token}"})
        assert resp.status_code == 200, resp.text
        data = resp.json()
        assert data["id"] == uid
        assert data["username"] == "testuser"
        assert data["email"] == "testuser@example.com"
        assert data["created_at"]

    def test_profile_accepts_token_without_bearer_prefix(self, api_client: tuple[TestClient, str, str]) -> None:
        client, token, uid = api_client
        resp = client.get("/api/protected/profile", headers={"Authorization": token})
        assert resp.status_code == 200
        assert resp.json()["id"] == uid

    def test_missing_token(self, api_client: tuple[TestClient, str, str]) -> None:
        client, _, _ = api_client
        resp = client.get("/api/protected/profile")
        assert resp.status_code == 401
        assert resp.json()["error"]["code"] == "missing_token"
        assert resp.headers["www-authenticate"] == "Bearer"

    def test_garbage_token(self, api_client: tuple[TestClient, str, str]) -> None:
        client, _, _ = api_client
        resp = client.get("/api/protected/profile", headers={"Authorization": "Bearer garbage"})
        assert resp.status_code == 401
        assert resp.json()["error"]["code"] == "invalid_token"

    def test_expired_token(self, api_client: tuple[TestClient, str, str]) -> None:
        client, _, uid = api_client
        issued = datetime.now(timezone.utc) - timedelta(days=2)
        token = create_access_token(uid, issued_at=issued)
        resp = client.get("/api/protected/profile", headers={"Authorization": f"Bearer {token}"})
        assert resp.status_code == 401
        assert resp.json()["error"]["code"] == "invalid_token"

    def test_token_signed_with_other_key(self, api_client: tuple[TestClient, str, str]) -> None:
        client, _, uid = api_client
        token = create_access_token(uid, secret_key=_OTHER_KEY)
        resp = client.get("/api/protected/profile", headers={"Authorization": f"Bearer {token}"})
        assert resp.status_code == 401
        assert resp.json()["error"]["code"] == "invalid_token"

    def test_valid_token_for_unknown_user(self, api_client: tuple[TestClient, str, str]) -> None:
        client, _, _ = api_client
        token = create_access_token("user_not_in_store")
        resp = client.get("/api/protected/profile", headers={"Authorization": f"Bearer {token}"})
        assert resp.status_code == 404
        assert resp.json()["error"]["code"] == "not_found"


def test_register_login_profile_scenario(api_client: tuple[TestClient, str, str]) -> None:
    """alice registers, logs in, reads her profile; a garbage token is refused."""
    client, _, _ = api_client

    reg = client.post("/api/users", json={"username": "alice", "password": "pw123", "email": "a@x.com"})
    assert reg.status_code == 201, reg.text
    alice_id = reg.json()["id"]

    login = client.post("/api/login", json={"username": "alice", "password": "pw123"})
    assert login.status_code == 200, login.text
    token = login.json()["token"]

    profile = client.get("/api/protected/profile", headers={"Authorization": f"Bearer {token}"})
    assert profile.status_code == 200
    data = profile.json()
    assert data["id"] == alice_id
    assert data["username"] == "alice"
    assert data["email"] == "a@x.com"

    denied = client.get("/api/protected/profile", headers={"Authorization": "Bearer garbage"})
    assert denied.status_code == 401
    assert denied.json()["error"]["code"] == "invalid_token"

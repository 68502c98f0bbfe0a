"""
tests/conftest.py -- Shared test fixtures for Simple API tests.

This module provides:
  - store: a fresh in-memory UserStore per test
  - _patch_lifespan(): wires a test store into app.state, bypassing real startup
  - api_client: TestClient plus a pre-registered user and a valid token

Every UserStore owns its own private in-memory database, so fixtures never
share users unless they share the store object.

Environment must be set before any api/auth/core import: get_settings() is
cached on first call and the token module reads it at import time.
"""

from __future__ import annotations

import os
from collections.abc import Generator
from contextlib import asynccontextmanager

# CRITICAL: Set before any auth/core import. DEBUG lets get_settings()
# auto-generate SECRET_KEY; the limits keep the suite below the throttle;
# a 1-byte gzip threshold makes every response eligible for compression.
os.environ.setdefault("DEBUG", "true")
os.environ.setdefault("RATE_LIMIT", "1000/minute")
os.environ.setdefault("LOGIN_RATE_LIMIT", "1000/minute")
os.environ.setdefault("GZIP_MINIMUM_SIZE", "1")

import pytest
from fastapi.testclient import TestClient

from api.main import app
from auth.models import User
from auth.store import UserStore
from auth.tokens import create_access_token, hash_password

TEST_USERNAME = "testuser"
TEST_PASSWORD = "testpass123"
TEST_EMAIL = "testuser@example.com"


def _patch_lifespan(user_store: UserStore):
    """Return an async context manager that replaces the real lifespan."""

    @asynccontextmanager
    async def test_lifespan(app):
        app.state.user_store = user_store
        yield

    return test_lifespan


@pytest.fixture
def store() -> Generator[UserStore, None, None]:
    """Empty UserStore, closed after the test."""
    s = UserStore()
    yield s
    s.close()


@pytest.fixture(scope="module")
def api_client() -> Generator[tuple[TestClient, str, str], None, None]:
    """Yield (client, token, user_id) for API integration tests.

    The user is created directly in the store before the client starts, and
    a token is minted for it so tests can call protected routes without
    going through /api/login first.
    """
    user_store = UserStore()
    user = User(username=TEST_USERNAME, email=TEST_EMAIL, hashed_password=hash_password(TEST_PASSWORD))
    uid = user_store.create_user(user)
    token = create_access_token(uid)

    app.router.lifespan_context = _patch_lifespan(user_store)

    with TestClient(app, raise_server_exceptions=True) as client:
        yield client, token, uid

    user_store.close()

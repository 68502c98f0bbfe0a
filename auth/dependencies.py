"""
auth/dependencies.py -- FastAPI Depends() helpers for bearer-token auth.

Per-request gate:
  1. Read the Authorization header. Absent or empty -> MissingTokenError.
  2. Strip an optional "Bearer " prefix.
  3. decode_access_token() checks signature and expiry -> InvalidTokenError
     on any failure.
  4. The verified subject id is returned to FastAPI, which passes it to the
     route handler as a parameter. Nothing is written onto the request.

Each request is verified independently; results are not cached.

get_current_subject() is the gate itself. get_current_user() additionally
resolves the subject through the UserStore on app.state.

Layer rule: auth/dependencies.py may import from fastapi because this module
is part of the FastAPI dependency injection system. No imports from api/.
"""

from __future__ import annotations

import logging

from fastapi import Depends, Request

from auth.errors import MissingTokenError
from auth.models import User
from auth.store import UserStore
from auth.tokens import decode_access_token

logger = logging.getLogger("simpleapi.auth")

_BEARER_PREFIX = "Bearer "


def extract_bearer_token(header: str | None) -> str:
    """Return the raw token from an Authorization header value.

    The "Bearer " prefix is optional: a bare token is accepted as-is. A header
    consisting of only the prefix is passed through unchanged and fails
    verification as an invalid token.
    """
    if not header:
        raise MissingTokenError()
    if header.startswith(_BEARER_PREFIX) and len(header) > len(_BEARER_PREFIX):
        return header[len(_BEARER_PREFIX) :]
    return header


def authorize(header: str | None) -> str:
    """Run the full gate on a header value and return the subject id."""
    token = extract_bearer_token(header)
    return decode_access_token(token).subject


def get_current_subject(request: Request) -> str:
    """Require a valid bearer token. Returns the authenticated user id.

    Use as a FastAPI dependency:
        @router.get("/protected")
        def route(subject_id: str = Depends(get_current_subject)): ...
    """
    return authorize(request.headers.get("Authorization"))


def get_current_user(request: Request, subject_id: str = Depends(get_current_subject)) -> User:
    """Require a valid bearer token and resolve it to a stored User.

    Raises UserNotFoundError (404) if the token is valid but its subject is
    not in the store, e.g. after a restart cleared the in-memory users.
    """
    user_store: UserStore = request.app.state.user_store
    return user_store.require_by_id(subject_id)

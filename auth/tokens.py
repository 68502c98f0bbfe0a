"""
auth/tokens.py -- JWT issue/verify and password hashing.

Security design decisions:
  JWT: python-jose with HS256. Tokens are signed with SECRET_KEY and carry
       sub (user id), iat, and exp. Tokens are never stored server-side;
       verification is a pure function of the token, the key, and the clock.
       Only HS256 is accepted on decode, so "alg": "none" and algorithm
       confusion tokens are rejected.

  Passwords: bcrypt directly. The _DUMMY_HASH constant enables timing
       equalization in authenticate_user() so response time does not reveal
       whether a username exists.

  SECRET_KEY and the default token lifetime are read from
       core.config.get_settings() once, at module load. There is no rotation.

Every failure is raised as an auth.errors.AuthError subclass. The route layer
maps those to HTTP statuses; nothing in here knows about HTTP.
"""

from __future__ import annotations

import logging
from datetime import datetime, timedelta, timezone
from typing import TYPE_CHECKING

import bcrypt
from jose import JOSEError, jwt

from auth.errors import InvalidCredentialsError, InvalidTokenError, TokenIssuanceError
from auth.models import TokenClaims
from core.config import get_settings

if TYPE_CHECKING:
    from auth.models import User
    from auth.store import UserStore

logger = logging.getLogger("simpleapi.auth")

# ---------------------------------------------------------------------------
# Config -- read once at module load via the lru_cache singleton
# ---------------------------------------------------------------------------

_settings = get_settings()

_ALGORITHM = "HS256"

_DECODE_OPTIONS = {"require_sub": True, "require_exp": True, "require_iat": True}


# ---------------------------------------------------------------------------
# Password hashing (bcrypt -- direct usage, no passlib wrapper)
# ---------------------------------------------------------------------------


def hash_password(plain: str) -> str:
    """Return a bcrypt hash of the given plaintext password.

    bcrypt only looks at the first 72 bytes. RegisterRequest rejects longer
    passwords at the API layer.
    """
    return bcrypt.hashpw(plain.encode("utf-8"), bcrypt.gensalt()).decode("utf-8")


def verify_password(plain: str, hashed: str) -> bool:
    """Return True if the plaintext password matches the bcrypt hash."""
    try:
        return bcrypt.checkpw(plain.encode("utf-8"), hashed.encode("utf-8"))
    except ValueError:
        # Malformed hash or over-long input
        return False


# Computed once at module load so the first login attempt is not measurably
# slower than subsequent ones.
_DUMMY_HASH: str = hash_password("simpleapi_timing_dummy")


# ---------------------------------------------------------------------------
# Credential verification (constant-time)
# ---------------------------------------------------------------------------


def authenticate_user(store: UserStore, username: str, password: str) -> User:
    """Check a username/password pair and return the matching User.

    Always runs bcrypt whether or not the user exists:
    - Unknown username: bcrypt runs against _DUMMY_HASH
    - Wrong password: bcrypt runs against the real hash

    Raises InvalidCredentialsError for both cases, with the same message.
    """
    user = store.get_by_username(username)
    if user is None:
        verify_password(password, _DUMMY_HASH)
        logger.info("Login failed for unknown username")
        raise InvalidCredentialsError()
    if not verify_password(password, user.hashed_password):
        logger.info("Login failed for user %s", user.id)
        raise InvalidCredentialsError()
    return user


# ---------------------------------------------------------------------------
# JWT encode / decode
# ---------------------------------------------------------------------------


def create_access_token(
    subject_id: str,
    expire_seconds: int = 0,
    secret_key: str | None = None,
    issued_at: datetime | None = None,
) -> str:
    """Encode a signed JWT asserting the given user id.

    Args:
        subject_id:     User.id stored as the "sub" claim.
        expire_seconds: Token lifetime in seconds. If 0 (default), uses
                        Settings.token_expire_seconds (24 hours).
        secret_key:     Signing key. None means the configured SECRET_KEY.
        issued_at:      Issue instant. None means now. Tests pass a past
                        instant to mint already-expired tokens.

    Raises TokenIssuanceError if the token cannot be signed.
    """
    key = _settings.secret_key if secret_key is None else secret_key
    if not key:
        logger.error("Refusing to sign token: no signing key configured")
        raise TokenIssuanceError()
    if not subject_id:
        raise TokenIssuanceError("Cannot issue a token without a subject.")

    duration = expire_seconds if expire_seconds > 0 else _settings.token_expire_seconds
    now = issued_at or datetime.now(timezone.utc)
    payload = {
        "sub": subject_id,
        "iat": now,
        "exp": now + timedelta(seconds=duration),
    }
    try:
        return jwt.encode(payload, key, algorithm=_ALGORITHM)
    except (JOSEError, TypeError, ValueError) as exc:
        logger.exception("Token signing failed")
        raise TokenIssuanceError() from exc


def decode_access_token(token: str, secret_key: str | None = None) -> TokenClaims:
    """Verify a JWT and return its claims.

    Checks, in order: structure, signature against the key, presence of
    sub/iat/exp, and exp > now. Any failure raises InvalidTokenError; the
    reason is logged but never returned to the client.
    """
    key = _settings.secret_key if secret_key is None else secret_key
    try:
        payload = jwt.decode(token, key, algorithms=[_ALGORITHM], options=_DECODE_OPTIONS)
    except JOSEError as exc:
        logger.info("Rejected token: %s", exc)
        raise InvalidTokenError() from exc

    subject = payload.get("sub")
    if not isinstance(subject, str) or not subject:
        raise InvalidTokenError()
    try:
        issued_at = datetime.fromtimestamp(payload["iat"], tz=timezone.utc)
        expires_at = datetime.fromtimestamp(payload["exp"], tz=timezone.utc)
    except (TypeError, ValueError, OverflowError) as exc:
        raise InvalidTokenError() from exc
    return TokenClaims(subject=subject, issued_at=issued_at, expires_at=expires_at)

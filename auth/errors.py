"""
auth/errors.py -- Exception taxonomy for the auth layer.

Every error carries a machine-readable code and the HTTP status it maps to.
The auth layer raises these; api/main.py translates them into the standard
ErrorResponse envelope. Nothing here knows about FastAPI.

Codes:
  invalid_credentials  401  wrong password OR unknown username (never says which)
  missing_token        401  no Authorization header
  invalid_token        401  malformed, unsigned, wrong key, or expired
  issuance_failure     500  token could not be signed
  not_found            404  unknown user id
  username_taken       409  registration with an existing username
"""

from __future__ import annotations


class AuthError(Exception):
    """Base class for all auth errors."""

    code: str = "auth_error"
    status_code: int = 401
    message: str = "Authentication failed."

    def __init__(self, message: str | None = None) -> None:
        if message is not None:
            self.message = message
        super().__init__(self.message)


class InvalidCredentialsError(AuthError):
    code = "invalid_credentials"
    message = "Invalid username or password."


class MissingTokenError(AuthError):
    code = "missing_token"
    message = "Missing authentication token."


class InvalidTokenError(AuthError):
    code = "invalid_token"
    message = "Invalid authentication token."


class TokenIssuanceError(AuthError):
    code = "issuance_failure"
    status_code = 500
    message = "Could not generate token."


class UserNotFoundError(AuthError):
    code = "not_found"
    status_code = 404
    message = "User not found."


class DuplicateUsernameError(AuthError):
    code = "username_taken"
    status_code = 409
    message = "Username is already registered."

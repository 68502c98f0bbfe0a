"""
API request and response models for Simple API REST endpoints.

These Pydantic v2 models define the HTTP transport contract for the API layer.
They are intentionally separate from the dataclasses in auth/models.py, which
own the internal domain representation. Route handlers map between the two.
"""

from datetime import datetime, timezone
from typing import Annotated, Optional

from pydantic import BaseModel, ConfigDict, Field, StringConstraints, field_validator

from auth.models import User

# bcrypt ignores everything past 72 bytes, and bcrypt>=5 refuses such input.
_MAX_PASSWORD_BYTES = 72


def utc_timestamp() -> str:
    """Current UTC time as an RFC 3339 string with second precision."""
    return datetime.now(timezone.utc).isoformat(timespec="seconds")


# ---------------------------------------------------------------------------
# Request models
# ---------------------------------------------------------------------------


class MessageIn(BaseModel):
    """Request body for POST /api/message."""

    model_config = ConfigDict(str_strip_whitespace=True)

    content: str = Field(min_length=1, max_length=100)
    author: str = Field(min_length=1, max_length=50)


class RegisterRequest(BaseModel):
    """Request body for POST /api/users."""

    username: Annotated[str, StringConstraints(strip_whitespace=True, min_length=1, max_length=50)]
    email: Annotated[str, StringConstraints(strip_whitespace=True, max_length=255, pattern=r"^[^@\s]+@[^@\s]+$")]
    # Not stripped: leading/trailing spaces are part of the secret.
    password: str = Field(min_length=1)

    @field_validator("password")
    @classmethod
    def password_fits_bcrypt(cls, value: str) -> str:
        if len(value.encode("utf-8")) > _MAX_PASSWORD_BYTES:
            raise ValueError(f"password must be at most {_MAX_PASSWORD_BYTES} bytes")
        return value


class LoginRequest(BaseModel):
    """Request body for POST /api/login.

    Only lengths are checked here. Wrong, empty, or unknown values reach the
    route and come back as invalid_credentials.
    """

    username: str = Field(max_length=255)
    password: str = Field(max_length=255)


# ---------------------------------------------------------------------------
# Response models
# ---------------------------------------------------------------------------


class InfoResponse(BaseModel):
    """Response for GET /api/info."""

    model_config = ConfigDict(frozen=True)

    app_name: str
    version: str
    timestamp: str = Field(default_factory=utc_timestamp)
    status: str = "running"


class PingResponse(BaseModel):
    """Response for GET /api/ping."""

    model_config = ConfigDict(frozen=True)

    message: str = "pong"
    timestamp: str = Field(default_factory=utc_timestamp)


class MessageReceipt(BaseModel):
    """Response for POST /api/message."""

    model_config = ConfigDict(frozen=True)

    message: str = "Message received successfully"
    data: MessageIn
    timestamp: str = Field(default_factory=utc_timestamp)


class UserResponse(BaseModel):
    """Public view of a user. The password hash is never serialized."""

    model_config = ConfigDict(frozen=True)

    id: str
    username: str
    email: str
    created_at: str

    @classmethod
    def from_user(cls, user: User) -> "UserResponse":
        return cls(id=user.id, username=user.username, email=user.email, created_at=user.created_at)


class LoginUser(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str
    username: str
    email: str


class LoginResponse(BaseModel):
    """Response for POST /api/login."""

    model_config = ConfigDict(frozen=True)

    token: str
    token_type: str = "bearer"  # noqa: S105 # nosec B105 -- OAuth token type, not a password
    expires_in: int
    user: LoginUser


class ErrorDetail(BaseModel):
    """Machine-readable error payload."""

    model_config = ConfigDict(frozen=True)

    code: str
    message: str
    detail: Optional[str] = None


class ErrorResponse(BaseModel):
    """Top-level error envelope returned on 4xx/5xx responses."""

    model_config = ConfigDict(frozen=True)

    error: ErrorDetail

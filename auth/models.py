"""
auth/models.py -- Domain dataclasses for authentication entities.

Pattern: Data class (pure data container, zero logic). Stores and routes do
the work; these classes only own the domain shape.

Layer rule: no imports from api/ or core/.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime


@dataclass
class User:
    """A registered identity.

    id is assigned by UserStore.create_user() and never changes afterwards.
    hashed_password is a bcrypt hash -- the plaintext is never stored.
    """

    username: str
    email: str
    hashed_password: str
    id: str | None = None
    created_at: str | None = None  # ISO 8601, UTC


@dataclass(frozen=True)
class TokenClaims:
    """The verified contents of an access token.

    Produced only by decode_access_token(); holding one means the signature
    and expiry checks already passed.
    """

    subject: str  # User.id
    issued_at: datetime
    expires_at: datetime

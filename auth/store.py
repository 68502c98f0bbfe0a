"""
auth/store.py -- SQLAlchemy Core identity store.

Pattern: Repository + Data Mapper. UserStore is the repository; _row_to_user
is the mapper. Route and dependency code never touches SQL directly.

Storage: a private in-memory SQLite database per UserStore instance. StaticPool
pins the engine to a single connection, so every thread sees the same database
and it disappears when the store is closed or the process exits. There is no
file on disk and nothing survives a restart.

Concurrency: sync route handlers run in a threadpool and share one SQLite
connection, so every method takes self._lock. Reads are cheap; the lock is
never held across anything slower than a single statement.

Ids: "user_" + uuid4 hex. Collision-resistant under concurrent and rapid
sequential registration.

Username uniqueness: enforced by a UNIQUE constraint. A duplicate insert raises
DuplicateUsernameError rather than silently shadowing the earlier account.

Layer rule: no imports from api/ or core/.
"""

from __future__ import annotations

import logging
import threading
import uuid
from datetime import datetime, timezone

from sqlalchemy import Column, MetaData, String, Table, Text, create_engine, func, select
from sqlalchemy.engine import Engine
from sqlalchemy.exc import IntegrityError
from sqlalchemy.pool import StaticPool

from auth.errors import DuplicateUsernameError, UserNotFoundError
from auth.models import User

logger = logging.getLogger("simpleapi.auth.store")

_DEFAULT_DB_URL = "sqlite://"

# ---------------------------------------------------------------------------
# Schema
# ---------------------------------------------------------------------------

_metadata = MetaData()

_users = Table(
    "users",
    _metadata,
    Column("id", String(40), primary_key=True),
    Column("username", String(255), nullable=False, unique=True),
    Column("email", String(255), nullable=False),
    Column("hashed_password", Text, nullable=False),
    Column("created_at", String(32), nullable=False),
)


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


def _new_user_id() -> str:
    return f"user_{uuid.uuid4().hex}"


# ---------------------------------------------------------------------------
# Repository
# ---------------------------------------------------------------------------


class UserStore:
    """Repository for User entities.

    Usage:
        store = UserStore()
        uid = store.create_user(User(username="alice", email="a@x.com", hashed_password=hash_password("pw")))
        user = store.get_by_username("alice")
        store.close()
    """

    def __init__(self, db_url: str = _DEFAULT_DB_URL) -> None:
        connect_args: dict = {}
        engine_kwargs: dict = {}
        if db_url.startswith("sqlite"):
            connect_args["check_same_thread"] = False
            engine_kwargs["poolclass"] = StaticPool
        self.engine: Engine = create_engine(db_url, connect_args=connect_args, **engine_kwargs)
        self._lock = threading.Lock()
        _metadata.create_all(self.engine)

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    def create_user(self, user: User) -> str:
        """Insert a new user and return its generated id.

        Fills in user.id and user.created_at on the passed object so callers
        can serialize it straight away.

        Raises DuplicateUsernameError if the username is already registered.
        """
        user_id = _new_user_id()
        created_at = _now_iso()
        with self._lock, self.engine.connect() as conn:
            try:
                conn.execute(
                    _users.insert().values(
                        id=user_id,
                        username=user.username,
                        email=user.email,
                        hashed_password=user.hashed_password,
                        created_at=created_at,
                    )
                )
                conn.commit()
            except IntegrityError as exc:
                conn.rollback()
                raise DuplicateUsernameError() from exc
        user.id = user_id
        user.created_at = created_at
        logger.info("Registered user %s (%s)", user.username, user_id)
        return user_id

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def get_by_id(self, user_id: str) -> User | None:
        """Look up a user by id. Returns None if not found."""
        with self._lock, self.engine.connect() as conn:
            row = conn.execute(_users.select().where(_users.c.id == user_id)).fetchone()
        return _row_to_user(row) if row is not None else None

    def require_by_id(self, user_id: str) -> User:
        """Like get_by_id() but raises UserNotFoundError for an unknown id."""
        user = self.get_by_id(user_id)
        if user is None:
            raise UserNotFoundError()
        return user

    def get_by_username(self, username: str) -> User | None:
        """Look up a user by exact username (case-sensitive). Returns None if not found."""
        with self._lock, self.engine.connect() as conn:
            row = conn.execute(_users.select().where(_users.c.username == username)).fetchone()
        return _row_to_user(row) if row is not None else None

    def count_users(self) -> int:
        with self._lock, self.engine.connect() as conn:
            result = conn.execute(select(func.count()).select_from(_users)).scalar()
        return result or 0

    def has_users(self) -> bool:
        return self.count_users() > 0

    def close(self) -> None:
        self.engine.dispose()


# ---------------------------------------------------------------------------
# Row mapper (Data Mapper pattern)
# ---------------------------------------------------------------------------


def _row_to_user(row) -> User:
    return User(
        id=row.id,
        username=row.username,
        email=row.email,
        hashed_password=row.hashed_password,
        created_at=row.created_at,
    )

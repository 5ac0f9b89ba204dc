"""
auth/store.py -- SQLAlchemy Core persistence layer for user accounts.

Pattern: Repository + Data Mapper (same as catalog/store.py).
UserStore is the repository; _row_to_user is the mapper.
Service and route code never touches SQL directly.

Security:
  All queries use bound parameters. No f-strings in SQL.

  UNIQUE(username) is enforced by the database, not by a read-then-write
  check in code. Two concurrent sign-ups for the same username both reach
  INSERT; exactly one commits and the other gets IntegrityError, which is
  translated to AlreadyExistsError here.

Layer rule: no imports from api/ or catalog/.
"""

from __future__ import annotations

import uuid
from datetime import datetime, timezone

from sqlalchemy import Column, MetaData, String, Table, Text, create_engine, event, func, select
from sqlalchemy.engine import Engine
from sqlalchemy.exc import IntegrityError

from auth.models import User
from core.config import get_settings
from core.errors import AlreadyExistsError

# ---------------------------------------------------------------------------
# Schema
# ---------------------------------------------------------------------------

_metadata = MetaData()

_users = Table(
    "users",
    _metadata,
    Column("id", String(32), primary_key=True),
    Column("name", String(255), nullable=False, server_default=""),
    Column("username", String(255), nullable=False, unique=True),
    Column("hashed_password", Text, nullable=False),
    Column("created_at", String(32), nullable=False),
)


# ---------------------------------------------------------------------------
# WAL mode
# ---------------------------------------------------------------------------


def _set_wal_mode(dbapi_conn, connection_record) -> None:
    """Enable WAL journal mode for concurrent read safety.

    Set per-connection because SQLite PRAGMAs are not inherited by new
    connections from the pool.
    """
    dbapi_conn.execute("PRAGMA journal_mode=WAL")


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


# ---------------------------------------------------------------------------
# Repository
# ---------------------------------------------------------------------------


class UserStore:
    """Repository for User entities.

    Usage:
        store = UserStore()
        user = store.create_user(User(username="alice", name="A", hashed_password=hash_password("p1")))
        store.get_by_username("alice")
        store.close()
    """

    def __init__(self, db_url: str | None = None) -> None:
        db_url = db_url or get_settings().database_url
        connect_args: dict = {}
        if db_url.startswith("sqlite"):
            connect_args["check_same_thread"] = False
        self.engine: Engine = create_engine(db_url, connect_args=connect_args)
        if db_url.startswith("sqlite"):
            event.listen(self.engine, "connect", _set_wal_mode)
        _metadata.create_all(self.engine)

    def create_user(self, user: User) -> User:
        """Insert a new user and return it with id and created_at filled in.

        Raises AlreadyExistsError if the username is taken, including when a
        concurrent request committed the same username first.
        """
        user_id = uuid.uuid4().hex
        created_at = _now_iso()
        try:
            with self.engine.connect() as conn:
                conn.execute(
                    _users.insert().values(
                        id=user_id,
                        name=user.name or "",
                        username=user.username,
                        hashed_password=user.hashed_password,
                        created_at=created_at,
                    )
                )
                conn.commit()
        except IntegrityError as exc:
            raise AlreadyExistsError("A user with that username already exists.") from exc
        return User(
            id=user_id,
            name=user.name or "",
            username=user.username,
            hashed_password=user.hashed_password,
            created_at=created_at,
        )

    def get_by_username(self, username: str) -> User | None:
        """Look up a user by exact username (case-sensitive). Returns None if not found."""
        with self.engine.connect() as conn:
            row = conn.execute(_users.select().where(_users.c.username == username)).fetchone()
        return _row_to_user(row) if row is not None else None

    def get_by_id(self, user_id: str) -> User | None:
        """Look up a user by primary key. Returns None if not found."""
        with self.engine.connect() as conn:
            row = conn.execute(_users.select().where(_users.c.id == user_id)).fetchone()
        return _row_to_user(row) if row is not None else None

    def count_users(self, username: str | None = None) -> int:
        """Return the number of users, optionally only those with the given username."""
        query = select(func.count()).select_from(_users)
        if username is not None:
            query = query.where(_users.c.username == username)
        with self.engine.connect() as conn:
            return conn.execute(query).scalar() or 0

    def ping(self) -> bool:
        """Return True if the database answers a trivial query."""
        with self.engine.connect() as conn:
            conn.execute(_users.select().limit(1)).fetchall()
        return True

    def close(self) -> None:
        self.engine.dispose()


# ---------------------------------------------------------------------------
# Row mappers (Data Mapper pattern)
# ---------------------------------------------------------------------------


def _row_to_user(row) -> User:
    return User(
        id=row.id,
        name=row.name or "",
        username=row.username,
        hashed_password=row.hashed_password,
        created_at=row.created_at,
    )

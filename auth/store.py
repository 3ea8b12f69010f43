"""
auth/store.py -- SQLAlchemy Core persistence layer for credential records.

Pattern: Repository + Data Mapper.
UserStore is the repository; _row_to_user is the mapper. Services and route
code never touch SQL directly.

Outcomes are explicit:
  - lookups return None for "not found"
  - create() raises DuplicateUsername when the UNIQUE(username) constraint
    rejects the insert
  - any other SQLAlchemy failure is re-raised as StoreUnavailable, chained to
    the driver error so the traceback survives for the logs

Uniqueness is enforced by the database at commit time, never by a
read-then-write in Python. Two concurrent create() calls for the same
username race on the constraint; exactly one wins.

Security:
  All queries use bound parameters. No f-strings in SQL.

Layer rule: no imports from api/.
"""

from __future__ import annotations

import dataclasses
from datetime import datetime, timezone

from sqlalchemy import Column, Integer, MetaData, String, Table, Text, create_engine, event, func, select, text
from sqlalchemy.engine import Engine
from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from auth.errors import DuplicateUsername, StoreUnavailable
from auth.models import User

# ---------------------------------------------------------------------------
# Schema
# ---------------------------------------------------------------------------

_metadata = MetaData()

_users = Table(
    "users",
    _metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("username", String(255), nullable=False, unique=True),
    # Not unique: username is the login identifier, email is contact data.
    Column("email", String(320), nullable=False),
    Column("firstname", String(255)),
    Column("lastname", String(255)),
    Column("hashed_password", Text, nullable=False),  # bcrypt artifact, salt embedded
    Column("created_at", String(32), nullable=False),
)


# ---------------------------------------------------------------------------
# WAL mode
# ---------------------------------------------------------------------------


def _set_wal_mode(dbapi_conn, connection_record) -> None:
    """Enable WAL journal mode so readers are not blocked by a registration write.

    Set per-connection because SQLite PRAGMAs are not inherited by new
    connections from the pool.
    """
    dbapi_conn.execute("PRAGMA journal_mode=WAL")


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


# ---------------------------------------------------------------------------
# Repository
# ---------------------------------------------------------------------------


class UserStore:
    """Repository for User records.

    Usage:
        store = UserStore("sqlite:///authkeeper.db")
        user = store.create(User(username="alice", email="a@example.com", hashed_password=h))
        store.get_by_username("alice")
        store.close()
    """

    def __init__(self, db_url: str) -> None:
        connect_args: dict = {}
        if db_url.startswith("sqlite"):
            connect_args["check_same_thread"] = False
        self.engine: Engine = create_engine(db_url, connect_args=connect_args)
        if db_url.startswith("sqlite"):
            event.listen(self.engine, "connect", _set_wal_mode)
        try:
            _metadata.create_all(self.engine)
        except SQLAlchemyError as exc:
            raise StoreUnavailable() from exc

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    def create(self, user: User) -> User:
        """Insert a new credential record and return it with id and created_at set.

        Raises DuplicateUsername if the username already exists -- including
        the case where a concurrent request committed it a moment earlier.
        """
        created_at = _now_iso()
        try:
            with self.engine.connect() as conn:
                result = conn.execute(
                    _users.insert().values(
                        username=user.username,
                        email=user.email,
                        firstname=user.firstname,
                        lastname=user.lastname,
                        hashed_password=user.hashed_password,
                        created_at=created_at,
                    )
                )
                conn.commit()
        except IntegrityError as exc:
            raise DuplicateUsername(context={"username": user.username}) from exc
        except SQLAlchemyError as exc:
            raise StoreUnavailable() from exc
        return dataclasses.replace(user, id=result.inserted_primary_key[0], created_at=created_at)

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def get_by_username(self, username: str) -> User | None:
        """Look up a user by exact username (case-sensitive). Returns None if not found."""
        return self._fetch_one(_users.select().where(_users.c.username == username))

    def get_by_id(self, user_id: int) -> User | None:
        """Look up a user by primary key. Returns None if not found."""
        return self._fetch_one(_users.select().where(_users.c.id == user_id))

    def count(self) -> int:
        try:
            with self.engine.connect() as conn:
                result = conn.execute(select(func.count()).select_from(_users)).scalar()
        except SQLAlchemyError as exc:
            raise StoreUnavailable() from exc
        return result or 0

    def ping(self) -> bool:
        """Return True if the database answers a trivial query. Used by /health."""
        try:
            with self.engine.connect() as conn:
                conn.execute(text("SELECT 1"))
        except SQLAlchemyError:
            return False
        return True

    def close(self) -> None:
        self.engine.dispose()

    def _fetch_one(self, stmt) -> User | None:
        try:
            with self.engine.connect() as conn:
                row = conn.execute(stmt).fetchone()
        except SQLAlchemyError as exc:
            raise StoreUnavailable() from exc
        return _row_to_user(row) if row is not None else None


# ---------------------------------------------------------------------------
# Row mapper (Data Mapper pattern)
# ---------------------------------------------------------------------------


def _row_to_user(row) -> User:
    return User(
        id=row.id,
        username=row.username,
        email=row.email,
        firstname=row.firstname,
        lastname=row.lastname,
        hashed_password=row.hashed_password,
        created_at=row.created_at,
    )

"""
auth/store.py -- SQLAlchemy Core persistence layer for user accounts.

Pattern: Repository + Data Mapper.
UserRepository is the capability interface the service layer depends on;
UserStore is its one implementation, and _row_to_user is the mapper.
Service and route code never touches SQL directly.

Security:
  All queries use bound parameters. No f-strings in SQL.

Integrity:
  UNIQUE(username) is enforced by the table, not by a read-before-write
  check. Two concurrent registrations of the same name both reach INSERT;
  the database lets exactly one commit and the other gets IntegrityError,
  which is surfaced as DuplicateUsername.

  sqlite_autoincrement=True emits AUTOINCREMENT, which stops SQLite from
  handing a deleted user's id to the next registration.

DB location: DB_URL setting (default sqlite:///app.db in the working dir).

Layer rule: no imports from api/ or core/.
"""

from __future__ import annotations

import logging
from typing import Protocol

from sqlalchemy import Column, Integer, MetaData, String, Table, Text, create_engine, event, text
from sqlalchemy.engine import Engine
from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from auth.errors import DuplicateUsername, NotFound
from auth.models import DEFAULT_ROLE, User

logger = logging.getLogger("credgate.store")

_DEFAULT_DB_URL = "sqlite:///app.db"

# SQLite INTEGER is a signed 64-bit value; larger ids cannot name a row.
_MAX_ID = 2**63 - 1

# ---------------------------------------------------------------------------
# Schema
# ---------------------------------------------------------------------------

_metadata = MetaData()

_users = Table(
    "users",
    _metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("username", String(255), nullable=False, unique=True),
    Column("password_hash", Text, nullable=False),
    Column("role", String(64), nullable=False, server_default=DEFAULT_ROLE),
    sqlite_autoincrement=True,
)


# ---------------------------------------------------------------------------
# WAL mode
# ---------------------------------------------------------------------------


def _set_wal_mode(dbapi_conn, connection_record) -> None:
    """Enable WAL journal mode so readers do not block behind a writer.

    Set per-connection because SQLite PRAGMAs are not inherited by new
    connections from the pool.
    """
    dbapi_conn.execute("PRAGMA journal_mode=WAL")


# ---------------------------------------------------------------------------
# Interface
# ---------------------------------------------------------------------------


class UserRepository(Protocol):
    """Storage operations the account service relies on.

    Each call is atomic for the single record it touches. Lookups and
    writes against a missing id raise NotFound; writes that collide on
    username raise DuplicateUsername.
    """

    def create(self, user: User) -> User: ...

    def find_by_id(self, user_id: int) -> User: ...

    def find_by_username(self, username: str) -> User: ...

    def update(self, user: User) -> None: ...

    def delete(self, user_id: int) -> None: ...


# ---------------------------------------------------------------------------
# Repository
# ---------------------------------------------------------------------------


class UserStore:
    """SQL-backed UserRepository.

    Usage:
        store = UserStore("sqlite:///app.db")
        alice = store.create(User(username="alice", password_hash=hasher.hash("secret1")))
        store.find_by_username("alice")
        store.close()
    """

    def __init__(self, db_url: str = _DEFAULT_DB_URL) -> None:
        connect_args: dict = {}
        if db_url.startswith("sqlite"):
            connect_args["check_same_thread"] = False
        self.engine: Engine = create_engine(db_url, connect_args=connect_args)
        if db_url.startswith("sqlite"):
            event.listen(self.engine, "connect", _set_wal_mode)
        _metadata.create_all(self.engine)

    def create(self, user: User) -> User:
        """Insert a new user and return it with its assigned id.

        Raises DuplicateUsername if the username is already taken, including
        when a concurrent request inserted it first.
        """
        try:
            with self.engine.begin() as conn:
                result = conn.execute(
                    _users.insert().values(
                        username=user.username,
                        password_hash=user.password_hash,
                        role=user.role,
                    )
                )
                user_id = result.inserted_primary_key[0]
        except IntegrityError as exc:
            raise DuplicateUsername() from exc
        logger.info("Created user id=%d role=%s", user_id, user.role)
        return User(id=user_id, username=user.username, password_hash=user.password_hash, role=user.role)

    def find_by_id(self, user_id: int) -> User:
        if not _storable_id(user_id):
            raise NotFound()
        with self.engine.connect() as conn:
            row = conn.execute(_users.select().where(_users.c.id == user_id)).fetchone()
        if row is None:
            raise NotFound()
        return _row_to_user(row)

    def find_by_username(self, username: str) -> User:
        """Look up a user by exact username (case-sensitive)."""
        with self.engine.connect() as conn:
            row = conn.execute(_users.select().where(_users.c.username == username)).fetchone()
        if row is None:
            raise NotFound()
        return _row_to_user(row)

    def update(self, user: User) -> None:
        """Persist username and password_hash for user.id.

        role is deliberately absent from the SET clause: no exposed operation
        may change it. Raises NotFound if the row is gone (e.g. deleted after
        the caller's token was issued) and DuplicateUsername on a name clash.
        """
        if not _storable_id(user.id):
            raise NotFound()
        try:
            with self.engine.begin() as conn:
                result = conn.execute(
                    _users.update()
                    .where(_users.c.id == user.id)
                    .values(username=user.username, password_hash=user.password_hash)
                )
        except IntegrityError as exc:
            raise DuplicateUsername() from exc
        if result.rowcount == 0:
            raise NotFound()

    def delete(self, user_id: int) -> None:
        """Permanently delete a user record. Raises NotFound if absent."""
        if not _storable_id(user_id):
            raise NotFound()
        with self.engine.begin() as conn:
            result = conn.execute(_users.delete().where(_users.c.id == user_id))
        if result.rowcount == 0:
            raise NotFound()
        logger.info("Deleted user id=%d", user_id)

    def ping(self) -> bool:
        """Run a trivial query to verify the database is reachable."""
        try:
            with self.engine.connect() as conn:
                conn.execute(text("SELECT 1"))
            return True
        except SQLAlchemyError:
            logger.exception("Database ping failed")
            return False

    def close(self) -> None:
        self.engine.dispose()


# ---------------------------------------------------------------------------
# Row mapper (Data Mapper pattern)
# ---------------------------------------------------------------------------


def _storable_id(user_id: int) -> bool:
    return -_MAX_ID - 1 <= user_id <= _MAX_ID


def _row_to_user(row) -> User:
    return User(
        id=row.id,
        username=row.username,
        password_hash=row.password_hash,
        role=row.role,
    )

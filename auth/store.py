"""
auth/store.py -- SQLAlchemy Core persistence layer for user credentials.

Pattern: Repository + Data Mapper. UserStore is the repository; _row_to_user
is the mapper. The service and route code never touch SQL directly.

CredentialStore is the structural contract AuthService depends on. UserStore
satisfies it; any object with the same four methods can stand in.

Security:
  All queries use bound parameters. No f-strings in SQL.

  find_by_id_and_token() is a single SELECT with both predicates. Fetching by
  id and comparing the token in Python would leave a gap between the read and
  the check in which a concurrent login could replace the pair.

  update_tokens() overwrites both token columns unconditionally
  (last-writer-wins). No compare-and-swap.

DB path: auth/passgate_auth.db unless DATABASE_URL is set.

Layer rule: no imports from api/ or core/.
"""

from __future__ import annotations

from datetime import datetime, timezone
from pathlib import Path
from typing import Protocol

from sqlalchemy import Column, Integer, MetaData, String, Table, Text, create_engine, event, func, select
from sqlalchemy.engine import Engine

from auth.models import User

DEFAULT_DB_URL = f"sqlite:///{Path(__file__).parent / 'passgate_auth.db'}"

# ---------------------------------------------------------------------------
# Contract
# ---------------------------------------------------------------------------


class CredentialStore(Protocol):
    def find_by_username(self, username: str) -> User | None: ...

    def find_by_id_and_token(self, user_id: int, access_token: str) -> User | None: ...

    def create(self, user: User) -> int: ...

    def update_tokens(self, user_id: int, access_token: str, refresh_token: str) -> None: ...


# ---------------------------------------------------------------------------
# Schema
# ---------------------------------------------------------------------------

_metadata = MetaData()

_users = Table(
    "users",
    _metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("username", String(100), nullable=False, unique=True),
    Column("name", String(100)),
    Column("hashed_password", String(200), nullable=False),
    Column("email", String(100)),
    Column("url", Text),
    Column("access_token", Text),  # last-issued pair, NULL before first login
    Column("refresh_token", Text),
    Column("created_at", String(32), nullable=False),
    Column("updated_at", String(32), nullable=False),
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


# Primary keys are assigned from 1 upward and SQLite stores them as signed
# 64-bit integers; the driver raises OverflowError for anything wider.
_MAX_ID = 2**63 - 1


def _is_storable_id(user_id: int) -> bool:
    return 1 <= user_id <= _MAX_ID


# ---------------------------------------------------------------------------
# Repository
# ---------------------------------------------------------------------------


class UserStore:
    """Repository for User records.

    Usage:
        store = UserStore()
        uid = store.create(User(username="alice", hashed_password=hasher.hash("pw")))
        user = store.find_by_username("alice")
        store.close()
    """

    def __init__(self, db_url: str = DEFAULT_DB_URL) -> None:
        connect_args: dict = {}
        if db_url.startswith("sqlite"):
            connect_args["check_same_thread"] = False
        self.engine: Engine = create_engine(db_url, connect_args=connect_args)
        if db_url.startswith("sqlite"):
            event.listen(self.engine, "connect", _set_wal_mode)
        _metadata.create_all(self.engine)

    # ------------------------------------------------------------------
    # CredentialStore
    # ------------------------------------------------------------------

    def find_by_username(self, username: str) -> User | None:
        """Look up a user by exact username (case-sensitive). Returns None if not found."""
        with self.engine.connect() as conn:
            row = conn.execute(_users.select().where(_users.c.username == username)).fetchone()
        return _row_to_user(row) if row is not None else None

    def find_by_id_and_token(self, user_id: int, access_token: str) -> User | None:
        """Return the user only if access_token is the one currently stored for user_id."""
        if not _is_storable_id(user_id):
            return None
        with self.engine.connect() as conn:
            row = conn.execute(
                _users.select().where((_users.c.id == user_id) & (_users.c.access_token == access_token))
            ).fetchone()
        return _row_to_user(row) if row is not None else None

    def create(self, user: User) -> int:
        """Insert a new user and return its assigned database ID.

        Raises sqlalchemy.exc.IntegrityError if the username already exists.
        AuthService turns that into ConflictError for the losing side of a
        concurrent signup.
        """
        now = _now_iso()
        with self.engine.connect() as conn:
            result = conn.execute(
                _users.insert().values(
                    username=user.username,
                    name=user.name,
                    hashed_password=user.hashed_password,
                    email=user.email,
                    url=user.url,
                    created_at=now,
                    updated_at=now,
                )
            )
            conn.commit()
            return result.inserted_primary_key[0]

    def update_tokens(self, user_id: int, access_token: str, refresh_token: str) -> None:
        """Overwrite the stored token pair for user_id."""
        with self.engine.connect() as conn:
            conn.execute(
                _users.update()
                .where(_users.c.id == user_id)
                .values(access_token=access_token, refresh_token=refresh_token, updated_at=_now_iso())
            )
            conn.commit()

    # ------------------------------------------------------------------
    # Other queries
    # ------------------------------------------------------------------

    def get_by_id(self, user_id: int) -> User | None:
        """Look up a user by primary key. Returns None if not found."""
        if not _is_storable_id(user_id):
            return None
        with self.engine.connect() as conn:
            row = conn.execute(_users.select().where(_users.c.id == user_id)).fetchone()
        return _row_to_user(row) if row is not None else None

    def count_users(self) -> int:
        """Return the number of user records. Used by the health check."""
        with self.engine.connect() as conn:
            result = conn.execute(select(func.count()).select_from(_users)).scalar()
        return result or 0

    def close(self) -> None:
        self.engine.dispose()


# ---------------------------------------------------------------------------
# Row mapper (Data Mapper pattern)
# ---------------------------------------------------------------------------


def _row_to_user(row) -> User:
    return User(
        id=row.id,
        username=row.username,
        name=row.name,
        hashed_password=row.hashed_password,
        email=row.email,
        url=row.url,
        access_token=row.access_token,
        refresh_token=row.refresh_token,
        created_at=row.created_at,
        updated_at=row.updated_at,
    )

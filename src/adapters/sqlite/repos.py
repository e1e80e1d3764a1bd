"""
SQLite credential store.

Repositories open a connection per call unless they are bound to an
external connection, in which case they take part in the caller's
transaction and never commit on their own. SQLite errors are translated
to the store port's StoreError / DuplicateKeyError.
"""

from __future__ import annotations

import sqlite3
from collections.abc import Iterator
from contextlib import contextmanager
from datetime import datetime
from enum import Enum
from typing import Any
from uuid import UUID

from src.domain.entities import RSVP, Attendance, User, normalize_email
from src.ports.repo import DuplicateKeyError, StoreError

USER_COLUMNS = (
    "email",
    "full_name",
    "password_hash",
    "is_admin",
    "has_rsvped",
    "rsvp_id",
    "updated_at",
)
RSVP_COLUMNS = (
    "attendance",
    "meal_preference",
    "allergies",
    "additional_notes",
    "updated_at",
)

# -----------------------------------------------------------------------------
# Helper functions
# -----------------------------------------------------------------------------


def dict_factory(cursor: sqlite3.Cursor, row: tuple[Any, ...]) -> dict[str, Any]:
    """Convert SQLite row to dictionary."""
    return {col[0]: row[idx] for idx, col in enumerate(cursor.description)}


def parse_uuid(s: str | None) -> UUID | None:
    return UUID(s) if s else None


def to_db(value: Any) -> Any:
    if isinstance(value, UUID):
        return str(value)
    if isinstance(value, datetime):
        return value.isoformat()
    if isinstance(value, bool):
        return int(value)
    if isinstance(value, Enum):
        return value.value
    return value


def translate_error(exc: sqlite3.Error) -> StoreError:
    if isinstance(exc, sqlite3.IntegrityError):
        message = str(exc)
        # e.g. "UNIQUE constraint failed: rsvps.user_id"
        if message.startswith("UNIQUE constraint failed"):
            column = message.rsplit(".", 1)[-1].strip()
            return DuplicateKeyError(column, message)
    return StoreError(str(exc))


def connect(db_path: str) -> sqlite3.Connection:
    conn = sqlite3.connect(db_path, timeout=30, check_same_thread=False)
    conn.row_factory = dict_factory
    conn.execute("PRAGMA foreign_keys = ON;")
    return conn


# -----------------------------------------------------------------------------
# Base SQLite Repository
# -----------------------------------------------------------------------------


class SQLiteRepoBase:
    """Base class for SQLite repositories."""

    table: str = ""
    columns: tuple[str, ...] = ()

    def __init__(self, db_path: str, connection: sqlite3.Connection | None = None):
        self.db_path = db_path
        self._external_conn = connection

    def _get_conn(self) -> sqlite3.Connection:
        """Get database connection (uses external if provided)."""
        if self._external_conn is not None:
            return self._external_conn
        return connect(self.db_path)

    def _should_close(self) -> bool:
        """Whether to close connection after use."""
        return self._external_conn is None

    @contextmanager
    def _conn(self) -> Iterator[sqlite3.Connection]:
        try:
            conn = self._get_conn()
        except sqlite3.Error as exc:
            raise translate_error(exc) from exc
        try:
            yield conn
            if self._should_close():
                conn.commit()
        except sqlite3.Error as exc:
            if self._should_close():
                conn.rollback()
            raise translate_error(exc) from exc
        finally:
            if self._should_close():
                conn.close()

    def _apply_patch(self, conn: sqlite3.Connection, row_id: UUID, patch: dict[str, Any]) -> None:
        unknown = set(patch) - set(self.columns)
        if unknown:
            raise ValueError(f"Cannot update {self.table} columns: {sorted(unknown)}")
        assignments = ", ".join(f"{col} = ?" for col in patch)
        params = [to_db(value) for value in patch.values()]
        params.append(str(row_id))
        conn.execute(f"UPDATE {self.table} SET {assignments} WHERE id = ?", params)


# -----------------------------------------------------------------------------
# Users
# -----------------------------------------------------------------------------


class SQLiteUserRepo(SQLiteRepoBase):
    table = "users"
    columns = USER_COLUMNS

    def get_by_id(self, user_id: UUID) -> User | None:
        with self._conn() as conn:
            row = conn.execute("SELECT * FROM users WHERE id = ?", (str(user_id),)).fetchone()
        return self._map_row(row) if row else None

    def get_by_email(self, email: str) -> User | None:
        with self._conn() as conn:
            row = conn.execute(
                "SELECT * FROM users WHERE email = ?", (normalize_email(email),)
            ).fetchone()
        return self._map_row(row) if row else None

    def insert(self, user: User) -> User:
        with self._conn() as conn:
            conn.execute(
                """
                INSERT INTO users (
                    id, email, full_name, password_hash, is_admin,
                    has_rsvped, rsvp_id, created_at, updated_at
                ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?)
                """,
                (
                    str(user.id),
                    user.email,
                    user.full_name,
                    user.password_hash,
                    to_db(user.is_admin),
                    to_db(user.has_rsvped),
                    to_db(user.rsvp_id),
                    user.created_at.isoformat(),
                    user.updated_at.isoformat(),
                ),
            )
        return user

    def update(self, user_id: UUID, patch: dict[str, Any]) -> User | None:
        with self._conn() as conn:
            if patch:
                self._apply_patch(conn, user_id, patch)
            row = conn.execute("SELECT * FROM users WHERE id = ?", (str(user_id),)).fetchone()
        return self._map_row(row) if row else None

    def list_all(self) -> list[User]:
        with self._conn() as conn:
            rows = conn.execute("SELECT * FROM users ORDER BY email").fetchall()
        return [self._map_row(row) for row in rows]

    def delete(self, user_id: UUID) -> bool:
        with self._conn() as conn:
            cursor = conn.execute("DELETE FROM users WHERE id = ?", (str(user_id),))
        return cursor.rowcount > 0

    def _map_row(self, row: dict[str, Any]) -> User:
        return User(
            id=UUID(row["id"]),
            email=row["email"],
            full_name=row["full_name"],
            password_hash=row["password_hash"],
            is_admin=bool(row["is_admin"]),
            has_rsvped=bool(row["has_rsvped"]),
            rsvp_id=parse_uuid(row["rsvp_id"]),
            created_at=datetime.fromisoformat(row["created_at"]),
            updated_at=datetime.fromisoformat(row["updated_at"]),
        )


# -----------------------------------------------------------------------------
# RSVPs
# -----------------------------------------------------------------------------


class SQLiteRSVPRepo(SQLiteRepoBase):
    table = "rsvps"
    columns = RSVP_COLUMNS

    def get_by_id(self, rsvp_id: UUID) -> RSVP | None:
        with self._conn() as conn:
            row = conn.execute("SELECT * FROM rsvps WHERE id = ?", (str(rsvp_id),)).fetchone()
        return self._map_row(row) if row else None

    def get_by_owner(self, user_id: UUID) -> RSVP | None:
        with self._conn() as conn:
            row = conn.execute(
                "SELECT * FROM rsvps WHERE user_id = ?", (str(user_id),)
            ).fetchone()
        return self._map_row(row) if row else None

    def insert(self, rsvp: RSVP) -> RSVP:
        with self._conn() as conn:
            conn.execute(
                """
                INSERT INTO rsvps (
                    id, user_id, attendance, meal_preference, allergies,
                    additional_notes, created_at, updated_at
                ) VALUES (?, ?, ?, ?, ?, ?, ?, ?)
                """,
                (
                    str(rsvp.id),
                    str(rsvp.user_id),
                    rsvp.attendance.value,
                    rsvp.meal_preference,
                    rsvp.allergies,
                    rsvp.additional_notes,
                    rsvp.created_at.isoformat(),
                    rsvp.updated_at.isoformat(),
                ),
            )
        return rsvp

    def update(self, rsvp_id: UUID, patch: dict[str, Any]) -> RSVP | None:
        with self._conn() as conn:
            if patch:
                self._apply_patch(conn, rsvp_id, patch)
            row = conn.execute("SELECT * FROM rsvps WHERE id = ?", (str(rsvp_id),)).fetchone()
        return self._map_row(row) if row else None

    def list_all(self) -> list[RSVP]:
        with self._conn() as conn:
            rows = conn.execute("SELECT * FROM rsvps ORDER BY created_at").fetchall()
        return [self._map_row(row) for row in rows]

    def delete_by_owner(self, user_id: UUID) -> bool:
        with self._conn() as conn:
            cursor = conn.execute("DELETE FROM rsvps WHERE user_id = ?", (str(user_id),))
        return cursor.rowcount > 0

    def _map_row(self, row: dict[str, Any]) -> RSVP:
        return RSVP(
            id=UUID(row["id"]),
            user_id=UUID(row["user_id"]),
            attendance=Attendance(row["attendance"]),
            meal_preference=row["meal_preference"],
            allergies=row["allergies"],
            additional_notes=row["additional_notes"],
            created_at=datetime.fromisoformat(row["created_at"]),
            updated_at=datetime.fromisoformat(row["updated_at"]),
        )


# -----------------------------------------------------------------------------
# Store
# -----------------------------------------------------------------------------


class SQLiteUnitOfWork:
    def __init__(self, db_path: str, connection: sqlite3.Connection):
        self.users = SQLiteUserRepo(db_path, connection)
        self.rsvps = SQLiteRSVPRepo(db_path, connection)


class SQLiteCredentialStore:
    """CredentialStorePort backed by one SQLite file."""

    def __init__(self, db_path: str):
        self.db_path = db_path
        self.users = SQLiteUserRepo(db_path)
        self.rsvps = SQLiteRSVPRepo(db_path)

    @contextmanager
    def transaction(self) -> Iterator[SQLiteUnitOfWork]:
        conn = connect(self.db_path)
        try:
            # Take the write lock up front so concurrent writers queue
            # instead of failing on lock upgrade.
            conn.execute("BEGIN IMMEDIATE")
        except sqlite3.Error as exc:
            conn.close()
            raise translate_error(exc) from exc

        try:
            yield SQLiteUnitOfWork(self.db_path, conn)
        except BaseException:
            conn.rollback()
            raise
        else:
            try:
                conn.commit()
            except sqlite3.Error as exc:
                conn.rollback()
                raise translate_error(exc) from exc
        finally:
            conn.close()

    def ping(self) -> bool:
        try:
            conn = connect(self.db_path)
            try:
                conn.execute("SELECT 1 FROM users LIMIT 1").fetchall()
            finally:
                conn.close()
        except sqlite3.Error:
            return False
        return True

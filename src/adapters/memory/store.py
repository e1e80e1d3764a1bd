"""
In-memory credential store.

Test double for the component and seeding tests; the API and CLI always
run on SQLite. Enforces the same uniqueness constraints as the SQLite schema
(email per user, one RSVP per owner). Transactions are serialized with a
re-entrant lock and roll back by restoring a snapshot.
"""

from __future__ import annotations

from collections.abc import Iterator
from contextlib import contextmanager
from threading import RLock
from typing import Any
from uuid import UUID

from src.domain.entities import RSVP, User, normalize_email
from src.ports.repo import DuplicateKeyError


class _Tables:
    def __init__(self) -> None:
        self.users: dict[UUID, User] = {}
        self.rsvps: dict[UUID, RSVP] = {}
        self.lock = RLock()

    def snapshot(self) -> tuple[dict[UUID, User], dict[UUID, RSVP]]:
        return dict(self.users), dict(self.rsvps)

    def restore(self, snap: tuple[dict[UUID, User], dict[UUID, RSVP]]) -> None:
        self.users, self.rsvps = dict(snap[0]), dict(snap[1])


class InMemoryUserRepo:
    def __init__(self, tables: _Tables):
        self._t = tables

    def get_by_id(self, user_id: UUID) -> User | None:
        with self._t.lock:
            user = self._t.users.get(user_id)
            return user.model_copy() if user else None

    def get_by_email(self, email: str) -> User | None:
        key = normalize_email(email)
        with self._t.lock:
            for user in self._t.users.values():
                if user.email == key:
                    return user.model_copy()
        return None

    def insert(self, user: User) -> User:
        with self._t.lock:
            if any(u.email == user.email for u in self._t.users.values()):
                raise DuplicateKeyError("email")
            self._t.users[user.id] = user.model_copy()
        return user

    def update(self, user_id: UUID, patch: dict[str, Any]) -> User | None:
        with self._t.lock:
            current = self._t.users.get(user_id)
            if current is None:
                return None
            email = patch.get("email")
            if email is not None and any(
                u.email == email and u.id != user_id for u in self._t.users.values()
            ):
                raise DuplicateKeyError("email")
            updated = current.model_copy(update=patch)
            self._t.users[user_id] = updated
            return updated.model_copy()

    def list_all(self) -> list[User]:
        with self._t.lock:
            users = sorted(self._t.users.values(), key=lambda u: u.email)
            return [u.model_copy() for u in users]

    def delete(self, user_id: UUID) -> bool:
        with self._t.lock:
            if self._t.users.pop(user_id, None) is None:
                return False
            # Mirrors ON DELETE CASCADE
            for rsvp_id in [r.id for r in self._t.rsvps.values() if r.user_id == user_id]:
                del self._t.rsvps[rsvp_id]
            return True


class InMemoryRSVPRepo:
    def __init__(self, tables: _Tables):
        self._t = tables

    def get_by_id(self, rsvp_id: UUID) -> RSVP | None:
        with self._t.lock:
            rsvp = self._t.rsvps.get(rsvp_id)
            return rsvp.model_copy() if rsvp else None

    def get_by_owner(self, user_id: UUID) -> RSVP | None:
        with self._t.lock:
            for rsvp in self._t.rsvps.values():
                if rsvp.user_id == user_id:
                    return rsvp.model_copy()
        return None

    def insert(self, rsvp: RSVP) -> RSVP:
        with self._t.lock:
            if any(r.user_id == rsvp.user_id for r in self._t.rsvps.values()):
                raise DuplicateKeyError("user_id")
            self._t.rsvps[rsvp.id] = rsvp.model_copy()
        return rsvp

    def update(self, rsvp_id: UUID, patch: dict[str, Any]) -> RSVP | None:
        with self._t.lock:
            current = self._t.rsvps.get(rsvp_id)
            if current is None:
                return None
            updated = current.model_copy(update=patch)
            self._t.rsvps[rsvp_id] = updated
            return updated.model_copy()

    def list_all(self) -> list[RSVP]:
        with self._t.lock:
            rsvps = sorted(self._t.rsvps.values(), key=lambda r: r.created_at)
            return [r.model_copy() for r in rsvps]

    def delete_by_owner(self, user_id: UUID) -> bool:
        with self._t.lock:
            owned = [r.id for r in self._t.rsvps.values() if r.user_id == user_id]
            for rsvp_id in owned:
                del self._t.rsvps[rsvp_id]
            return bool(owned)


class InMemoryCredentialStore:
    def __init__(self) -> None:
        self._tables = _Tables()
        self.users = InMemoryUserRepo(self._tables)
        self.rsvps = InMemoryRSVPRepo(self._tables)

    @contextmanager
    def transaction(self) -> Iterator[InMemoryCredentialStore]:
        with self._tables.lock:
            snap = self._tables.snapshot()
            try:
                yield self
            except BaseException:
                self._tables.restore(snap)
                raise

    def ping(self) -> bool:
        return True

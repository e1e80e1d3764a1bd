"""Invite registry adapters.

Both are read-only at request time. The static registry is fed from
rules.yaml; the SQLite one reads the invited_emails table so the guest
list can be managed outside the process.
"""

from __future__ import annotations

import sqlite3
from collections.abc import Iterable

from src.domain.entities import normalize_email
from src.rules.models import InviteRules


class StaticInviteRegistry:
    def __init__(self, emails: Iterable[str]):
        self._emails = frozenset(normalize_email(e) for e in emails if e.strip())

    def is_invited(self, email: str) -> bool:
        return normalize_email(email) in self._emails

    def __len__(self) -> int:
        return len(self._emails)


class SQLiteInviteRegistry:
    def __init__(self, db_path: str):
        self.db_path = db_path

    def is_invited(self, email: str) -> bool:
        conn = sqlite3.connect(self.db_path)
        try:
            row = conn.execute(
                "SELECT 1 FROM invited_emails WHERE email = ?", (normalize_email(email),)
            ).fetchone()
            return row is not None
        finally:
            conn.close()

    def add_all(self, emails: Iterable[str]) -> int:
        """Record emails as invited. Returns how many were new."""
        conn = sqlite3.connect(self.db_path)
        try:
            before = conn.total_changes
            conn.executemany(
                "INSERT OR IGNORE INTO invited_emails (email) VALUES (?)",
                [(normalize_email(e),) for e in emails if e.strip()],
            )
            conn.commit()
            return conn.total_changes - before
        finally:
            conn.close()


def build_invite_registry(
    rules: InviteRules, db_path: str
) -> StaticInviteRegistry | SQLiteInviteRegistry:
    if rules.source == "sqlite":
        return SQLiteInviteRegistry(db_path)
    return StaticInviteRegistry(rules.emails)

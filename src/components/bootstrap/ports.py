"""Bootstrap component port definitions."""

from __future__ import annotations

from datetime import datetime
from typing import Protocol

from src.domain.entities import User


class UserRepoPort(Protocol):
    def list_all(self) -> list[User]: ...
    def insert(self, user: User) -> User: ...


class PasswordHasherPort(Protocol):
    def hash_password(self, password: str) -> str: ...


class TimePort(Protocol):
    """Port for time operations - enables deterministic testing."""

    def now_utc(self) -> datetime:
        """Get current UTC time."""
        ...

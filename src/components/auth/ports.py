from datetime import datetime
from typing import Protocol
from uuid import UUID

from src.components.tokens import TokenOutput
from src.domain.entities import User


class UserRepoPort(Protocol):
    def get_by_email(self, email: str) -> User | None: ...
    def insert(self, user: User) -> User: ...


class PasswordHasherPort(Protocol):
    def hash_password(self, password: str) -> str: ...
    def verify_password(self, plain: str, hashed: str) -> bool: ...
    def dummy_verify(self) -> None: ...


class TokenIssuerPort(Protocol):
    def issue(self, user_id: UUID, email: str, full_name: str) -> TokenOutput: ...


class TimePort(Protocol):
    """Port for time operations - enables deterministic testing."""

    def now_utc(self) -> datetime:
        """Get current UTC time."""
        ...

from contextlib import AbstractContextManager
from typing import Any, Protocol
from uuid import UUID

from src.domain.entities import RSVP, User


class StoreError(Exception):
    """The credential store could not complete an operation."""


class DuplicateKeyError(StoreError):
    """A uniqueness constraint was violated by an insert or update."""

    def __init__(self, field: str, message: str | None = None):
        super().__init__(message or f"Duplicate value for {field}")
        self.field = field


class UserRepoPort(Protocol):
    def get_by_id(self, user_id: UUID) -> User | None:
        ...

    def get_by_email(self, email: str) -> User | None:
        ...

    def insert(self, user: User) -> User:
        """Raises DuplicateKeyError("email") when the email is taken."""
        ...

    def update(self, user_id: UUID, patch: dict[str, Any]) -> User | None:
        """Apply a partial update. Returns None when the user does not exist."""
        ...

    def list_all(self) -> list[User]:
        ...

    def delete(self, user_id: UUID) -> bool:
        ...


class RSVPRepoPort(Protocol):
    def get_by_id(self, rsvp_id: UUID) -> RSVP | None:
        ...

    def get_by_owner(self, user_id: UUID) -> RSVP | None:
        ...

    def insert(self, rsvp: RSVP) -> RSVP:
        """Raises DuplicateKeyError("user_id") when the owner already has an RSVP."""
        ...

    def update(self, rsvp_id: UUID, patch: dict[str, Any]) -> RSVP | None:
        ...

    def list_all(self) -> list[RSVP]:
        ...

    def delete_by_owner(self, user_id: UUID) -> bool:
        ...


class UnitOfWork(Protocol):
    users: UserRepoPort
    rsvps: RSVPRepoPort


class CredentialStorePort(Protocol):
    """Users and RSVPs, plus a transaction spanning both."""

    users: UserRepoPort
    rsvps: RSVPRepoPort

    def transaction(self) -> AbstractContextManager[UnitOfWork]:
        """
        Open a unit of work. Changes made through it are committed when the
        block exits normally and rolled back when it raises.
        """
        ...

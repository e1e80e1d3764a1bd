from dataclasses import dataclass, field
from typing import Any
from uuid import UUID

from src.domain.entities import RequestContext, User
from src.domain.errors import CoreError


@dataclass
class UpdateProfileInput:
    actor: RequestContext
    target_id: UUID
    full_name: str | None = None
    email: str | None = None

    def as_patch(self) -> dict[str, Any]:
        patch: dict[str, Any] = {}
        if self.full_name is not None:
            patch["full_name"] = self.full_name
        if self.email is not None:
            patch["email"] = self.email
        return patch


@dataclass
class GetUserInput:
    actor: RequestContext
    target_id: UUID


@dataclass
class ListUsersInput:
    actor: RequestContext


@dataclass
class DeleteUserInput:
    actor: RequestContext
    target_id: UUID


@dataclass
class UserOutput:
    user: User | None = None
    success: bool = False
    error: CoreError | None = None


@dataclass
class UserListOutput:
    users: list[User] = field(default_factory=list)
    success: bool = False
    error: CoreError | None = None

"""Bootstrap component data models."""

from __future__ import annotations

from dataclasses import dataclass

from src.domain.entities import User
from src.domain.errors import CoreError


@dataclass(frozen=True)
class BootstrapInput:
    email: str | None
    password: str | None
    full_name: str = "Administrator"


@dataclass(frozen=True)
class BootstrapOutput:
    user: User | None = None
    created: bool = False
    skipped_reason: str | None = None
    success: bool = True
    error: CoreError | None = None

    @classmethod
    def skipped(cls, reason: str) -> BootstrapOutput:
        return cls(skipped_reason=reason)

    @classmethod
    def created_admin(cls, user: User) -> BootstrapOutput:
        return cls(user=user, created=True)

    @classmethod
    def failed(cls, error: CoreError) -> BootstrapOutput:
        return cls(success=False, error=error)

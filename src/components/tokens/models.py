from dataclasses import dataclass
from uuid import UUID

from src.domain.entities import SessionClaims
from src.domain.errors import CoreError


@dataclass
class IssueTokenInput:
    user_id: UUID
    email: str
    full_name: str


@dataclass
class VerifyTokenInput:
    token: str | None


@dataclass
class TokenOutput:
    token: str | None = None
    claims: SessionClaims | None = None
    success: bool = False
    error: CoreError | None = None

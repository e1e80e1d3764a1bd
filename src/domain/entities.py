import re
from datetime import UTC, datetime
from enum import Enum
from uuid import UUID, uuid4

from pydantic import BaseModel, Field

# --- Enums ---


class Attendance(str, Enum):
    YES = "yes"
    NO = "no"
    MAYBE = "maybe"

    @classmethod
    def parse(cls, value: "str | bool | Attendance") -> "Attendance":
        """Accept enum values, booleans and legacy "YES"/"NO" strings."""
        if isinstance(value, Attendance):
            return value
        if isinstance(value, bool):
            return cls.YES if value else cls.NO
        return cls(str(value).strip().lower())


def _utcnow() -> datetime:
    return datetime.now(UTC)


# --- User & Auth ---


class User(BaseModel):
    id: UUID = Field(default_factory=uuid4)
    email: str
    full_name: str
    password_hash: str = Field(repr=False)
    is_admin: bool = False
    has_rsvped: bool = False
    rsvp_id: UUID | None = None
    created_at: datetime = Field(default_factory=_utcnow)
    updated_at: datetime = Field(default_factory=_utcnow)


class SessionClaims(BaseModel):
    """Identity asserted by a verified session token."""

    user_id: UUID
    email: str
    full_name: str
    issued_at: datetime
    expires_at: datetime


class RequestContext(BaseModel):
    """Per-call execution context built by the API boundary."""

    user_id: UUID
    email: str
    full_name: str
    is_admin: bool = False


# --- RSVP ---


class RSVP(BaseModel):
    id: UUID = Field(default_factory=uuid4)
    user_id: UUID
    attendance: Attendance
    meal_preference: str = ""
    allergies: str = ""
    additional_notes: str = ""
    created_at: datetime = Field(default_factory=_utcnow)
    updated_at: datetime = Field(default_factory=_utcnow)


def normalize_email(email: str) -> str:
    return email.strip().lower()


EMAIL_PATTERN = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")


def is_valid_email(email: str) -> bool:
    return bool(EMAIL_PATTERN.match(email.strip()))

from datetime import datetime
from typing import Annotated, Any
from uuid import UUID

from pydantic import BaseModel, BeforeValidator, ConfigDict

from src.domain.entities import RSVP, Attendance, User
from src.ports.invites import InviteRegistryPort


def _parse_attendance(v: Any) -> Any:
    if v is None:
        return None
    try:
        return Attendance.parse(v)
    except ValueError:
        # Let pydantic report the enum error
        return v


AttendanceField = Annotated[Attendance, BeforeValidator(_parse_attendance)]


# --- Auth ---


class RegisterRequest(BaseModel):
    full_name: str
    email: str
    password: str


class LoginRequest(BaseModel):
    email: str
    password: str


class UserResponse(BaseModel):
    id: UUID
    email: str
    full_name: str
    is_admin: bool
    is_invited: bool
    has_rsvped: bool
    rsvp_id: UUID | None = None
    created_at: datetime
    updated_at: datetime

    @classmethod
    def from_user(cls, user: User, invites: InviteRegistryPort) -> "UserResponse":
        return cls(
            id=user.id,
            email=user.email,
            full_name=user.full_name,
            is_admin=user.is_admin,
            is_invited=invites.is_invited(user.email),
            has_rsvped=user.has_rsvped,
            rsvp_id=user.rsvp_id,
            created_at=user.created_at,
            updated_at=user.updated_at,
        )


class AuthResponse(BaseModel):
    access_token: str
    token_type: str = "bearer"
    user: UserResponse


# --- RSVP ---


class RSVPResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    user_id: UUID
    attendance: Attendance
    meal_preference: str
    allergies: str
    additional_notes: str
    created_at: datetime
    updated_at: datetime

    @classmethod
    def from_rsvp(cls, rsvp: RSVP) -> "RSVPResponse":
        return cls.model_validate(rsvp)


class SubmitRSVPRequest(BaseModel):
    attendance: AttendanceField
    meal_preference: str = ""
    allergies: str = ""
    additional_notes: str = ""


class EditRSVPRequest(BaseModel):
    attendance: AttendanceField | None = None
    meal_preference: str | None = None
    allergies: str | None = None
    additional_notes: str | None = None


class MeResponse(BaseModel):
    user: UserResponse
    rsvp: RSVPResponse | None = None


# --- Users ---


class UpdateUserRequest(BaseModel):
    full_name: str | None = None
    email: str | None = None

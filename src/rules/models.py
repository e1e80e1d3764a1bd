from typing import Literal

from pydantic import BaseModel, Field, field_validator

from src.domain.entities import Attendance


class PasswordHashingRules(BaseModel):
    algorithm: Literal["argon2"] = "argon2"
    min_length: int = Field(default=8, ge=1)
    time_cost: int = Field(default=3, ge=1)
    memory_cost: int = Field(default=65536, ge=8)  # KiB
    parallelism: int = Field(default=4, ge=1)


class TokenRules(BaseModel):
    ttl_minutes: int = Field(default=120, ge=1)
    algorithm: Literal["HS256", "HS384", "HS512"] = "HS256"


class AuthRules(BaseModel):
    password_hashing: PasswordHashingRules = Field(default_factory=PasswordHashingRules)
    tokens: TokenRules = Field(default_factory=TokenRules)


class InviteRules(BaseModel):
    source: Literal["static", "sqlite"] = "static"
    emails: list[str] = Field(default_factory=list)

    @field_validator("emails")
    @classmethod
    def normalize(cls, v: list[str]) -> list[str]:
        return [e.strip().lower() for e in v if e.strip()]


class RSVPRules(BaseModel):
    meal_required_for: list[Attendance] = Field(
        default_factory=lambda: [Attendance.YES, Attendance.MAYBE]
    )
    max_text_length: int = Field(default=500, ge=1)

    @field_validator("meal_required_for", mode="before")
    @classmethod
    def parse_attendance(cls, v: list[object]) -> list[Attendance]:
        # YAML 1.1 reads a bare `yes` as True
        return [Attendance.parse(item) for item in v]  # type: ignore[arg-type]


class OpsRules(BaseModel):
    required_env: list[str] = Field(default_factory=list)


class Rules(BaseModel):
    auth: AuthRules = Field(default_factory=AuthRules)
    invites: InviteRules = Field(default_factory=InviteRules)
    rsvp: RSVPRules = Field(default_factory=RSVPRules)
    ops: OpsRules = Field(default_factory=OpsRules)

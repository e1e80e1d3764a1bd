"""
Database seeding from a JSON fixture.

Fixture shape::

    {
      "users": [{"fullName": ..., "email": ..., "password": ...,
                 "isInvited": true, "isAdmin": false}],
      "rsvps": [{"userEmail": ..., "attending": "YES",
                 "mealPreference": ..., "allergies": ..., "additionalNotes": ...}]
    }

Existing users (by email) and users that already have an RSVP are skipped,
so seeding the same file twice is harmless.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Annotated, Any

from pydantic import BaseModel, BeforeValidator, ConfigDict, Field, ValidationError

from src.adapters.invites import SQLiteInviteRegistry
from src.domain.entities import RSVP, Attendance, User, normalize_email
from src.ports.auth import PasswordHasherPort
from src.ports.clock import ClockPort
from src.ports.repo import CredentialStorePort

logger = logging.getLogger(__name__)


def _attendance(v: Any) -> Attendance:
    return Attendance.parse(v)


class SeedUser(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    full_name: str = Field(alias="fullName")
    email: str
    password: str
    is_invited: bool = Field(default=False, alias="isInvited")
    is_admin: bool = Field(default=False, alias="isAdmin")


class SeedRSVP(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    user_email: str = Field(alias="userEmail")
    attending: Annotated[Attendance, BeforeValidator(_attendance)]
    meal_preference: str = Field(default="", alias="mealPreference")
    allergies: str = ""
    additional_notes: str = Field(default="", alias="additionalNotes")


class SeedFile(BaseModel):
    users: list[SeedUser] = Field(default_factory=list)
    rsvps: list[SeedRSVP] = Field(default_factory=list)


@dataclass
class SeedReport:
    users: int = 0
    rsvps: int = 0
    invites: int = 0
    skipped: list[str] = field(default_factory=list)


def load_seed_file(path: Path) -> SeedFile:
    if not path.exists():
        raise FileNotFoundError(f"Seed file not found: {path}")

    try:
        with open(path, encoding="utf-8") as f:
            data = json.load(f)
    except json.JSONDecodeError as e:
        raise ValueError(f"Invalid JSON in {path}: {e}") from e

    try:
        return SeedFile.model_validate(data)
    except ValidationError as e:
        raise ValueError(f"Invalid seed data in {path}: {e}") from e


def seed_database(
    data: SeedFile,
    store: CredentialStorePort,
    hasher: PasswordHasherPort,
    time: ClockPort,
    invite_registry: SQLiteInviteRegistry | None = None,
) -> SeedReport:
    report = SeedReport()
    now = time.now_utc()

    # --- Users ---
    invited: list[str] = []
    for item in data.users:
        email = normalize_email(item.email)
        if item.is_invited:
            invited.append(email)
        if store.users.get_by_email(email):
            report.skipped.append(f"user {email}: already exists")
            continue

        store.users.insert(
            User(
                email=email,
                full_name=item.full_name,
                password_hash=hasher.hash_password(item.password),
                is_admin=item.is_admin,
                created_at=now,
                updated_at=now,
            )
        )
        report.users += 1
    logger.info("Inserted %d users", report.users)

    if invite_registry is not None and invited:
        report.invites = invite_registry.add_all(invited)

    # --- RSVPs ---
    for entry in data.rsvps:
        owner = store.users.get_by_email(entry.user_email)
        if not owner:
            logger.warning("No matching user for RSVP: %s", entry.user_email)
            report.skipped.append(f"rsvp {entry.user_email}: no such user")
            continue
        if store.rsvps.get_by_owner(owner.id):
            report.skipped.append(f"rsvp {entry.user_email}: already submitted")
            continue

        rsvp = RSVP(
            user_id=owner.id,
            attendance=entry.attending,
            meal_preference=entry.meal_preference,
            allergies=entry.allergies,
            additional_notes=entry.additional_notes,
            created_at=now,
            updated_at=now,
        )
        with store.transaction() as uow:
            uow.rsvps.insert(rsvp)
            uow.users.update(owner.id, {"has_rsvped": True, "rsvp_id": rsvp.id, "updated_at": now})
        report.rsvps += 1
    logger.info("Inserted %d RSVPs", report.rsvps)

    return report

"""
RSVP component models.

State machine (per user): no_rsvp → submit → has_rsvp → edit → has_rsvp.
No transition removes an RSVP; deletion happens only through account
removal, outside the lifecycle.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any
from uuid import UUID

from src.domain.entities import RSVP, Attendance, RequestContext
from src.domain.errors import CoreError

# --- State Machine ---


class RSVPState(Enum):
    NO_RSVP = "no_rsvp"
    HAS_RSVP = "has_rsvp"


class RSVPAction(Enum):
    SUBMIT = "submit"
    EDIT = "edit"


# Valid state transitions
VALID_TRANSITIONS: dict[RSVPState, dict[RSVPAction, RSVPState]] = {
    RSVPState.NO_RSVP: {RSVPAction.SUBMIT: RSVPState.HAS_RSVP},
    RSVPState.HAS_RSVP: {RSVPAction.EDIT: RSVPState.HAS_RSVP},
}


def can_transition(state: RSVPState, action: RSVPAction) -> bool:
    return action in VALID_TRANSITIONS.get(state, {})


# --- Input Models ---


@dataclass(frozen=True)
class SubmitRSVPInput:
    user_id: UUID
    attendance: Attendance
    meal_preference: str = ""
    allergies: str = ""
    additional_notes: str = ""


@dataclass(frozen=True)
class RSVPUpdates:
    """Partial edit. A field left as None is not changed."""

    attendance: Attendance | None = None
    meal_preference: str | None = None
    allergies: str | None = None
    additional_notes: str | None = None

    def as_patch(self) -> dict[str, Any]:
        return {
            name: value
            for name, value in (
                ("attendance", self.attendance),
                ("meal_preference", self.meal_preference),
                ("allergies", self.allergies),
                ("additional_notes", self.additional_notes),
            )
            if value is not None
        }


@dataclass(frozen=True)
class EditRSVPInput:
    user_id: UUID
    updates: RSVPUpdates = field(default_factory=RSVPUpdates)


@dataclass(frozen=True)
class GetRSVPInput:
    actor: RequestContext
    target_user_id: UUID | None = None  # defaults to the actor


# --- Output Models ---


@dataclass
class RSVPOutput:
    rsvp: RSVP | None = None
    success: bool = False
    error: CoreError | None = None


@dataclass
class ReconcileReport:
    """Result of a back-reference consistency sweep."""

    repaired_user_ids: list[UUID] = field(default_factory=list)
    cleared_user_ids: list[UUID] = field(default_factory=list)
    orphaned_rsvp_ids: list[UUID] = field(default_factory=list)

    @property
    def clean(self) -> bool:
        return not (self.repaired_user_ids or self.cleared_user_ids or self.orphaned_rsvp_ids)

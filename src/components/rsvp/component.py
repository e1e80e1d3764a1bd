"""
RSVP Lifecycle Manager.

Owns the per-user RSVP state machine. Submission is gated by the invite
registry and is never idempotent: a second submit is a conflict, not a
silent success. The RSVP row and the owner's back-reference are written
in one store transaction; if a store fails part-way anyway, the owner is
reconciled in the same call.
"""

from __future__ import annotations

import logging
from datetime import datetime
from uuid import UUID

from src.domain.entities import RSVP, Attendance
from src.domain.errors import CoreError
from src.domain.policy import PolicyEngine
from src.ports.repo import DuplicateKeyError, StoreError
from src.rules.models import RSVPRules

from .models import (
    EditRSVPInput,
    GetRSVPInput,
    ReconcileReport,
    RSVPAction,
    RSVPOutput,
    RSVPState,
    SubmitRSVPInput,
    can_transition,
)
from .ports import CredentialStorePort, InviteRegistryPort, TimePort

logger = logging.getLogger(__name__)

USER_NOT_FOUND = "User not found."
NOT_INVITED = "You are not invited to RSVP."
ALREADY_SUBMITTED = "RSVP already submitted."
NO_RSVP = "No RSVP found."
BACKREF_FAILED = "RSVP was saved but the account could not be updated."

TEXT_FIELDS = ("meal_preference", "allergies", "additional_notes")


class _OwnerVanished(Exception):
    pass


def _validate(
    attendance: Attendance,
    texts: dict[str, str],
    rules: RSVPRules,
) -> CoreError | None:
    if attendance in rules.meal_required_for and not texts["meal_preference"].strip():
        return CoreError.validation(
            f"Meal preference is required when attendance is '{attendance.value}'",
            field="meal_preference",
        )
    for name in TEXT_FIELDS:
        if len(texts[name]) > rules.max_text_length:
            return CoreError.validation(
                f"Must be at most {rules.max_text_length} characters", field=name
            )
    return None


def _state_of(store: CredentialStorePort, user_id: UUID) -> tuple[RSVPState, RSVP | None]:
    existing = store.rsvps.get_by_owner(user_id)
    return (RSVPState.HAS_RSVP if existing else RSVPState.NO_RSVP), existing


def _link_owner(store: CredentialStorePort, user_id: UUID, rsvp_id: UUID, now: datetime) -> bool:
    linked = store.users.update(
        user_id, {"has_rsvped": True, "rsvp_id": rsvp_id, "updated_at": now}
    )
    return linked is not None


def run_submit(
    inp: SubmitRSVPInput,
    store: CredentialStorePort,
    invites: InviteRegistryPort,
    time: TimePort,
    rules: RSVPRules | None = None,
) -> RSVPOutput:
    rules = rules or RSVPRules()

    user = store.users.get_by_id(inp.user_id)
    if not user:
        return RSVPOutput(success=False, error=CoreError.not_found(USER_NOT_FOUND))

    if not invites.is_invited(user.email):
        logger.info("Uninvited RSVP attempt by user %s", user.id)
        return RSVPOutput(success=False, error=CoreError.forbidden(NOT_INVITED))

    state, _ = _state_of(store, user.id)
    if not can_transition(state, RSVPAction.SUBMIT):
        return RSVPOutput(
            success=False, error=CoreError.conflict(ALREADY_SUBMITTED, field="user_id")
        )

    error = _validate(
        inp.attendance,
        {
            "meal_preference": inp.meal_preference,
            "allergies": inp.allergies,
            "additional_notes": inp.additional_notes,
        },
        rules,
    )
    if error:
        return RSVPOutput(success=False, error=error)

    now = time.now_utc()
    rsvp = RSVP(
        user_id=user.id,
        attendance=inp.attendance,
        meal_preference=inp.meal_preference,
        allergies=inp.allergies,
        additional_notes=inp.additional_notes,
        created_at=now,
        updated_at=now,
    )

    try:
        with store.transaction() as uow:
            uow.rsvps.insert(rsvp)
            linked = uow.users.update(
                user.id, {"has_rsvped": True, "rsvp_id": rsvp.id, "updated_at": now}
            )
            if linked is None:
                raise _OwnerVanished()
    except DuplicateKeyError:
        logger.info("Concurrent RSVP submit for user %s rejected", user.id)
        return RSVPOutput(
            success=False, error=CoreError.conflict(ALREADY_SUBMITTED, field="user_id")
        )
    except _OwnerVanished:
        return RSVPOutput(success=False, error=CoreError.not_found(USER_NOT_FOUND))
    except StoreError:
        persisted = store.rsvps.get_by_owner(user.id)
        if persisted is None:
            raise
        if persisted.id != rsvp.id:
            return RSVPOutput(
                success=False, error=CoreError.conflict(ALREADY_SUBMITTED, field="user_id")
            )

        logger.warning("RSVP %s stored without owner back-reference, repairing", rsvp.id)
        try:
            repaired = _link_owner(store, user.id, persisted.id, now)
        except StoreError:
            repaired = False
        if not repaired:
            logger.error("Could not link RSVP %s to user %s", rsvp.id, user.id)
            return RSVPOutput(success=False, error=CoreError.partial_failure(BACKREF_FAILED))
        return RSVPOutput(rsvp=persisted, success=True)

    logger.info("RSVP %s submitted for user %s", rsvp.id, user.id)
    return RSVPOutput(rsvp=rsvp, success=True)


def run_edit(
    inp: EditRSVPInput,
    store: CredentialStorePort,
    time: TimePort,
    rules: RSVPRules | None = None,
) -> RSVPOutput:
    rules = rules or RSVPRules()

    state, existing = _state_of(store, inp.user_id)
    if existing is None or not can_transition(state, RSVPAction.EDIT):
        return RSVPOutput(success=False, error=CoreError.not_found(NO_RSVP))

    patch = inp.updates.as_patch()
    if not patch:
        return RSVPOutput(rsvp=existing, success=True)

    merged = existing.model_copy(update=patch)
    error = _validate(
        merged.attendance, {name: getattr(merged, name) for name in TEXT_FIELDS}, rules
    )
    if error:
        return RSVPOutput(success=False, error=error)

    patch["updated_at"] = time.now_utc()
    updated = store.rsvps.update(existing.id, patch)
    if updated is None:
        return RSVPOutput(success=False, error=CoreError.not_found(NO_RSVP))

    logger.info("RSVP %s edited (%s)", updated.id, ", ".join(sorted(patch)))
    return RSVPOutput(rsvp=updated, success=True)


def run_get(inp: GetRSVPInput, store: CredentialStorePort, policy: PolicyEngine) -> RSVPOutput:
    """Return the target's RSVP, or success with rsvp=None when there is none."""
    target = inp.target_user_id or inp.actor.user_id
    if not policy.can_act_on(inp.actor, target):
        return RSVPOutput(success=False, error=CoreError.forbidden())

    return RSVPOutput(rsvp=store.rsvps.get_by_owner(target), success=True)


def run_reconcile(store: CredentialStorePort, time: TimePort) -> ReconcileReport:
    """Bring every user's has_rsvped / rsvp_id in line with the RSVP table."""
    report = ReconcileReport()
    users = {user.id: user for user in store.users.list_all()}

    owned: dict[UUID, RSVP] = {}
    for rsvp in store.rsvps.list_all():
        if rsvp.user_id not in users:
            report.orphaned_rsvp_ids.append(rsvp.id)
            continue
        owned[rsvp.user_id] = rsvp

    now = time.now_utc()
    for user in users.values():
        rsvp = owned.get(user.id)
        if rsvp is not None:
            if not user.has_rsvped or user.rsvp_id != rsvp.id:
                _link_owner(store, user.id, rsvp.id, now)
                report.repaired_user_ids.append(user.id)
        elif user.has_rsvped or user.rsvp_id is not None:
            store.users.update(user.id, {"has_rsvped": False, "rsvp_id": None, "updated_at": now})
            report.cleared_user_ids.append(user.id)

    if report.clean:
        logger.info("Reconcile: no drift found across %d users", len(users))
    else:
        logger.warning(
            "Reconcile: linked %d, cleared %d, orphaned RSVPs %d",
            len(report.repaired_user_ids),
            len(report.cleared_user_ids),
            len(report.orphaned_rsvp_ids),
        )
    return report


def run(
    inp: SubmitRSVPInput | EditRSVPInput | GetRSVPInput,
    *,
    store: CredentialStorePort,
    invites: InviteRegistryPort | None = None,
    policy: PolicyEngine | None = None,
    time: TimePort | None = None,
    rules: RSVPRules | None = None,
) -> RSVPOutput:
    if isinstance(inp, SubmitRSVPInput):
        assert invites is not None and time is not None
        return run_submit(inp, store, invites, time, rules)

    elif isinstance(inp, EditRSVPInput):
        assert time
        return run_edit(inp, store, time, rules)

    elif isinstance(inp, GetRSVPInput):
        assert policy
        return run_get(inp, store, policy)

    else:
        raise ValueError(f"Unknown input type: {type(inp)}")

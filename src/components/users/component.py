import logging

from src.domain.entities import is_valid_email, normalize_email
from src.domain.errors import CoreError
from src.domain.policy import PolicyEngine
from src.ports.repo import DuplicateKeyError

from .models import (
    DeleteUserInput,
    GetUserInput,
    ListUsersInput,
    UpdateProfileInput,
    UserListOutput,
    UserOutput,
)
from .ports import CredentialStorePort, TimePort

logger = logging.getLogger(__name__)

USER_NOT_FOUND = "User not found."
EMAIL_IN_USE = "Email already in use"


def run_get_user(inp: GetUserInput, store: CredentialStorePort, policy: PolicyEngine) -> UserOutput:
    if not policy.can_act_on(inp.actor, inp.target_id):
        return UserOutput(success=False, error=CoreError.forbidden())

    user = store.users.get_by_id(inp.target_id)
    if not user:
        return UserOutput(success=False, error=CoreError.not_found(USER_NOT_FOUND))
    return UserOutput(user=user, success=True)


def run_update_profile(
    inp: UpdateProfileInput,
    store: CredentialStorePort,
    policy: PolicyEngine,
    time: TimePort,
) -> UserOutput:
    if not policy.can_act_on(inp.actor, inp.target_id):
        return UserOutput(success=False, error=CoreError.forbidden())

    target = store.users.get_by_id(inp.target_id)
    if not target:
        return UserOutput(success=False, error=CoreError.not_found(USER_NOT_FOUND))

    patch = inp.as_patch()
    if "full_name" in patch:
        patch["full_name"] = patch["full_name"].strip()
        if not patch["full_name"]:
            return UserOutput(
                success=False,
                error=CoreError.validation("Full name is required", field="full_name"),
            )

    if "email" in patch:
        patch["email"] = normalize_email(patch["email"])
        if not is_valid_email(patch["email"]):
            return UserOutput(
                success=False,
                error=CoreError.validation("Email address is not valid", field="email"),
            )
        if patch["email"] == target.email:
            del patch["email"]
        else:
            holder = store.users.get_by_email(patch["email"])
            if holder and holder.id != target.id:
                return UserOutput(
                    success=False, error=CoreError.conflict(EMAIL_IN_USE, field="email")
                )

    if not patch:
        return UserOutput(user=target, success=True)

    patch["updated_at"] = time.now_utc()
    try:
        updated = store.users.update(target.id, patch)
    except DuplicateKeyError:
        return UserOutput(success=False, error=CoreError.conflict(EMAIL_IN_USE, field="email"))
    if not updated:
        return UserOutput(success=False, error=CoreError.not_found(USER_NOT_FOUND))

    logger.info("User %s updated by %s", target.id, inp.actor.user_id)
    return UserOutput(user=updated, success=True)


def run_list_users(
    inp: ListUsersInput, store: CredentialStorePort, policy: PolicyEngine
) -> UserListOutput:
    if not policy.can_manage_users(inp.actor):
        return UserListOutput(users=[], success=False, error=CoreError.forbidden())

    return UserListOutput(users=store.users.list_all(), success=True)


def run_delete_user(
    inp: DeleteUserInput, store: CredentialStorePort, policy: PolicyEngine
) -> UserOutput:
    if not policy.can_manage_users(inp.actor):
        return UserOutput(success=False, error=CoreError.forbidden())

    # Self-lockout check
    if str(inp.target_id) == str(inp.actor.user_id):
        return UserOutput(success=False, error=CoreError.forbidden("Cannot delete yourself"))

    target = store.users.get_by_id(inp.target_id)
    if not target:
        return UserOutput(success=False, error=CoreError.not_found(USER_NOT_FOUND))

    with store.transaction() as uow:
        uow.users.update(target.id, {"has_rsvped": False, "rsvp_id": None})
        uow.rsvps.delete_by_owner(target.id)
        uow.users.delete(target.id)

    logger.info("User %s deleted by %s", target.id, inp.actor.user_id)
    return UserOutput(user=target, success=True)


def run(
    inp: GetUserInput | UpdateProfileInput | ListUsersInput | DeleteUserInput,
    *,
    store: CredentialStorePort,
    policy: PolicyEngine,
    time: TimePort | None = None,
) -> UserOutput | UserListOutput:
    if isinstance(inp, GetUserInput):
        return run_get_user(inp, store, policy)

    elif isinstance(inp, UpdateProfileInput):
        assert time
        return run_update_profile(inp, store, policy, time)

    elif isinstance(inp, ListUsersInput):
        return run_list_users(inp, store, policy)

    elif isinstance(inp, DeleteUserInput):
        return run_delete_user(inp, store, policy)

    else:
        raise ValueError(f"Unknown input type: {type(inp)}")

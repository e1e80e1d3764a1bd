from uuid import UUID

from fastapi import APIRouter, Depends, Response, status

from src.adapters.clock import SystemClock
from src.adapters.sqlite.repos import SQLiteCredentialStore
from src.api.deps import get_clock, get_invite_registry, get_policy, get_request_context, get_store
from src.api.errors import raise_for_error
from src.api.schemas import RSVPResponse, UpdateUserRequest, UserResponse
from src.components.rsvp import NO_RSVP, USER_NOT_FOUND, GetRSVPInput, run_get
from src.components.users import (
    DeleteUserInput,
    GetUserInput,
    ListUsersInput,
    UpdateProfileInput,
    run_delete_user,
    run_get_user,
    run_list_users,
    run_update_profile,
)
from src.domain.entities import RequestContext
from src.domain.errors import CoreError
from src.domain.policy import PolicyEngine
from src.ports.invites import InviteRegistryPort

router = APIRouter()


@router.get("", response_model=list[UserResponse])
def list_users(
    ctx: RequestContext = Depends(get_request_context),
    store: SQLiteCredentialStore = Depends(get_store),
    policy: PolicyEngine = Depends(get_policy),
    invites: InviteRegistryPort = Depends(get_invite_registry),
) -> list[UserResponse]:
    """List all users (admin only)."""
    result = run_list_users(ListUsersInput(actor=ctx), store, policy)
    if not result.success:
        raise_for_error(result.error)

    return [UserResponse.from_user(user, invites) for user in result.users]


@router.get("/{user_id}", response_model=UserResponse)
def get_user(
    user_id: UUID,
    ctx: RequestContext = Depends(get_request_context),
    store: SQLiteCredentialStore = Depends(get_store),
    policy: PolicyEngine = Depends(get_policy),
    invites: InviteRegistryPort = Depends(get_invite_registry),
) -> UserResponse:
    """A user's profile (self or admin)."""
    result = run_get_user(GetUserInput(actor=ctx, target_id=user_id), store, policy)
    if not result.success or result.user is None:
        raise_for_error(result.error)

    return UserResponse.from_user(result.user, invites)


@router.put("/{user_id}", response_model=UserResponse)
def update_user(
    user_id: UUID,
    req: UpdateUserRequest,
    ctx: RequestContext = Depends(get_request_context),
    store: SQLiteCredentialStore = Depends(get_store),
    policy: PolicyEngine = Depends(get_policy),
    clock: SystemClock = Depends(get_clock),
    invites: InviteRegistryPort = Depends(get_invite_registry),
) -> UserResponse:
    """Update name and/or email (self or admin)."""
    inp = UpdateProfileInput(
        actor=ctx, target_id=user_id, full_name=req.full_name, email=req.email
    )
    result = run_update_profile(inp, store, policy, clock)
    if not result.success or result.user is None:
        raise_for_error(result.error)

    return UserResponse.from_user(result.user, invites)


@router.delete("/{user_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_user(
    user_id: UUID,
    ctx: RequestContext = Depends(get_request_context),
    store: SQLiteCredentialStore = Depends(get_store),
    policy: PolicyEngine = Depends(get_policy),
) -> Response:
    """Remove an account and its RSVP (admin only)."""
    result = run_delete_user(DeleteUserInput(actor=ctx, target_id=user_id), store, policy)
    if not result.success:
        raise_for_error(result.error)

    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.get("/{user_id}/rsvp", response_model=RSVPResponse)
def get_user_rsvp(
    user_id: UUID,
    ctx: RequestContext = Depends(get_request_context),
    store: SQLiteCredentialStore = Depends(get_store),
    policy: PolicyEngine = Depends(get_policy),
) -> RSVPResponse:
    """Another user's RSVP (self or admin)."""
    result = run_get(GetRSVPInput(actor=ctx, target_user_id=user_id), store, policy)
    if not result.success:
        raise_for_error(result.error)
    if result.rsvp is None:
        if store.users.get_by_id(user_id) is None:
            raise_for_error(CoreError.not_found(USER_NOT_FOUND))
        raise_for_error(CoreError.not_found(NO_RSVP))

    return RSVPResponse.from_rsvp(result.rsvp)

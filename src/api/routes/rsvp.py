from fastapi import APIRouter, Depends, status

from src.adapters.clock import SystemClock
from src.adapters.sqlite.repos import SQLiteCredentialStore
from src.api.deps import (
    get_clock,
    get_invite_registry,
    get_policy,
    get_request_context,
    get_rules,
    get_store,
)
from src.api.errors import raise_for_error
from src.api.schemas import EditRSVPRequest, RSVPResponse, SubmitRSVPRequest
from src.components.rsvp import (
    NO_RSVP,
    EditRSVPInput,
    GetRSVPInput,
    RSVPUpdates,
    SubmitRSVPInput,
    run_edit,
    run_get,
    run_submit,
)
from src.domain.entities import RequestContext
from src.domain.errors import CoreError
from src.domain.policy import PolicyEngine
from src.ports.invites import InviteRegistryPort
from src.rules.models import Rules

router = APIRouter()


@router.post("", response_model=RSVPResponse, status_code=status.HTTP_201_CREATED)
def submit_rsvp(
    req: SubmitRSVPRequest,
    ctx: RequestContext = Depends(get_request_context),
    store: SQLiteCredentialStore = Depends(get_store),
    invites: InviteRegistryPort = Depends(get_invite_registry),
    clock: SystemClock = Depends(get_clock),
    rules: Rules = Depends(get_rules),
) -> RSVPResponse:
    """Submit the caller's RSVP. Only invited users; only once."""
    inp = SubmitRSVPInput(
        user_id=ctx.user_id,
        attendance=req.attendance,
        meal_preference=req.meal_preference,
        allergies=req.allergies,
        additional_notes=req.additional_notes,
    )
    result = run_submit(inp, store, invites, clock, rules.rsvp)
    if not result.success or result.rsvp is None:
        raise_for_error(result.error)

    return RSVPResponse.from_rsvp(result.rsvp)


@router.patch("", response_model=RSVPResponse)
def edit_rsvp(
    req: EditRSVPRequest,
    ctx: RequestContext = Depends(get_request_context),
    store: SQLiteCredentialStore = Depends(get_store),
    clock: SystemClock = Depends(get_clock),
    rules: Rules = Depends(get_rules),
) -> RSVPResponse:
    """Change some fields of the caller's RSVP; omitted fields stay as they are."""
    updates = RSVPUpdates(
        attendance=req.attendance,
        meal_preference=req.meal_preference,
        allergies=req.allergies,
        additional_notes=req.additional_notes,
    )
    inp = EditRSVPInput(user_id=ctx.user_id, updates=updates)
    result = run_edit(inp, store, clock, rules.rsvp)
    if not result.success or result.rsvp is None:
        raise_for_error(result.error)

    return RSVPResponse.from_rsvp(result.rsvp)


@router.get("", response_model=RSVPResponse)
def get_rsvp(
    ctx: RequestContext = Depends(get_request_context),
    store: SQLiteCredentialStore = Depends(get_store),
    policy: PolicyEngine = Depends(get_policy),
) -> RSVPResponse:
    """The caller's own RSVP."""
    result = run_get(GetRSVPInput(actor=ctx), store, policy)
    if not result.success:
        raise_for_error(result.error)
    if result.rsvp is None:
        raise_for_error(CoreError.not_found(NO_RSVP))

    return RSVPResponse.from_rsvp(result.rsvp)

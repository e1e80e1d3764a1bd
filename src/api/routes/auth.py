from fastapi import APIRouter, Depends, status

from src.adapters.auth.crypto import Argon2PasswordHasher
from src.adapters.clock import SystemClock
from src.adapters.sqlite.repos import SQLiteCredentialStore
from src.api.deps import (
    get_clock,
    get_invite_registry,
    get_password_hasher,
    get_request_context,
    get_rules,
    get_store,
    get_token_authority,
)
from src.api.errors import raise_for_error
from src.api.schemas import (
    AuthResponse,
    LoginRequest,
    MeResponse,
    RegisterRequest,
    RSVPResponse,
    UserResponse,
)
from src.components.auth import AuthenticateInput, RegisterInput, run_authenticate, run_register
from src.components.tokens import TokenAuthority
from src.domain.entities import RequestContext
from src.domain.errors import CoreError
from src.ports.invites import InviteRegistryPort
from src.rules.models import Rules

router = APIRouter()


@router.post("/register", response_model=AuthResponse, status_code=status.HTTP_201_CREATED)
def register(
    req: RegisterRequest,
    store: SQLiteCredentialStore = Depends(get_store),
    hasher: Argon2PasswordHasher = Depends(get_password_hasher),
    tokens: TokenAuthority = Depends(get_token_authority),
    clock: SystemClock = Depends(get_clock),
    rules: Rules = Depends(get_rules),
    invites: InviteRegistryPort = Depends(get_invite_registry),
) -> AuthResponse:
    """Create an account and return a session token."""
    result = run_register(
        RegisterInput(full_name=req.full_name, email=req.email, password=req.password),
        user_repo=store.users,
        hasher=hasher,
        tokens=tokens,
        time=clock,
        rules=rules.auth.password_hashing,
    )
    if not result.success or result.user is None or result.token is None:
        raise_for_error(result.error)

    return AuthResponse(
        access_token=result.token, user=UserResponse.from_user(result.user, invites)
    )


@router.post("/login", response_model=AuthResponse)
def login(
    req: LoginRequest,
    store: SQLiteCredentialStore = Depends(get_store),
    hasher: Argon2PasswordHasher = Depends(get_password_hasher),
    tokens: TokenAuthority = Depends(get_token_authority),
    invites: InviteRegistryPort = Depends(get_invite_registry),
) -> AuthResponse:
    """Authenticate and return a session token."""
    result = run_authenticate(
        AuthenticateInput(email=req.email, password=req.password),
        user_repo=store.users,
        hasher=hasher,
        tokens=tokens,
    )
    if not result.success or result.user is None or result.token is None:
        raise_for_error(result.error)

    return AuthResponse(
        access_token=result.token, user=UserResponse.from_user(result.user, invites)
    )


@router.get("/me", response_model=MeResponse)
def read_me(
    ctx: RequestContext = Depends(get_request_context),
    store: SQLiteCredentialStore = Depends(get_store),
    invites: InviteRegistryPort = Depends(get_invite_registry),
) -> MeResponse:
    """Current account and its RSVP, if any."""
    user = store.users.get_by_id(ctx.user_id)
    if user is None:
        raise_for_error(CoreError.unauthenticated("Account no longer exists."))

    rsvp = store.rsvps.get_by_owner(user.id)
    return MeResponse(
        user=UserResponse.from_user(user, invites),
        rsvp=RSVPResponse.from_rsvp(rsvp) if rsvp else None,
    )

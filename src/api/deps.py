from functools import lru_cache
from pathlib import Path
from typing import Annotated

from fastapi import Depends
from fastapi.security import OAuth2PasswordBearer

from src.adapters.auth.crypto import Argon2PasswordHasher, JoseTokenSigner
from src.adapters.clock import SystemClock
from src.adapters.invites import SQLiteInviteRegistry, StaticInviteRegistry, build_invite_registry
from src.adapters.sqlite.repos import SQLiteCredentialStore
from src.api.errors import raise_for_error
from src.app_shell.config import Settings
from src.components.tokens import TokenAuthority
from src.domain.entities import RequestContext
from src.domain.errors import CoreError
from src.domain.policy import PolicyEngine
from src.rules.loader import load_rules
from src.rules.models import Rules


# --- Settings ---
@lru_cache
def get_settings() -> Settings:
    return Settings()


# --- Rules ---
@lru_cache
def rules_at(path: str) -> Rules:
    return load_rules(Path(path))


def get_rules(settings: Settings = Depends(get_settings)) -> Rules:
    return rules_at(str(settings.rules_path))


# --- Store & registry ---
def get_store(settings: Settings = Depends(get_settings)) -> SQLiteCredentialStore:
    return SQLiteCredentialStore(settings.db_path)


def get_invite_registry(
    settings: Settings = Depends(get_settings),
    rules: Rules = Depends(get_rules),
) -> StaticInviteRegistry | SQLiteInviteRegistry:
    return build_invite_registry(rules.invites, settings.db_path)


# Time adapter for deterministic time operations
_clock_instance: SystemClock | None = None


def get_clock() -> SystemClock:
    """Get clock singleton."""
    global _clock_instance
    if _clock_instance is None:
        _clock_instance = SystemClock()
    return _clock_instance


# --- Services ---
def get_policy() -> PolicyEngine:
    return PolicyEngine()


def get_password_hasher(rules: Rules = Depends(get_rules)) -> Argon2PasswordHasher:
    return Argon2PasswordHasher(rules.auth.password_hashing)


def get_token_authority(
    settings: Settings = Depends(get_settings),
    rules: Rules = Depends(get_rules),
    clock: SystemClock = Depends(get_clock),
) -> TokenAuthority:
    signer = JoseTokenSigner(settings.secret_key, rules.auth.tokens.algorithm)
    return TokenAuthority(signer, clock, rules.auth.tokens.ttl_minutes)


# --- Auth ---
oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/api/auth/login", auto_error=False)


def get_request_context(
    token: Annotated[str | None, Depends(oauth2_scheme)],
    tokens: TokenAuthority = Depends(get_token_authority),
    store: SQLiteCredentialStore = Depends(get_store),
) -> RequestContext:
    """
    Verify the bearer token, then load the account so that is_admin and
    profile fields reflect the store rather than the token.
    """
    verified = tokens.verify(token)
    if not verified.success or verified.claims is None:
        raise_for_error(verified.error)

    user = store.users.get_by_id(verified.claims.user_id)
    if not user:
        raise_for_error(CoreError.unauthenticated("Account no longer exists."))

    return RequestContext(
        user_id=user.id,
        email=user.email,
        full_name=user.full_name,
        is_admin=user.is_admin,
    )

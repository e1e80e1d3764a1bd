"""
Token Authority.

Issues and verifies signed, time-limited session tokens. Verification is
stateless: it never touches the credential store, so a token stays valid
until it expires even if the account changes underneath it.
"""

from __future__ import annotations

import logging
from datetime import UTC, datetime, timedelta
from typing import Any
from uuid import UUID

from src.domain.entities import SessionClaims
from src.domain.errors import CoreError

from .models import IssueTokenInput, TokenOutput, VerifyTokenInput
from .ports import TimePort, TokenSignerPort

logger = logging.getLogger(__name__)

MISSING_TOKEN = "Authentication token is missing."
INVALID_TOKEN = "Authentication token is invalid."
EXPIRED_TOKEN = "Authentication token has expired."


def _parse_claims(payload: dict[str, Any]) -> SessionClaims | None:
    sub = payload.get("sub")
    email = payload.get("email")
    full_name = payload.get("full_name")
    iat = payload.get("iat")
    exp = payload.get("exp")

    if not isinstance(sub, str) or not isinstance(email, str) or not isinstance(full_name, str):
        return None
    # bool is an int subclass
    if not all(isinstance(v, int) and not isinstance(v, bool) for v in (iat, exp)):
        return None
    try:
        user_id = UUID(sub)
    except ValueError:
        return None

    return SessionClaims(
        user_id=user_id,
        email=email,
        full_name=full_name,
        issued_at=datetime.fromtimestamp(iat, UTC),  # type: ignore[arg-type]
        expires_at=datetime.fromtimestamp(exp, UTC),  # type: ignore[arg-type]
    )


def run_issue(
    inp: IssueTokenInput, signer: TokenSignerPort, time: TimePort, ttl_minutes: int
) -> TokenOutput:
    now = time.now_utc()
    issued = int(now.timestamp())
    expires = int((now + timedelta(minutes=ttl_minutes)).timestamp())

    token = signer.encode(
        {
            "sub": str(inp.user_id),
            "email": inp.email,
            "full_name": inp.full_name,
            "iat": issued,
            "exp": expires,
        }
    )
    claims = SessionClaims(
        user_id=inp.user_id,
        email=inp.email,
        full_name=inp.full_name,
        issued_at=datetime.fromtimestamp(issued, UTC),
        expires_at=datetime.fromtimestamp(expires, UTC),
    )
    return TokenOutput(token=token, claims=claims, success=True)


def run_verify(inp: VerifyTokenInput, signer: TokenSignerPort, time: TimePort) -> TokenOutput:
    if not inp.token:
        return TokenOutput(success=False, error=CoreError.unauthenticated(MISSING_TOKEN))

    payload = signer.decode(inp.token)
    if payload is None:
        logger.info("Rejected token: bad signature or malformed")
        return TokenOutput(success=False, error=CoreError.unauthenticated(INVALID_TOKEN))

    claims = _parse_claims(payload)
    if claims is None:
        logger.info("Rejected token: missing or ill-typed claims")
        return TokenOutput(success=False, error=CoreError.unauthenticated(INVALID_TOKEN))

    if time.now_utc() >= claims.expires_at:
        return TokenOutput(success=False, error=CoreError.unauthenticated(EXPIRED_TOKEN))

    return TokenOutput(claims=claims, success=True)


class TokenAuthority:
    """Binds a signer, a clock and the validity window."""

    def __init__(self, signer: TokenSignerPort, time: TimePort, ttl_minutes: int = 120):
        self.signer = signer
        self.time = time
        self.ttl_minutes = ttl_minutes

    def issue(self, user_id: UUID, email: str, full_name: str) -> TokenOutput:
        return run_issue(
            IssueTokenInput(user_id=user_id, email=email, full_name=full_name),
            self.signer,
            self.time,
            self.ttl_minutes,
        )

    def verify(self, token: str | None) -> TokenOutput:
        return run_verify(VerifyTokenInput(token=token), self.signer, self.time)


def run(
    inp: IssueTokenInput | VerifyTokenInput,
    *,
    signer: TokenSignerPort,
    time: TimePort,
    ttl_minutes: int = 120,
) -> TokenOutput:
    if isinstance(inp, IssueTokenInput):
        return run_issue(inp, signer, time, ttl_minutes)

    elif isinstance(inp, VerifyTokenInput):
        return run_verify(inp, signer, time)

    else:
        raise ValueError(f"Unknown input type: {type(inp)}")

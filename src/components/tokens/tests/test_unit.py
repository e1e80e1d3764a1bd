"""
Tokens component unit tests.

Uses the real python-jose signer with a controllable clock.
"""

from __future__ import annotations

import base64
from datetime import UTC, datetime, timedelta
from uuid import uuid4

import pytest

from src.adapters.auth.crypto import JoseTokenSigner
from src.components.tokens import (
    EXPIRED_TOKEN,
    INVALID_TOKEN,
    MISSING_TOKEN,
    IssueTokenInput,
    TokenAuthority,
    VerifyTokenInput,
    run,
)
from src.domain.errors import ErrorKind


class MockTimePort:
    def __init__(self, fixed_time: datetime | None = None) -> None:
        self._time = fixed_time or datetime(2024, 6, 15, 12, 0, 0, tzinfo=UTC)

    def now_utc(self) -> datetime:
        return self._time

    def advance(self, delta: timedelta) -> None:
        self._time = self._time + delta


def _flip_signature_bit(token: str) -> str:
    header, payload, signature = token.split(".")
    raw = bytearray(base64.urlsafe_b64decode(signature + "=" * (-len(signature) % 4)))
    raw[0] ^= 0x01
    flipped = base64.urlsafe_b64encode(bytes(raw)).rstrip(b"=").decode()
    return f"{header}.{payload}.{flipped}"


@pytest.fixture
def clock() -> MockTimePort:
    return MockTimePort()


@pytest.fixture
def authority(clock: MockTimePort) -> TokenAuthority:
    return TokenAuthority(JoseTokenSigner("unit-test-secret"), clock, ttl_minutes=120)


class TestIssue:
    def test_issue_then_verify_returns_claims(self, authority: TokenAuthority) -> None:
        uid = uuid4()
        issued = authority.issue(uid, "alice@example.com", "Alice")

        assert issued.success
        assert issued.token

        verified = authority.verify(issued.token)
        assert verified.success
        assert verified.claims is not None
        assert verified.claims.user_id == uid
        assert verified.claims.email == "alice@example.com"
        assert verified.claims.full_name == "Alice"

    def test_window_matches_ttl(self, authority: TokenAuthority) -> None:
        out = authority.issue(uuid4(), "a@example.com", "A")
        assert out.claims is not None
        assert out.claims.expires_at - out.claims.issued_at == timedelta(minutes=120)

    def test_run_dispatches(self, clock: MockTimePort) -> None:
        signer = JoseTokenSigner("unit-test-secret")
        issued = run(
            IssueTokenInput(user_id=uuid4(), email="a@example.com", full_name="A"),
            signer=signer,
            time=clock,
        )
        verified = run(VerifyTokenInput(token=issued.token), signer=signer, time=clock)
        assert verified.success


class TestVerify:
    def test_missing_token(self, authority: TokenAuthority) -> None:
        for token in (None, ""):
            out = authority.verify(token)
            assert not out.success
            assert out.error is not None
            assert out.error.kind == ErrorKind.UNAUTHENTICATED
            assert out.error.message == MISSING_TOKEN

    def test_garbage_token(self, authority: TokenAuthority) -> None:
        out = authority.verify("not-a-jwt")
        assert out.error is not None
        assert out.error.kind == ErrorKind.UNAUTHENTICATED
        assert out.error.message == INVALID_TOKEN

    def test_single_bit_flip_in_signature_is_rejected(self, authority: TokenAuthority) -> None:
        token = authority.issue(uuid4(), "a@example.com", "A").token
        assert token is not None

        out = authority.verify(_flip_signature_bit(token))

        assert not out.success
        assert out.error is not None
        assert out.error.kind == ErrorKind.UNAUTHENTICATED

    def test_token_from_other_secret_is_rejected(
        self, authority: TokenAuthority, clock: MockTimePort
    ) -> None:
        other = TokenAuthority(JoseTokenSigner("another-secret"), clock)
        token = other.issue(uuid4(), "a@example.com", "A").token

        assert not authority.verify(token).success

    def test_expired_after_window(self, authority: TokenAuthority, clock: MockTimePort) -> None:
        token = authority.issue(uuid4(), "a@example.com", "A").token

        clock.advance(timedelta(minutes=119))
        assert authority.verify(token).success

        clock.advance(timedelta(minutes=1))
        out = authority.verify(token)
        assert not out.success
        assert out.error is not None
        assert out.error.message == EXPIRED_TOKEN

    def test_missing_claims_rejected(self, clock: MockTimePort) -> None:
        signer = JoseTokenSigner("unit-test-secret")
        token = signer.encode({"sub": str(uuid4()), "exp": 9999999999})

        out = TokenAuthority(signer, clock).verify(token)

        assert out.error is not None
        assert out.error.message == INVALID_TOKEN

    def test_non_uuid_subject_rejected(self, clock: MockTimePort) -> None:
        signer = JoseTokenSigner("unit-test-secret")
        token = signer.encode(
            {"sub": "42", "email": "a@b.co", "full_name": "A", "iat": 1, "exp": 9999999999}
        )

        assert not TokenAuthority(signer, clock).verify(token).success

from typing import Any, Protocol


class PasswordHasherPort(Protocol):
    def hash_password(self, password: str) -> str: ...

    def verify_password(self, plain: str, hashed: str) -> bool: ...

    def dummy_verify(self) -> None:
        """Spend the same time as a real verification (unknown-account path)."""
        ...


class TokenSignerPort(Protocol):
    def encode(self, claims: dict[str, Any]) -> str: ...

    def decode(self, token: str) -> dict[str, Any] | None:
        # Returns the claim set, or None if malformed or the signature does not match.
        # Expiry is not checked here.
        ...

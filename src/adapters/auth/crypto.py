from typing import Any, cast

from jose import JWTError, jwt
from passlib.context import CryptContext

from src.rules.models import PasswordHashingRules


class JoseTokenSigner:
    """HMAC-signed JWTs via python-jose. Expiry is left to the caller's clock."""

    def __init__(self, secret_key: str, algorithm: str = "HS256"):
        if not secret_key:
            raise ValueError("Token signing secret must not be empty")
        self._secret_key = secret_key
        self._algorithm = algorithm

    def __repr__(self) -> str:
        return f"JoseTokenSigner(algorithm={self._algorithm!r})"

    def encode(self, claims: dict[str, Any]) -> str:
        encoded: str = jwt.encode(claims, self._secret_key, algorithm=self._algorithm)
        return encoded

    def decode(self, token: str) -> dict[str, Any] | None:
        try:
            payload = jwt.decode(
                token,
                self._secret_key,
                algorithms=[self._algorithm],
                options={"verify_exp": False, "verify_iat": False},
            )
        except JWTError:
            return None
        return cast(dict[str, Any], payload)


class Argon2PasswordHasher:
    """Password hashing through passlib, argon2 backend with configurable cost."""

    def __init__(self, rules: PasswordHashingRules | None = None):
        rules = rules or PasswordHashingRules()
        self._context = CryptContext(
            schemes=[rules.algorithm],
            deprecated="auto",
            argon2__time_cost=rules.time_cost,
            argon2__memory_cost=rules.memory_cost,
            argon2__parallelism=rules.parallelism,
        )

    def hash_password(self, password: str) -> str:
        result: str = self._context.hash(password)
        return result

    def verify_password(self, plain: str, hashed: str) -> bool:
        try:
            result: bool = self._context.verify(plain, hashed)
        except (ValueError, TypeError):
            # Unrecognised or corrupt hash
            return False
        return result

    def dummy_verify(self) -> None:
        self._context.dummy_verify()

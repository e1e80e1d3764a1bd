from datetime import datetime
from typing import Any, Protocol


class TokenSignerPort(Protocol):
    def encode(self, claims: dict[str, Any]) -> str: ...
    def decode(self, token: str) -> dict[str, Any] | None: ...


class TimePort(Protocol):
    """Port for time operations - enables deterministic testing."""

    def now_utc(self) -> datetime:
        """Get current UTC time."""
        ...

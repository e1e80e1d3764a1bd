from datetime import datetime
from typing import Protocol

from src.ports.invites import InviteRegistryPort
from src.ports.repo import CredentialStorePort


class TimePort(Protocol):
    """Port for time operations - enables deterministic testing."""

    def now_utc(self) -> datetime:
        """Get current UTC time."""
        ...


__all__ = ["CredentialStorePort", "InviteRegistryPort", "TimePort"]

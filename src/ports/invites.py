from typing import Protocol


class InviteRegistryPort(Protocol):
    """Read-only set of email addresses eligible to RSVP."""

    def is_invited(self, email: str) -> bool:
        ...

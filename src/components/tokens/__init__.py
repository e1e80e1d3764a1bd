"""
Tokens component - Session token issue and verification.
"""

from .component import (
    EXPIRED_TOKEN,
    INVALID_TOKEN,
    MISSING_TOKEN,
    TokenAuthority,
    run,
    run_issue,
    run_verify,
)
from .models import IssueTokenInput, TokenOutput, VerifyTokenInput
from .ports import TimePort, TokenSignerPort

__all__ = [
    # Entry points
    "run",
    "run_issue",
    "run_verify",
    "TokenAuthority",
    # Messages
    "EXPIRED_TOKEN",
    "INVALID_TOKEN",
    "MISSING_TOKEN",
    # Models
    "IssueTokenInput",
    "TokenOutput",
    "VerifyTokenInput",
    # Ports
    "TimePort",
    "TokenSignerPort",
]

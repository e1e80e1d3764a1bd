"""
Auth component - Account registration and authentication.

Registration creates a non-admin account and returns a session token;
authentication checks credentials without revealing which part was wrong.
"""

from .component import (
    INVALID_CREDENTIALS,
    USER_EXISTS,
    run,
    run_authenticate,
    run_register,
)
from .models import AuthenticateInput, AuthOutput, RegisterInput
from .ports import PasswordHasherPort, TimePort, TokenIssuerPort, UserRepoPort

__all__ = [
    # Entry points
    "run",
    "run_authenticate",
    "run_register",
    # Messages
    "INVALID_CREDENTIALS",
    "USER_EXISTS",
    # Models
    "AuthenticateInput",
    "AuthOutput",
    "RegisterInput",
    # Ports
    "PasswordHasherPort",
    "TimePort",
    "TokenIssuerPort",
    "UserRepoPort",
]

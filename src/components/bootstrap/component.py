"""Bootstrap component implementation.

Creates an admin account when the store has no users and bootstrap
credentials are configured. Every other case is a no-op.
"""

from __future__ import annotations

import logging

from src.domain.entities import User, is_valid_email, normalize_email
from src.domain.errors import CoreError

from .models import BootstrapInput, BootstrapOutput
from .ports import PasswordHasherPort, TimePort, UserRepoPort

logger = logging.getLogger(__name__)


def run_bootstrap(
    bootstrap_input: BootstrapInput,
    user_repo: UserRepoPort,
    hasher: PasswordHasherPort,
    time: TimePort,
    min_password_length: int = 8,
) -> BootstrapOutput:
    """Create the first admin if the system is empty.

    Args:
        bootstrap_input: Email and password for the admin account.
        user_repo: Repository for user operations.
        hasher: Password hasher.
        time: Time provider for deterministic timestamps.
        min_password_length: Same floor as self-registration.

    Returns:
        BootstrapOutput with the result of the operation.
    """
    # 1. Check if users already exist
    if user_repo.list_all():
        return BootstrapOutput.skipped("Users already exist in the system")

    # 2. Check if email/password are provided
    if not bootstrap_input.email or not bootstrap_input.password:
        return BootstrapOutput.skipped(
            "Bootstrap email and/or password not provided. "
            "Set RSVP_BOOTSTRAP_EMAIL and RSVP_BOOTSTRAP_PASSWORD environment variables."
        )

    # 3. Validate input
    if not is_valid_email(bootstrap_input.email):
        return BootstrapOutput.failed(
            CoreError.validation("Bootstrap email is not valid", field="email")
        )
    if len(bootstrap_input.password) < min_password_length:
        return BootstrapOutput.failed(
            CoreError.validation(
                f"Bootstrap password must be at least {min_password_length} characters",
                field="password",
            )
        )

    # 4. Create admin user
    now = time.now_utc()
    admin = User(
        email=normalize_email(bootstrap_input.email),
        full_name=bootstrap_input.full_name,
        password_hash=hasher.hash_password(bootstrap_input.password),
        is_admin=True,
        created_at=now,
        updated_at=now,
    )
    user_repo.insert(admin)

    logger.info("Bootstrap admin created: %s", admin.email)
    return BootstrapOutput.created_admin(admin)


def run(
    bootstrap_input: BootstrapInput,
    user_repo: UserRepoPort,
    hasher: PasswordHasherPort,
    time: TimePort,
    min_password_length: int = 8,
) -> BootstrapOutput:
    """Main entry point for the bootstrap component."""
    return run_bootstrap(bootstrap_input, user_repo, hasher, time, min_password_length)

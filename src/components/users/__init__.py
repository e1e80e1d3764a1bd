"""
Users component - Profile updates and user administration.
"""

from .component import (
    EMAIL_IN_USE,
    USER_NOT_FOUND,
    run,
    run_delete_user,
    run_get_user,
    run_list_users,
    run_update_profile,
)
from .models import (
    DeleteUserInput,
    GetUserInput,
    ListUsersInput,
    UpdateProfileInput,
    UserListOutput,
    UserOutput,
)
from .ports import CredentialStorePort, TimePort

__all__ = [
    # Entry points
    "run",
    "run_delete_user",
    "run_get_user",
    "run_list_users",
    "run_update_profile",
    # Messages
    "EMAIL_IN_USE",
    "USER_NOT_FOUND",
    # Models
    "DeleteUserInput",
    "GetUserInput",
    "ListUsersInput",
    "UpdateProfileInput",
    "UserListOutput",
    "UserOutput",
    # Ports
    "CredentialStorePort",
    "TimePort",
]

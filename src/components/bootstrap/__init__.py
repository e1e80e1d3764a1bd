"""Bootstrap component.

Creates the first administrator on an empty deployment, from credentials
supplied through the environment.
"""

from .component import run, run_bootstrap
from .models import BootstrapInput, BootstrapOutput
from .ports import PasswordHasherPort, TimePort, UserRepoPort

__all__ = [
    # Entry points
    "run",
    "run_bootstrap",
    # Models
    "BootstrapInput",
    "BootstrapOutput",
    # Ports
    "PasswordHasherPort",
    "TimePort",
    "UserRepoPort",
]

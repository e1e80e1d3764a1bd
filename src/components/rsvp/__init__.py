"""
RSVP component - Invite-gated RSVP submission, edits and reconciliation.
"""

from .component import (
    ALREADY_SUBMITTED,
    BACKREF_FAILED,
    NO_RSVP,
    NOT_INVITED,
    USER_NOT_FOUND,
    run,
    run_edit,
    run_get,
    run_reconcile,
    run_submit,
)
from .models import (
    VALID_TRANSITIONS,
    EditRSVPInput,
    GetRSVPInput,
    ReconcileReport,
    RSVPAction,
    RSVPOutput,
    RSVPState,
    RSVPUpdates,
    SubmitRSVPInput,
    can_transition,
)
from .ports import CredentialStorePort, InviteRegistryPort, TimePort

__all__ = [
    # Entry points
    "run",
    "run_edit",
    "run_get",
    "run_reconcile",
    "run_submit",
    # Messages
    "ALREADY_SUBMITTED",
    "BACKREF_FAILED",
    "NO_RSVP",
    "NOT_INVITED",
    "USER_NOT_FOUND",
    # State machine
    "VALID_TRANSITIONS",
    "RSVPAction",
    "RSVPState",
    "can_transition",
    # Models
    "EditRSVPInput",
    "GetRSVPInput",
    "ReconcileReport",
    "RSVPOutput",
    "RSVPUpdates",
    "SubmitRSVPInput",
    # Ports
    "CredentialStorePort",
    "InviteRegistryPort",
    "TimePort",
]

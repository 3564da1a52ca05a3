"""
Invite component - brand invite validation, acceptance and display.
"""

from ._impl import InviteService, check_invite_usable
from .component import (
    run,
    run_accept,
    run_metadata,
    run_validate,
)
from .models import (
    AcceptInviteInput,
    AcceptInviteOutput,
    InviteMetadataInput,
    InviteMetadataOutput,
    ValidateInviteInput,
    ValidateInviteOutput,
)
from .ports import (
    ClockPort,
    InviteServicePort,
    InviteStorePort,
    StoreTransactionPort,
)

__all__ = [
    # Entry points
    "run",
    "run_validate",
    "run_accept",
    "run_metadata",
    # Input models
    "ValidateInviteInput",
    "AcceptInviteInput",
    "InviteMetadataInput",
    # Output models
    "ValidateInviteOutput",
    "AcceptInviteOutput",
    "InviteMetadataOutput",
    # Ports
    "ClockPort",
    "InviteServicePort",
    "InviteStorePort",
    "StoreTransactionPort",
    # Service
    "InviteService",
    "check_invite_usable",
]

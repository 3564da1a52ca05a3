"""
Invite component - Port interfaces.
"""

from __future__ import annotations

from typing import Protocol

from src.domain.entities import AcceptanceResult, Invite, InviteMetadata, UserProfile
from src.ports.clock import ClockPort
from src.ports.repo import InviteStorePort, StoreTransactionPort


class InviteServicePort(Protocol):
    """What the shell layer needs from InviteService."""

    def validate_invite(self, token: str) -> Invite:
        ...

    def accept_invite(
        self, token: str, user_id: str, profile: UserProfile | None = None
    ) -> AcceptanceResult:
        ...

    def get_invite_metadata(self, token: str) -> InviteMetadata:
        ...


__all__ = [
    "ClockPort",
    "InviteServicePort",
    "InviteStorePort",
    "StoreTransactionPort",
]

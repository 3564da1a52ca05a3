"""
Identity component - Port interfaces.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any, Protocol

from src.domain.entities import IdentityAssertion
from src.ports.repo import UserLookupPort


class UserResolverPort(Protocol):
    def resolve_user_id(
        self, identity: IdentityAssertion | Mapping[str, Any] | None
    ) -> str:
        ...


__all__ = ["UserLookupPort", "UserResolverPort"]

from collections.abc import Mapping
from datetime import datetime
from typing import Any, Literal

from pydantic import BaseModel, Field

# --- Enums / Literals ---
InviteStatus = Literal["active", "consumed"]

ACTIVE: InviteStatus = "active"
CONSUMED: InviteStatus = "consumed"

# --- Invites ---

class Invite(BaseModel):
    """
    A redeemable token granting membership in one brand.

    `used_by` has set semantics; it is persisted as a JSON array.
    `expires_at` is kept in whatever representation the store returned
    and normalized only when compared (see src.domain.timeutil).
    `status` stays a plain string so unknown stored values fail validation
    instead of failing to load.
    """

    token: str
    brand_id: str
    status: str = ACTIVE
    expires_at: Any = None
    used_by: set[str] = Field(default_factory=set)
    max_uses: int | None = None
    created_by: str | None = None
    version: int = 0
    created_at: datetime | None = None
    updated_at: datetime | None = None

    def cap(self, default: int = 1) -> int:
        """Usage cap, falling back to `default` when the record has none."""
        return self.max_uses if self.max_uses is not None else default

    @property
    def used_count(self) -> int:
        return len(self.used_by)

# --- Brands & Users ---

class Brand(BaseModel):
    id: str
    name: str | None = None
    user_ids: set[str] = Field(default_factory=set)
    created_at: datetime | None = None
    updated_at: datetime | None = None

class User(BaseModel):
    id: str
    email: str | None = None
    brand_id: str | None = None
    name: str | None = None
    image: str | None = None
    auth_type: str | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None

class UserProfile(BaseModel):
    """Profile fields supplied on acceptance. `None` means "leave as is"."""

    name: str | None = None
    image: str | None = None
    auth_type: str | None = None
    email: str | None = None

    def supplied_fields(self) -> dict[str, str]:
        return self.model_dump(exclude_none=True)

class IdentityAssertion(BaseModel):
    """A resolved session as handed over by the authentication layer."""

    user_id: str | None = None
    email: str | None = None

    @classmethod
    def from_session(cls, session: Mapping[str, Any] | None) -> "IdentityAssertion":
        """Build from a session-shaped mapping: {"user": {"id": ..., "email": ...}}."""
        user = (session or {}).get("user") or {}
        return cls(user_id=user.get("id") or None, email=user.get("email") or None)

# --- Projections / Results ---

class InviteMetadata(BaseModel):
    token: str
    brand_id: str
    brand_name: str | None
    status: str
    expires_at: str | None
    max_uses: int
    used_count: int

class AcceptanceResult(BaseModel):
    success: bool = True
    brand_id: str

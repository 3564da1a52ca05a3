from dataclasses import dataclass, field

from src.domain.entities import Invite, InviteMetadata, UserProfile


@dataclass(frozen=True)
class ValidateInviteInput:
    token: str


@dataclass(frozen=True)
class AcceptInviteInput:
    token: str
    user_id: str
    profile: UserProfile = field(default_factory=UserProfile)


@dataclass(frozen=True)
class InviteMetadataInput:
    token: str


@dataclass
class ValidateInviteOutput:
    invite: Invite | None = None
    success: bool = False
    error: str | None = None
    error_code: str | None = None
    status_code: int = 200


@dataclass
class AcceptInviteOutput:
    brand_id: str | None = None
    success: bool = False
    error: str | None = None
    error_code: str | None = None
    status_code: int = 200


@dataclass
class InviteMetadataOutput:
    metadata: InviteMetadata | None = None
    success: bool = False
    error: str | None = None
    error_code: str | None = None
    status_code: int = 200

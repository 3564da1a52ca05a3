"""
Invite engine error taxonomy.

Every failure the engine reports carries an `InviteErrorKind` and the HTTP
status the transport layer should render. Only `TransientError` is safe to
retry at the call level.
"""

from __future__ import annotations

from enum import Enum


class InviteErrorKind(str, Enum):
    NOT_FOUND = "not_found"
    INVALID_STATE = "invalid_state"
    EXPIRED = "expired"
    ALREADY_USED = "already_used"
    UNAUTHORIZED = "unauthorized"
    BRAND_NOT_FOUND = "brand_not_found"
    CONFLICT = "conflict"
    TRANSIENT = "transient"


STATUS_CODES: dict[InviteErrorKind, int] = {
    InviteErrorKind.NOT_FOUND: 404,
    InviteErrorKind.INVALID_STATE: 400,
    InviteErrorKind.EXPIRED: 400,
    InviteErrorKind.ALREADY_USED: 400,
    InviteErrorKind.UNAUTHORIZED: 401,
    InviteErrorKind.BRAND_NOT_FOUND: 404,
    InviteErrorKind.CONFLICT: 409,
    InviteErrorKind.TRANSIENT: 503,
}


class InviteError(Exception):
    """Base class for domain errors raised by the invite services."""

    kind: InviteErrorKind
    default_message = "Invite error"

    def __init__(self, message: str | None = None) -> None:
        self.message = message or self.default_message
        super().__init__(self.message)

    @property
    def status_code(self) -> int:
        return STATUS_CODES[self.kind]

    @property
    def is_retryable(self) -> bool:
        return self.kind is InviteErrorKind.TRANSIENT

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.message!r})"


class InviteNotFoundError(InviteError):
    kind = InviteErrorKind.NOT_FOUND
    default_message = "Invite not found"


class InviteInvalidStateError(InviteError):
    kind = InviteErrorKind.INVALID_STATE
    default_message = "Invite is not active"


class InviteExpiredError(InviteError):
    kind = InviteErrorKind.EXPIRED
    default_message = "Invite expired"


class InviteAlreadyUsedError(InviteError):
    kind = InviteErrorKind.ALREADY_USED
    default_message = "Invite already used"


class UnauthorizedError(InviteError):
    kind = InviteErrorKind.UNAUTHORIZED
    default_message = "Unauthorized"


class BrandNotFoundError(InviteError):
    kind = InviteErrorKind.BRAND_NOT_FOUND
    default_message = "Brand not found"


class BrandConflictError(InviteError):
    kind = InviteErrorKind.CONFLICT
    default_message = "User already linked to another brand"


class TransientError(InviteError):
    kind = InviteErrorKind.TRANSIENT
    default_message = "Invite acceptance could not be committed, try again"


class TransactionConflict(Exception):
    """
    Raised by a store when a transaction lost a write race.

    Not a domain error: the coordinator retries on it and converts
    exhaustion into `TransientError`.
    """

from dataclasses import dataclass

from src.domain.entities import IdentityAssertion


@dataclass(frozen=True)
class ResolveUserInput:
    identity: IdentityAssertion


@dataclass
class ResolveUserOutput:
    user_id: str | None = None
    success: bool = False
    error: str | None = None
    error_code: str | None = None
    status_code: int = 200

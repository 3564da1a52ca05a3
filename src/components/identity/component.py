"""
Identity component - session to user id resolution.

Shell Layer - converts UnauthorizedError into an output; store failures
propagate.
"""

from __future__ import annotations

from src.domain.errors import InviteError

from .models import ResolveUserInput, ResolveUserOutput
from .ports import UserResolverPort


def run_resolve(inp: ResolveUserInput, resolver: UserResolverPort) -> ResolveUserOutput:
    try:
        user_id = resolver.resolve_user_id(inp.identity)
    except InviteError as e:
        return ResolveUserOutput(
            success=False, error=e.message, error_code=e.kind.value, status_code=e.status_code
        )
    return ResolveUserOutput(user_id=user_id, success=True)

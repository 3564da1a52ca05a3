"""
Invite component - validation, acceptance and metadata for brand invites.

Shell Layer - calls InviteService and converts domain errors into outputs.
Anything that is not an InviteError (store or infrastructure failure)
propagates to the caller.
"""

from __future__ import annotations

from src.domain.errors import InviteError

from .models import (
    AcceptInviteInput,
    AcceptInviteOutput,
    InviteMetadataInput,
    InviteMetadataOutput,
    ValidateInviteInput,
    ValidateInviteOutput,
)
from .ports import InviteServicePort


def run_validate(inp: ValidateInviteInput, service: InviteServicePort) -> ValidateInviteOutput:
    try:
        invite = service.validate_invite(inp.token)
    except InviteError as e:
        return ValidateInviteOutput(
            success=False, error=e.message, error_code=e.kind.value, status_code=e.status_code
        )
    return ValidateInviteOutput(invite=invite, success=True)


def run_accept(inp: AcceptInviteInput, service: InviteServicePort) -> AcceptInviteOutput:
    try:
        result = service.accept_invite(inp.token, inp.user_id, inp.profile)
    except InviteError as e:
        return AcceptInviteOutput(
            success=False, error=e.message, error_code=e.kind.value, status_code=e.status_code
        )
    return AcceptInviteOutput(brand_id=result.brand_id, success=True)


def run_metadata(inp: InviteMetadataInput, service: InviteServicePort) -> InviteMetadataOutput:
    try:
        metadata = service.get_invite_metadata(inp.token)
    except InviteError as e:
        return InviteMetadataOutput(
            success=False, error=e.message, error_code=e.kind.value, status_code=e.status_code
        )
    return InviteMetadataOutput(metadata=metadata, success=True)


def run(
    inp: ValidateInviteInput | AcceptInviteInput | InviteMetadataInput,
    *,
    service: InviteServicePort,
) -> ValidateInviteOutput | AcceptInviteOutput | InviteMetadataOutput:
    if isinstance(inp, ValidateInviteInput):
        return run_validate(inp, service)

    elif isinstance(inp, AcceptInviteInput):
        return run_accept(inp, service)

    elif isinstance(inp, InviteMetadataInput):
        return run_metadata(inp, service)

    else:
        raise ValueError(f"Unknown input type: {type(inp)}")

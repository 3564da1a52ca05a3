import logging
from typing import Any

from fastapi import APIRouter, Body, Depends
from fastapi.responses import JSONResponse

from src.api.deps import get_identity, get_invite_service, get_rules, get_user_resolver
from src.api.schemas import (
    AcceptInviteRequest,
    AcceptInviteResponse,
    ErrorResponse,
    InviteMetadataResponse,
)
from src.components.identity import ResolveUserInput, run_resolve
from src.components.invite import (
    AcceptInviteInput,
    InviteMetadataInput,
    run_accept,
    run_metadata,
)
from src.domain.entities import IdentityAssertion, UserProfile
from src.rules.models import Rules

logger = logging.getLogger(__name__)

router = APIRouter()

ERROR_RESPONSES: dict[int | str, dict[str, Any]] = {
    400: {"model": ErrorResponse},
    401: {"model": ErrorResponse},
    404: {"model": ErrorResponse},
    409: {"model": ErrorResponse},
    503: {"model": ErrorResponse},
}


def _error(status_code: int, detail: str | None, code: str | None) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content=ErrorResponse(detail=detail or "Error", code=code).model_dump(),
    )


@router.get("/{token}", response_model=InviteMetadataResponse, responses=ERROR_RESPONSES)
def get_invite(
    token: str,
    service: Any = Depends(get_invite_service),
) -> Any:
    """Invite metadata for the landing page."""
    result = run_metadata(InviteMetadataInput(token=token), service=service)
    if not result.success or result.metadata is None:
        return _error(result.status_code, result.error, result.error_code)
    return InviteMetadataResponse(**result.metadata.model_dump())


@router.post("/{token}/accept", response_model=AcceptInviteResponse, responses=ERROR_RESPONSES)
def accept_invite(
    token: str,
    req: AcceptInviteRequest | None = Body(default=None),
    identity: IdentityAssertion = Depends(get_identity),
    resolver: Any = Depends(get_user_resolver),
    service: Any = Depends(get_invite_service),
    rules: Rules = Depends(get_rules),
) -> Any:
    """Link the calling user to the invite's brand and record the use."""
    resolved = run_resolve(ResolveUserInput(identity=identity), resolver=resolver)
    if not resolved.success or resolved.user_id is None:
        return _error(resolved.status_code, resolved.error, resolved.error_code)

    profile = UserProfile(**(req.model_dump() if req else {}))
    result = run_accept(
        AcceptInviteInput(token=token, user_id=resolved.user_id, profile=profile),
        service=service,
    )
    if not result.success or result.brand_id is None:
        logger.info("Invite %s rejected for %s: %s", token, resolved.user_id, result.error)
        return _error(result.status_code, result.error, result.error_code)

    body = AcceptInviteResponse(success=True, brand_id=result.brand_id)
    response = JSONResponse(content=body.model_dump(by_alias=True))

    # Lets follow-up UI requests pick the brand up without another lookup.
    cookie = rules.http.brand_cookie
    response.set_cookie(
        cookie.name,
        result.brand_id,
        max_age=cookie.max_age_days * 24 * 60 * 60,
        path="/",
        httponly=False,
        samesite=cookie.same_site,  # type: ignore[arg-type]
    )
    return response

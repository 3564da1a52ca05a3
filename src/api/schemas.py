from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    """Accepts and emits camelCase field names for the web client."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


# --- Invites ---
class InviteMetadataResponse(CamelModel):
    token: str
    brand_id: str
    brand_name: str | None = None
    status: str
    expires_at: str | None = None
    max_uses: int
    used_count: int


class AcceptInviteRequest(CamelModel):
    name: str | None = None
    image: str | None = None
    auth_type: str | None = None
    email: str | None = None


class AcceptInviteResponse(CamelModel):
    success: bool
    brand_id: str


class ErrorResponse(BaseModel):
    detail: str
    code: str | None = None

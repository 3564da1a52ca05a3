from pydantic import BaseModel, Field


class ProjectRules(BaseModel):
    slug: str
    rules_version: str

class RetryRules(BaseModel):
    max_attempts: int = Field(default=5, ge=1)
    base_delay_seconds: float = Field(default=0.05, ge=0)
    max_delay_seconds: float = Field(default=1.0, ge=0)

class InviteRules(BaseModel):
    default_max_uses: int = Field(default=1, ge=1)
    retry: RetryRules = Field(default_factory=RetryRules)

class StoreRules(BaseModel):
    busy_timeout_seconds: float = Field(default=5.0, ge=0)

class OpsRules(BaseModel):
    data_dir_required: bool
    required_env: list[str]

class BrandCookieRules(BaseModel):
    name: str = "brand_id"
    max_age_days: int = 30
    same_site: str = "lax"

class HttpRules(BaseModel):
    brand_cookie: BrandCookieRules = Field(default_factory=BrandCookieRules)

class Rules(BaseModel):
    project: ProjectRules
    invites: InviteRules
    store: StoreRules
    ops: OpsRules
    http: HttpRules = Field(default_factory=HttpRules)

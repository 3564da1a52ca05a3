import os
from functools import lru_cache
from pathlib import Path

from fastapi import Depends, Request

from src.adapters.clock import SystemClock
from src.adapters.sqlite.repos import SQLiteInviteStore
from src.components.identity import UserResolver
from src.components.invite import InviteService
from src.domain.entities import IdentityAssertion
from src.rules.loader import load_rules
from src.rules.models import Rules

# Headers set by the upstream session layer once it has authenticated the caller.
USER_ID_HEADER = "X-User-Id"
USER_EMAIL_HEADER = "X-User-Email"


# --- Settings ---
class Settings:
    def __init__(self) -> None:
        self.base_dir = Path(os.getcwd())
        self.data_dir = Path(os.environ.get("INVITE_DATA_DIR", "./data"))
        self.db_path = str(self.data_dir / "invites.db")
        self.rules_path = self.base_dir / "rules.yaml"
        self.migrations_dir = self.base_dir / "migrations"


@lru_cache
def get_settings() -> Settings:
    return Settings()


# --- Rules ---
@lru_cache
def get_rules() -> Rules:
    return load_rules(get_settings().rules_path)


# --- Adapters ---
_clock_instance: SystemClock | None = None


def get_clock() -> SystemClock:
    """Get clock singleton."""
    global _clock_instance
    if _clock_instance is None:
        _clock_instance = SystemClock()
    return _clock_instance


def get_store(
    settings: Settings = Depends(get_settings),
    rules: Rules = Depends(get_rules),
) -> SQLiteInviteStore:
    return SQLiteInviteStore(settings.db_path, busy_timeout_seconds=rules.store.busy_timeout_seconds)


# --- Component Services ---
def get_invite_service(
    store: SQLiteInviteStore = Depends(get_store),
    clock: SystemClock = Depends(get_clock),
    rules: Rules = Depends(get_rules),
) -> InviteService:
    return InviteService(store=store, clock=clock, rules=rules.invites)


def get_user_resolver(store: SQLiteInviteStore = Depends(get_store)) -> UserResolver:
    return UserResolver(store)


# --- Identity ---
def get_identity(request: Request) -> IdentityAssertion:
    """Identity asserted by the session layer; both parts may be missing."""
    return IdentityAssertion(
        user_id=request.headers.get(USER_ID_HEADER) or None,
        email=request.headers.get(USER_EMAIL_HEADER) or None,
    )

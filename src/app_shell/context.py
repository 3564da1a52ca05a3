from __future__ import annotations

from dataclasses import dataclass

from src.adapters.clock import SystemClock
from src.adapters.sqlite.repos import SQLiteInviteStore
from src.components.identity import UserResolver
from src.components.invite import InviteService
from src.ports.clock import ClockPort
from src.rules.models import Rules


@dataclass
class ServiceContext:
    store: SQLiteInviteStore
    invite_service: InviteService
    user_resolver: UserResolver
    rules: Rules
    clock: ClockPort

    @classmethod
    def create(cls, db_path: str, rules: Rules, clock: ClockPort | None = None) -> ServiceContext:
        store = SQLiteInviteStore(db_path, busy_timeout_seconds=rules.store.busy_timeout_seconds)
        clock = clock or SystemClock()

        return cls(
            store=store,
            invite_service=InviteService(store, clock, rules.invites),
            user_resolver=UserResolver(store),
            rules=rules,
            clock=clock,
        )

from datetime import UTC, datetime
from pathlib import Path
from typing import Any

import pytest

from src.adapters.sqlite.migrator import SQLiteMigrator
from src.adapters.sqlite.repos import SQLiteInviteStore
from src.app_shell.context import ServiceContext
from src.domain.entities import Brand, Invite, User
from src.rules.loader import load_rules
from src.rules.models import Rules

PROJECT_ROOT = Path(__file__).parent.parent


class Seeder:
    """Writes fixture records through the store's own transaction path."""

    def __init__(self, store: SQLiteInviteStore) -> None:
        self.store = store

    def brand(self, brand_id: str, name: str | None = None) -> Brand:
        brand = Brand(id=brand_id, name=name or f"Brand {brand_id}", created_at=datetime.now(UTC))
        with self.store.transaction() as tx:
            tx.put_brand(brand)
        return brand

    def user(self, user_id: str, **fields: Any) -> User:
        user = User(id=user_id, created_at=datetime.now(UTC), **fields)
        with self.store.transaction() as tx:
            tx.put_user(user)
        return user

    def invite(self, token: str, brand_id: str, **fields: Any) -> Invite:
        now = datetime.now(UTC)
        invite = Invite(token=token, brand_id=brand_id, created_at=now, updated_at=now, **fields)
        with self.store.transaction() as tx:
            tx.put_invite(invite)
        return invite


@pytest.fixture
def rules() -> Rules:
    return load_rules(PROJECT_ROOT / "rules.yaml")


@pytest.fixture
def db_path(tmp_path: Path) -> str:
    path = str(tmp_path / "invites.db")
    SQLiteMigrator(path, str(PROJECT_ROOT / "migrations")).run_migrations()
    return path


@pytest.fixture
def ctx(db_path: str, rules: Rules) -> ServiceContext:
    """Full ServiceContext backed by a temporary, migrated SQLite DB."""
    return ServiceContext.create(db_path=db_path, rules=rules)


@pytest.fixture
def store(ctx: ServiceContext) -> SQLiteInviteStore:
    return ctx.store


@pytest.fixture
def seed(store: SQLiteInviteStore) -> Seeder:
    return Seeder(store)

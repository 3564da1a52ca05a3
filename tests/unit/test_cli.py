import json
from pathlib import Path

import pytest

from src.adapters.sqlite.repos import SQLiteInviteStore
from src.app_shell import cli
from src.domain.entities import Brand, Invite

PROJECT_ROOT = Path(__file__).parent.parent.parent


@pytest.fixture
def data_dir(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    monkeypatch.chdir(PROJECT_ROOT)
    monkeypatch.setenv("INVITE_DATA_DIR", str(tmp_path))
    assert cli.main(["migrate"]) == 0
    return tmp_path


@pytest.fixture
def store(data_dir: Path) -> SQLiteInviteStore:
    store = SQLiteInviteStore(str(data_dir / "invites.db"))
    with store.transaction() as tx:
        tx.put_brand(Brand(id="b1", name="Acme"))
        tx.put_invite(Invite(token="tok", brand_id="b1", max_uses=2))
    return store


def test_migrate_is_idempotent(data_dir: Path, capsys: pytest.CaptureFixture[str]) -> None:
    assert cli.main(["migrate"]) == 0
    assert "Applied 0 migration(s)." in capsys.readouterr().out


def test_show(store: SQLiteInviteStore, capsys: pytest.CaptureFixture[str]) -> None:
    assert cli.main(["show", "tok"]) == 0
    shown = json.loads(capsys.readouterr().out)
    assert shown["brand_name"] == "Acme"
    assert shown["max_uses"] == 2
    assert shown["used_count"] == 0


def test_show_unknown_token(store: SQLiteInviteStore) -> None:
    assert cli.main(["show", "missing"]) == 1


def test_accept(store: SQLiteInviteStore, capsys: pytest.CaptureFixture[str]) -> None:
    assert cli.main(["accept", "tok", "--user-id", "u1", "--name", "Ada"]) == 0
    assert "linked to brand b1" in capsys.readouterr().out

    user = store.get_user("u1")
    assert user.brand_id == "b1"
    assert user.name == "Ada"
    assert store.get_invite("tok").used_by == {"u1"}


def test_accept_rejected(store: SQLiteInviteStore) -> None:
    with store.transaction() as tx:
        tx.put_brand(Brand(id="b2"))
        tx.put_invite(Invite(token="other", brand_id="b2"))
    assert cli.main(["accept", "tok", "--user-id", "u1"]) == 0

    assert cli.main(["accept", "other", "--user-id", "u1"]) == 1
    assert store.get_user("u1").brand_id == "b1"

import json
import sqlite3
from datetime import UTC, datetime
from pathlib import Path

import pytest

from src.adapters.sqlite.migrator import SQLiteMigrator
from src.adapters.sqlite.repos import SQLiteInviteStore, is_conflict_error
from src.domain.entities import Brand, Invite
from src.domain.errors import TransactionConflict

MIGRATIONS_DIR = str(Path(__file__).parents[2] / "migrations")


def _raw_row(db_path: str, query: str, params: tuple) -> sqlite3.Row:
    conn = sqlite3.connect(db_path)
    conn.row_factory = sqlite3.Row
    try:
        return conn.execute(query, params).fetchone()
    finally:
        conn.close()


class TestPersistedShape:
    def test_sets_stored_as_sorted_json_arrays(self, db_path, seed):
        seed.brand("b1")
        seed.invite("tok", "b1", max_uses=3, used_by={"u2", "u1"})

        row = _raw_row(db_path, "SELECT used_by, version FROM brand_invites WHERE token = ?", ("tok",))
        assert json.loads(row["used_by"]) == ["u1", "u2"]
        assert row["version"] == 0

        brand = Brand(id="b1", user_ids={"z", "a"})
        store = SQLiteInviteStore(db_path)
        with store.transaction() as tx:
            tx.put_brand(brand)
        row = _raw_row(db_path, "SELECT user_ids FROM brands WHERE id = ?", ("b1",))
        assert row["user_ids"] == '["a", "z"]'

    @pytest.mark.parametrize(
        "expires_at",
        [
            "2030-01-01T00:00:00Z",
            1893456000000,
            {"seconds": 1893456000, "nanos": 0},
        ],
    )
    def test_expiry_representation_round_trips(self, store, seed, expires_at):
        seed.invite("tok", "b1", expires_at=expires_at)
        assert store.get_invite("tok").expires_at == expires_at

    def test_missing_records(self, store):
        assert store.get_invite("nope") is None
        assert store.get_brand("nope") is None
        assert store.get_user("nope") is None

    def test_non_integer_max_uses_reads_as_missing(self, db_path, store, seed):
        seed.invite("tok", "b1")
        conn = sqlite3.connect(db_path)
        conn.execute("UPDATE brand_invites SET max_uses = 'lots' WHERE token = ?", ("tok",))
        conn.commit()
        conn.close()
        assert store.get_invite("tok").max_uses is None

    def test_find_user_ids_by_email_in_row_order(self, store, seed):
        seed.user("first", email="dup@example.com")
        seed.user("second", email="dup@example.com")
        seed.user("third", email="dup@example.com")

        assert store.find_user_ids_by_email("dup@example.com") == ["first", "second"]
        assert store.find_user_ids_by_email("dup@example.com", limit=1) == ["first"]
        assert store.find_user_ids_by_email("none@example.com") == []


class TestTransactions:
    def test_stale_invite_version_conflicts(self, store, seed):
        seed.invite("tok", "b1", max_uses=5)
        stale = store.get_invite("tok")

        with store.transaction() as tx:
            tx.put_invite(stale.model_copy(update={"used_by": {"a"}}))

        with pytest.raises(TransactionConflict):
            with store.transaction() as tx:
                tx.put_invite(stale.model_copy(update={"used_by": {"b"}}))

        current = store.get_invite("tok")
        assert current.used_by == {"a"}
        assert current.version == 1

    def test_exception_rolls_back_all_writes(self, store, seed):
        seed.brand("b1")
        with pytest.raises(KeyError):
            with store.transaction() as tx:
                tx.put_brand(Brand(id="b1", user_ids={"u1"}))
                tx.put_invite(Invite(token="new", brand_id="b1"))
                raise KeyError("boom")

        assert store.get_brand("b1").user_ids == set()
        assert store.get_invite("new") is None

    def test_held_write_lock_surfaces_as_conflict(self, db_path, seed):
        seed.invite("tok", "b1")
        impatient = SQLiteInviteStore(db_path, busy_timeout_seconds=0.05)

        holder = sqlite3.connect(db_path, isolation_level=None)
        holder.execute("BEGIN IMMEDIATE")
        try:
            with pytest.raises(TransactionConflict):
                with impatient.transaction():
                    pass
        finally:
            holder.execute("ROLLBACK")
            holder.close()

    def test_is_conflict_error(self):
        assert is_conflict_error(sqlite3.OperationalError("database is locked"))
        assert not is_conflict_error(sqlite3.OperationalError("no such table: x"))

    @pytest.mark.parametrize(
        "code",
        [sqlite3.SQLITE_BUSY, sqlite3.SQLITE_BUSY_SNAPSHOT, sqlite3.SQLITE_BUSY_TIMEOUT,
         sqlite3.SQLITE_LOCKED_SHAREDCACHE],
    )
    def test_extended_busy_codes_are_conflicts(self, code):
        err = sqlite3.OperationalError("write conflict")
        err.sqlite_errorcode = code
        assert is_conflict_error(err)

    def test_other_error_codes_are_not_conflicts(self):
        err = sqlite3.OperationalError("disk I/O error")
        err.sqlite_errorcode = sqlite3.SQLITE_IOERR
        assert not is_conflict_error(err)


class TestMigrator:
    def test_rerun_applies_nothing(self, db_path):
        migrator = SQLiteMigrator(db_path, MIGRATIONS_DIR)
        assert migrator.run_migrations() == []

    def test_fresh_database_gets_all_tables(self, tmp_path):
        path = str(tmp_path / "fresh.db")
        applied = SQLiteMigrator(path, MIGRATIONS_DIR).run_migrations()
        assert applied == ["001_initial.sql"]

        conn = sqlite3.connect(path)
        tables = {r[0] for r in conn.execute("SELECT name FROM sqlite_master WHERE type='table'")}
        conn.close()
        assert {"brand_invites", "brands", "users"} <= tables

    def test_created_at_is_stored_as_iso(self, db_path, seed):
        seed.brand("b1")
        row = _raw_row(db_path, "SELECT created_at FROM brands WHERE id = ?", ("b1",))
        assert datetime.fromisoformat(row["created_at"]).tzinfo == UTC

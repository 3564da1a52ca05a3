"""
SQLite adapter for the invite engine store.

Tables: brand_invites, brands, users (see migrations/001_initial.sql).
Set-valued fields (used_by, user_ids) are stored as sorted JSON arrays.

Transactions start with BEGIN IMMEDIATE, so the database write lock is
held from the first read of the invite until commit. Lock waits longer
than the busy timeout, and lost version compare-and-swaps on an invite,
surface as TransactionConflict.
"""

from __future__ import annotations

import json
import logging
import sqlite3
from collections.abc import Iterator, Mapping
from contextlib import contextmanager
from datetime import date, datetime
from typing import Any

from src.domain.entities import Brand, Invite, User
from src.domain.errors import TransactionConflict

logger = logging.getLogger(__name__)

_CONFLICT_CODES = {sqlite3.SQLITE_BUSY, sqlite3.SQLITE_LOCKED}


# Helper to convert sqlite rows to dicts
def dict_factory(cursor: sqlite3.Cursor, row: Any) -> dict[str, Any]:
    d = {}
    for idx, col in enumerate(cursor.description):
        d[col[0]] = row[idx]
    return d


def parse_dt(s: str | None) -> datetime | None:
    return datetime.fromisoformat(s) if s else None


def _format_dt(dt: datetime | None) -> str | None:
    return dt.isoformat() if dt else None


def _load_id_set(raw: str | None) -> set[str]:
    if not raw:
        return set()
    try:
        value = json.loads(raw)
    except json.JSONDecodeError:
        logger.warning("Ignoring unreadable id array: %r", raw)
        return set()
    if not isinstance(value, list):
        return set()
    return {str(v) for v in value}


def _dump_id_set(ids: set[str]) -> str:
    return json.dumps(sorted(ids))


def _dump_instant(value: Any) -> Any:
    """Keep the stored representation of expiry values close to what was given."""
    if isinstance(value, datetime | date):
        return value.isoformat()
    if isinstance(value, Mapping):
        return json.dumps(dict(value))
    return value


def _load_instant(value: Any) -> Any:
    if isinstance(value, str) and value.startswith("{"):
        try:
            return json.loads(value)
        except json.JSONDecodeError:
            return value
    return value


def is_conflict_error(e: sqlite3.Error) -> bool:
    code = getattr(e, "sqlite_errorcode", None)
    if code is not None:
        # Extended codes (SQLITE_BUSY_SNAPSHOT, ...) carry the primary code in the low byte.
        return (code & 0xFF) in _CONFLICT_CODES
    message = str(e).lower()
    return "locked" in message or "busy" in message


def _map_invite(row: dict[str, Any]) -> Invite:
    max_uses = row["max_uses"]
    return Invite(
        token=row["token"],
        brand_id=row["brand_id"],
        status=row["status"],
        expires_at=_load_instant(row["expires_at"]),
        used_by=_load_id_set(row["used_by"]),
        max_uses=max_uses if isinstance(max_uses, int) else None,
        created_by=row["created_by"],
        version=row["version"] or 0,
        created_at=parse_dt(row["created_at"]),
        updated_at=parse_dt(row["updated_at"]),
    )


def _map_brand(row: dict[str, Any]) -> Brand:
    return Brand(
        id=row["id"],
        name=row["name"],
        user_ids=_load_id_set(row["user_ids"]),
        created_at=parse_dt(row["created_at"]),
        updated_at=parse_dt(row["updated_at"]),
    )


def _map_user(row: dict[str, Any]) -> User:
    return User(
        id=row["id"],
        email=row["email"],
        brand_id=row["brand_id"],
        name=row["name"],
        image=row["image"],
        auth_type=row["auth_type"],
        created_at=parse_dt(row["created_at"]),
        updated_at=parse_dt(row["updated_at"]),
    )


class _SQLiteReads:
    """Row lookups shared by the store and its transactions."""

    def _conn_for_read(self) -> sqlite3.Connection:
        raise NotImplementedError

    def _release(self, conn: sqlite3.Connection) -> None:
        raise NotImplementedError

    def _fetch_one(self, query: str, params: tuple[Any, ...]) -> dict[str, Any] | None:
        conn = self._conn_for_read()
        try:
            return conn.execute(query, params).fetchone()
        finally:
            self._release(conn)

    def get_invite(self, token: str) -> Invite | None:
        row = self._fetch_one("SELECT * FROM brand_invites WHERE token = ?", (token,))
        return _map_invite(row) if row else None

    def get_brand(self, brand_id: str) -> Brand | None:
        row = self._fetch_one("SELECT * FROM brands WHERE id = ?", (brand_id,))
        return _map_brand(row) if row else None

    def get_user(self, user_id: str) -> User | None:
        row = self._fetch_one("SELECT * FROM users WHERE id = ?", (user_id,))
        return _map_user(row) if row else None


class SQLiteTransaction(_SQLiteReads):
    """Reads and writes bound to one open BEGIN IMMEDIATE transaction."""

    def __init__(self, conn: sqlite3.Connection):
        self._conn = conn

    def _conn_for_read(self) -> sqlite3.Connection:
        return self._conn

    def _release(self, conn: sqlite3.Connection) -> None:
        pass

    def _execute(self, query: str, params: tuple[Any, ...]) -> sqlite3.Cursor:
        try:
            return self._conn.execute(query, params)
        except sqlite3.OperationalError as e:
            if is_conflict_error(e):
                raise TransactionConflict(str(e)) from e
            raise

    def put_invite(self, invite: Invite) -> None:
        """
        Write the invite if its stored version still equals `invite.version`.

        Unknown tokens are inserted. A version mismatch means another writer
        got there first and raises TransactionConflict.
        """
        params = (
            invite.brand_id,
            invite.status,
            _dump_instant(invite.expires_at),
            _dump_id_set(invite.used_by),
            invite.max_uses,
            invite.created_by,
            _format_dt(invite.created_at),
            _format_dt(invite.updated_at),
        )
        cur = self._execute(
            """
            UPDATE brand_invites SET
                brand_id = ?, status = ?, expires_at = ?, used_by = ?,
                max_uses = ?, created_by = ?, created_at = ?, updated_at = ?,
                version = version + 1
            WHERE token = ? AND version = ?
            """,
            params + (invite.token, invite.version),
        )
        if cur.rowcount == 1:
            return

        exists = self._execute(
            "SELECT 1 FROM brand_invites WHERE token = ?", (invite.token,)
        ).fetchone()
        if exists:
            raise TransactionConflict(
                f"Invite {invite.token} changed since version {invite.version}"
            )

        self._execute(
            """
            INSERT INTO brand_invites (
                brand_id, status, expires_at, used_by, max_uses,
                created_by, created_at, updated_at, token, version
            ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, 0)
            """,
            params + (invite.token,),
        )

    def put_user(self, user: User) -> None:
        self._execute(
            """
            INSERT INTO users (
                id, email, brand_id, name, image, auth_type, created_at, updated_at
            ) VALUES (?, ?, ?, ?, ?, ?, ?, ?)
            ON CONFLICT(id) DO UPDATE SET
                email=excluded.email,
                brand_id=excluded.brand_id,
                name=excluded.name,
                image=excluded.image,
                auth_type=excluded.auth_type,
                updated_at=excluded.updated_at
            """,
            (
                user.id,
                user.email,
                user.brand_id,
                user.name,
                user.image,
                user.auth_type,
                _format_dt(user.created_at),
                _format_dt(user.updated_at),
            ),
        )

    def put_brand(self, brand: Brand) -> None:
        self._execute(
            """
            INSERT INTO brands (id, name, user_ids, created_at, updated_at)
            VALUES (?, ?, ?, ?, ?)
            ON CONFLICT(id) DO UPDATE SET
                name=excluded.name,
                user_ids=excluded.user_ids,
                updated_at=excluded.updated_at
            """,
            (
                brand.id,
                brand.name,
                _dump_id_set(brand.user_ids),
                _format_dt(brand.created_at),
                _format_dt(brand.updated_at),
            ),
        )


class SQLiteInviteStore(_SQLiteReads):
    """Store for invites, brands and users. One connection per call."""

    def __init__(self, db_path: str, busy_timeout_seconds: float = 5.0):
        self.db_path = db_path
        self.busy_timeout_seconds = busy_timeout_seconds

    def _get_conn(self) -> sqlite3.Connection:
        # isolation_level=None: transactions are opened explicitly below.
        conn = sqlite3.connect(
            self.db_path, timeout=self.busy_timeout_seconds, isolation_level=None
        )
        conn.row_factory = dict_factory
        return conn

    def _conn_for_read(self) -> sqlite3.Connection:
        return self._get_conn()

    def _release(self, conn: sqlite3.Connection) -> None:
        conn.close()

    def find_user_ids_by_email(self, email: str, limit: int = 2) -> list[str]:
        conn = self._get_conn()
        try:
            rows = conn.execute(
                "SELECT id FROM users WHERE email = ? ORDER BY rowid LIMIT ?",
                (email, limit),
            ).fetchall()
            return [r["id"] for r in rows]
        finally:
            conn.close()

    @contextmanager
    def transaction(self) -> Iterator[SQLiteTransaction]:
        conn = self._get_conn()
        try:
            try:
                conn.execute("BEGIN IMMEDIATE")
            except sqlite3.OperationalError as e:
                if is_conflict_error(e):
                    raise TransactionConflict(str(e)) from e
                raise

            try:
                yield SQLiteTransaction(conn)
            except BaseException:
                if conn.in_transaction:
                    conn.execute("ROLLBACK")
                raise

            try:
                conn.execute("COMMIT")
            except sqlite3.OperationalError as e:
                if conn.in_transaction:
                    conn.execute("ROLLBACK")
                if is_conflict_error(e):
                    raise TransactionConflict(str(e)) from e
                raise
        finally:
            conn.close()

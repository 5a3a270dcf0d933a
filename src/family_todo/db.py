from __future__ import annotations

import logging
import os
import sqlite3
from contextlib import contextmanager
from dataclasses import dataclass
from datetime import date, datetime
from threading import Lock
from typing import Any, Generator, List, Optional

from .errors import Conflict, StorageUnavailable
from .models import FamilyMemberEntity, TodoEntity
from .repositories import Repository
from .schemas import FamilyMemberCreate, FamilyMemberUpdate, TodoCreate, TodoUpdate
from .seeds import DEFAULT_FAMILY_MEMBERS, DEFAULT_TODOS
from .utils import timestamp_id, utc_now

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class _TodoCols:
    table: str = "todos"
    id: str = "id"
    title: str = "title"
    completed: str = "completed"
    assigned_to: str = "assigned_to"
    assigned_to_color: str = "assigned_to_color"
    due_date: str = "due_date"
    priority: str = "priority"
    category: str = "category"
    created_at: str = "created_at"
    updated_at: str = "updated_at"


@dataclass(frozen=True)
class _MemberCols:
    table: str = "family_members"
    id: str = "id"
    name: str = "name"
    color: str = "color"
    created_at: str = "created_at"


_T = _TodoCols()
_M = _MemberCols()


def _ts(value: datetime) -> str:
    # Fixed-width text keeps lexicographic order equal to time order
    return value.isoformat(timespec="microseconds")


def _parse_dt(s: str) -> datetime:
    return datetime.fromisoformat(s)


def _parse_date(s: Optional[str]) -> Optional[date]:
    if s is None:
        return None
    return date.fromisoformat(s)


class SQLiteRepository(Repository):
    """
    SQLite repository holding the ``family_members`` and ``todos`` tables.

    Every public method opens its own connection; there is no transaction
    spanning two calls.
    """

    def __init__(self, db_path: str, seed: bool = True) -> None:
        os.makedirs(os.path.dirname(db_path) or ".", exist_ok=True)
        self._db_path = db_path
        self._id_lock = Lock()
        self._last_id = 0
        self._init_db(seed)

    @contextmanager
    def _conn(self) -> Generator[sqlite3.Connection, None, None]:
        try:
            conn = sqlite3.connect(self._db_path)
        except sqlite3.Error as e:
            raise StorageUnavailable(details=f"cannot open {self._db_path}: {e}") from e
        conn.row_factory = sqlite3.Row
        try:
            yield conn
            conn.commit()
        except (sqlite3.Error, ValueError) as e:
            # ValueError: a stored timestamp or date no longer parses
            conn.rollback()
            logger.exception("SQLite query failed on %s", self._db_path)
            raise StorageUnavailable(details=f"{type(e).__name__}: {e}") from e
        finally:
            conn.close()

    def _init_db(self, seed: bool) -> None:
        with self._conn() as conn:
            conn.execute(
                f"""
                CREATE TABLE IF NOT EXISTS {_M.table} (
                    {_M.id} VARCHAR(50) PRIMARY KEY,
                    {_M.name} VARCHAR(100) NOT NULL,
                    {_M.color} VARCHAR(7) NOT NULL,
                    {_M.created_at} TEXT NOT NULL
                )
                """
            )
            conn.execute(
                f"""
                CREATE TABLE IF NOT EXISTS {_T.table} (
                    {_T.id} VARCHAR(50) PRIMARY KEY,
                    {_T.title} VARCHAR(500) NOT NULL,
                    {_T.completed} INTEGER NOT NULL DEFAULT 0,
                    {_T.assigned_to} VARCHAR(100) NOT NULL,
                    {_T.assigned_to_color} VARCHAR(7) NOT NULL,
                    {_T.due_date} TEXT NULL,
                    {_T.priority} VARCHAR(20) NOT NULL DEFAULT 'normal',
                    {_T.category} VARCHAR(100) NULL,
                    {_T.created_at} TEXT NOT NULL,
                    {_T.updated_at} TEXT NOT NULL
                )
                """
            )
            conn.execute(
                f"CREATE INDEX IF NOT EXISTS idx_{_T.table}_created_at ON {_T.table}({_T.created_at})"
            )
            conn.execute(
                f"CREATE INDEX IF NOT EXISTS idx_{_T.table}_assigned_to ON {_T.table}({_T.assigned_to})"
            )
            if seed:
                self._seed(conn)

    def _seed(self, conn: sqlite3.Connection) -> None:
        now = _ts(utc_now())
        if conn.execute(f"SELECT COUNT(*) FROM {_M.table}").fetchone()[0] == 0:
            conn.executemany(
                f"INSERT INTO {_M.table} ({_M.id}, {_M.name}, {_M.color}, {_M.created_at}) VALUES (?, ?, ?, ?)",
                [(m["id"], m["name"], m["color"], now) for m in DEFAULT_FAMILY_MEMBERS],
            )
            logger.info("Seeded %d family members into %s", len(DEFAULT_FAMILY_MEMBERS), self._db_path)
        if conn.execute(f"SELECT COUNT(*) FROM {_T.table}").fetchone()[0] == 0:
            conn.executemany(
                f"""
                INSERT INTO {_T.table} ({_T.id}, {_T.title}, {_T.completed}, {_T.assigned_to},
                    {_T.assigned_to_color}, {_T.due_date}, {_T.priority}, {_T.category},
                    {_T.created_at}, {_T.updated_at})
                VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
                """,
                [
                    (
                        t["id"],
                        t["title"],
                        1 if t["completed"] else 0,
                        t["assigned_to"],
                        t["assigned_to_color"],
                        t["due_date"].isoformat() if t["due_date"] else None,
                        t["priority"],
                        t["category"],
                        now,
                        now,
                    )
                    for t in DEFAULT_TODOS
                ],
            )
            logger.info("Seeded %d todos into %s", len(DEFAULT_TODOS), self._db_path)

    def _row_to_todo(self, row: sqlite3.Row) -> TodoEntity:
        return {
            "id": str(row[_T.id]),
            "title": str(row[_T.title]),
            "completed": bool(row[_T.completed]),
            "assigned_to": str(row[_T.assigned_to]),
            "assigned_to_color": str(row[_T.assigned_to_color]),
            "due_date": _parse_date(row[_T.due_date]),
            "priority": str(row[_T.priority]),
            "category": row[_T.category],
            "created_at": _parse_dt(row[_T.created_at]),
            "updated_at": _parse_dt(row[_T.updated_at]),
        }

    def _row_to_member(self, row: sqlite3.Row) -> FamilyMemberEntity:
        return {
            "id": str(row[_M.id]),
            "name": str(row[_M.name]),
            "color": str(row[_M.color]),
            "created_at": _parse_dt(row[_M.created_at]),
        }

    def _fetch_todo(self, conn: sqlite3.Connection, todo_id: str) -> Optional[sqlite3.Row]:
        return conn.execute(f"SELECT * FROM {_T.table} WHERE {_T.id} = ?", (todo_id,)).fetchone()

    def _fetch_member(self, conn: sqlite3.Connection, member_id: str) -> Optional[sqlite3.Row]:
        return conn.execute(f"SELECT * FROM {_M.table} WHERE {_M.id} = ?", (member_id,)).fetchone()

    def _allocate_id(self, conn: sqlite3.Connection) -> str:
        with self._id_lock:
            i = timestamp_id(utc_now(), self._last_id)
            while self._fetch_todo(conn, str(i)) is not None:
                i += 1
            self._last_id = i
            return str(i)

    # Todos

    def list_todos(self) -> List[TodoEntity]:
        with self._conn() as conn:
            rows = conn.execute(
                f"SELECT * FROM {_T.table} ORDER BY {_T.created_at} DESC, rowid DESC"
            ).fetchall()
            return [self._row_to_todo(r) for r in rows]

    def get_todo(self, todo_id: str) -> Optional[TodoEntity]:
        with self._conn() as conn:
            row = self._fetch_todo(conn, todo_id)
            return self._row_to_todo(row) if row else None

    def create_todo(self, data: TodoCreate) -> TodoEntity:
        now = _ts(utc_now())
        with self._conn() as conn:
            new_id = self._allocate_id(conn)
            conn.execute(
                f"""
                INSERT INTO {_T.table} ({_T.id}, {_T.title}, {_T.completed}, {_T.assigned_to},
                    {_T.assigned_to_color}, {_T.due_date}, {_T.priority}, {_T.category},
                    {_T.created_at}, {_T.updated_at})
                VALUES (?, ?, 0, ?, ?, ?, ?, ?, ?, ?)
                """,
                (
                    new_id,
                    data.title,
                    data.assigned_to,
                    data.assigned_to_color,
                    data.due_date.isoformat() if data.due_date else None,
                    data.priority,
                    data.category,
                    now,
                    now,
                ),
            )
            row = self._fetch_todo(conn, new_id)
            assert row is not None
            return self._row_to_todo(row)

    def update_todo(self, todo_id: str, patch: TodoUpdate) -> Optional[TodoEntity]:
        with self._conn() as conn:
            row = self._fetch_todo(conn, todo_id)
            if not row:
                return None
            updated_at = utc_now(after=_parse_dt(row[_T.updated_at]))
            params: List[Any] = [
                patch.title,
                None if patch.completed is None else (1 if patch.completed else 0),
                patch.priority,
                patch.assigned_to,
                patch.assigned_to_color,
                patch.due_date.isoformat() if patch.due_date else None,
                patch.category,
                _ts(updated_at),
                todo_id,
            ]
            conn.execute(
                f"""
                UPDATE {_T.table}
                SET {_T.title} = COALESCE(?, {_T.title}),
                    {_T.completed} = COALESCE(?, {_T.completed}),
                    {_T.priority} = COALESCE(?, {_T.priority}),
                    {_T.assigned_to} = COALESCE(?, {_T.assigned_to}),
                    {_T.assigned_to_color} = COALESCE(?, {_T.assigned_to_color}),
                    {_T.due_date} = COALESCE(?, {_T.due_date}),
                    {_T.category} = COALESCE(?, {_T.category}),
                    {_T.updated_at} = ?
                WHERE {_T.id} = ?
                """,
                params,
            )
            row2 = self._fetch_todo(conn, todo_id)
            assert row2 is not None
            return self._row_to_todo(row2)

    def delete_todo(self, todo_id: str) -> Optional[TodoEntity]:
        with self._conn() as conn:
            row = self._fetch_todo(conn, todo_id)
            if not row:
                return None
            conn.execute(f"DELETE FROM {_T.table} WHERE {_T.id} = ?", (todo_id,))
            return self._row_to_todo(row)

    def count_todos_assigned_to(self, name: str) -> int:
        with self._conn() as conn:
            row = conn.execute(
                f"SELECT COUNT(*) AS cnt FROM {_T.table} WHERE {_T.assigned_to} = ?", (name,)
            ).fetchone()
            return int(row["cnt"]) if row else 0

    # Family members

    def list_members(self) -> List[FamilyMemberEntity]:
        with self._conn() as conn:
            rows = conn.execute(
                f"SELECT * FROM {_M.table} ORDER BY {_M.created_at} ASC, rowid ASC"
            ).fetchall()
            return [self._row_to_member(r) for r in rows]

    def get_member(self, member_id: str) -> Optional[FamilyMemberEntity]:
        with self._conn() as conn:
            row = self._fetch_member(conn, member_id)
            return self._row_to_member(row) if row else None

    def create_member(self, data: FamilyMemberCreate) -> FamilyMemberEntity:
        with self._conn() as conn:
            try:
                conn.execute(
                    f"INSERT INTO {_M.table} ({_M.id}, {_M.name}, {_M.color}, {_M.created_at}) VALUES (?, ?, ?, ?)",
                    (data.id, data.name, data.color, _ts(utc_now())),
                )
            except sqlite3.IntegrityError as e:
                raise Conflict(f"Family member with id {data.id} already exists") from e
            row = self._fetch_member(conn, data.id)
            assert row is not None
            return self._row_to_member(row)

    def update_member(self, member_id: str, patch: FamilyMemberUpdate) -> Optional[FamilyMemberEntity]:
        with self._conn() as conn:
            cur = conn.execute(
                f"""
                UPDATE {_M.table}
                SET {_M.name} = COALESCE(?, {_M.name}),
                    {_M.color} = COALESCE(?, {_M.color})
                WHERE {_M.id} = ?
                """,
                (patch.name, patch.color, member_id),
            )
            if cur.rowcount == 0:
                return None
            row = self._fetch_member(conn, member_id)
            assert row is not None
            return self._row_to_member(row)

    def delete_member(self, member_id: str) -> Optional[FamilyMemberEntity]:
        with self._conn() as conn:
            row = self._fetch_member(conn, member_id)
            if not row:
                return None
            conn.execute(f"DELETE FROM {_M.table} WHERE {_M.id} = ?", (member_id,))
            return self._row_to_member(row)

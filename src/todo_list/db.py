from __future__ import annotations

import os
import sqlite3
from contextlib import contextmanager
from dataclasses import dataclass
from typing import Generator, Iterable, List

from .errors import DuplicateId, NotFound
from .logging import get_logger
from .models import TaskRecord
from .repositories import TaskStore
from .schemas import TaskUpdate

logger = get_logger(__name__)

SEEDED_KEY = "seeded"


@dataclass(frozen=True)
class _Cols:
    table: str = "tasks"
    id: str = "id"
    title: str = "title"
    description: str = "description"
    is_completed: str = "is_completed"
    meta_table: str = "app_meta"


_COLS = _Cols()


class SQLiteTaskStore(TaskStore):
    """
    SQLite task store implementing the TaskStore interface.

    Each operation opens its own connection and commits on success, so a
    failed operation leaves no partial write behind. Records come back in
    rowid (insertion) order.
    """

    def __init__(self, db_path: str) -> None:
        os.makedirs(os.path.dirname(db_path) or ".", exist_ok=True)
        self._db_path = db_path
        self._init_db()
        logger.info("task_store_ready", backend="sqlite", db_path=db_path, total=self.count())

    @contextmanager
    def _conn(self) -> Generator[sqlite3.Connection, None, None]:
        conn = sqlite3.connect(self._db_path)
        conn.row_factory = sqlite3.Row
        try:
            yield conn
            conn.commit()
        except BaseException:
            conn.rollback()
            raise
        finally:
            conn.close()

    def _init_db(self) -> None:
        with self._conn() as conn:
            conn.execute(
                f"""
                CREATE TABLE IF NOT EXISTS {_COLS.table} (
                    {_COLS.id} TEXT PRIMARY KEY,
                    {_COLS.title} TEXT NOT NULL,
                    {_COLS.description} TEXT NOT NULL DEFAULT '',
                    {_COLS.is_completed} INTEGER NOT NULL DEFAULT 0
                )
                """
            )
            conn.execute(
                f"""
                CREATE TABLE IF NOT EXISTS {_COLS.meta_table} (
                    key TEXT PRIMARY KEY,
                    value TEXT NOT NULL
                )
                """
            )

    def _row_to_record(self, row: sqlite3.Row) -> TaskRecord:
        return {
            "id": str(row[_COLS.id]),
            "title": str(row[_COLS.title]),
            "description": row[_COLS.description] or "",
            "is_completed": bool(row[_COLS.is_completed]),
        }

    def _insert(self, conn: sqlite3.Connection, record: TaskRecord) -> None:
        try:
            conn.execute(
                f"""
                INSERT INTO {_COLS.table} ({_COLS.id}, {_COLS.title}, {_COLS.description}, {_COLS.is_completed})
                VALUES (?, ?, ?, ?)
                """,
                (
                    record["id"],
                    record["title"],
                    record.get("description") or "",
                    1 if record.get("is_completed") else 0,
                ),
            )
        except sqlite3.IntegrityError as e:
            raise DuplicateId(record["id"]) from e

    def _select(self, conn: sqlite3.Connection, task_id: str) -> TaskRecord:
        row = conn.execute(f"SELECT * FROM {_COLS.table} WHERE {_COLS.id} = ?", (task_id,)).fetchone()
        if row is None:
            raise NotFound(task_id)
        return self._row_to_record(row)

    def insert(self, record: TaskRecord) -> TaskRecord:
        with self._conn() as conn:
            self._insert(conn, record)
            return self._select(conn, record["id"])

    def get(self, task_id: str) -> TaskRecord:
        with self._conn() as conn:
            return self._select(conn, task_id)

    def update(self, task_id: str, mutation: TaskUpdate) -> TaskRecord:
        changes = mutation.changes()
        with self._conn() as conn:
            if not changes:
                return self._select(conn, task_id)
            if "is_completed" in changes:
                changes["is_completed"] = 1 if changes["is_completed"] else 0
            assignments = ", ".join(f"{getattr(_COLS, name)} = ?" for name in changes)
            cur = conn.execute(
                f"UPDATE {_COLS.table} SET {assignments} WHERE {_COLS.id} = ?",
                [*changes.values(), task_id],
            )
            if cur.rowcount == 0:
                raise NotFound(task_id)
            return self._select(conn, task_id)

    def delete(self, task_id: str) -> None:
        with self._conn() as conn:
            cur = conn.execute(f"DELETE FROM {_COLS.table} WHERE {_COLS.id} = ?", (task_id,))
            if cur.rowcount == 0:
                raise NotFound(task_id)

    def query_all(self) -> List[TaskRecord]:
        with self._conn() as conn:
            rows = conn.execute(f"SELECT * FROM {_COLS.table} ORDER BY rowid").fetchall()
            return [self._row_to_record(r) for r in rows]

    def count(self) -> int:
        with self._conn() as conn:
            row = conn.execute(f"SELECT COUNT(*) AS cnt FROM {_COLS.table}").fetchone()
            return int(row["cnt"]) if row else 0

    def is_seeded(self) -> bool:
        with self._conn() as conn:
            row = conn.execute(
                f"SELECT value FROM {_COLS.meta_table} WHERE key = ?", (SEEDED_KEY,)
            ).fetchone()
            return row is not None and row["value"] == "1"

    def seed(self, records: Iterable[TaskRecord]) -> None:
        # Flag and inserts share one transaction: a crash leaves either both or neither.
        with self._conn() as conn:
            for record in records:
                self._insert(conn, record)
            conn.execute(
                f"INSERT OR REPLACE INTO {_COLS.meta_table} (key, value) VALUES (?, '1')",
                (SEEDED_KEY,),
            )

from __future__ import annotations

import logging
import os
import sqlite3
from contextlib import contextmanager
from dataclasses import dataclass
from datetime import datetime
from threading import RLock
from typing import Generator, Iterable, List, Optional

from .models import TodoEntity, TodoStatus
from .repositories import ListQuery, Repository
from .utils import as_utc, parse_iso_datetime

logger = logging.getLogger(__name__)

MEMORY_DB = ":memory:"


@dataclass(frozen=True)
class _Cols:
    table: str = "todos"
    id: str = "id"
    description: str = "description"
    status: str = "status"
    creation_datetime: str = "creation_datetime"
    due_datetime: str = "due_datetime"
    done_datetime: str = "done_datetime"


_COLS = _Cols()


def _fmt(value: Optional[datetime]) -> Optional[str]:
    # Fixed-width UTC text so that string comparison in SQL orders like time
    if value is None:
        return None
    return as_utc(value).isoformat(timespec="microseconds")


class SQLiteRepository(Repository):
    """
    Lightweight SQLite repository implementing the Repository interface.

    A file-backed database opens one connection per operation. ':memory:'
    keeps a single shared connection, otherwise every operation would see a
    fresh empty database.
    """

    def __init__(self, db_path: str) -> None:
        self._db_path = db_path
        self._lock = RLock()
        self._shared: Optional[sqlite3.Connection] = None
        if db_path == MEMORY_DB:
            self._shared = sqlite3.connect(MEMORY_DB, check_same_thread=False)
            self._shared.row_factory = sqlite3.Row
        else:
            os.makedirs(os.path.dirname(db_path) or ".", exist_ok=True)
        self._init_db()

    @contextmanager
    def _conn(self) -> Generator[sqlite3.Connection, None, None]:
        with self._lock:
            if self._shared is not None:
                try:
                    yield self._shared
                    self._shared.commit()
                except Exception:
                    self._shared.rollback()
                    raise
                return

            conn = sqlite3.connect(self._db_path)
            conn.row_factory = sqlite3.Row
            try:
                yield conn
                conn.commit()
            finally:
                conn.close()

    def _init_db(self) -> None:
        with self._conn() as conn:
            conn.execute(
                f"""
                CREATE TABLE IF NOT EXISTS {_COLS.table} (
                    {_COLS.id} TEXT PRIMARY KEY,
                    {_COLS.description} TEXT NOT NULL,
                    {_COLS.status} TEXT NOT NULL
                        CHECK ({_COLS.status} IN ('NOT_DONE', 'DONE', 'PAST_DUE')),
                    {_COLS.creation_datetime} TEXT NOT NULL,
                    {_COLS.due_datetime} TEXT NOT NULL,
                    {_COLS.done_datetime} TEXT NULL
                )
                """
            )
            conn.execute(
                f"CREATE INDEX IF NOT EXISTS idx_{_COLS.table}_status ON {_COLS.table}({_COLS.status})"
            )
            conn.execute(
                f"CREATE INDEX IF NOT EXISTS idx_{_COLS.table}_due_datetime ON {_COLS.table}({_COLS.due_datetime})"
            )

    def _row_to_entity(self, row: sqlite3.Row) -> TodoEntity:
        return {
            "id": str(row[_COLS.id]),
            "description": str(row[_COLS.description]),
            "status": TodoStatus(row[_COLS.status]),
            "creation_datetime": parse_iso_datetime(row[_COLS.creation_datetime]),  # type: ignore
            "due_datetime": parse_iso_datetime(row[_COLS.due_datetime]),  # type: ignore
            "done_datetime": parse_iso_datetime(row[_COLS.done_datetime]),
        }

    @staticmethod
    def _entity_params(entity: TodoEntity) -> tuple:
        return (
            entity["id"],
            entity["description"],
            TodoStatus(entity["status"]).value,
            _fmt(entity["creation_datetime"]),
            _fmt(entity["due_datetime"]),
            _fmt(entity["done_datetime"]),
        )

    _UPSERT_SQL = f"""
        INSERT OR REPLACE INTO {_COLS.table} ({_COLS.id}, {_COLS.description}, {_COLS.status},
            {_COLS.creation_datetime}, {_COLS.due_datetime}, {_COLS.done_datetime})
        VALUES (?, ?, ?, ?, ?, ?)
    """

    def get(self, todo_id: str) -> Optional[TodoEntity]:
        with self._conn() as conn:
            row = conn.execute(f"SELECT * FROM {_COLS.table} WHERE {_COLS.id} = ?", (todo_id,)).fetchone()
            return self._row_to_entity(row) if row else None

    def list(self, query: Optional[ListQuery] = None) -> List[TodoEntity]:
        q = query or ListQuery()
        clauses = []
        params: list = []

        if q.status is not None:
            clauses.append(f"{_COLS.status} = ?")
            params.append(TodoStatus(q.status).value)

        if q.due_before is not None:
            clauses.append(f"{_COLS.due_datetime} < ?")
            params.append(_fmt(q.due_before))

        where_sql = f"WHERE {' AND '.join(clauses)}" if clauses else ""

        with self._conn() as conn:
            rows = conn.execute(
                f"""
                SELECT * FROM {_COLS.table}
                {where_sql}
                ORDER BY {_COLS.creation_datetime} ASC
                """,
                params,
            ).fetchall()
            return [self._row_to_entity(r) for r in rows]

    def save(self, entity: TodoEntity) -> TodoEntity:
        with self._conn() as conn:
            conn.execute(self._UPSERT_SQL, self._entity_params(entity))
        return entity.copy()

    def save_many(self, entities: Iterable[TodoEntity]) -> List[TodoEntity]:
        batch = list(entities)
        with self._conn() as conn:
            conn.executemany(self._UPSERT_SQL, [self._entity_params(e) for e in batch])
        return [e.copy() for e in batch]

    def ping(self) -> bool:
        try:
            with self._conn() as conn:
                conn.execute("SELECT 1").fetchone()
        except sqlite3.Error:
            logger.warning("SQLite ping failed for %s", self._db_path, exc_info=True)
            return False
        return True

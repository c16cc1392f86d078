from __future__ import annotations

import os
import sqlite3
from contextlib import contextmanager
from dataclasses import dataclass
from datetime import datetime
from threading import RLock
from typing import Generator, List, Optional
from uuid import UUID

from .errors import MultipleMatches, PersistenceError
from .log import get_logger
from .models import Category, DiaryEntry, Entity, EntityKind, TodoItem
from .repositories import TODO_ORDER, RecordStore, SortSpec

logger = get_logger(__name__)


@dataclass(frozen=True)
class _Table:
    name: str
    columns: tuple


_DIARY = _Table("diary_entries", ("id", "day_key", "content", "timestamp"))
_TODOS = _Table(
    "todo_items",
    ("id", "day_key", "title", "is_completed", "category", "due_date", "created_at"),
)
_TABLES = {DiaryEntry: _DIARY, TodoItem: _TODOS}


def _dt(value: Optional[datetime]) -> Optional[str]:
    return value.isoformat() if value is not None else None


def _parse_dt(value: Optional[str]) -> Optional[datetime]:
    if value is None:
        return None
    return datetime.fromisoformat(value)


class SQLiteRecordStore(RecordStore):
    """
    SQLite-backed record store.

    A single connection is kept open; writes accumulate in the open transaction
    until ``persist()`` commits them.
    """

    def __init__(self, db_path: str) -> None:
        os.makedirs(os.path.dirname(db_path) or ".", exist_ok=True)
        self._db_path = db_path
        self._lock = RLock()
        try:
            self._connection = sqlite3.connect(db_path, check_same_thread=False)
        except sqlite3.Error as e:
            raise PersistenceError(f"Cannot open database {db_path}: {e}") from e
        self._connection.row_factory = sqlite3.Row
        self._init_db()

    @contextmanager
    def _conn(self, operation: str) -> Generator[sqlite3.Connection, None, None]:
        with self._lock:
            try:
                yield self._connection
            except sqlite3.Error as e:
                logger.error("sqlite_operation_failed", operation=operation, error=str(e))
                raise PersistenceError(f"{operation} failed: {e}") from e

    def _init_db(self) -> None:
        with self._conn("init") as conn:
            conn.execute(
                f"""
                CREATE TABLE IF NOT EXISTS {_DIARY.name} (
                    id TEXT PRIMARY KEY,
                    day_key TEXT NOT NULL,
                    content TEXT NOT NULL,
                    timestamp TEXT NOT NULL
                )
                """
            )
            conn.execute(
                f"CREATE UNIQUE INDEX IF NOT EXISTS idx_{_DIARY.name}_day_key ON {_DIARY.name}(day_key)"
            )
            conn.execute(
                f"""
                CREATE TABLE IF NOT EXISTS {_TODOS.name} (
                    id TEXT PRIMARY KEY,
                    day_key TEXT NOT NULL,
                    title TEXT NOT NULL,
                    is_completed INTEGER NOT NULL DEFAULT 0,
                    category TEXT NOT NULL,
                    due_date TEXT NULL,
                    created_at TEXT NOT NULL
                )
                """
            )
            conn.execute(
                f"CREATE INDEX IF NOT EXISTS idx_{_TODOS.name}_day_key ON {_TODOS.name}(day_key)"
            )
            conn.commit()

    def _table(self, kind: EntityKind) -> _Table:
        try:
            return _TABLES[kind]
        except KeyError:
            raise TypeError(f"Unsupported entity kind: {kind!r}") from None

    def _to_row(self, entity: Entity) -> tuple:
        if isinstance(entity, DiaryEntry):
            return (str(entity.id), entity.day_key, entity.content, _dt(entity.timestamp))
        return (
            str(entity.id),
            entity.day_key,
            entity.title,
            1 if entity.is_completed else 0,
            entity.category.value,
            _dt(entity.due_date),
            _dt(entity.created_at),
        )

    def _row_to_entity(self, kind: EntityKind, row: sqlite3.Row) -> Entity:
        if kind is DiaryEntry:
            return DiaryEntry(
                id=UUID(row["id"]),
                day_key=str(row["day_key"]),
                content=str(row["content"]),
                timestamp=_parse_dt(row["timestamp"]),  # type: ignore[arg-type]
            )
        return TodoItem(
            id=UUID(row["id"]),
            day_key=str(row["day_key"]),
            title=str(row["title"]),
            is_completed=bool(row["is_completed"]),
            category=Category(row["category"]),
            due_date=_parse_dt(row["due_date"]),
            created_at=_parse_dt(row["created_at"]),  # type: ignore[arg-type]
        )

    def _order_sql(self, table: _Table, sort: SortSpec) -> str:
        parts = []
        for name, ascending in sort.keys:
            if name not in table.columns:
                raise ValueError(f"Cannot sort {table.name} by {name!r}")
            parts.append(f"{name} {'ASC' if ascending else 'DESC'}")
        return f"ORDER BY {', '.join(parts)}" if parts else ""

    def upsert(self, entity: Entity) -> None:
        table = self._table(type(entity))
        cols = ", ".join(table.columns)
        marks = ", ".join("?" for _ in table.columns)
        updates = ", ".join(f"{c} = excluded.{c}" for c in table.columns if c != "id")
        with self._conn("upsert") as conn:
            conn.execute(
                f"""
                INSERT INTO {table.name} ({cols}) VALUES ({marks})
                ON CONFLICT(id) DO UPDATE SET {updates}
                """,
                self._to_row(entity),
            )

    def find_one_by_day_key(self, kind: EntityKind, day_key: str) -> Optional[Entity]:
        table = self._table(kind)
        with self._conn("find_one_by_day_key") as conn:
            rows = conn.execute(
                f"SELECT * FROM {table.name} WHERE day_key = ? LIMIT 2", (day_key,)
            ).fetchall()
        if len(rows) > 1:
            count = self._count(table, day_key)
            raise MultipleMatches(kind.__name__, day_key, count)
        return self._row_to_entity(kind, rows[0]) if rows else None

    def _count(self, table: _Table, day_key: str) -> int:
        with self._conn("count") as conn:
            row = conn.execute(
                f"SELECT COUNT(*) AS cnt FROM {table.name} WHERE day_key = ?", (day_key,)
            ).fetchone()
        return int(row["cnt"]) if row else 0

    def find_all_by_day_key(self, kind: EntityKind, day_key: str, sort: SortSpec = TODO_ORDER) -> List[Entity]:
        table = self._table(kind)
        order_sql = self._order_sql(table, sort)
        with self._conn("find_all_by_day_key") as conn:
            rows = conn.execute(
                f"SELECT * FROM {table.name} WHERE day_key = ? {order_sql}", (day_key,)
            ).fetchall()
        return [self._row_to_entity(kind, r) for r in rows]

    def delete(self, entity: Entity) -> None:
        table = self._table(type(entity))
        with self._conn("delete") as conn:
            conn.execute(f"DELETE FROM {table.name} WHERE id = ?", (str(entity.id),))

    def delete_many(self, entities) -> None:
        with self._conn("delete_many") as conn:
            for entity in entities:
                table = self._table(type(entity))
                conn.execute(f"DELETE FROM {table.name} WHERE id = ?", (str(entity.id),))

    def persist(self) -> None:
        with self._lock:
            try:
                self._connection.commit()
            except sqlite3.Error as e:
                self._connection.rollback()
                logger.error("sqlite_commit_failed", path=self._db_path, error=str(e))
                raise PersistenceError(f"Commit to {self._db_path} failed: {e}") from e

    def rollback(self) -> None:
        with self._conn("rollback") as conn:
            conn.rollback()

    def close(self) -> None:
        with self._lock:
            self._connection.close()

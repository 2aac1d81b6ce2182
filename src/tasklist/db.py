from __future__ import annotations

import json
import logging
import os
import sqlite3
from abc import ABC, abstractmethod
from contextlib import contextmanager
from dataclasses import dataclass
from datetime import datetime
from typing import Generator, List, Optional

from .models import TagEntity, TodoEntity
from .repositories import (
    Repository,
    TagNameConflictError,
    TagRepository,
    initial_status_fields,
    resolve_status_fields,
)
from .schemas import TagCreate, TagUpdate, TodoCreate, TodoUpdate, parse_timestamp

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class _Cols:
    table: str = "todos"
    id: str = "id"
    title: str = "title"
    description: str = "description"
    priority: str = "priority"
    status: str = "status"
    tags: str = "tags"
    image_paths: str = "image_paths"
    completed_at: str = "completed_at"
    created_at: str = "created_at"
    updated_at: str = "updated_at"


_COLS = _Cols()
_TAGS_TABLE = "tags"


def _iso(value: Optional[datetime]) -> Optional[str]:
    return value.isoformat() if value else None


def _json_list(row: sqlite3.Row, column: str) -> List[str]:
    raw = row[column]
    try:
        value = json.loads(raw or "[]")
    except ValueError:
        value = None
    if not isinstance(value, list):
        logger.warning("Todo %s has an unreadable %s %r", row[_COLS.id], column, raw)
        return []
    return value


class _SQLiteBase(ABC):
    def __init__(self, db_path: str) -> None:
        os.makedirs(os.path.dirname(db_path) or ".", exist_ok=True)
        self._db_path = db_path
        self._init_db()

    @contextmanager
    def _conn(self) -> Generator[sqlite3.Connection, None, None]:
        conn = sqlite3.connect(self._db_path)
        conn.row_factory = sqlite3.Row
        try:
            yield conn
            conn.commit()
        finally:
            conn.close()

    @abstractmethod
    def _init_db(self) -> None:
        """Create the table this store reads and writes."""


class SQLiteRepository(_SQLiteBase, Repository):
    """
    Lightweight SQLite repository implementing the Repository interface.
    Tag names and image paths are stored as JSON arrays.
    """

    def _init_db(self) -> None:
        with self._conn() as conn:
            conn.execute(
                f"""
                CREATE TABLE IF NOT EXISTS {_COLS.table} (
                    {_COLS.id} INTEGER PRIMARY KEY AUTOINCREMENT,
                    {_COLS.title} TEXT NOT NULL,
                    {_COLS.description} TEXT NULL,
                    {_COLS.priority} INTEGER NOT NULL DEFAULT 1,
                    {_COLS.status} INTEGER NOT NULL DEFAULT 0,
                    {_COLS.tags} TEXT NOT NULL DEFAULT '[]',
                    {_COLS.image_paths} TEXT NOT NULL DEFAULT '[]',
                    {_COLS.completed_at} TEXT NULL,
                    {_COLS.created_at} TEXT NOT NULL,
                    {_COLS.updated_at} TEXT NOT NULL
                )
                """
            )
            conn.execute(
                f"CREATE INDEX IF NOT EXISTS idx_{_COLS.table}_status ON {_COLS.table}({_COLS.status})"
            )

    def _row_to_entity(self, row: sqlite3.Row) -> TodoEntity:
        try:
            completed_at = parse_timestamp(row[_COLS.completed_at])
        except ValueError:
            logger.warning("Todo %s has an unreadable completed_at %r", row[_COLS.id], row[_COLS.completed_at])
            completed_at = None

        return {
            "id": int(row[_COLS.id]),
            "title": str(row[_COLS.title]),
            "description": row[_COLS.description] if row[_COLS.description] is not None else None,
            "priority": int(row[_COLS.priority]),
            "status": int(row[_COLS.status]),
            "tags": _json_list(row, _COLS.tags),
            "image_paths": _json_list(row, _COLS.image_paths),
            "completed_at": completed_at,
            "created_at": datetime.fromisoformat(row[_COLS.created_at]),
            "updated_at": datetime.fromisoformat(row[_COLS.updated_at]),
        }

    def _fetch(self, conn: sqlite3.Connection, todo_id: int) -> Optional[sqlite3.Row]:
        return conn.execute(f"SELECT * FROM {_COLS.table} WHERE {_COLS.id} = ?", (todo_id,)).fetchone()

    def create(self, data: TodoCreate, created_at: Optional[datetime] = None) -> TodoEntity:
        now = datetime.now()
        created = created_at or now
        status_fields = initial_status_fields(data, created)
        with self._conn() as conn:
            cur = conn.execute(
                f"""
                INSERT INTO {_COLS.table} ({_COLS.title}, {_COLS.description}, {_COLS.priority},
                    {_COLS.status}, {_COLS.tags}, {_COLS.image_paths}, {_COLS.completed_at},
                    {_COLS.created_at}, {_COLS.updated_at})
                VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?)
                """,
                (
                    data.title,
                    data.description,
                    int(data.priority),
                    int(status_fields["status"]),
                    json.dumps(data.tags, ensure_ascii=False),
                    json.dumps(data.image_paths, ensure_ascii=False),
                    _iso(status_fields["completed_at"]),
                    created.isoformat(),
                    now.isoformat(),
                ),
            )
            row = self._fetch(conn, cur.lastrowid)
            assert row is not None
            entity = self._row_to_entity(row)
        logger.info("Created todo %s", entity["id"])
        return entity

    def get(self, todo_id: int) -> Optional[TodoEntity]:
        with self._conn() as conn:
            row = self._fetch(conn, todo_id)
            return self._row_to_entity(row) if row else None

    def update(self, todo_id: int, data: TodoUpdate) -> Optional[TodoEntity]:
        with self._conn() as conn:
            row = self._fetch(conn, todo_id)
            if not row:
                return None
            current = self._row_to_entity(row)

            fields = data.model_fields_set
            title = data.title if data.title is not None else current["title"]
            description = data.description if "description" in fields else current["description"]
            priority = int(data.priority) if data.priority is not None else current["priority"]
            tags = data.tags if data.tags is not None else current["tags"]
            image_paths = data.image_paths if data.image_paths is not None else current["image_paths"]
            status = current["status"]
            completed_at = current["completed_at"]
            patch = resolve_status_fields(current, data)
            if patch is not None:
                status = int(patch["status"])
                completed_at = patch["completed_at"]

            conn.execute(
                f"""
                UPDATE {_COLS.table}
                SET {_COLS.title} = ?, {_COLS.description} = ?, {_COLS.priority} = ?, {_COLS.status} = ?,
                    {_COLS.tags} = ?, {_COLS.image_paths} = ?, {_COLS.completed_at} = ?, {_COLS.updated_at} = ?
                WHERE {_COLS.id} = ?
                """,
                (
                    title,
                    description,
                    priority,
                    status,
                    json.dumps(tags, ensure_ascii=False),
                    json.dumps(image_paths, ensure_ascii=False),
                    _iso(completed_at),
                    datetime.now().isoformat(),
                    todo_id,
                ),
            )
            row2 = self._fetch(conn, todo_id)
            assert row2 is not None
            entity = self._row_to_entity(row2)
        logger.info("Updated todo %s", todo_id)
        return entity

    def delete(self, todo_id: int) -> bool:
        with self._conn() as conn:
            cur = conn.execute(f"DELETE FROM {_COLS.table} WHERE {_COLS.id} = ?", (todo_id,))
            removed = cur.rowcount > 0
        if removed:
            logger.info("Deleted todo %s", todo_id)
        return removed

    def all(self) -> List[TodoEntity]:
        with self._conn() as conn:
            rows = conn.execute(f"SELECT * FROM {_COLS.table} ORDER BY {_COLS.id}").fetchall()
            return [self._row_to_entity(r) for r in rows]


class SQLiteTagRepository(_SQLiteBase, TagRepository):
    """SQLite tag store; names are unique."""

    def _init_db(self) -> None:
        with self._conn() as conn:
            conn.execute(
                f"""
                CREATE TABLE IF NOT EXISTS {_TAGS_TABLE} (
                    id INTEGER PRIMARY KEY AUTOINCREMENT,
                    name TEXT NOT NULL UNIQUE,
                    color TEXT NOT NULL,
                    created_at TEXT NOT NULL
                )
                """
            )

    def _row_to_entity(self, row: sqlite3.Row) -> TagEntity:
        return {
            "id": int(row["id"]),
            "name": str(row["name"]),
            "color": str(row["color"]),
            "created_at": datetime.fromisoformat(row["created_at"]),
        }

    def _fetch_by_name(self, conn: sqlite3.Connection, name: str) -> Optional[sqlite3.Row]:
        return conn.execute(f"SELECT * FROM {_TAGS_TABLE} WHERE name = ?", (name,)).fetchone()

    def create(self, data: TagCreate) -> TagEntity:
        with self._conn() as conn:
            row = self._fetch_by_name(conn, data.name)
            if row is None:
                cur = conn.execute(
                    f"INSERT INTO {_TAGS_TABLE} (name, color, created_at) VALUES (?, ?, ?)",
                    (data.name, data.color, datetime.now().isoformat()),
                )
                row = conn.execute(f"SELECT * FROM {_TAGS_TABLE} WHERE id = ?", (cur.lastrowid,)).fetchone()
                logger.info("Created tag %r", data.name)
            return self._row_to_entity(row)

    def get(self, tag_id: int) -> Optional[TagEntity]:
        with self._conn() as conn:
            row = conn.execute(f"SELECT * FROM {_TAGS_TABLE} WHERE id = ?", (tag_id,)).fetchone()
            return self._row_to_entity(row) if row else None

    def get_by_name(self, name: str) -> Optional[TagEntity]:
        with self._conn() as conn:
            row = self._fetch_by_name(conn, name.strip())
            return self._row_to_entity(row) if row else None

    def update(self, tag_id: int, data: TagUpdate) -> Optional[TagEntity]:
        with self._conn() as conn:
            row = conn.execute(f"SELECT * FROM {_TAGS_TABLE} WHERE id = ?", (tag_id,)).fetchone()
            if not row:
                return None
            current = self._row_to_entity(row)
            if data.name is not None:
                clash = self._fetch_by_name(conn, data.name)
                if clash is not None and int(clash["id"]) != tag_id:
                    raise TagNameConflictError(f"Tag name already exists: {data.name}")
            conn.execute(
                f"UPDATE {_TAGS_TABLE} SET name = ?, color = ? WHERE id = ?",
                (data.name or current["name"], data.color or current["color"], tag_id),
            )
            row2 = conn.execute(f"SELECT * FROM {_TAGS_TABLE} WHERE id = ?", (tag_id,)).fetchone()
            return self._row_to_entity(row2)

    def delete(self, tag_id: int) -> bool:
        with self._conn() as conn:
            cur = conn.execute(f"DELETE FROM {_TAGS_TABLE} WHERE id = ?", (tag_id,))
            return cur.rowcount > 0

    def all(self) -> List[TagEntity]:
        with self._conn() as conn:
            rows = conn.execute(f"SELECT * FROM {_TAGS_TABLE} ORDER BY id").fetchall()
            return [self._row_to_entity(r) for r in rows]

from __future__ import annotations

import logging
import os
import sqlite3
import uuid
from contextlib import contextmanager
from dataclasses import dataclass
from datetime import datetime
from typing import Dict, Generator, List, Optional

from .errors import ConflictError, NotFoundError, StoreError, require_text
from .models import ListEntity, TaskEntity
from .repositories import ListStore

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class _ListCols:
    table: str = "lists"
    id: str = "id"
    name: str = "name"
    version: str = "version"
    created_at: str = "created_at"
    updated_at: str = "updated_at"


@dataclass(frozen=True)
class _TaskCols:
    table: str = "tasks"
    id: str = "id"
    list_id: str = "list_id"
    position: str = "position"
    text: str = "text"
    completed: str = "completed"
    order: str = "sort_order"
    created_at: str = "created_at"
    updated_at: str = "updated_at"


_L = _ListCols()
_T = _TaskCols()


def _parse_dt(s: str) -> datetime:
    return datetime.fromisoformat(s)


class SQLiteListStore(ListStore):
    """
    SQLite store implementing the ListStore interface.

    Lists and tasks live in separate tables; each task row carries the id of
    its owning list and its position in the list's sequence. save() rewrites
    the task rows of one list inside a single transaction, guarded by a
    compare-and-swap on the list's version column.
    """

    backend_name = "sqlite"

    def __init__(self, db_path: str) -> None:
        os.makedirs(os.path.dirname(db_path) or ".", exist_ok=True)
        self._db_path = db_path
        self._init_db()

    @contextmanager
    def _conn(self) -> Generator[sqlite3.Connection, None, None]:
        try:
            conn = sqlite3.connect(self._db_path)
        except sqlite3.Error as e:
            raise StoreError(f"Could not open database: {e}") from e
        conn.row_factory = sqlite3.Row
        try:
            conn.execute("PRAGMA foreign_keys = ON")
            yield conn
            conn.commit()
        except sqlite3.Error as e:
            logger.error("SQLite operation failed: %s", e)
            raise StoreError(f"Database error: {e}") from e
        finally:
            # Uncommitted work is discarded on close
            conn.close()

    def _init_db(self) -> None:
        with self._conn() as conn:
            conn.execute(
                f"""
                CREATE TABLE IF NOT EXISTS {_L.table} (
                    {_L.id} TEXT PRIMARY KEY,
                    {_L.name} TEXT NOT NULL,
                    {_L.version} INTEGER NOT NULL DEFAULT 1,
                    {_L.created_at} TEXT NOT NULL,
                    {_L.updated_at} TEXT NOT NULL
                )
                """
            )
            conn.execute(
                f"""
                CREATE TABLE IF NOT EXISTS {_T.table} (
                    {_T.id} TEXT NOT NULL,
                    {_T.list_id} TEXT NOT NULL REFERENCES {_L.table}({_L.id}) ON DELETE CASCADE,
                    {_T.position} INTEGER NOT NULL,
                    {_T.text} TEXT NOT NULL,
                    {_T.completed} INTEGER NOT NULL DEFAULT 0,
                    {_T.order} INTEGER NOT NULL DEFAULT 0,
                    {_T.created_at} TEXT NOT NULL,
                    {_T.updated_at} TEXT NOT NULL,
                    PRIMARY KEY ({_T.list_id}, {_T.id})
                )
                """
            )
            conn.execute(
                f"CREATE INDEX IF NOT EXISTS idx_{_T.table}_list_position "
                f"ON {_T.table}({_T.list_id}, {_T.position})"
            )

    def _row_to_task(self, row: sqlite3.Row) -> TaskEntity:
        return {
            "id": str(row[_T.id]),
            "text": str(row[_T.text]),
            "completed": bool(row[_T.completed]),
            "order": int(row[_T.order]),
            "created_at": _parse_dt(row[_T.created_at]),
            "updated_at": _parse_dt(row[_T.updated_at]),
        }

    def _row_to_list(self, row: sqlite3.Row, tasks: List[TaskEntity]) -> ListEntity:
        return {
            "id": str(row[_L.id]),
            "name": str(row[_L.name]),
            "tasks": tasks,
            "version": int(row[_L.version]),
            "created_at": _parse_dt(row[_L.created_at]),
            "updated_at": _parse_dt(row[_L.updated_at]),
        }

    def _fetch(self, conn: sqlite3.Connection, list_id: str) -> Optional[ListEntity]:
        row = conn.execute(f"SELECT * FROM {_L.table} WHERE {_L.id} = ?", (list_id,)).fetchone()
        if row is None:
            return None
        task_rows = conn.execute(
            f"SELECT * FROM {_T.table} WHERE {_T.list_id} = ? ORDER BY {_T.position}",
            (list_id,),
        ).fetchall()
        return self._row_to_list(row, [self._row_to_task(r) for r in task_rows])

    def list_all(self) -> List[ListEntity]:
        with self._conn() as conn:
            list_rows = conn.execute(f"SELECT * FROM {_L.table}").fetchall()
            task_rows = conn.execute(
                f"SELECT * FROM {_T.table} ORDER BY {_T.list_id}, {_T.position}"
            ).fetchall()
        by_list: Dict[str, List[TaskEntity]] = {}
        for r in task_rows:
            by_list.setdefault(str(r[_T.list_id]), []).append(self._row_to_task(r))
        return [self._row_to_list(r, by_list.get(str(r[_L.id]), [])) for r in list_rows]

    def create(self, name: Optional[str]) -> ListEntity:
        clean = require_text(name, "name")
        now = self._now().isoformat()
        list_id = uuid.uuid4().hex
        with self._conn() as conn:
            conn.execute(
                f"""
                INSERT INTO {_L.table} ({_L.id}, {_L.name}, {_L.version}, {_L.created_at}, {_L.updated_at})
                VALUES (?, ?, 1, ?, ?)
                """,
                (list_id, clean, now, now),
            )
            created = self._fetch(conn, list_id)
            assert created is not None
            return created

    def get(self, list_id: str) -> ListEntity:
        with self._conn() as conn:
            found = self._fetch(conn, list_id)
        if found is None:
            raise NotFoundError("List not found")
        return found

    def rename(self, list_id: str, name: Optional[str]) -> ListEntity:
        with self._conn() as conn:
            cur = conn.execute(
                f"""
                UPDATE {_L.table}
                SET {_L.name} = COALESCE(?, {_L.name}), {_L.version} = {_L.version} + 1,
                    {_L.updated_at} = ?
                WHERE {_L.id} = ?
                """,
                (name, self._now().isoformat(), list_id),
            )
            if cur.rowcount == 0:
                raise NotFoundError("List not found")
            renamed = self._fetch(conn, list_id)
            assert renamed is not None
            return renamed

    def delete(self, list_id: str) -> bool:
        with self._conn() as conn:
            conn.execute(f"DELETE FROM {_T.table} WHERE {_T.list_id} = ?", (list_id,))
            cur = conn.execute(f"DELETE FROM {_L.table} WHERE {_L.id} = ?", (list_id,))
            return cur.rowcount > 0

    def save(self, entity: ListEntity) -> ListEntity:
        list_id = entity["id"]
        with self._conn() as conn:
            cur = conn.execute(
                f"""
                UPDATE {_L.table}
                SET {_L.name} = ?, {_L.version} = {_L.version} + 1, {_L.updated_at} = ?
                WHERE {_L.id} = ? AND {_L.version} = ?
                """,
                (entity["name"], self._now().isoformat(), list_id, entity["version"]),
            )
            if cur.rowcount == 0:
                exists = conn.execute(
                    f"SELECT 1 FROM {_L.table} WHERE {_L.id} = ?", (list_id,)
                ).fetchone()
                if exists is None:
                    raise NotFoundError("List not found")
                raise ConflictError("List was modified by another request; reload and retry")

            conn.execute(f"DELETE FROM {_T.table} WHERE {_T.list_id} = ?", (list_id,))
            conn.executemany(
                f"""
                INSERT INTO {_T.table} ({_T.id}, {_T.list_id}, {_T.position}, {_T.text},
                    {_T.completed}, {_T.order}, {_T.created_at}, {_T.updated_at})
                VALUES (?, ?, ?, ?, ?, ?, ?, ?)
                """,
                [
                    (
                        t["id"],
                        list_id,
                        position,
                        t["text"],
                        1 if t["completed"] else 0,
                        t["order"],
                        t["created_at"].isoformat(),
                        t["updated_at"].isoformat(),
                    )
                    for position, t in enumerate(entity["tasks"])
                ],
            )
            saved = self._fetch(conn, list_id)
            assert saved is not None
            return saved

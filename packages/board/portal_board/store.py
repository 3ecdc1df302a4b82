"""
SQLite-backed document store.

Stores schemaless JSON documents grouped in named collections:
- projects: one document per project, its task list embedded as a field
- team_members: one document per team member

The store stamps ``createdAt`` / ``updatedAt`` and returns every document
with its ``id`` merged in. Writes are last-write-wins; there is no version
check.
"""

from __future__ import annotations

import json
import os
import re
import uuid
from datetime import datetime, timezone
from typing import Any, Iterable, Optional

import aiosqlite
import structlog

log = structlog.get_logger()

_SCHEMA = """
CREATE TABLE IF NOT EXISTS documents (
    collection  TEXT NOT NULL,
    doc_id      TEXT NOT NULL,
    data        TEXT NOT NULL,
    created_at  TEXT NOT NULL,
    updated_at  TEXT NOT NULL,
    PRIMARY KEY (collection, doc_id)
);

CREATE INDEX IF NOT EXISTS idx_documents_updated
    ON documents(collection, updated_at);
"""

_FIELD_RE = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")
_TIMESTAMP_COLUMNS = {"createdAt": "created_at", "updatedAt": "updated_at"}


class DocumentNotFound(LookupError):
    def __init__(self, collection: str, doc_id: str):
        super().__init__(f"{collection}/{doc_id} not found")
        self.collection = collection
        self.doc_id = doc_id


def _now() -> str:
    return datetime.now(timezone.utc).isoformat(timespec="microseconds")


def _field_expr(field: str) -> str:
    if field in _TIMESTAMP_COLUMNS:
        return _TIMESTAMP_COLUMNS[field]
    if not _FIELD_RE.match(field):
        raise ValueError(f"Invalid document field name: {field!r}")
    return f"json_extract(data, '$.{field}')"


class DocumentStore:
    """Async SQLite document store."""

    def __init__(self, db_path: str):
        self._db_path = db_path
        self._db: aiosqlite.Connection | None = None

    async def open(self) -> None:
        os.makedirs(os.path.dirname(self._db_path) or ".", exist_ok=True)
        self._db = await aiosqlite.connect(self._db_path)
        self._db.row_factory = aiosqlite.Row
        await self._db.executescript(_SCHEMA)
        await self._db.commit()

    async def close(self) -> None:
        if self._db:
            await self._db.close()
            self._db = None

    @staticmethod
    def _to_document(row: aiosqlite.Row) -> dict[str, Any]:
        doc = json.loads(row["data"])
        doc["id"] = row["doc_id"]
        doc["createdAt"] = row["created_at"]
        doc["updatedAt"] = row["updated_at"]
        return doc

    @staticmethod
    def _payload(data: dict[str, Any]) -> str:
        body = {k: v for k, v in data.items() if k not in ("id", "createdAt", "updatedAt")}
        return json.dumps(body)

    # --- reads ---

    async def get(self, collection: str, doc_id: str) -> dict[str, Any] | None:
        assert self._db
        cursor = await self._db.execute(
            "SELECT * FROM documents WHERE collection = ? AND doc_id = ?",
            (collection, doc_id),
        )
        row = await cursor.fetchone()
        return self._to_document(row) if row else None

    async def list(
        self,
        collection: str,
        where: Optional[dict[str, Any]] = None,
        order_by: Optional[str] = None,
        descending: bool = False,
    ) -> list[dict[str, Any]]:
        """List a collection, optionally filtered by field equality and ordered by one field."""
        assert self._db
        sql = "SELECT * FROM documents WHERE collection = ?"
        params: list[Any] = [collection]
        for field, value in (where or {}).items():
            sql += f" AND {_field_expr(field)} = ?"
            params.append(value)
        if order_by:
            sql += f" ORDER BY {_field_expr(order_by)} {'DESC' if descending else 'ASC'}"
        cursor = await self._db.execute(sql, params)
        rows = await cursor.fetchall()
        return [self._to_document(r) for r in rows]

    # --- writes ---

    async def add(self, collection: str, data: dict[str, Any]) -> str:
        assert self._db
        doc_id = uuid.uuid4().hex
        now = _now()
        await self._db.execute(
            """INSERT INTO documents (collection, doc_id, data, created_at, updated_at)
               VALUES (?, ?, ?, ?, ?)""",
            (collection, doc_id, self._payload(data), now, now),
        )
        await self._db.commit()
        return doc_id

    async def batch_add(self, collection: str, docs: Iterable[dict[str, Any]]) -> list[str]:
        """Insert several documents in one transaction; nothing is written if any insert fails."""
        assert self._db
        now = _now()
        rows = [(collection, uuid.uuid4().hex, self._payload(d), now, now) for d in docs]
        try:
            await self._db.executemany(
                """INSERT INTO documents (collection, doc_id, data, created_at, updated_at)
                   VALUES (?, ?, ?, ?, ?)""",
                rows,
            )
            await self._db.commit()
        except Exception:
            await self._db.rollback()
            raise
        return [r[1] for r in rows]

    async def update(self, collection: str, doc_id: str, fields: dict[str, Any]) -> None:
        """Shallow-merge ``fields`` into an existing document."""
        assert self._db
        current = await self.get(collection, doc_id)
        if current is None:
            raise DocumentNotFound(collection, doc_id)
        current.update(fields)
        await self._db.execute(
            "UPDATE documents SET data = ?, updated_at = ? WHERE collection = ? AND doc_id = ?",
            (self._payload(current), _now(), collection, doc_id),
        )
        await self._db.commit()

    async def delete(self, collection: str, doc_id: str) -> None:
        assert self._db
        await self._db.execute(
            "DELETE FROM documents WHERE collection = ? AND doc_id = ?",
            (collection, doc_id),
        )
        await self._db.commit()
        log.debug("store.deleted", collection=collection, doc_id=doc_id)

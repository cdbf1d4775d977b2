"""
Document store over SQLite.

Collections hold JSON documents keyed by id. Writes are atomic per
document; ``set(..., merge=True)`` keeps fields the caller did not pass.
The blocking sqlite calls run in worker threads so concurrent webhook
events never stall the event loop.
"""

import asyncio
import json
import uuid
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Tuple

from . import config
from .db import get_db, init_db, health_check as db_health_check
from ..util.logging import logger


class _ServerTimestamp:
    """Sentinel replaced by the write time when a document is stored."""

    def __repr__(self):
        return "SERVER_TIMESTAMP"


SERVER_TIMESTAMP = _ServerTimestamp()


def _utcnow() -> str:
    return datetime.now(timezone.utc).isoformat()


def _resolve_sentinels(data: Dict[str, Any], now: str) -> Dict[str, Any]:
    resolved = {}
    for key, value in data.items():
        if value is SERVER_TIMESTAMP:
            resolved[key] = now
        elif isinstance(value, dict):
            resolved[key] = _resolve_sentinels(value, now)
        else:
            resolved[key] = value
    return resolved


class DocumentStore:
    """Process-wide document store handle."""

    def __init__(self, db_path: Optional[str] = None, project_id: Optional[str] = None):
        credentials = config.get_store_credentials()
        self.db_path = db_path or config.DB_PATH
        self.project_id = project_id or credentials["project_id"]
        self.client_email = credentials["client_email"]
        init_db(self.db_path)
        logger.info(f"Document store ready (project={self.project_id}, account={self.client_email or 'local'}, path={self.db_path})")

    # Synchronous primitives, run via asyncio.to_thread

    def _get(self, collection: str, doc_id: str) -> Optional[Dict[str, Any]]:
        with get_db(self.db_path) as conn:
            cursor = conn.cursor()
            cursor.execute(
                "SELECT data FROM documents WHERE project_id = ? AND collection = ? AND doc_id = ?",
                (self.project_id, collection, doc_id)
            )
            row = cursor.fetchone()
            return json.loads(row[0]) if row else None

    def _set(self, collection: str, doc_id: str, data: Dict[str, Any], merge: bool) -> Dict[str, Any]:
        now = _utcnow()
        data = _resolve_sentinels(data, now)

        with get_db(self.db_path) as conn:
            cursor = conn.cursor()
            cursor.execute("BEGIN IMMEDIATE")
            try:
                cursor.execute(
                    "SELECT data FROM documents WHERE project_id = ? AND collection = ? AND doc_id = ?",
                    (self.project_id, collection, doc_id)
                )
                row = cursor.fetchone()

                if row:
                    stored = json.loads(row[0]) if merge else {}
                    stored.update(data)
                    cursor.execute(
                        "UPDATE documents SET data = ?, updated_at = ? WHERE project_id = ? AND collection = ? AND doc_id = ?",
                        (json.dumps(stored), now, self.project_id, collection, doc_id)
                    )
                else:
                    stored = dict(data)
                    cursor.execute(
                        "INSERT INTO documents (project_id, collection, doc_id, data, created_at, updated_at) VALUES (?, ?, ?, ?, ?, ?)",
                        (self.project_id, collection, doc_id, json.dumps(stored), now, now)
                    )
                cursor.execute("COMMIT")
            except Exception:
                cursor.execute("ROLLBACK")
                raise

        return stored

    def _add(self, collection: str, data: Dict[str, Any]) -> str:
        now = _utcnow()
        doc_id = uuid.uuid4().hex
        with get_db(self.db_path) as conn:
            conn.execute(
                "INSERT INTO documents (project_id, collection, doc_id, data, created_at, updated_at) VALUES (?, ?, ?, ?, ?, ?)",
                (self.project_id, collection, doc_id, json.dumps(_resolve_sentinels(data, now)), now, now)
            )
        return doc_id

    def _count(self, collection: str) -> int:
        with get_db(self.db_path) as conn:
            cursor = conn.cursor()
            cursor.execute(
                "SELECT COUNT(*) FROM documents WHERE project_id = ? AND collection = ?",
                (self.project_id, collection)
            )
            return cursor.fetchone()[0]

    def _list(self, collection: str, limit: int) -> List[Tuple[str, Dict[str, Any]]]:
        with get_db(self.db_path) as conn:
            cursor = conn.cursor()
            cursor.execute(
                "SELECT doc_id, data FROM documents WHERE project_id = ? AND collection = ? ORDER BY created_at, rowid LIMIT ?",
                (self.project_id, collection, limit)
            )
            return [(doc_id, json.loads(data)) for doc_id, data in cursor.fetchall()]

    # Async API used by the router

    async def get(self, collection: str, doc_id: str) -> Optional[Dict[str, Any]]:
        """Fetch one document, or None when it does not exist."""
        if not doc_id:
            return None
        return await asyncio.to_thread(self._get, collection, doc_id)

    async def set(self, collection: str, doc_id: str, data: Dict[str, Any], merge: bool = True) -> Dict[str, Any]:
        """Create or overwrite a document and return the stored fields."""
        stored = await asyncio.to_thread(self._set, collection, doc_id, data, merge)
        logger.debug(f"store.set {collection}/{doc_id} merge={merge}")
        return stored

    async def add(self, collection: str, data: Dict[str, Any]) -> str:
        """Append a document under a generated id and return the id."""
        doc_id = await asyncio.to_thread(self._add, collection, data)
        logger.debug(f"store.add {collection}/{doc_id}")
        return doc_id

    async def count(self, collection: str) -> int:
        return await asyncio.to_thread(self._count, collection)

    async def list(self, collection: str, limit: int = 100) -> List[Tuple[str, Dict[str, Any]]]:
        """List documents in creation order."""
        return await asyncio.to_thread(self._list, collection, limit)

    def _health_check(self) -> bool:
        return db_health_check(self.db_path)

    async def health_check(self) -> bool:
        return await asyncio.to_thread(self._health_check)

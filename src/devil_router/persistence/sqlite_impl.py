"""
SQLite Implementation of the Credential Repository
===================================================

- Async support via asyncio.to_thread
- Thread-local connection cache, closed as a whole by close()
- UNIQUE constraint on the credential name
"""

import asyncio
import logging
import sqlite3
import threading
from datetime import datetime
from pathlib import Path
from typing import Any

from .repositories import CredentialRecord, CredentialRepository

logger = logging.getLogger(__name__)


class _ConnectionPool:
    """
    Thread-local SQLite connection cache.

    Every connection is also registered centrally so ``close_all`` can
    release the ones opened by ``asyncio.to_thread`` workers. A connection
    is only ever used by the thread that opened it.
    """

    def __init__(self, db_path: Path):
        self._db_path = db_path
        self._local = threading.local()
        self._lock = threading.Lock()
        self._open: set[sqlite3.Connection] = set()

    def get(self) -> sqlite3.Connection:
        conn = getattr(self._local, 'conn', None)
        with self._lock:
            if conn is not None and conn in self._open:
                return conn
            # check_same_thread is off so close_all may close from any thread
            conn = sqlite3.connect(self._db_path, check_same_thread=False)
            conn.execute("PRAGMA journal_mode=WAL")
            conn.row_factory = sqlite3.Row
            self._open.add(conn)
        self._local.conn = conn
        return conn

    @property
    def open_count(self) -> int:
        with self._lock:
            return len(self._open)

    def close_all(self):
        with self._lock:
            conns, self._open = self._open, set()
        for conn in conns:
            conn.close()
        self._local.conn = None


class SQLiteCredentialRepository(CredentialRepository):
    """
    SQLite implementation of CredentialRepository.
    Mirrors the ``api_keys`` table of the chat application.
    """

    def __init__(self, db_path: Path | None = None):
        self.db_path = Path(db_path) if db_path else Path("data") / "credentials.db"
        self.db_path.parent.mkdir(parents=True, exist_ok=True)
        self._pool = _ConnectionPool(self.db_path)
        self._init_db()

    def _init_db(self):
        """Initialize database schema"""
        conn = self._pool.get()
        conn.execute("""
            CREATE TABLE IF NOT EXISTS api_keys (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                key_name TEXT NOT NULL UNIQUE,
                encrypted_value TEXT NOT NULL,
                model_id TEXT NOT NULL,
                created_at TEXT NOT NULL,
                updated_at TEXT NOT NULL,
                created_by TEXT NOT NULL
            )
        """)
        conn.commit()

    def close(self) -> None:
        self._pool.close_all()

    # ------------------------------------------------------------------
    # Private sync helpers (called via asyncio.to_thread)
    # ------------------------------------------------------------------

    @staticmethod
    def _row_to_record(row: sqlite3.Row) -> CredentialRecord:
        return CredentialRecord(
            name=row["key_name"],
            encrypted_secret=row["encrypted_value"],
            model_id=row["model_id"],
            created_at=datetime.fromisoformat(row["created_at"]) if row["created_at"] else None,
            updated_at=datetime.fromisoformat(row["updated_at"]) if row["updated_at"] else None,
            created_by=row["created_by"],
        )

    def _sync_get(self, name: str) -> CredentialRecord | None:
        conn = self._pool.get()
        row = conn.execute(
            """
            SELECT key_name, encrypted_value, model_id, created_at, updated_at, created_by
            FROM api_keys
            WHERE key_name = ?
            LIMIT 1
            """,
            (name,)
        ).fetchone()
        return self._row_to_record(row) if row else None

    def _sync_upsert(self, record: CredentialRecord) -> bool:
        conn = self._pool.get()
        now = datetime.now().isoformat()
        cursor = conn.execute(
            """
            UPDATE api_keys
            SET encrypted_value = ?, model_id = ?, updated_at = ?
            WHERE key_name = ?
            """,
            (record.encrypted_secret, record.model_id, now, record.name)
        )
        if cursor.rowcount > 0:
            conn.commit()
            return False

        created_at = record.created_at.isoformat() if record.created_at else now
        updated_at = record.updated_at.isoformat() if record.updated_at else now
        conn.execute(
            """
            INSERT INTO api_keys
                (key_name, encrypted_value, model_id, created_at, updated_at, created_by)
            VALUES (?, ?, ?, ?, ?, ?)
            """,
            (
                record.name,
                record.encrypted_secret,
                record.model_id,
                created_at,
                updated_at,
                record.created_by,
            )
        )
        conn.commit()
        return True

    def _sync_delete(self, name: str) -> bool:
        conn = self._pool.get()
        cursor = conn.execute("DELETE FROM api_keys WHERE key_name = ?", (name,))
        conn.commit()
        return cursor.rowcount > 0

    def _sync_list(self, limit: int | None, offset: int) -> list[CredentialRecord]:
        conn = self._pool.get()
        query = """
            SELECT key_name, encrypted_value, model_id, created_at, updated_at, created_by
            FROM api_keys
            ORDER BY key_name ASC
        """
        params: list[Any] = []
        if limit is not None:
            query += " LIMIT ? OFFSET ?"
            params.extend([limit, offset])
        elif offset:
            query += " LIMIT -1 OFFSET ?"
            params.append(offset)

        rows = conn.execute(query, params).fetchall()
        return [self._row_to_record(row) for row in rows]

    def _sync_count(self) -> int:
        conn = self._pool.get()
        return conn.execute("SELECT COUNT(*) FROM api_keys").fetchone()[0]

    # ------------------------------------------------------------------
    # Public async API
    # ------------------------------------------------------------------

    async def get(self, name: str) -> CredentialRecord | None:
        return await asyncio.to_thread(self._sync_get, name)

    async def upsert(self, record: CredentialRecord) -> bool:
        created = await asyncio.to_thread(self._sync_upsert, record)
        logger.info("%s credential %s", "Created" if created else "Updated", record.name)
        return created

    async def delete(self, name: str) -> bool:
        deleted = await asyncio.to_thread(self._sync_delete, name)
        if deleted:
            logger.info("Deleted credential %s", name)
        else:
            logger.warning("Credential %s not found for deletion", name)
        return deleted

    async def list_records(
        self,
        limit: int | None = None,
        offset: int = 0
    ) -> list[CredentialRecord]:
        return await asyncio.to_thread(self._sync_list, limit, offset)

    async def count(self) -> int:
        return await asyncio.to_thread(self._sync_count)

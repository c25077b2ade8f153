# src/cache/sqlite_repository.py — v2
"""SQLite-backed analysis repository (REPOSITORY_BACKEND=sqlite).

Uses stdlib sqlite3. The full record is stored as JSON in ``data``;
key and timestamp columns are duplicated for indexing and for the
UNIQUE(book_id, content_hash) upsert.
"""

from __future__ import annotations

import logging
import sqlite3
from datetime import datetime, timedelta
from pathlib import Path

from pydantic import ValidationError

from bookinsight.cache.base_repository import BaseAnalysisRepository
from bookinsight.cache.models import AnalysisRecord, AnalysisStats, utc_now

logger = logging.getLogger(__name__)

_SCHEMA = """
CREATE TABLE IF NOT EXISTS ai_book_analysis (
    id TEXT PRIMARY KEY,
    book_id INTEGER NOT NULL,
    content_hash TEXT NOT NULL,
    source TEXT NOT NULL,
    data TEXT NOT NULL,
    created_at TEXT NOT NULL,
    updated_at TEXT NOT NULL,
    last_accessed_at TEXT NOT NULL,
    UNIQUE (book_id, content_hash)
);
CREATE INDEX IF NOT EXISTS idx_ai_analysis_book_id ON ai_book_analysis(book_id);
CREATE INDEX IF NOT EXISTS idx_ai_analysis_last_accessed ON ai_book_analysis(last_accessed_at);
"""

_UPSERT = """
INSERT INTO ai_book_analysis
    (id, book_id, content_hash, source, data, created_at, updated_at, last_accessed_at)
VALUES (?, ?, ?, ?, ?, ?, ?, ?)
ON CONFLICT (book_id, content_hash) DO UPDATE SET
    source = excluded.source,
    data = excluded.data,
    updated_at = excluded.updated_at,
    last_accessed_at = excluded.last_accessed_at
"""


class SqliteAnalysisRepository(BaseAnalysisRepository):
    """SQLite-backed repository; ``":memory:"`` is accepted for tests."""

    def __init__(self, db_path: Path | str) -> None:
        if str(db_path) == ":memory:":
            target = ":memory:"
        else:
            path = Path(db_path).expanduser()
            path.parent.mkdir(parents=True, exist_ok=True)
            target = str(path)
        self._conn = sqlite3.connect(target)
        self._conn.execute("PRAGMA journal_mode=WAL")
        self._conn.executescript(_SCHEMA)

    async def find_latest(
        self, book_id: int, content_hash: str | None = None
    ) -> AnalysisRecord | None:
        query = "SELECT data, last_accessed_at FROM ai_book_analysis WHERE book_id = ?"
        params: tuple = (book_id,)
        if content_hash is not None:
            query += " AND content_hash = ?"
            params = (book_id, content_hash)
        query += " ORDER BY created_at DESC LIMIT 1"

        row = self._conn.execute(query, params).fetchone()
        if row is None:
            return None
        return self._row_to_record(row[0], row[1])

    async def upsert(self, record: AnalysisRecord) -> AnalysisRecord:
        existing = self._conn.execute(
            "SELECT id, created_at FROM ai_book_analysis "
            "WHERE book_id = ? AND content_hash = ?",
            (record.book_id, record.content_hash),
        ).fetchone()
        if existing is not None:
            record = record.model_copy(
                update={
                    "id": existing[0],
                    "created_at": datetime.fromisoformat(existing[1]),
                    "updated_at": utc_now(),
                }
            )
            logger.debug(
                "Upsert conflict on book %d, updating record %s in place",
                record.book_id, record.id,
            )

        with self._conn:
            self._conn.execute(
                _UPSERT,
                (
                    record.id,
                    record.book_id,
                    record.content_hash,
                    record.source,
                    record.model_dump_json(),
                    record.created_at.isoformat(),
                    record.updated_at.isoformat(),
                    record.last_accessed_at.isoformat(),
                ),
            )
        return record

    async def touch_accessed(self, record_id: str) -> None:
        with self._conn:
            self._conn.execute(
                "UPDATE ai_book_analysis SET last_accessed_at = ? WHERE id = ?",
                (utc_now().isoformat(), record_id),
            )

    async def delete_all(self, book_id: int) -> int:
        with self._conn:
            cursor = self._conn.execute(
                "DELETE FROM ai_book_analysis WHERE book_id = ?", (book_id,)
            )
        return cursor.rowcount

    async def delete(self, record_id: str) -> bool:
        with self._conn:
            cursor = self._conn.execute(
                "DELETE FROM ai_book_analysis WHERE id = ?", (record_id,)
            )
        return cursor.rowcount > 0

    async def cleanup_older_than(self, days: int) -> int:
        cutoff = (utc_now() - timedelta(days=days)).isoformat()
        with self._conn:
            cursor = self._conn.execute(
                "DELETE FROM ai_book_analysis WHERE last_accessed_at < ?", (cutoff,)
            )
        if cursor.rowcount:
            logger.info("Removed %d analyses idle for %d+ days", cursor.rowcount, days)
        return cursor.rowcount

    async def stats(self) -> AnalysisStats:
        recent_cutoff = (utc_now() - timedelta(days=7)).isoformat()
        row = self._conn.execute(
            """SELECT COUNT(*),
                      SUM(CASE WHEN created_at >= ? THEN 1 ELSE 0 END),
                      COUNT(DISTINCT book_id),
                      SUM(CASE WHEN source = 'fallback' THEN 1 ELSE 0 END)
               FROM ai_book_analysis""",
            (recent_cutoff,),
        ).fetchone()
        return AnalysisStats(
            total_analyses=row[0] or 0,
            recent_analyses=row[1] or 0,
            unique_books=row[2] or 0,
            fallback_analyses=row[3] or 0,
        )

    def close(self) -> None:
        """Close the database connection."""
        self._conn.close()

    @staticmethod
    def _row_to_record(data: str, last_accessed_at: str) -> AnalysisRecord | None:
        try:
            record = AnalysisRecord.model_validate_json(data)
        except ValidationError as e:
            logger.warning("Failed to deserialize analysis record: %s", e)
            return None
        # touch_accessed only updates the column, not the JSON blob
        return record.model_copy(
            update={"last_accessed_at": datetime.fromisoformat(last_accessed_at)}
        )

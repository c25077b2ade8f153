# src/cache/json_repository.py — v2
"""JSON file-based analysis repository (REPOSITORY_BACKEND=json).

One file per record, named ``<book_id>_<content_hash>.json``; the file
name is the uniqueness key, so writing the same key overwrites in place.
"""

from __future__ import annotations

import json
import logging
from datetime import timedelta
from pathlib import Path

from pydantic import ValidationError

from bookinsight.cache.base_repository import BaseAnalysisRepository
from bookinsight.cache.models import AnalysisRecord, AnalysisStats, utc_now

logger = logging.getLogger(__name__)


class JsonAnalysisRepository(BaseAnalysisRepository):
    """File-based repository, suitable for single-process deployments."""

    def __init__(self, root: Path | str) -> None:
        self._root = Path(root).expanduser()
        self._root.mkdir(parents=True, exist_ok=True)

    async def find_latest(
        self, book_id: int, content_hash: str | None = None
    ) -> AnalysisRecord | None:
        if content_hash is not None:
            return self._read(self._record_path(book_id, content_hash))
        records = [r for r in self._iter_records() if r.book_id == book_id]
        if not records:
            return None
        return max(records, key=lambda r: r.created_at)

    async def upsert(self, record: AnalysisRecord) -> AnalysisRecord:
        path = self._record_path(record.book_id, record.content_hash)
        existing = self._read(path)
        if existing is not None:
            record = record.model_copy(
                update={
                    "id": existing.id,
                    "created_at": existing.created_at,
                    "updated_at": utc_now(),
                }
            )
        self._write(path, record)
        return record

    async def touch_accessed(self, record_id: str) -> None:
        for path, record in self._iter_paths_and_records():
            if record.id == record_id:
                self._write(path, record.model_copy(update={"last_accessed_at": utc_now()}))
                return

    async def delete_all(self, book_id: int) -> int:
        removed = 0
        for path in self._root.glob(f"{book_id}_*.json"):
            path.unlink()
            removed += 1
        return removed

    async def delete(self, record_id: str) -> bool:
        for path, record in self._iter_paths_and_records():
            if record.id == record_id:
                path.unlink()
                return True
        return False

    async def cleanup_older_than(self, days: int) -> int:
        cutoff = utc_now() - timedelta(days=days)
        removed = 0
        for path, record in self._iter_paths_and_records():
            if record.last_accessed_at < cutoff:
                path.unlink()
                removed += 1
        return removed

    async def stats(self) -> AnalysisStats:
        records = list(self._iter_records())
        recent_cutoff = utc_now() - timedelta(days=7)
        return AnalysisStats(
            total_analyses=len(records),
            recent_analyses=sum(1 for r in records if r.created_at >= recent_cutoff),
            unique_books=len({r.book_id for r in records}),
            fallback_analyses=sum(1 for r in records if r.is_fallback),
        )

    # --- Internal helpers ---

    def _record_path(self, book_id: int, content_hash: str) -> Path:
        safe_hash = content_hash.replace("/", "_").replace("\\", "_")
        return self._root / f"{book_id}_{safe_hash}.json"

    def _read(self, path: Path) -> AnalysisRecord | None:
        if not path.exists():
            return None
        try:
            return AnalysisRecord.model_validate_json(path.read_text(encoding="utf-8"))
        except (ValidationError, json.JSONDecodeError) as e:
            logger.warning("Failed to read analysis record %s: %s", path.name, e)
            return None

    @staticmethod
    def _write(path: Path, record: AnalysisRecord) -> None:
        tmp = path.with_suffix(".tmp")
        tmp.write_text(record.model_dump_json(indent=2), encoding="utf-8")
        tmp.replace(path)

    def _iter_paths_and_records(self):
        for path in sorted(self._root.glob("*.json")):
            record = self._read(path)
            if record is not None:
                yield path, record

    def _iter_records(self):
        for _, record in self._iter_paths_and_records():
            yield record

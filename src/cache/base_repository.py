# src/cache/base_repository.py — v2
"""Abstract analysis repository interface.

Implementations must enforce uniqueness of ``(book_id, content_hash)``
through upsert-on-conflict: a second write for the same key updates the
existing row in place (last writer wins) instead of raising.
"""

from __future__ import annotations

from abc import ABC, abstractmethod

from bookinsight.cache.models import AnalysisRecord, AnalysisStats


class BaseAnalysisRepository(ABC):
    """Unified interface for analysis record storage backends."""

    @abstractmethod
    async def find_latest(
        self, book_id: int, content_hash: str | None = None
    ) -> AnalysisRecord | None:
        """Most recently created record for a book, optionally for one hash."""

    @abstractmethod
    async def upsert(self, record: AnalysisRecord) -> AnalysisRecord:
        """Insert or update in place by (book_id, content_hash).

        On conflict the existing ``id`` and ``created_at`` are kept and
        every derived field is replaced. Returns the stored record.
        """

    @abstractmethod
    async def touch_accessed(self, record_id: str) -> None:
        """Bump last_accessed_at to now."""

    @abstractmethod
    async def delete_all(self, book_id: int) -> int:
        """Delete every record of a book (all hashes). Returns count."""

    @abstractmethod
    async def delete(self, record_id: str) -> bool:
        """Delete one record by id."""

    @abstractmethod
    async def cleanup_older_than(self, days: int) -> int:
        """Delete records not accessed for ``days`` days. Returns count."""

    @abstractmethod
    async def stats(self) -> AnalysisStats:
        """Aggregate counters (total, last 7 days, unique books)."""

    def close(self) -> None:
        """Release backend resources."""

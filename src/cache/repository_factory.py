# src/cache/repository_factory.py — v2
"""Factory for analysis repository instantiation."""

from __future__ import annotations

from bookinsight.cache.base_repository import BaseAnalysisRepository
from bookinsight.config.settings import Settings


class UnsupportedBackendError(ValueError):
    """Raised when a storage backend name is not recognised."""


def create_repository(settings: Settings | None = None) -> BaseAnalysisRepository:
    """Instantiate the configured repository backend.

    Args:
        settings: Application settings. Defaults to SQLite under
            ``~/.bookinsight/analysis``.

    Returns:
        Configured BaseAnalysisRepository implementation.
    """
    backend = "sqlite" if settings is None else settings.repository_backend
    root = "~/.bookinsight/analysis" if settings is None else str(settings.repository_path)

    if backend == "sqlite":
        from bookinsight.cache.sqlite_repository import SqliteAnalysisRepository
        return SqliteAnalysisRepository(db_path=f"{root}/analysis.db")

    if backend == "json":
        from bookinsight.cache.json_repository import JsonAnalysisRepository
        return JsonAnalysisRepository(root=root)

    raise UnsupportedBackendError(f"Unsupported repository backend: {backend!r}")

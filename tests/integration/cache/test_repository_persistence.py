# tests/integration/cache/test_repository_persistence.py — v1
"""On-disk repositories: persistence across instances and idle cleanup."""

from __future__ import annotations

from datetime import timedelta

import pytest

from bookinsight.cache.models import AnalysisRecord, MindMapNode, utc_now
from bookinsight.cache.repository_factory import create_repository

pytestmark = pytest.mark.integration


def _record(book_id: int, content_hash: str, **overrides) -> AnalysisRecord:
    data = {
        "book_id": book_id,
        "content_hash": content_hash,
        "ai_model_used": "stub-model",
        "summary": f"Summary of {book_id}",
        "mind_map_tree": MindMapNode(name="Root"),
        "confidence": 0.8,
    }
    data.update(overrides)
    return AnalysisRecord(**data)


@pytest.fixture(params=["sqlite", "json"])
def backend_settings(request, settings):
    return settings.model_copy(update={"repository_backend": request.param})


@pytest.mark.asyncio
async def test_records_survive_reopen(backend_settings):
    repo = create_repository(backend_settings)
    try:
        stored = await repo.upsert(_record(1, "a" * 64))
    finally:
        repo.close()

    repo = create_repository(backend_settings)
    try:
        found = await repo.find_latest(1, "a" * 64)
    finally:
        repo.close()
    assert found is not None
    assert found.id == stored.id
    assert found.summary == "Summary of 1"


@pytest.mark.asyncio
async def test_upsert_same_key_keeps_single_row(backend_settings):
    repo = create_repository(backend_settings)
    try:
        first = await repo.upsert(_record(1, "b" * 64, summary="v1"))
        second = await repo.upsert(_record(1, "b" * 64, summary="v2"))
        stats = await repo.stats()
        found = await repo.find_latest(1, "b" * 64)
    finally:
        repo.close()

    assert second.id == first.id
    assert second.created_at == first.created_at
    assert stats.total_analyses == 1
    assert found.summary == "v2"


@pytest.mark.asyncio
async def test_cleanup_removes_only_idle(backend_settings):
    idle = utc_now() - timedelta(days=120)
    repo = create_repository(backend_settings)
    try:
        await repo.upsert(_record(1, "c" * 64, last_accessed_at=idle))
        await repo.upsert(_record(2, "d" * 64))
        deleted = await repo.cleanup_older_than(90)
        remaining = await repo.stats()
    finally:
        repo.close()

    assert deleted == 1
    assert remaining.total_analyses == 1
    assert remaining.unique_books == 1

# src/cache/models.py — v2
"""Cache domain models: AnalysisContent, AnalysisRecord, AnalysisStats.

An AnalysisRecord is the unit of the analysis cache, keyed by
``(book_id, content_hash)``.
"""

from __future__ import annotations

import uuid
from datetime import datetime, timezone
from typing import Literal

from pydantic import BaseModel, Field

ANALYSIS_VERSION = "2.0"

Difficulty = Literal["Beginner", "Intermediate", "Advanced"]


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class QuizQuestion(BaseModel):
    """Single multiple-choice question with exactly four options."""

    question: str
    options: list[str] = Field(min_length=4, max_length=4)
    correct_index: int = Field(ge=0, le=3)
    explanation: str = ""


class MindMapNode(BaseModel):
    """Node of a rooted mind-map tree."""

    name: str
    children: list[MindMapNode] | None = None

    def depth(self) -> int:
        if not self.children:
            return 1
        return 1 + max(child.depth() for child in self.children)


MindMapNode.model_rebuild()


class AnalysisContent(BaseModel):
    """Derived analysis fields, shared by generated and fallback analyses."""

    summary: str
    key_points: list[str] = Field(default_factory=list)
    keywords: list[str] = Field(default_factory=list)
    topics: list[str] = Field(default_factory=list)
    difficulty: Difficulty = "Intermediate"
    author_background: str | None = None
    book_background: str | None = None
    world_relevance: str | None = None
    quiz_questions: list[QuizQuestion] = Field(default_factory=list)
    mind_map_tree: MindMapNode
    confidence: float = Field(ge=0.0, le=1.0)
    reading_time_minutes: int | None = None
    page_count_estimate: int | None = None


class AnalysisRecord(AnalysisContent):
    """Persisted analysis, unique per (book_id, content_hash)."""

    id: str = Field(default_factory=lambda: uuid.uuid4().hex)
    book_id: int
    content_hash: str
    ai_model_used: str
    analysis_version: str = ANALYSIS_VERSION
    source: Literal["generated", "fallback"] = "generated"
    fallback_reason: str | None = None
    created_at: datetime = Field(default_factory=utc_now)
    updated_at: datetime = Field(default_factory=utc_now)
    last_accessed_at: datetime = Field(default_factory=utc_now)

    @property
    def is_fallback(self) -> bool:
        return self.source == "fallback"


class AnalysisStats(BaseModel):
    """Aggregate counters for monitoring."""

    total_analyses: int = 0
    recent_analyses: int = 0
    unique_books: int = 0
    fallback_analyses: int = 0

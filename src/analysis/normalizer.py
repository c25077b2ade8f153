# src/analysis/normalizer.py — v2
"""Coerce a parsed completion object into AnalysisContent field shapes.

Providers drift from the requested schema in predictable ways: too many
list items, camelCase vs snake_case keys, localized difficulty labels,
confidence outside [0, 1], malformed quiz entries. Everything here is
lenient; only a missing summary is treated as unusable output.
"""

from __future__ import annotations

import logging
from typing import Any

from bookinsight.analysis.prompts import (
    MAX_KEY_POINTS,
    MAX_KEYWORDS,
    MAX_QUIZ_QUESTIONS,
    MAX_TOPICS,
)
from bookinsight.cache.models import AnalysisContent, Difficulty, MindMapNode, QuizQuestion

logger = logging.getLogger(__name__)

DEFAULT_CONFIDENCE = 0.7
WORDS_PER_PAGE = 300
WORDS_PER_MINUTE = 200
DEFAULT_WORD_COUNT = 50_000

_MAX_MIND_MAP_DEPTH = 4
_MAX_MIND_MAP_CHILDREN = 8

_DIFFICULTY_SYNONYMS: dict[str, Difficulty] = {
    "beginner": "Beginner",
    "easy": "Beginner",
    "basic": "Beginner",
    "elementary": "Beginner",
    "introductory": "Beginner",
    "初级": "Beginner",
    "入门": "Beginner",
    "简单": "Beginner",
    "intermediate": "Intermediate",
    "medium": "Intermediate",
    "moderate": "Intermediate",
    "中级": "Intermediate",
    "中等": "Intermediate",
    "advanced": "Advanced",
    "hard": "Advanced",
    "difficult": "Advanced",
    "expert": "Advanced",
    "高级": "Advanced",
    "困难": "Advanced",
}


class IncompleteAnalysisError(ValueError):
    """Parsed object lacks the fields needed for a usable analysis."""


def estimate_reading_time(page_count: int | None) -> int:
    """Minutes to read, assuming 300 words/page at 200 words/minute."""
    words = page_count * WORDS_PER_PAGE if page_count and page_count > 0 else DEFAULT_WORD_COUNT
    return max(1, round(words / WORDS_PER_MINUTE))


def normalize_difficulty(value: Any) -> Difficulty:
    """Map free-form difficulty labels onto the three-value enum."""
    if isinstance(value, str):
        key = value.strip()
        mapped = _DIFFICULTY_SYNONYMS.get(key.lower()) or _DIFFICULTY_SYNONYMS.get(key)
        if mapped:
            return mapped
    return "Intermediate"


def clamp_confidence(value: Any, default: float = DEFAULT_CONFIDENCE) -> float:
    if isinstance(value, bool):
        return default
    if isinstance(value, str):
        try:
            value = float(value.strip())
        except ValueError:
            return default
    if not isinstance(value, (int, float)) or value != value:  # NaN
        return default
    return max(0.0, min(1.0, float(value)))


def clip_strings(value: Any, limit: int) -> list[str]:
    """Non-empty stripped strings, first ``limit`` items."""
    if isinstance(value, str):
        value = [value]
    if not isinstance(value, list):
        return []
    items: list[str] = []
    for item in value:
        if isinstance(item, (int, float)) and not isinstance(item, bool):
            item = str(item)
        if isinstance(item, str) and item.strip():
            items.append(item.strip())
        if len(items) >= limit:
            break
    return items


def normalize_quiz(value: Any) -> list[QuizQuestion]:
    """Keep well-formed questions (4 options, valid index), at most five."""
    if not isinstance(value, list):
        return []
    questions: list[QuizQuestion] = []
    for item in value:
        if not isinstance(item, dict):
            continue
        question = _text(item.get("question"))
        # One extra slot so that lists longer than four are rejected, not clipped.
        options = clip_strings(item.get("options"), 5)
        index = _first(item, "correctIndex", "correct_index", "answerIndex")
        if isinstance(index, str) and index.strip().isdigit():
            index = int(index.strip())
        if not question or len(options) != 4:
            continue
        if not isinstance(index, int) or isinstance(index, bool) or not 0 <= index <= 3:
            continue
        questions.append(
            QuizQuestion(
                question=question,
                options=options,
                correct_index=index,
                explanation=_text(item.get("explanation")) or "",
            )
        )
        if len(questions) >= MAX_QUIZ_QUESTIONS:
            break
    return questions


def normalize_mind_map(value: Any, title: str) -> MindMapNode:
    """Validated tree, or a single root node named after the book."""
    node = _mind_map_node(value, depth=1)
    if node is None:
        return MindMapNode(name=title)
    return node


def normalize_analysis(
    parsed: dict[str, Any],
    title: str,
    page_count: int | None = None,
) -> AnalysisContent:
    """Build AnalysisContent from a parsed completion object.

    Raises:
        IncompleteAnalysisError: No usable summary in the object.
    """
    summary = _text(parsed.get("summary"))
    if not summary:
        raise IncompleteAnalysisError("response has no summary")

    return AnalysisContent(
        summary=summary,
        key_points=clip_strings(_first(parsed, "keyPoints", "key_points"), MAX_KEY_POINTS),
        keywords=clip_strings(parsed.get("keywords"), MAX_KEYWORDS),
        topics=clip_strings(parsed.get("topics"), MAX_TOPICS),
        difficulty=normalize_difficulty(parsed.get("difficulty")),
        author_background=_text(_first(parsed, "authorBackground", "author_background")),
        book_background=_text(_first(parsed, "bookBackground", "book_background")),
        world_relevance=_text(_first(parsed, "worldRelevance", "world_relevance")),
        quiz_questions=normalize_quiz(_first(parsed, "quizQuestions", "quiz_questions")),
        mind_map_tree=normalize_mind_map(
            _first(parsed, "mindmapStructure", "mindMapTree", "mind_map_tree", "mindmap"),
            title,
        ),
        confidence=clamp_confidence(parsed.get("confidence")),
        reading_time_minutes=estimate_reading_time(page_count),
        page_count_estimate=page_count or None,
    )


def _first(data: dict[str, Any], *keys: str) -> Any:
    for key in keys:
        if data.get(key) is not None:
            return data[key]
    return None


def _text(value: Any) -> str | None:
    if isinstance(value, str) and value.strip():
        return value.strip()
    return None


def _mind_map_node(value: Any, depth: int) -> MindMapNode | None:
    if not isinstance(value, dict):
        return None
    name = _text(value.get("name"))
    if not name:
        return None
    children: list[MindMapNode] = []
    raw_children = value.get("children")
    if depth < _MAX_MIND_MAP_DEPTH and isinstance(raw_children, list):
        for raw in raw_children[:_MAX_MIND_MAP_CHILDREN]:
            child = _mind_map_node(raw, depth + 1)
            if child is not None:
                children.append(child)
    return MindMapNode(name=name, children=children or None)

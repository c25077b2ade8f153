# src/analysis/fallback.py — v1
"""Locally synthesized analysis used when generation cannot produce one.

The fallback never invents content: the summary says the data is
insufficient, and keywords/topics come only from the caller's tags.
"""

from __future__ import annotations

import logging

from bookinsight.analysis.language import Language, detect_language
from bookinsight.analysis.normalizer import estimate_reading_time
from bookinsight.analysis.prompts import MAX_KEYWORDS, MAX_TOPICS
from bookinsight.cache.models import AnalysisContent, MindMapNode
from bookinsight.core.models import BookFields

logger = logging.getLogger(__name__)

FALLBACK_CONFIDENCE = 0.35

PLACEHOLDER_KEYWORDS: dict[Language, list[str]] = {
    "en": ["book", "reading", "analysis pending"],
    "zh": ["书籍", "阅读", "待分析"],
}

PLACEHOLDER_TOPICS: dict[Language, list[str]] = {
    "en": ["General"],
    "zh": ["综合"],
}

_TEXT: dict[Language, dict[str, str]] = {
    "en": {
        "unknown_author": "an unknown author",
        "summary": (
            "\"{title}\" by {author}. There is not enough information available "
            "to produce a reliable analysis of this book yet: no detailed summary "
            "or key arguments can be given without access to "
            "more of its content.{description}"
        ),
        "description": " The catalogue description reads: {text}",
        "point_insufficient": "Available information is insufficient for a detailed analysis.",
        "point_tags": "Tagged as: {tags}.",
        "point_retry": "Regenerate the analysis once the book's content can be read.",
        "branch_tags": "Tags",
        "branch_pending": "Analysis pending",
    },
    "zh": {
        "unknown_author": "未知作者",
        "summary": (
            "《{title}》，作者：{author}。目前可用的信息不足，暂时无法对本书进行可靠的分析；"
            "在获取更多正文内容之前，无法提供详细摘要或核心论点。{description}"
        ),
        "description": "书目简介：{text}",
        "point_insufficient": "现有信息不足以进行详细分析。",
        "point_tags": "标签：{tags}。",
        "point_retry": "可在能够读取书籍内容后重新生成分析。",
        "branch_tags": "标签",
        "branch_pending": "待分析",
    },
}

_DESCRIPTION_EXCERPT_CHARS = 300


def build_fallback_content(
    fields: BookFields,
    reason: str,
    page_count: int | None = None,
) -> AnalysisContent:
    """Conservative AnalysisContent from caller-supplied fields only.

    Args:
        fields: Book identity fields (and optional tags).
        reason: Why generation did not happen; logged, not shown.
        page_count: Scanner estimate, if any, for the reading time.
    """
    language = detect_language(fields)
    text = _TEXT[language]
    tags = fields.tag_list

    description = (fields.description or "").strip()
    description_part = (
        text["description"].format(text=description[:_DESCRIPTION_EXCERPT_CHARS])
        if description
        else ""
    )
    summary = text["summary"].format(
        title=fields.display_title,
        author=(fields.author or "").strip() or text["unknown_author"],
        description=description_part,
    )

    key_points = [text["point_insufficient"]]
    if tags:
        key_points.append(text["point_tags"].format(tags=", ".join(tags)))
    key_points.append(text["point_retry"])

    branch = (
        MindMapNode(
            name=text["branch_tags"],
            children=[MindMapNode(name=t) for t in tags[:MAX_TOPICS]],
        )
        if tags
        else MindMapNode(name=text["branch_pending"])
    )

    logger.info("Building %s fallback analysis: %s", language, reason)
    return AnalysisContent(
        summary=summary,
        key_points=key_points,
        keywords=tags[:MAX_KEYWORDS] or list(PLACEHOLDER_KEYWORDS[language]),
        topics=tags[:MAX_TOPICS] or list(PLACEHOLDER_TOPICS[language]),
        difficulty="Intermediate",
        mind_map_tree=MindMapNode(name=fields.display_title, children=[branch]),
        confidence=FALLBACK_CONFIDENCE,
        reading_time_minutes=estimate_reading_time(page_count),
        page_count_estimate=page_count or None,
    )

# src/analysis/language.py — v1
"""Script heuristic choosing between the English and Chinese templates.

Not a language detector: it only looks for CJK unified ideographs and a
couple of literal markers in the caller-supplied fields.
"""

from __future__ import annotations

import re
from typing import Literal

from bookinsight.core.models import BookFields

Language = Literal["en", "zh"]

_CJK_RE = re.compile(r"[\u4e00-\u9fff]")
_CJK_RATIO_THRESHOLD = 0.05
_CHINESE_MARKERS = ("chinese", "中文")


def cjk_ratio(text: str) -> float:
    """Share of CJK ideographs among all characters (0.0 for empty text)."""
    if not text:
        return 0.0
    return len(_CJK_RE.findall(text)) / len(text)


def contains_cjk(text: str | None) -> bool:
    return bool(text) and _CJK_RE.search(text) is not None


def detect_language(fields: BookFields, extra_text: str = "") -> Language:
    """Pick "zh" when the input reads as Chinese, else "en".

    Chinese when any of:
      - CJK ideographs exceed 5% of title/author/description (+ extra_text)
      - the title contains a CJK ideograph
      - a literal "chinese" / "中文" marker appears in those fields
    """
    combined = " ".join(
        part for part in (fields.title, fields.author, fields.description, extra_text) if part
    )
    if contains_cjk(fields.title):
        return "zh"
    if cjk_ratio(combined) > _CJK_RATIO_THRESHOLD:
        return "zh"
    lowered = combined.lower()
    if any(marker in lowered for marker in _CHINESE_MARKERS):
        return "zh"
    return "en"

# src/extraction/content_stream.py — v1
"""Regex scraper for PDF text-showing operators.

Recognises the two common idioms in uncompressed content streams:

    (Hello world) Tj
    [(Hel) -20 (lo) -250 (world)] TJ

Compressed (FlateDecode) streams are opaque to this scraper; the scanner
detects the resulting near-empty output and falls back.
"""

from __future__ import annotations

import re
from itertools import islice

from bookinsight.extraction.base_extractor import BaseTextExtractor

# Literal of 2-500 chars, escapes allowed, followed by Tj.
_TJ_LITERAL_RE = re.compile(r"\(((?:[^()\\]|\\.){2,500})\)\s*Tj", re.DOTALL)
# Bracketed array followed by TJ; bounded to keep backtracking linear-ish.
_TJ_ARRAY_RE = re.compile(r"\[((?:[^\[\]\\]|\\.){1,4000})\]\s*TJ", re.DOTALL)
_ARRAY_ITEM_RE = re.compile(r"\(((?:[^()\\]|\\.)*)\)|(-?\d+(?:\.\d+)?)", re.DOTALL)

_OCTAL_ESCAPE_RE = re.compile(r"\\([0-7]{1,3})")
_CONTROL_ESCAPE_RE = re.compile(r"\\[nrtbf]")
_CHAR_ESCAPE_RE = re.compile(r"\\(.)", re.DOTALL)
_RESIDUAL_BRACKETS_RE = re.compile(r"[()\[\]]")
_WHITESPACE_RE = re.compile(r"\s+")

# TJ kerning offsets (thousandths of an em) beyond this read as word gaps.
_WORD_GAP_KERNING = -200


def _decode_octal(match: re.Match) -> str:
    char = chr(int(match.group(1), 8) & 0xFF)
    return char if char.isprintable() else " "


def unescape_literal(literal: str) -> str:
    """Resolve PDF string escapes to plain characters (controls become spaces)."""
    text = _OCTAL_ESCAPE_RE.sub(_decode_octal, literal)
    text = _CONTROL_ESCAPE_RE.sub(" ", text)
    return _CHAR_ESCAPE_RE.sub(r"\1", text)


def collapse_whitespace(text: str) -> str:
    return _WHITESPACE_RE.sub(" ", text).strip()


class ContentStreamExtractor(BaseTextExtractor):
    """Collect Tj/TJ string operands, capped at ``max_matches`` per idiom."""

    def __init__(self, max_matches: int = 4000) -> None:
        self._max_matches = max_matches

    @property
    def name(self) -> str:
        return "content_stream"

    def extract_text(self, raw: str) -> str:
        pieces: list[str] = []

        for match in islice(_TJ_LITERAL_RE.finditer(raw), self._max_matches):
            pieces.append(unescape_literal(match.group(1)))

        for match in islice(_TJ_ARRAY_RE.finditer(raw), self._max_matches):
            pieces.append(self._join_array(match.group(1)))

        text = " ".join(pieces)
        text = _RESIDUAL_BRACKETS_RE.sub(" ", text)
        return collapse_whitespace(text)

    @staticmethod
    def _join_array(body: str) -> str:
        """Concatenate an array's literals, turning wide kerning into spaces."""
        out: list[str] = []
        for literal, number in _ARRAY_ITEM_RE.findall(body):
            if number:
                if float(number) <= _WORD_GAP_KERNING:
                    out.append(" ")
                continue
            out.append(unescape_literal(literal))
        return "".join(out)

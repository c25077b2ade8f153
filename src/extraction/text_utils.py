# src/extraction/text_utils.py — v1
"""Helpers for preparing extracted text for prompting."""

from __future__ import annotations

import re

_SENTENCE_SPLIT_RE = re.compile(r"[.!?。！？]+")
_PARAGRAPH_SPLIT_RE = re.compile(r"\n\s*\n")


def chunk_text_for_ai(text: str, max_chunk_size: int = 4000) -> list[str]:
    """Pack sentences into chunks of at most ~``max_chunk_size`` characters.

    A single sentence longer than the limit becomes its own chunk.
    """
    chunks: list[str] = []
    current = ""

    for sentence in _SENTENCE_SPLIT_RE.split(text):
        sentence = sentence.strip()
        if not sentence:
            continue
        if current and len(current) + len(sentence) > max_chunk_size:
            chunks.append(current.strip())
            current = ""
        current += f"{sentence}. "

    if current.strip():
        chunks.append(current.strip())
    return chunks


def extract_key_passages(text: str, max_passages: int = 5) -> list[str]:
    """Longest paragraphs over 100 characters, longest first."""
    paragraphs = [p.strip() for p in _PARAGRAPH_SPLIT_RE.split(text)]
    candidates = [p for p in paragraphs if len(p) > 100]
    candidates.sort(key=len, reverse=True)
    return candidates[:max_passages]


def clip_excerpt(text: str, max_chars: int) -> str:
    """Trim to ``max_chars`` on a word boundary when one is close."""
    text = text.strip()
    if len(text) <= max_chars:
        return text
    clipped = text[:max_chars]
    cut = clipped.rfind(" ")
    if cut > max_chars * 0.8:
        clipped = clipped[:cut]
    return clipped.rstrip()

# src/extraction/base_extractor.py — v2
"""Abstract primary text extractor used by the PDF scanner.

The scanner owns decoding, budgets, the crude-filter fallback and page
counting; a primary extractor only turns the decoded buffer into text.
Swapping in a real content-stream decoder means implementing this
interface, nothing else changes for callers.
"""

from __future__ import annotations

from abc import ABC, abstractmethod


class BaseTextExtractor(ABC):
    """Structured (first-tier) text recovery from a decoded PDF buffer."""

    @property
    @abstractmethod
    def name(self) -> str:
        """Extractor identifier, used in logs."""

    @abstractmethod
    def extract_text(self, raw: str) -> str:
        """Recover plain text from a latin-1 decoded PDF buffer.

        Must not raise on malformed input; return "" when nothing is found.
        """

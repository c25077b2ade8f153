# src/extraction/pdf_scanner.py — v1
"""Heuristic PDF structural scanner.

Recovers approximate text and a page-count estimate from raw PDF bytes
without a PDF library:

  1. Decode latin-1 (one char per byte, so offsets match PDF tokens),
     truncated to ``max_scan_chars``.
  2. Primary recovery through a pluggable BaseTextExtractor
     (ContentStreamExtractor by default).
  3. If that yields too little text, keep only printable ASCII, Latin-1
     and CJK characters of the raw buffer. This fallback happily returns
     PDF syntax as "text"; output is never authoritative.
  4. Count ``/Type /Page`` markers, then bare ``/Page`` tokens, else 0.

The scanner never raises on malformed input.
"""

from __future__ import annotations

import logging
import re
from pathlib import Path
from typing import TYPE_CHECKING

from bookinsight.core.models import ExtractionResult, PdfMetadata
from bookinsight.extraction.base_extractor import BaseTextExtractor
from bookinsight.extraction.content_stream import ContentStreamExtractor, collapse_whitespace

if TYPE_CHECKING:
    from bookinsight.config.settings import Settings

logger = logging.getLogger(__name__)

_PAGE_OBJECT_RE = re.compile(r"/Type\s*/Page\b")
_PAGE_TOKEN_RE = re.compile(r"/Page\b")
_NON_TEXT_RE = re.compile(r"[^\x20-\x7E\u00A0-\u00FF\u4E00-\u9FFF\r\n]")

DEFAULT_MAX_SCAN_CHARS = 2_000_000
DEFAULT_MIN_PRIMARY_CHARS = 200
DEFAULT_MAX_TEXT_CHARS = 20_000


class PdfScanner:
    """Two-tier text recovery plus page-count estimation."""

    def __init__(
        self,
        primary: BaseTextExtractor | None = None,
        max_scan_chars: int = DEFAULT_MAX_SCAN_CHARS,
        min_primary_chars: int = DEFAULT_MIN_PRIMARY_CHARS,
        max_text_chars: int = DEFAULT_MAX_TEXT_CHARS,
    ) -> None:
        self._primary = primary or ContentStreamExtractor()
        self._max_scan_chars = max_scan_chars
        self._min_primary_chars = min_primary_chars
        self._max_text_chars = max_text_chars

    @classmethod
    def from_settings(cls, settings: Settings) -> PdfScanner:
        """Scanner with the extraction budgets from settings."""
        return cls(
            primary=ContentStreamExtractor(max_matches=settings.extraction_max_matches),
            max_scan_chars=settings.extraction_max_scan_chars,
            min_primary_chars=settings.extraction_min_primary_chars,
            max_text_chars=settings.extraction_max_text_chars,
        )

    @property
    def max_text_chars(self) -> int:
        return self._max_text_chars

    def parse(
        self,
        data: bytes,
        title: str | None = None,
        author: str | None = None,
    ) -> ExtractionResult:
        """Scan a PDF byte buffer.

        Args:
            data: Raw (possibly truncated) PDF bytes.
            title: Caller-supplied title copied into metadata.
            author: Caller-supplied author copied into metadata.

        Returns:
            ExtractionResult; empty-ish when nothing could be recovered.
        """
        metadata = PdfMetadata(title=title or None, author=author or None)
        if not data:
            return ExtractionResult(metadata=metadata)

        raw = data[: self._max_scan_chars].decode("latin-1")

        text = self._primary_text(raw)
        used_fallback = len(text) <= self._min_primary_chars
        if used_fallback:
            text = self.fallback_text(raw)

        result = ExtractionResult(
            text=text[: self._max_text_chars],
            page_count=self.estimate_page_count(raw),
            metadata=metadata,
            used_fallback=used_fallback,
        )
        logger.debug(
            "Scanned %d bytes: %d chars (%s), %d pages",
            len(data), len(result.text),
            "fallback" if used_fallback else self._primary.name,
            result.page_count,
        )
        return result

    def parse_file(
        self, path: str | Path, title: str | None = None, author: str | None = None
    ) -> ExtractionResult:
        """Scan the first ``max_scan_chars`` bytes of a file on disk."""
        with Path(path).open("rb") as fh:
            data = fh.read(self._max_scan_chars)
        return self.parse(data, title=title, author=author)

    def _primary_text(self, raw: str) -> str:
        try:
            return self._primary.extract_text(raw)
        except Exception as e:
            # Third-party extractors may not honour the no-raise contract.
            logger.warning("Primary extractor %s failed: %s", self._primary.name, e)
            return ""

    @staticmethod
    def fallback_text(raw: str) -> str:
        """Crude filter: drop everything outside the printable/CJK ranges."""
        return collapse_whitespace(_NON_TEXT_RE.sub(" ", raw))

    @staticmethod
    def estimate_page_count(raw: str) -> int:
        """Count page objects; 0 when no marker is present."""
        count = len(_PAGE_OBJECT_RE.findall(raw))
        if count:
            return count
        return len(_PAGE_TOKEN_RE.findall(raw))

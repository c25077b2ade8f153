# src/core/models.py — v2
"""Shared Pydantic domain models used across modules.

Book identity fields and the scanner's ExtractionResult live here because
both the extraction and analysis packages consume them.
"""

from __future__ import annotations

from pydantic import BaseModel, Field


# === BOOK INPUT ===


class BookFields(BaseModel):
    """Caller-supplied identifying fields of a book.

    ``title``/``author``/``description``/``asset_ref`` feed the content
    fingerprint. ``tags`` is a comma-separated string used only to seed
    keywords and topics; it does not participate in the fingerprint.
    """

    title: str | None = None
    author: str | None = None
    description: str | None = None
    asset_ref: str | None = None
    tags: str | None = None

    @property
    def tag_list(self) -> list[str]:
        """Parse comma-separated tags (also accepts the Chinese comma)."""
        if not self.tags:
            return []
        raw = self.tags.replace("，", ",")
        return [t.strip() for t in raw.split(",") if t.strip()]

    @property
    def display_title(self) -> str:
        return (self.title or "").strip() or "Untitled"


# === EXTRACTION ===


class PdfMetadata(BaseModel):
    """Document metadata. Only ever filled from caller-supplied fields."""

    title: str | None = None
    author: str | None = None
    subject: str | None = None
    keywords: str | None = None


class ExtractionResult(BaseModel):
    """Best-effort output of the PDF structural scanner.

    ``page_count == 0`` means the scanner could not estimate it. ``text``
    is approximate and may contain PDF syntax when ``used_fallback`` is set.
    """

    text: str = ""
    page_count: int = Field(default=0, ge=0)
    metadata: PdfMetadata = Field(default_factory=PdfMetadata)
    used_fallback: bool = False

    def is_usable(self, min_chars: int = 50) -> bool:
        """Whether the text is worth embedding in a prompt."""
        return len(self.text.strip()) >= min_chars

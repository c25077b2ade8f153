# src/cache/fingerprint.py — v3
"""Content fingerprint used as the analysis cache key.

The digest covers book metadata only (title, author, description, asset
reference), never the extracted PDF text. Replacing the PDF behind an
unchanged asset reference therefore keeps serving the cached analysis
until a forced regeneration.

Field order and delimiter are fixed so that any SHA-256 implementation
reproduces the same key.
"""

from __future__ import annotations

import hashlib

from bookinsight.core.models import BookFields

FIELD_DELIMITER = "|"


def compute_content_hash(fields: BookFields) -> str:
    """Return the SHA-256 hex digest of ``title|author|description|asset_ref``.

    Args:
        fields: Book identifying fields. ``None`` values hash as "".

    Returns:
        64-character lowercase hex string.
    """
    parts = (
        fields.title or "",
        fields.author or "",
        fields.description or "",
        fields.asset_ref or "",
    )
    payload = FIELD_DELIMITER.join(parts)
    return hashlib.sha256(payload.encode("utf-8")).hexdigest()


def short_hash(content_hash: str, length: int = 12) -> str:
    """Abbreviated digest for display and logging."""
    return content_hash[:length]

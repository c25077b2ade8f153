# tests/unit/cache/test_fingerprint.py — v2
"""Tests for cache/fingerprint.py — content hash determinism and sensitivity."""

from __future__ import annotations

import pytest

from bookinsight.cache.fingerprint import compute_content_hash, short_hash
from bookinsight.core.models import BookFields

_BASE = BookFields(
    title="Dune",
    author="Frank Herbert",
    description="Desert planet",
    asset_ref="book-file/dune.pdf",
)


class TestComputeContentHash:
    def test_known_vector(self):
        # sha256("Dune|Frank Herbert|Desert planet|book-file/dune.pdf")
        assert compute_content_hash(_BASE) == (
            "39e8d13d106997ef34ce524279e376256ed42c3fb588eacc8bfb4be78e94e0e8"
        )

    def test_all_empty_hashes_delimiters_only(self):
        # sha256("|||")
        assert compute_content_hash(BookFields()) == (
            "be5be69f55e91af25e54ecc2154d4da359b67b3b27e25f5cc0b3ff54eb74dff3"
        )

    def test_deterministic(self):
        assert compute_content_hash(_BASE) == compute_content_hash(_BASE.model_copy())

    def test_hex_length(self):
        digest = compute_content_hash(_BASE)
        assert len(digest) == 64
        int(digest, 16)

    @pytest.mark.parametrize("field", ["title", "author", "description", "asset_ref"])
    def test_each_field_changes_hash(self, field: str):
        changed = _BASE.model_copy(update={field: "something else"})
        assert compute_content_hash(changed) != compute_content_hash(_BASE)

    def test_none_and_empty_are_equal(self):
        assert compute_content_hash(BookFields(title="X", author=None)) == (
            compute_content_hash(BookFields(title="X", author=""))
        )

    def test_tags_do_not_participate(self):
        tagged = _BASE.model_copy(update={"tags": "scifi, classic"})
        assert compute_content_hash(tagged) == compute_content_hash(_BASE)

    def test_unicode_fields(self):
        a = compute_content_hash(BookFields(title="示例书", author="张三"))
        b = compute_content_hash(BookFields(title="示例书", author="李四"))
        assert a != b


class TestShortHash:
    def test_default_length(self):
        assert short_hash("abcdef0123456789") == "abcdef012345"

    def test_custom_length(self):
        assert short_hash("abcdef0123456789", length=4) == "abcd"

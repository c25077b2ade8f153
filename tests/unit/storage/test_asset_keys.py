# tests/unit/storage/test_asset_keys.py — v1
"""Tests for storage/asset_keys.py — stored reference normalization."""

from __future__ import annotations

import pytest

from bookinsight.storage.asset_keys import (
    candidate_keys,
    extract_asset_key,
    is_absolute_url,
    to_asset_url,
)


class TestIsAbsoluteUrl:
    @pytest.mark.parametrize("value,expected", [
        ("https://cdn.example.com/a.pdf", True),
        ("HTTP://example.com", True),
        ("book-file/a.pdf", False),
        ("/api/files/a.pdf", False),
        ("", False),
        (None, False),
    ])
    def test_detection(self, value, expected):
        assert is_absolute_url(value) is expected


class TestExtractAssetKey:
    @pytest.mark.parametrize("stored,expected", [
        ("abc.pdf", "abc.pdf"),
        ("book-file/abc.pdf", "book-file/abc.pdf"),
        ("/book-file/abc.pdf", "book-file/abc.pdf"),
        ("/api/files/book-file/abc.pdf", "book-file/abc.pdf"),
        ("api/files/my%20book.pdf", "my book.pdf"),
        ("https://app.example.com/api/files/book-file/abc.pdf", "book-file/abc.pdf"),
        ("https://cdn.example.com/abc.pdf", None),
        ("   ", None),
        (None, None),
    ])
    def test_extract(self, stored, expected):
        assert extract_asset_key(stored) == expected


class TestToAssetUrl:
    def test_absolute_url_unchanged(self):
        url = "https://cdn.example.com/abc.pdf"
        assert to_asset_url(url) == url

    def test_key_becomes_proxy_path(self):
        assert to_asset_url("book-file/my book.pdf") == "/api/files/book-file/my%20book.pdf"

    def test_proxy_path_kept(self):
        assert to_asset_url("/api/files/abc.pdf") == "/api/files/abc.pdf"

    def test_public_base_url(self):
        assert to_asset_url("abc.pdf", "https://app.example.com/") == (
            "https://app.example.com/api/files/abc.pdf"
        )

    def test_empty(self):
        assert to_asset_url("") is None


class TestCandidateKeys:
    def test_bare_key_gets_prefixes(self):
        assert candidate_keys("abc.pdf") == [
            "abc.pdf", "book-file/abc.pdf", "video-file/abc.pdf",
        ]

    def test_folder_key_tried_as_is(self):
        assert candidate_keys("book-file/abc.pdf") == ["book-file/abc.pdf"]

    def test_custom_prefixes(self):
        assert candidate_keys("a.pdf", ("docs",)) == ["a.pdf", "docs/a.pdf"]

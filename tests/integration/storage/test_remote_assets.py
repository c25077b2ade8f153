# tests/integration/storage/test_remote_assets.py — v1
"""Fetch-then-scan over HTTP (mock transport) when storage has no copy."""

from __future__ import annotations

import httpx
import pytest

from bookinsight.api.facade import extract_book_text
from bookinsight.storage.fetcher import ByteRangeFetcher
from bookinsight.storage.local_source import LocalAssetSource

pytestmark = pytest.mark.integration


@pytest.mark.asyncio
async def test_url_asset_scanned(settings, minimal_pdf_bytes):
    seen: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(206, content=minimal_pdf_bytes)

    async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as client:
        fetcher = ByteRangeFetcher(
            source=LocalAssetSource(settings.asset_root),
            public_base_url="https://books.example.com",
            http_client=client,
        )
        result = await extract_book_text(
            "book-file/remote.pdf", title="Remote", settings=settings, fetcher=fetcher,
        )

    assert seen[0].url == "https://books.example.com/api/files/book-file/remote.pdf"
    assert seen[0].headers["Range"] == f"bytes=0-{settings.extraction_max_fetch_bytes - 1}"
    assert result.page_count == 2
    assert "quick brown fox" in result.text


@pytest.mark.asyncio
async def test_http_error_gives_empty_result(settings):
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(404)

    async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as client:
        fetcher = ByteRangeFetcher(
            public_base_url="https://books.example.com", http_client=client,
        )
        result = await extract_book_text("missing.pdf", settings=settings, fetcher=fetcher)

    assert result.text == ""
    assert result.page_count == 0


@pytest.mark.asyncio
async def test_storage_copy_preferred_over_url(settings, minimal_pdf_bytes):
    path = settings.asset_root / "book-file" / "local.pdf"
    path.parent.mkdir(parents=True)
    path.write_bytes(minimal_pdf_bytes)

    def handler(request: httpx.Request) -> httpx.Response:
        raise AssertionError("HTTP must not be used when storage resolves the key")

    async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as client:
        fetcher = ByteRangeFetcher(
            source=LocalAssetSource(settings.asset_root),
            public_base_url="https://books.example.com",
            http_client=client,
        )
        result = await extract_book_text(
            "https://books.example.com/api/files/book-file/local.pdf",
            settings=settings, fetcher=fetcher,
        )
    assert result.page_count == 2

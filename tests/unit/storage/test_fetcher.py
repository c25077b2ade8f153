# tests/unit/storage/test_fetcher.py — v1
"""Tests for storage/fetcher.py — candidate keys, ranged HTTP, no-raise contract."""

from __future__ import annotations

from unittest.mock import AsyncMock

import httpx
import pytest

from bookinsight.storage.base_asset_source import BaseAssetSource
from bookinsight.storage.fetcher import ByteRangeFetcher


class _DictSource(BaseAssetSource):
    """In-memory source recording every key requested."""

    def __init__(self, objects: dict[str, bytes]) -> None:
        self._objects = objects
        self.requested: list[str] = []

    async def get(self, key: str, range_bytes: int | None = None) -> bytes | None:
        self.requested.append(key)
        data = self._objects.get(key)
        if data is None:
            return None
        return data if range_bytes is None else data[:range_bytes]

    @property
    def backend_name(self) -> str:
        return "dict"


def _http_client(handler) -> httpx.AsyncClient:
    return httpx.AsyncClient(transport=httpx.MockTransport(handler))


class TestStorageCandidates:
    @pytest.mark.asyncio
    async def test_raw_key_first(self):
        source = _DictSource({"abc.pdf": b"raw", "book-file/abc.pdf": b"prefixed"})
        fetcher = ByteRangeFetcher(source=source)
        assert await fetcher.fetch_bytes("abc.pdf", 100) == b"raw"
        assert source.requested == ["abc.pdf"]

    @pytest.mark.asyncio
    async def test_prefixed_key_on_miss(self):
        source = _DictSource({"video-file/abc.pdf": b"video"})
        fetcher = ByteRangeFetcher(source=source)
        assert await fetcher.fetch_bytes("abc.pdf", 100) == b"video"
        assert source.requested == ["abc.pdf", "book-file/abc.pdf", "video-file/abc.pdf"]

    @pytest.mark.asyncio
    async def test_proxy_path_resolved_to_key(self):
        source = _DictSource({"book-file/abc.pdf": b"data"})
        fetcher = ByteRangeFetcher(source=source)
        assert await fetcher.fetch_bytes("/api/files/book-file/abc.pdf", 100) == b"data"

    @pytest.mark.asyncio
    async def test_truncated_to_max_bytes(self):
        source = _DictSource({"a.pdf": b"0123456789"})
        assert await ByteRangeFetcher(source=source).fetch_bytes("a.pdf", 3) == b"012"

    @pytest.mark.asyncio
    async def test_source_error_tries_next_candidate(self):
        source = AsyncMock(spec=BaseAssetSource)
        source.backend_name = "flaky"
        source.get.side_effect = [RuntimeError("timeout"), b"second"]
        fetcher = ByteRangeFetcher(source=source)
        assert await fetcher.fetch_bytes("a.pdf", 100) == b"second"

    @pytest.mark.asyncio
    async def test_nothing_found_without_url(self):
        fetcher = ByteRangeFetcher(source=_DictSource({}))
        assert await fetcher.fetch_bytes("missing.pdf", 100) is None

    @pytest.mark.asyncio
    async def test_empty_reference(self):
        fetcher = ByteRangeFetcher(source=_DictSource({}))
        assert await fetcher.fetch_bytes(None, 100) is None
        assert await fetcher.fetch_bytes("", 100) is None

    @pytest.mark.asyncio
    async def test_non_positive_budget(self):
        fetcher = ByteRangeFetcher(source=_DictSource({"a.pdf": b"x"}))
        assert await fetcher.fetch_bytes("a.pdf", 0) is None


class TestHttpFetch:
    @pytest.mark.asyncio
    async def test_range_header_sent(self):
        seen: dict[str, str] = {}

        def handler(request: httpx.Request) -> httpx.Response:
            seen["range"] = request.headers.get("Range")
            return httpx.Response(206, content=b"%PDF-partial")

        fetcher = ByteRangeFetcher(http_client=_http_client(handler))
        data = await fetcher.fetch_bytes("https://cdn.example.com/a.pdf", 1024)
        assert data == b"%PDF-partial"
        assert seen["range"] == "bytes=0-1023"

    @pytest.mark.asyncio
    async def test_server_ignoring_range_is_truncated(self):
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, content=b"x" * 5000)

        fetcher = ByteRangeFetcher(http_client=_http_client(handler))
        data = await fetcher.fetch_bytes("https://cdn.example.com/a.pdf", 100)
        assert data == b"x" * 100

    @pytest.mark.asyncio
    async def test_error_status_returns_none(self):
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(404)

        fetcher = ByteRangeFetcher(http_client=_http_client(handler))
        assert await fetcher.fetch_bytes("https://cdn.example.com/a.pdf", 100) is None

    @pytest.mark.asyncio
    async def test_transport_error_returns_none(self):
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("refused", request=request)

        fetcher = ByteRangeFetcher(http_client=_http_client(handler))
        assert await fetcher.fetch_bytes("https://cdn.example.com/a.pdf", 100) is None

    @pytest.mark.asyncio
    @pytest.mark.parametrize("url", [
        "http://xn--/x",
        "http://[::1/a.pdf",
        "http://exa mple.com/a.pdf",
        "http://" + "a" * 300 + ".com/a.pdf",
    ])
    async def test_malformed_url_returns_none(self, url):
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("unreachable", request=request)

        fetcher = ByteRangeFetcher(http_client=_http_client(handler))
        assert await fetcher.fetch_bytes(url, 100) is None

    @pytest.mark.asyncio
    async def test_storage_hit_skips_http(self):
        def handler(request: httpx.Request) -> httpx.Response:
            raise AssertionError("HTTP should not be called")

        source = _DictSource({"book-file/a.pdf": b"stored"})
        fetcher = ByteRangeFetcher(source=source, http_client=_http_client(handler))
        url = "https://app.example.com/api/files/book-file/a.pdf"
        assert await fetcher.fetch_bytes(url, 100) == b"stored"

    @pytest.mark.asyncio
    async def test_key_fetched_through_public_proxy(self):
        seen: list[str] = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(str(request.url))
            return httpx.Response(200, content=b"proxied")

        fetcher = ByteRangeFetcher(
            source=_DictSource({}),
            public_base_url="https://app.example.com",
            http_client=_http_client(handler),
        )
        assert await fetcher.fetch_bytes("abc.pdf", 100) == b"proxied"
        assert seen == ["https://app.example.com/api/files/abc.pdf"]

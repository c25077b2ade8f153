# src/storage/fetcher.py — v2
"""Byte range fetcher: first ``max_bytes`` of an asset from storage or HTTP.

Storage keys are tried first (raw key, then the known folder prefixes);
an absolute http(s) URL is only requested when no key resolves. Failures
never propagate: callers get None and treat it as "extraction
unavailable".
"""

from __future__ import annotations

import logging

import httpx

from bookinsight.storage.asset_keys import (
    DEFAULT_KEY_PREFIXES,
    candidate_keys,
    extract_asset_key,
    is_absolute_url,
    to_asset_url,
)
from bookinsight.storage.base_asset_source import BaseAssetSource

logger = logging.getLogger(__name__)


class ByteRangeFetcher:
    """Resolve an asset reference to at most ``max_bytes`` bytes."""

    def __init__(
        self,
        source: BaseAssetSource | None = None,
        key_prefixes: list[str] | tuple[str, ...] = DEFAULT_KEY_PREFIXES,
        public_base_url: str = "",
        http_timeout_s: float = 15.0,
        http_client: httpx.AsyncClient | None = None,
    ) -> None:
        self._source = source
        self._key_prefixes = tuple(key_prefixes)
        self._public_base_url = public_base_url
        self._http_timeout_s = http_timeout_s
        self._http_client = http_client

    async def fetch_bytes(self, asset_ref: str | None, max_bytes: int) -> bytes | None:
        """Return up to ``max_bytes`` bytes of the asset, or None."""
        if not asset_ref or max_bytes <= 0:
            return None

        data = await self._fetch_from_storage(asset_ref, max_bytes)
        if data is not None:
            return data

        url = to_asset_url(asset_ref, self._public_base_url)
        if url and is_absolute_url(url):
            return await self._fetch_from_url(url, max_bytes)

        logger.info("Asset %r not found in storage and has no fetchable URL", asset_ref)
        return None

    async def _fetch_from_storage(self, asset_ref: str, max_bytes: int) -> bytes | None:
        if self._source is None:
            return None
        key = extract_asset_key(asset_ref)
        if not key:
            return None

        for candidate in candidate_keys(key, self._key_prefixes):
            try:
                data = await self._source.get(candidate, range_bytes=max_bytes)
            except Exception as e:
                logger.warning(
                    "Asset source %s failed for key %r: %s",
                    self._source.backend_name, candidate, e,
                )
                continue
            if data is not None:
                logger.debug("Resolved asset %r via key %r", asset_ref, candidate)
                return data[:max_bytes]
        return None

    async def _fetch_from_url(self, url: str, max_bytes: int) -> bytes | None:
        headers = {"Range": f"bytes=0-{max_bytes - 1}"}
        client = self._http_client or httpx.AsyncClient(
            timeout=self._http_timeout_s, follow_redirects=True
        )
        try:
            async with client.stream("GET", url, headers=headers) as response:
                if response.status_code not in (200, 206):
                    logger.info("HTTP %d fetching %s", response.status_code, url)
                    return None
                # Servers may ignore Range; stop reading at the budget.
                buf = bytearray()
                async for chunk in response.aiter_bytes():
                    buf.extend(chunk)
                    if len(buf) >= max_bytes:
                        break
                return bytes(buf[:max_bytes])
        except (httpx.HTTPError, httpx.InvalidURL) as e:
            logger.warning("HTTP fetch failed for %s: %s", url, e)
            return None
        except ValueError as e:
            # Malformed hosts (e.g. bad IDNA labels) surface as UnicodeError.
            logger.warning("Unusable asset URL %r: %s", url, e)
            return None
        finally:
            if self._http_client is None:
                await client.aclose()

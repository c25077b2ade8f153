# src/storage/local_source.py — v2
"""Local filesystem asset source (default backend)."""

from __future__ import annotations

import logging
from pathlib import Path

from bookinsight.storage.base_asset_source import BaseAssetSource

logger = logging.getLogger(__name__)


class LocalAssetSource(BaseAssetSource):
    """Read assets stored as files under a root directory."""

    def __init__(self, root: str | Path) -> None:
        self._root = Path(root).expanduser().resolve()

    def _resolve(self, key: str) -> Path | None:
        """Map a key to a path under the root; None if it escapes the root."""
        path = (self._root / key.lstrip("/")).resolve()
        if path != self._root and self._root not in path.parents:
            logger.warning("Rejected asset key outside root: %s", key)
            return None
        return path

    async def get(self, key: str, range_bytes: int | None = None) -> bytes | None:
        path = self._resolve(key)
        if path is None or not path.is_file():
            return None
        with path.open("rb") as fh:
            if range_bytes is None:
                return fh.read()
            return fh.read(range_bytes)

    @property
    def backend_name(self) -> str:
        return "local"

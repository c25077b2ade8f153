# src/storage/base_asset_source.py — v2
"""Abstract blob source interface for book assets."""

from __future__ import annotations

from abc import ABC, abstractmethod


class BaseAssetSource(ABC):
    """Read-only access to stored assets."""

    @abstractmethod
    async def get(self, key: str, range_bytes: int | None = None) -> bytes | None:
        """Return the object's bytes (the first ``range_bytes`` if set).

        Returns None when the key does not exist.
        """

    @property
    @abstractmethod
    def backend_name(self) -> str:
        """Backend identifier (local, s3)."""

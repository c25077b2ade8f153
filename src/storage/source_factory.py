# src/storage/source_factory.py — v2
"""Factory: instantiate asset source from configuration."""

from __future__ import annotations

from bookinsight.cache.repository_factory import UnsupportedBackendError
from bookinsight.config.settings import Settings
from bookinsight.storage.base_asset_source import BaseAssetSource
from bookinsight.storage.local_source import LocalAssetSource


def create_asset_source(settings: Settings) -> BaseAssetSource:
    """Create the asset source selected by ASSET_BACKEND.

    Raises:
        UnsupportedBackendError: If the backend is not supported.
    """
    if settings.asset_backend == "local":
        return LocalAssetSource(root=settings.asset_root)

    if settings.asset_backend == "s3":
        from bookinsight.storage.s3_source import S3AssetSource
        return S3AssetSource(
            bucket=settings.asset_s3_bucket,
            region=settings.asset_s3_region or None,
            endpoint_url=settings.asset_s3_endpoint_url or None,
        )

    raise UnsupportedBackendError(f"Unsupported asset backend: {settings.asset_backend!r}")

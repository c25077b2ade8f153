# src/storage/s3_source.py — v2
"""S3-compatible asset source (ASSET_BACKEND=s3).

Supports AWS S3, Cloudflare R2, MinIO and other S3-compatible storage.
Requires 'boto3' package.
"""

from __future__ import annotations

import logging

from bookinsight.storage.base_asset_source import BaseAssetSource

logger = logging.getLogger(__name__)


class S3AssetSource(BaseAssetSource):
    """Read assets from S3-compatible object storage with ranged GETs."""

    def __init__(
        self,
        bucket: str,
        region: str | None = None,
        endpoint_url: str | None = None,
    ) -> None:
        """Initialize S3 source.

        Args:
            bucket: Bucket name.
            region: AWS region (optional, uses boto3 default if not set).
            endpoint_url: Custom endpoint for R2/MinIO.
        """
        try:
            import boto3
        except ImportError as e:
            raise ImportError(
                "boto3 package required for S3 assets: pip install boto3"
            ) from e

        kwargs: dict = {}
        if region:
            kwargs["region_name"] = region
        if endpoint_url:
            kwargs["endpoint_url"] = endpoint_url

        self._s3 = boto3.client("s3", **kwargs)
        self._bucket = bucket

    async def get(self, key: str, range_bytes: int | None = None) -> bytes | None:
        params: dict = {"Bucket": self._bucket, "Key": key}
        if range_bytes is not None:
            params["Range"] = f"bytes=0-{max(range_bytes, 1) - 1}"
        try:
            response = self._s3.get_object(**params)
        except self._s3.exceptions.NoSuchKey:
            return None
        body = response["Body"].read()
        logger.debug("S3 read: s3://%s/%s (%d bytes)", self._bucket, key, len(body))
        if range_bytes is not None:
            return body[:range_bytes]
        return body

    @property
    def backend_name(self) -> str:
        return "s3"

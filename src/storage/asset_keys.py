# src/storage/asset_keys.py — v1
"""Normalization of stored asset references.

Books store their file location in one of several shapes: a bare storage
key (``abc.pdf``), a folder-qualified key (``book-file/abc.pdf``), the
app's file-proxy path (``/api/files/book-file/abc.pdf``) or an absolute
URL, which may itself point at the file proxy.
"""

from __future__ import annotations

import re
from urllib.parse import quote, unquote, urlparse

FILE_PROXY_PREFIX = "api/files/"
DEFAULT_KEY_PREFIXES = ("book-file", "video-file")

_ABSOLUTE_URL_RE = re.compile(r"^https?://", re.IGNORECASE)


def is_absolute_url(value: str | None) -> bool:
    return bool(value) and bool(_ABSOLUTE_URL_RE.match(value.strip()))


def _decode_key_path(path: str) -> str:
    return "/".join(unquote(segment) for segment in path.split("/") if segment)


def extract_asset_key(stored_value: str | None) -> str | None:
    """Return the storage key a stored reference points at, or None.

    Absolute URLs only yield a key when they target the file proxy;
    any other URL is external and has no storage key.
    """
    if not stored_value or not stored_value.strip():
        return None
    value = stored_value.strip()

    if is_absolute_url(value):
        try:
            path = urlparse(value).path
        except ValueError:
            return None
        if path.startswith("/" + FILE_PROXY_PREFIX):
            return _decode_key_path(path[len(FILE_PROXY_PREFIX) + 1:]) or None
        return None

    stripped = value.lstrip("/")
    if stripped.startswith(FILE_PROXY_PREFIX):
        return _decode_key_path(stripped[len(FILE_PROXY_PREFIX):]) or None
    return stripped or None


def to_asset_url(stored_value: str | None, public_base_url: str = "") -> str | None:
    """Return a URL for the reference.

    Absolute URLs are returned as-is. Keys become file-proxy paths, made
    absolute when ``public_base_url`` is configured.
    """
    if not stored_value or not stored_value.strip():
        return None
    value = stored_value.strip()
    if is_absolute_url(value):
        return value

    normalized = value.lstrip("/")
    if normalized.startswith(FILE_PROXY_PREFIX):
        path = f"/{normalized}"
    else:
        encoded = "/".join(quote(s, safe="") for s in normalized.split("/") if s)
        path = f"/{FILE_PROXY_PREFIX}{encoded}"

    if public_base_url:
        return public_base_url.rstrip("/") + path
    return path


def candidate_keys(
    key: str, prefixes: tuple[str, ...] | list[str] = DEFAULT_KEY_PREFIXES
) -> list[str]:
    """Keys to try, in order: the key itself, then each folder prefix.

    Keys that already contain a folder are tried as-is only.
    """
    if "/" in key:
        return [key]
    return [key, *(f"{prefix}/{key}" for prefix in prefixes)]

# src/analysis/parsing.py — v2
"""Parse raw completion text into a JSON object."""

from __future__ import annotations

import json
import re
from typing import Any

_FENCE_RE = re.compile(r"```(?:json)?\s*", re.IGNORECASE)


class ResponseParseError(ValueError):
    """Completion text could not be read as a JSON object."""


def strip_fences(text: str) -> str:
    """Remove markdown code fences around a JSON payload."""
    return _FENCE_RE.sub("", text).strip()


def parse_json_object(text: str | None) -> dict[str, Any]:
    """Decode the first top-level JSON object found in ``text``.

    Accepts fenced output and leading/trailing prose around the object.

    Raises:
        ResponseParseError: No JSON object could be decoded.
    """
    if not text or not text.strip():
        raise ResponseParseError("empty response")

    cleaned = strip_fences(text)
    try:
        parsed = json.loads(cleaned)
    except (json.JSONDecodeError, RecursionError):
        start, end = cleaned.find("{"), cleaned.rfind("}")
        if start == -1 or end <= start:
            raise ResponseParseError("no JSON object in response") from None
        try:
            parsed = json.loads(cleaned[start : end + 1])
        except json.JSONDecodeError as e:
            raise ResponseParseError(f"invalid JSON: {e.msg}") from e
        except RecursionError as e:
            raise ResponseParseError("JSON nested too deeply") from e

    if not isinstance(parsed, dict):
        raise ResponseParseError(f"expected JSON object, got {type(parsed).__name__}")
    return parsed

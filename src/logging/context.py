# src/logging/context.py — v3
"""Contextual logging support — attach book_id, content_hash, step to log records."""

from __future__ import annotations

import contextvars
from dataclasses import dataclass
from typing import Any

from bookinsight.cache.fingerprint import short_hash

# Context variables for structured logging — set per analysis request.
_book_id: contextvars.ContextVar[int | None] = contextvars.ContextVar(
    "book_id", default=None
)
_content_hash: contextvars.ContextVar[str | None] = contextvars.ContextVar(
    "content_hash", default=None
)
_step: contextvars.ContextVar[str | None] = contextvars.ContextVar(
    "step", default=None
)


@dataclass
class LogContext:
    """Immutable snapshot of current logging context."""

    book_id: int | None = None
    content_hash: str | None = None
    step: str | None = None

    def as_dict(self) -> dict[str, Any]:
        """Return non-None fields as dict for JSON log injection."""
        return {k: v for k, v in self.__dict__.items() if v is not None}


def get_context() -> LogContext:
    """Snapshot current context variables."""
    return LogContext(
        book_id=_book_id.get(),
        content_hash=_content_hash.get(),
        step=_step.get(),
    )


def set_book_context(book_id: int, content_hash: str) -> None:
    """Set book-level context (called once per orchestrator invocation)."""
    _book_id.set(book_id)
    _content_hash.set(short_hash(content_hash))


def set_step(step: str | None) -> None:
    """Set the current pipeline step (lookup, scan, generate, persist...)."""
    _step.set(step)


def clear_context() -> None:
    """Reset all context variables."""
    _book_id.set(None)
    _content_hash.set(None)
    _step.set(None)

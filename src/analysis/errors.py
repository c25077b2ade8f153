# src/analysis/errors.py — v1
"""Exceptions raised inside the generation step.

None of these reach orchestrator callers: they are turned into fallback
records carrying ``reason``.
"""

from __future__ import annotations


class GenerationError(Exception):
    """The provider could not produce a usable analysis."""

    def __init__(self, reason: str) -> None:
        super().__init__(reason)
        self.reason = reason

# src/llm/base_client.py — v2
"""Abstract LLM client interface.

The analysis pipeline only needs "given a prompt, return text"; callers
parse the text themselves, even when ``json_mode`` is requested.
"""

from __future__ import annotations

from abc import ABC, abstractmethod

from bookinsight.llm.models import LLMResponse, Message


class BaseLLMClient(ABC):
    """Unified interface for all completion providers."""

    @abstractmethod
    async def complete(
        self,
        messages: list[Message],
        system: str | None = None,
        max_tokens: int = 2000,
        temperature: float = 0.3,
        json_mode: bool = False,
    ) -> LLMResponse:
        """Text completion. ``json_mode`` asks the provider for a JSON object."""

    @property
    @abstractmethod
    def provider_name(self) -> str:
        """Provider identifier (openai, minimax, google, anthropic, ollama)."""

    @property
    @abstractmethod
    def model(self) -> str:
        """Model name sent to the provider."""

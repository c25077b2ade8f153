# src/llm/client_factory.py — v3
"""Factory: instantiate LLM client from provider name.

MiniMax and Google are reached through their OpenAI-compatible endpoints,
so they share the OpenAI adapter with a different ``base_url``.
"""

from __future__ import annotations

import importlib
import logging

from bookinsight.config.settings import Settings
from bookinsight.llm.base_client import BaseLLMClient
from bookinsight.llm.config import LLMAssignment, resolve_provider

logger = logging.getLogger(__name__)

# Registry of provider name → adapter class path (lazy import).
_PROVIDER_REGISTRY: dict[str, str] = {
    "openai": "bookinsight.llm.adapters.openai_adapter.OpenAIAdapter",
    "minimax": "bookinsight.llm.adapters.openai_adapter.OpenAIAdapter",
    "google": "bookinsight.llm.adapters.openai_adapter.OpenAIAdapter",
    "anthropic": "bookinsight.llm.adapters.anthropic_adapter.AnthropicAdapter",
    "ollama": "bookinsight.llm.adapters.ollama_adapter.OllamaAdapter",
}


class UnsupportedProviderError(ValueError):
    """Raised when a provider is not registered."""


def create_llm_client(
    provider: str,
    model: str,
    settings: Settings | None = None,
    **kwargs: object,
) -> BaseLLMClient:
    """Instantiate the correct adapter from provider name.

    Args:
        provider: Provider identifier.
        model: Model name.
        settings: Application settings (for API keys and endpoints).
        **kwargs: Additional adapter arguments (override settings).

    Raises:
        UnsupportedProviderError: If provider is not registered.
    """
    if provider not in _PROVIDER_REGISTRY:
        raise UnsupportedProviderError(
            f"Unsupported LLM provider: {provider!r}. "
            f"Available: {', '.join(sorted(_PROVIDER_REGISTRY))}"
        )

    adapter_cls = _import_class(_PROVIDER_REGISTRY[provider])

    init_kwargs = dict(kwargs)
    init_kwargs["model"] = model

    if provider in ("openai", "minimax", "google"):
        init_kwargs.setdefault("provider", provider)

    if settings is not None:
        if provider == "openai":
            init_kwargs.setdefault("api_key", settings.openai_api_key)
        elif provider == "minimax":
            init_kwargs.setdefault("api_key", settings.minimax_api_key)
            init_kwargs.setdefault("base_url", settings.minimax_base_url)
        elif provider == "google":
            init_kwargs.setdefault("api_key", settings.google_api_key)
            init_kwargs.setdefault("base_url", settings.google_base_url)
        elif provider == "anthropic":
            init_kwargs.setdefault("api_key", settings.anthropic_api_key)
        elif provider == "ollama":
            init_kwargs.setdefault("host", settings.ollama_base_url)

    logger.debug("Creating LLM client: provider=%s, model=%s", provider, model)
    return adapter_cls(**init_kwargs)


def create_configured_client(settings: Settings) -> BaseLLMClient | None:
    """Client for the resolved provider, or None when none is configured."""
    assignment: LLMAssignment | None = resolve_provider(settings)
    if assignment is None:
        logger.info("No completion provider configured")
        return None
    return create_llm_client(assignment.provider, assignment.model, settings)


def register_provider(name: str, class_path: str) -> None:
    """Register a custom provider adapter.

    Args:
        name: Provider identifier.
        class_path: Fully qualified class path implementing BaseLLMClient.
    """
    _PROVIDER_REGISTRY[name] = class_path
    logger.info("Registered LLM provider: %s -> %s", name, class_path)


def _import_class(class_path: str) -> type:
    """Dynamically import a class from its fully qualified path."""
    module_path, class_name = class_path.rsplit(".", 1)
    module = importlib.import_module(module_path)
    return getattr(module, class_name)

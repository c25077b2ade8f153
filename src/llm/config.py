# src/llm/config.py — v2
"""Completion provider resolution.

Resolution order:
  1. LLM_DEFAULT_PROVIDER, if it has credentials.
  2. The remaining providers in fixed order; first with credentials wins.
  3. Nothing configured: None (callers fall back to local analyses).

Ollama needs no key, so it only counts as configured when it is the
explicit default.
"""

from __future__ import annotations

from dataclasses import dataclass

from bookinsight.config.settings import Settings

PROVIDER_ORDER: tuple[str, ...] = ("openai", "minimax", "google", "anthropic", "ollama")

DEFAULT_MODELS: dict[str, str] = {
    "openai": "gpt-4o-mini",
    "minimax": "MiniMax-M2.5",
    "google": "gemini-2.0-flash",
    "anthropic": "claude-sonnet-4-20250514",
    "ollama": "llama3",
}


@dataclass(frozen=True)
class LLMAssignment:
    """Resolved provider:model plus how it was chosen."""

    provider: str
    model: str
    source: str  # "default" or "failover"

    @property
    def key(self) -> str:
        """Return 'provider:model' string."""
        return f"{self.provider}:{self.model}"


def provider_api_key(provider: str, settings: Settings) -> str:
    """API key configured for a provider ("" when none)."""
    return (getattr(settings, f"{provider}_api_key", "") or "").strip()


def _is_configured(provider: str, settings: Settings) -> bool:
    if provider == "ollama":
        return settings.llm_default_provider == "ollama" and bool(settings.ollama_base_url)
    return bool(provider_api_key(provider, settings))


def _provider_order(default: str) -> list[str]:
    return [default, *(p for p in PROVIDER_ORDER if p != default)]


def resolve_provider(settings: Settings) -> LLMAssignment | None:
    """Pick the provider to use, or None when no provider is configured."""
    default = settings.llm_default_provider
    for provider in _provider_order(default):
        if not _is_configured(provider, settings):
            continue
        if provider == default and settings.llm_default_model:
            model = settings.llm_default_model
        else:
            model = DEFAULT_MODELS[provider]
        source = "default" if provider == default else "failover"
        return LLMAssignment(provider=provider, model=model, source=source)
    return None


def mask_api_key(api_key: str | None) -> str | None:
    """Short preview of a key for status output, never the full secret."""
    if not api_key:
        return None
    if len(api_key) <= 12:
        return f"{api_key[:2]}***{api_key[-2:]}"
    return f"{api_key[:7]}...{api_key[-4:]}"


def describe_configuration(settings: Settings) -> dict[str, object]:
    """Provider status summary (active provider, masked keys)."""
    active = resolve_provider(settings)
    return {
        "active_provider": active.provider if active else "none",
        "active_model": active.model if active else None,
        "default_provider": settings.llm_default_provider,
        "keys": {
            p: mask_api_key(provider_api_key(p, settings))
            for p in PROVIDER_ORDER
            if p != "ollama"
        },
    }

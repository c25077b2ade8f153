# src/config/settings.py — v2
"""Typed configuration loaded from .env via pydantic-settings.

Single source of truth for provider credentials, extraction budgets,
asset storage, the analysis repository and logging.
"""

from __future__ import annotations

from pathlib import Path
from typing import Literal

from pydantic import field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class ConfigurationError(Exception):
    """Raised when configuration is internally inconsistent."""


class Settings(BaseSettings):
    """Application settings loaded from .env file."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # === LLM PROVIDERS ===
    llm_default_provider: Literal[
        "openai", "minimax", "google", "anthropic", "ollama"
    ] = "openai"
    llm_default_model: str = ""
    llm_temperature: float = 0.3
    llm_max_tokens: int = 2000
    llm_timeout_s: float = 45.0
    llm_json_mode: bool = True

    # Provider API keys
    openai_api_key: str = ""
    minimax_api_key: str = ""
    google_api_key: str = ""
    anthropic_api_key: str = ""

    # Provider endpoints
    minimax_base_url: str = "https://api.minimax.io/v1"
    google_base_url: str = "https://generativelanguage.googleapis.com/v1beta/openai/"
    ollama_base_url: str = "http://localhost:11434"

    # === Extraction budgets ===
    extraction_max_fetch_bytes: int = 2 * 1024 * 1024
    extraction_max_scan_chars: int = 2_000_000
    extraction_max_matches: int = 4000
    extraction_min_primary_chars: int = 200
    extraction_max_text_chars: int = 20_000
    prompt_excerpt_chars: int = 8000

    # === Asset storage ===
    asset_backend: Literal["local", "s3"] = "local"
    asset_root: Path = Path("~/.bookinsight/assets")
    asset_s3_bucket: str = ""
    asset_s3_region: str = ""
    asset_s3_endpoint_url: str = ""
    asset_key_prefixes: str = "book-file,video-file"
    asset_public_base_url: str = ""
    http_timeout_s: float = 15.0

    # === Analysis repository ===
    repository_backend: Literal["sqlite", "json"] = "sqlite"
    repository_path: Path = Path("~/.bookinsight/analysis")
    cleanup_days: int = 90

    # === Logging ===
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "INFO"
    log_format: Literal["json", "text"] = "json"
    log_file: Path | None = None
    log_rotation: str = "10MB"
    log_retention: int = 30

    # --- Validators ---

    @field_validator("extraction_max_fetch_bytes", "extraction_max_scan_chars")
    @classmethod
    def validate_positive_budget(cls, v: int) -> int:  # noqa: N805
        if v <= 0:
            raise ValueError("extraction budgets must be > 0")
        return v

    @model_validator(mode="after")
    def validate_config_consistency(self) -> Settings:
        """Validate cross-field consistency rules."""
        errors: list[str] = []

        if self.asset_backend == "s3" and not self.asset_s3_bucket:
            errors.append("ASSET_S3_BUCKET must be set when ASSET_BACKEND=s3")

        if self.extraction_min_primary_chars >= self.extraction_max_text_chars:
            errors.append(
                "EXTRACTION_MIN_PRIMARY_CHARS must be < EXTRACTION_MAX_TEXT_CHARS"
            )

        if self.llm_timeout_s <= 0:
            errors.append("LLM_TIMEOUT_S must be > 0")

        if errors:
            raise ConfigurationError("; ".join(errors))

        return self

    # --- Helpers ---

    @property
    def asset_key_prefixes_list(self) -> list[str]:
        """Parse comma-separated storage folder prefixes."""
        return [
            p.strip().strip("/") for p in self.asset_key_prefixes.split(",") if p.strip()
        ]


def load_settings(**overrides: object) -> Settings:
    """Load settings from .env with optional overrides.

    Args:
        **overrides: Field-level overrides (for testing or per-call config).

    Returns:
        Validated Settings instance.

    Raises:
        ConfigurationError: If configuration is internally inconsistent.
    """
    return Settings(**overrides)  # type: ignore[arg-type]

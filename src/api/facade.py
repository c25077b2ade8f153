# src/api/facade.py — v2
"""Public API facade — entry points for route handlers and the CLI.

Usage:
    from bookinsight.api.facade import get_or_create_analysis
    record = await get_or_create_analysis(42, BookFields(title="..."))

Each helper builds its collaborators from settings unless they are
passed in; nothing is cached at module level.
"""

from __future__ import annotations

import logging

from bookinsight.analysis.orchestrator import AnalysisOrchestrator
from bookinsight.cache.base_repository import BaseAnalysisRepository
from bookinsight.cache.models import AnalysisRecord
from bookinsight.cache.repository_factory import create_repository
from bookinsight.config.settings import Settings
from bookinsight.core.models import BookFields, ExtractionResult, PdfMetadata
from bookinsight.extraction.pdf_scanner import PdfScanner
from bookinsight.llm.base_client import BaseLLMClient
from bookinsight.llm.client_factory import create_configured_client
from bookinsight.storage.fetcher import ByteRangeFetcher
from bookinsight.storage.source_factory import create_asset_source

logger = logging.getLogger(__name__)


def build_fetcher(settings: Settings) -> ByteRangeFetcher:
    """Byte fetcher over the configured asset source."""
    return ByteRangeFetcher(
        source=create_asset_source(settings),
        key_prefixes=settings.asset_key_prefixes_list,
        public_base_url=settings.asset_public_base_url,
        http_timeout_s=settings.http_timeout_s,
    )


def build_orchestrator(
    settings: Settings | None = None,
    repository: BaseAnalysisRepository | None = None,
    llm_client: BaseLLMClient | None = None,
) -> AnalysisOrchestrator:
    """Wire an AnalysisOrchestrator from settings.

    Args:
        settings: Global settings. Loaded from .env if None.
        repository: Analysis store. Built from REPOSITORY_BACKEND if None.
        llm_client: Completion client. Resolved from provider keys if None;
            stays None (fallback-only) when no provider is configured.

    Raises:
        UnsupportedProviderError: Unknown provider name.
        UnsupportedBackendError: Unknown repository or asset backend.
    """
    settings = settings or Settings()
    if llm_client is None:
        llm_client = create_configured_client(settings)
    return AnalysisOrchestrator(
        repository=repository or create_repository(settings),
        llm_client=llm_client,
        fetcher=build_fetcher(settings),
        scanner=PdfScanner.from_settings(settings),
        settings=settings,
    )


async def extract_book_text(
    asset_ref: str | None,
    title: str | None = None,
    author: str | None = None,
    settings: Settings | None = None,
    fetcher: ByteRangeFetcher | None = None,
) -> ExtractionResult:
    """Fetch the first bytes of a book's PDF and scan them.

    Returns an empty ExtractionResult (no text, page_count 0) when the
    asset cannot be fetched.
    """
    settings = settings or Settings()
    fetcher = fetcher or build_fetcher(settings)

    data = await fetcher.fetch_bytes(asset_ref, settings.extraction_max_fetch_bytes)
    if not data:
        logger.info("No bytes available for asset %r", asset_ref)
        return ExtractionResult(metadata=PdfMetadata(title=title or None, author=author or None))

    return PdfScanner.from_settings(settings).parse(data, title=title, author=author)


async def get_or_create_analysis(
    book_id: int,
    fields: BookFields,
    force_regenerate: bool = False,
    settings: Settings | None = None,
    orchestrator: AnalysisOrchestrator | None = None,
) -> AnalysisRecord:
    """Cached analysis for a book, generated (or synthesized) on a miss."""
    orchestrator = orchestrator or build_orchestrator(settings)
    return await orchestrator.get_or_create_analysis(
        book_id, fields, force_regenerate=force_regenerate
    )

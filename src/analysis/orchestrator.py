# src/analysis/orchestrator.py — v2
"""Analysis orchestrator — cache lookup, generation, fallback, persist.

Per invocation:
  1. Fingerprint the book fields.
  2. Lookup (book_id, fingerprint). Hit and not forced → touch, return.
  3. Forced → delete every record of the book, then regenerate.
  4. No provider → fallback record ("provider not configured").
  5. Best-effort fetch + scan of the primary asset for an excerpt.
  6. One completion call (under a timeout), parse; on failure one repair
     call, parse again. Still failing, or provider error → fallback.
  7. Upsert on (book_id, fingerprint) and return the stored record.

Callers always get an AnalysisRecord. Concurrent requests for the same
(book_id, fingerprint) inside one process share a single in-flight
resolution; across processes the repository upsert is the only
serialization point (last write wins).
"""

from __future__ import annotations

import asyncio
import logging
import time
from typing import TYPE_CHECKING, Any

from bookinsight.analysis.errors import GenerationError
from bookinsight.analysis.fallback import build_fallback_content
from bookinsight.analysis.language import Language, detect_language
from bookinsight.analysis.normalizer import IncompleteAnalysisError, normalize_analysis
from bookinsight.analysis.parsing import ResponseParseError, parse_json_object
from bookinsight.analysis.prompts import build_analysis_messages, build_repair_messages
from bookinsight.cache.fingerprint import compute_content_hash
from bookinsight.cache.models import AnalysisContent, AnalysisRecord
from bookinsight.config.settings import Settings
from bookinsight.extraction.pdf_scanner import PdfScanner
from bookinsight.extraction.text_utils import clip_excerpt
from bookinsight.logging.context import clear_context, set_book_context, set_step

if TYPE_CHECKING:
    from bookinsight.cache.base_repository import BaseAnalysisRepository
    from bookinsight.core.models import BookFields, ExtractionResult
    from bookinsight.llm.base_client import BaseLLMClient
    from bookinsight.llm.models import Message
    from bookinsight.storage.fetcher import ByteRangeFetcher

logger = logging.getLogger(__name__)

FALLBACK_MODEL_LABEL = "fallback"
REASON_NO_PROVIDER = "provider not configured"


class AnalysisOrchestrator:
    """Get-or-create analyses for books, keyed by content fingerprint.

    Args:
        repository: Analysis record store.
        llm_client: Completion provider. None = always fall back.
        fetcher: Asset byte fetcher. None = prompts carry no excerpt.
        scanner: PDF scanner for fetched bytes. Built from settings if None.
        settings: Application settings. Loaded from .env if None.
    """

    def __init__(
        self,
        repository: BaseAnalysisRepository,
        llm_client: BaseLLMClient | None = None,
        fetcher: ByteRangeFetcher | None = None,
        scanner: PdfScanner | None = None,
        settings: Settings | None = None,
    ) -> None:
        self._settings = settings or Settings()
        self._repository = repository
        self._llm = llm_client
        self._fetcher = fetcher
        self._scanner = scanner or PdfScanner.from_settings(self._settings)
        self._inflight: dict[tuple[int, str], asyncio.Future[AnalysisRecord]] = {}

    @property
    def repository(self) -> BaseAnalysisRepository:
        return self._repository

    @property
    def provider_configured(self) -> bool:
        return self._llm is not None

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    async def get_or_create_analysis(
        self,
        book_id: int,
        fields: BookFields,
        force_regenerate: bool = False,
    ) -> AnalysisRecord:
        """Return the cached analysis for the book's fields, creating it if needed.

        Args:
            book_id: Book identifier.
            fields: Title/author/description/asset_ref (+ tags).
            force_regenerate: Drop the book's records and generate afresh.

        Returns:
            The stored AnalysisRecord (generated or fallback).
        """
        content_hash = compute_content_hash(fields)
        key = (book_id, content_hash)

        inflight = self._inflight.get(key)
        if inflight is not None:
            logger.debug("Joining in-flight analysis for book %d", book_id)
            record = await asyncio.shield(inflight)
            if not force_regenerate:
                return record

        task = asyncio.ensure_future(
            self._resolve(book_id, fields, content_hash, force_regenerate)
        )
        self._inflight[key] = task
        task.add_done_callback(lambda t: self._forget(key, t))
        return await asyncio.shield(task)

    # ------------------------------------------------------------------
    # Resolution
    # ------------------------------------------------------------------

    async def _resolve(
        self,
        book_id: int,
        fields: BookFields,
        content_hash: str,
        force_regenerate: bool,
    ) -> AnalysisRecord:
        set_book_context(book_id, content_hash)
        try:
            set_step("lookup")
            existing = await self._repository.find_latest(book_id, content_hash)
            if existing is not None and not force_regenerate:
                await self._repository.touch_accessed(existing.id)
                logger.info("Cache hit for book %d", book_id)
                return existing

            if force_regenerate:
                deleted = await self._repository.delete_all(book_id)
                logger.info("Forced regeneration: deleted %d record(s) of book %d", deleted, book_id)

            record = await self._create(book_id, fields, content_hash)

            set_step("persist")
            stored = await self._repository.upsert(record)
            logger.info(
                "Stored %s analysis for book %d (model=%s)",
                stored.source, book_id, stored.ai_model_used,
            )
            return stored
        finally:
            clear_context()

    async def _create(
        self, book_id: int, fields: BookFields, content_hash: str
    ) -> AnalysisRecord:
        llm = self._llm
        if llm is None:
            content = build_fallback_content(fields, REASON_NO_PROVIDER)
            return self._record(book_id, content_hash, content, reason=REASON_NO_PROVIDER)

        set_step("scan")
        extraction = await self._scan_asset(fields)
        page_count = extraction.page_count if extraction else None
        excerpt = ""
        if extraction is not None and extraction.is_usable():
            excerpt = clip_excerpt(extraction.text, self._settings.prompt_excerpt_chars)

        set_step("generate")
        try:
            content = await self._generate(llm, fields, excerpt, page_count)
        except GenerationError as e:
            logger.warning("Generation failed for book %d: %s", book_id, e.reason)
            content = build_fallback_content(fields, e.reason, page_count=page_count)
            return self._record(book_id, content_hash, content, reason=e.reason)

        return self._record(book_id, content_hash, content)

    async def _scan_asset(self, fields: BookFields) -> ExtractionResult | None:
        """Fetch and scan the book's asset. None when unavailable."""
        if self._fetcher is None or not fields.asset_ref:
            return None
        try:
            data = await self._fetcher.fetch_bytes(
                fields.asset_ref, self._settings.extraction_max_fetch_bytes
            )
            if not data:
                logger.info("Asset bytes unavailable, prompting without excerpt")
                return None
            result = self._scanner.parse(data, title=fields.title, author=fields.author)
        except Exception as e:
            logger.warning("Asset scan failed, prompting without excerpt: %s", e)
            return None
        logger.debug(
            "Scanned asset: %d chars, %d pages, fallback=%s",
            len(result.text), result.page_count, result.used_fallback,
        )
        return result

    # ------------------------------------------------------------------
    # Generation
    # ------------------------------------------------------------------

    async def _generate(
        self, llm: BaseLLMClient, fields: BookFields, excerpt: str, page_count: int | None
    ) -> AnalysisContent:
        """One completion, one repair at most.

        Raises:
            GenerationError: Provider failure, timeout or unusable output.
        """
        language: Language = detect_language(fields, extra_text=excerpt)
        system, messages = build_analysis_messages(fields, language, excerpt)
        raw = await self._complete(llm, system, messages)

        try:
            return self._to_content(raw, fields, page_count)
        except (ResponseParseError, IncompleteAnalysisError) as first_error:
            logger.info("Unusable provider output (%s), requesting repair", first_error)

        set_step("repair")
        system, messages = build_repair_messages(raw, language)
        repaired = await self._complete(llm, system, messages)
        try:
            return self._to_content(repaired, fields, page_count)
        except (ResponseParseError, IncompleteAnalysisError) as e:
            raise GenerationError(f"unparsable response after repair: {e}") from e

    async def _complete(
        self, llm: BaseLLMClient, system: str, messages: list[Message]
    ) -> str:
        timeout = self._settings.llm_timeout_s
        start = time.monotonic()
        try:
            response = await asyncio.wait_for(
                llm.complete(
                    messages=messages,
                    system=system,
                    max_tokens=self._settings.llm_max_tokens,
                    temperature=self._settings.llm_temperature,
                    json_mode=self._settings.llm_json_mode,
                ),
                timeout=timeout,
            )
        except asyncio.TimeoutError as e:
            raise GenerationError(f"provider timed out after {timeout:g}s") from e
        except Exception as e:
            raise GenerationError(f"provider error: {e}") from e

        logger.info(
            "Completion from %s: %d in / %d out tokens in %dms",
            llm.model, response.input_tokens, response.output_tokens,
            int((time.monotonic() - start) * 1000),
        )
        return response.content

    @staticmethod
    def _to_content(
        raw: str, fields: BookFields, page_count: int | None
    ) -> AnalysisContent:
        """Parse and normalize; any failure is reported as ResponseParseError."""
        try:
            parsed: dict[str, Any] = parse_json_object(raw)
            return normalize_analysis(parsed, fields.display_title, page_count)
        except (ResponseParseError, IncompleteAnalysisError):
            raise
        except Exception as e:
            raise ResponseParseError(f"unusable response: {e!r}") from e

    def _record(
        self,
        book_id: int,
        content_hash: str,
        content: AnalysisContent,
        reason: str | None = None,
    ) -> AnalysisRecord:
        if reason is None:
            model = self._llm.model if self._llm is not None else FALLBACK_MODEL_LABEL
            source = "generated"
        else:
            model = FALLBACK_MODEL_LABEL
            source = "fallback"
        return AnalysisRecord(
            book_id=book_id,
            content_hash=content_hash,
            ai_model_used=model,
            source=source,
            fallback_reason=reason,
            **content.model_dump(),
        )

    def _forget(self, key: tuple[int, str], task: asyncio.Future[AnalysisRecord]) -> None:
        if self._inflight.get(key) is task:
            del self._inflight[key]

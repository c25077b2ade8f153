# tests/conftest.py — v2
"""Shared test fixtures for all unit and integration tests.

Provides book fields, settings, a scripted LLM client, in-memory
repositories and a small synthetic PDF. No network access.
"""

from __future__ import annotations

import json
from unittest.mock import AsyncMock

import pytest

from bookinsight.cache.sqlite_repository import SqliteAnalysisRepository
from bookinsight.config.settings import Settings
from bookinsight.core.models import BookFields
from bookinsight.llm.base_client import BaseLLMClient
from bookinsight.llm.models import LLMResponse, Message


# === FIXTURES: Sample data ===


@pytest.fixture
def sample_fields() -> BookFields:
    """English book with tags and an asset key."""
    return BookFields(
        title="Thinking in Systems",
        author="Donella Meadows",
        description="A primer on systems thinking.",
        asset_ref="book-file/systems.pdf",
        tags="systems, ecology, management",
    )


@pytest.fixture
def chinese_fields() -> BookFields:
    return BookFields(
        title="示例书",
        author="张三",
        description="",
        asset_ref="book-file/abc.pdf",
    )


@pytest.fixture
def valid_analysis_payload() -> dict:
    """Well-formed provider output in the requested schema."""
    return {
        "summary": "A concise primer on stocks, flows and feedback loops.",
        "keyPoints": ["Stocks change through flows", "Feedback loops drive behaviour"],
        "keywords": ["stock", "flow", "feedback"],
        "topics": ["Systems thinking", "Ecology"],
        "difficulty": "Beginner",
        "authorBackground": "Environmental scientist.",
        "bookBackground": "Published posthumously in 2008.",
        "worldRelevance": "Useful for climate policy.",
        "quizQuestions": [
            {
                "question": "What changes a stock?",
                "options": ["Flows", "Loops", "Delays", "Goals"],
                "correctIndex": 0,
                "explanation": "Stocks change only through inflows and outflows.",
            }
        ],
        "mindmapStructure": {
            "name": "Thinking in Systems",
            "children": [{"name": "Stocks"}, {"name": "Flows"}],
        },
        "confidence": 0.8,
    }


@pytest.fixture
def minimal_pdf_bytes() -> bytes:
    """Two-page uncompressed PDF with Tj/TJ text operators."""
    sentence = "(The quick brown fox jumps over the lazy dog near the riverbank) Tj\n"
    stream = "BT /F1 12 Tf 72 712 Td " + sentence * 6 + "[(Systems) -250 (thinking)] TJ ET"
    return (
        "%PDF-1.4\n"
        "1 0 obj << /Type /Catalog /Pages 2 0 R >> endobj\n"
        "2 0 obj << /Type /Pages /Kids [3 0 R 4 0 R] /Count 2 >> endobj\n"
        "3 0 obj << /Type /Page /Parent 2 0 R /Contents 5 0 R >> endobj\n"
        "4 0 obj << /Type /Page /Parent 2 0 R /Contents 5 0 R >> endobj\n"
        f"5 0 obj << /Length {len(stream)} >> stream\n{stream}\nendstream endobj\n"
        "%%EOF\n"
    ).encode("latin-1")


# === FIXTURES: Settings ===


@pytest.fixture
def settings(tmp_path) -> Settings:
    """Settings isolated from any local .env, pointing at tmp_path."""
    return Settings(
        _env_file=None,
        openai_api_key="",
        minimax_api_key="",
        google_api_key="",
        anthropic_api_key="",
        asset_root=tmp_path / "assets",
        repository_path=tmp_path / "analysis",
        llm_timeout_s=5.0,
    )


# === FIXTURES: Repositories ===


@pytest.fixture
def memory_repository() -> SqliteAnalysisRepository:
    repo = SqliteAnalysisRepository(":memory:")
    yield repo
    repo.close()


# === FIXTURES: Mock LLM ===


class ScriptedLLMClient(BaseLLMClient):
    """LLM client returning queued responses; records every call.

    A queued Exception instance is raised instead of returned.
    """

    def __init__(self, responses: list[str | Exception], model: str = "stub-model") -> None:
        self._responses = list(responses)
        self._model = model
        self.calls: list[dict] = []

    async def complete(
        self,
        messages: list[Message],
        system: str | None = None,
        max_tokens: int = 2000,
        temperature: float = 0.3,
        json_mode: bool = False,
    ) -> LLMResponse:
        self.calls.append({"messages": messages, "system": system, "json_mode": json_mode})
        item = self._responses.pop(0) if self._responses else "not json {{"
        if isinstance(item, Exception):
            raise item
        return LLMResponse(content=item, model=self._model, provider="stub")

    @property
    def provider_name(self) -> str:
        return "stub"

    @property
    def model(self) -> str:
        return self._model


@pytest.fixture
def scripted_llm():
    """Factory: scripted_llm([...responses]) -> ScriptedLLMClient."""
    return ScriptedLLMClient


@pytest.fixture
def valid_llm(valid_analysis_payload) -> ScriptedLLMClient:
    return ScriptedLLMClient([json.dumps(valid_analysis_payload)] * 4)


@pytest.fixture
def mock_llm_response() -> LLMResponse:
    """Standard mock LLM response."""
    return LLMResponse(
        content='{"summary": "Test summary"}',
        input_tokens=100,
        output_tokens=50,
        model="gpt-4o-mini",
        provider="openai",
        latency_ms=500,
    )


@pytest.fixture
def mock_llm_client(mock_llm_response: LLMResponse) -> AsyncMock:
    """Mock BaseLLMClient with default response."""
    client = AsyncMock(spec=BaseLLMClient)
    client.complete.return_value = mock_llm_response
    client.provider_name = "openai"
    client.model = "gpt-4o-mini"
    return client

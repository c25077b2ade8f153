# tests/unit/logging/test_logging.py — v2
"""Tests for logging/logger.py, logging/context.py and logging/handlers.py."""

from __future__ import annotations

import json
import logging
from logging.handlers import RotatingFileHandler

import pytest

from bookinsight.cache.fingerprint import short_hash
from bookinsight.logging.context import (
    clear_context,
    get_context,
    set_book_context,
    set_step,
)
from bookinsight.logging.handlers import create_rotating_handler, parse_size
from bookinsight.logging.logger import JsonFormatter, TextFormatter, get_logger, setup_logging


def _record(msg: str = "hello", **extra) -> logging.LogRecord:
    record = logging.LogRecord("bookinsight.test", logging.INFO, __file__, 1, msg, None, None)
    for key, value in extra.items():
        setattr(record, key, value)
    return record


@pytest.fixture(autouse=True)
def _reset_context():
    clear_context()
    yield
    clear_context()


class TestContext:
    def test_empty_by_default(self):
        assert get_context().as_dict() == {}

    def test_book_context_truncates_hash(self):
        set_book_context(42, "f" * 64)
        ctx = get_context()
        assert ctx.book_id == 42
        assert ctx.content_hash == "f" * 12
        assert ctx.content_hash == short_hash("f" * 64)

    def test_step(self):
        set_step("scan")
        assert get_context().as_dict() == {"step": "scan"}

    def test_clear(self):
        set_book_context(1, "abc")
        set_step("persist")
        clear_context()
        assert get_context().as_dict() == {}


class TestJsonFormatter:
    def test_basic_fields(self):
        entry = json.loads(JsonFormatter().format(_record()))
        assert entry["level"] == "INFO"
        assert entry["logger"] == "bookinsight.test"
        assert entry["message"] == "hello"
        assert "context" not in entry

    def test_context_injected(self):
        set_book_context(7, "0123456789abcdef")
        set_step("generate")
        entry = json.loads(JsonFormatter().format(_record()))
        assert entry["context"] == {
            "book_id": 7, "content_hash": "0123456789ab", "step": "generate",
        }

    def test_extra_data(self):
        entry = json.loads(JsonFormatter().format(_record(data={"tokens": 12})))
        assert entry["data"] == {"tokens": 12}

    def test_non_ascii_kept(self):
        out = JsonFormatter().format(_record("示例书"))
        assert "示例书" in out


class TestTextFormatter:
    def test_includes_book_and_step(self):
        set_book_context(3, "abc")
        set_step("lookup")
        line = TextFormatter().format(_record())
        assert "[book=3]" in line
        assert "(lookup)" in line
        assert line.endswith("- hello")


class TestLoggerSetup:
    def test_get_logger_namespace(self):
        assert get_logger("cache").name == "bookinsight.cache"

    def test_setup_replaces_handlers(self):
        setup_logging(level="DEBUG", log_format="text")
        setup_logging(level="WARNING", log_format="json")
        root = logging.getLogger("bookinsight")
        assert root.level == logging.WARNING
        assert len(root.handlers) == 1
        assert isinstance(root.handlers[0].formatter, JsonFormatter)
        root.handlers.clear()
        root.setLevel(logging.NOTSET)

    def test_setup_with_file(self, tmp_path):
        log_file = tmp_path / "logs" / "app.log"
        setup_logging(level="INFO", log_format="text", log_file=str(log_file))
        root = logging.getLogger("bookinsight")
        assert any(isinstance(h, RotatingFileHandler) for h in root.handlers)
        for handler in root.handlers:
            handler.close()
        root.handlers.clear()
        root.setLevel(logging.NOTSET)


class TestHandlers:
    @pytest.mark.parametrize("value,expected", [
        ("10MB", 10 * 1024**2),
        ("512kb", 512 * 1024),
        ("1GB", 1024**3),
        ("4096", 4096),
        ("20B", 20),
    ])
    def test_parse_size(self, value: str, expected: int):
        assert parse_size(value) == expected

    def test_parse_size_invalid(self):
        with pytest.raises(ValueError):
            parse_size("ten megabytes")

    def test_rotating_handler_creates_dir(self, tmp_path):
        handler = create_rotating_handler(tmp_path / "a" / "b.log", rotation="1KB", retention=2)
        assert (tmp_path / "a").is_dir()
        assert handler.maxBytes == 1024
        assert handler.backupCount == 2
        handler.close()

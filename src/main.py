# src/main.py — v2
"""CLI entry point — scan, fingerprint, analyze, cleanup, stats, providers.

Usage:
    bookinsight scan <file> [--title T] [--author A]
    bookinsight fingerprint --title T [--author A] [--description D] [--asset-ref R]
    bookinsight analyze --book-id N --title T [...] [--force]
    bookinsight cleanup [--days N]
    bookinsight stats
    bookinsight providers
"""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
import sys
from pathlib import Path

from bookinsight.version import __version__

logger = logging.getLogger(__name__)


def main(argv: list[str] | None = None) -> int:
    """Main CLI entry point."""
    parser = _build_parser()
    args = parser.parse_args(argv)

    _setup_logging(args.verbose)

    if not hasattr(args, "func"):
        parser.print_help()
        return 1

    try:
        return asyncio.run(args.func(args))
    except KeyboardInterrupt:
        logger.info("Interrupted by user")
        return 130
    except Exception as exc:
        logger.error("Fatal error: %s", exc, exc_info=args.verbose)
        return 1


def _build_parser() -> argparse.ArgumentParser:
    """Build CLI argument parser."""
    parser = argparse.ArgumentParser(
        prog="bookinsight",
        description=f"bookinsight v{__version__} — PDF text scanner and book analysis cache",
    )
    parser.add_argument(
        "--version", action="version", version=f"%(prog)s {__version__}",
    )
    parser.add_argument(
        "-v", "--verbose", action="store_true",
        help="Enable debug logging",
    )

    subparsers = parser.add_subparsers(dest="command")

    # --- scan ---
    p_scan = subparsers.add_parser("scan", help="Scan a local PDF file")
    p_scan.add_argument("file", type=Path, help="Path to PDF")
    p_scan.add_argument("--title", default=None, help="Title copied into metadata")
    p_scan.add_argument("--author", default=None, help="Author copied into metadata")
    p_scan.add_argument(
        "--full", action="store_true", help="Print the full text instead of a preview",
    )
    p_scan.set_defaults(func=_cmd_scan)

    # --- fingerprint ---
    p_fp = subparsers.add_parser("fingerprint", help="Print the content hash of book fields")
    _add_book_field_args(p_fp)
    p_fp.set_defaults(func=_cmd_fingerprint)

    # --- analyze ---
    p_analyze = subparsers.add_parser("analyze", help="Get or create a book analysis")
    p_analyze.add_argument("--book-id", type=int, required=True, help="Book identifier")
    _add_book_field_args(p_analyze)
    p_analyze.add_argument("--tags", default=None, help="Comma-separated tags")
    p_analyze.add_argument(
        "--force", action="store_true", help="Discard cached analyses and regenerate",
    )
    p_analyze.set_defaults(func=_cmd_analyze)

    # --- cleanup ---
    p_cleanup = subparsers.add_parser("cleanup", help="Delete analyses not accessed recently")
    p_cleanup.add_argument(
        "--days", type=int, default=None,
        help="Idle days before deletion (default: CLEANUP_DAYS)",
    )
    p_cleanup.set_defaults(func=_cmd_cleanup)

    # --- stats ---
    p_stats = subparsers.add_parser("stats", help="Show analysis cache statistics")
    p_stats.set_defaults(func=_cmd_stats)

    # --- providers ---
    p_providers = subparsers.add_parser("providers", help="Show completion provider status")
    p_providers.set_defaults(func=_cmd_providers)

    return parser


def _add_book_field_args(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("--title", default=None, help="Book title")
    parser.add_argument("--author", default=None, help="Book author")
    parser.add_argument("--description", default=None, help="Book description")
    parser.add_argument(
        "--asset-ref", dest="asset_ref", default=None,
        help="Storage key or URL of the book's PDF",
    )


def _book_fields(args: argparse.Namespace):
    from bookinsight.core.models import BookFields

    return BookFields(
        title=args.title,
        author=args.author,
        description=args.description,
        asset_ref=args.asset_ref,
        tags=getattr(args, "tags", None),
    )


async def _cmd_scan(args: argparse.Namespace) -> int:
    """Scan a PDF on disk and print what was recovered."""
    from bookinsight.config.settings import load_settings
    from bookinsight.extraction.pdf_scanner import PdfScanner

    file_path: Path = args.file
    if not file_path.is_file():
        logger.error("File not found: %s", file_path)
        return 1

    scanner = PdfScanner.from_settings(load_settings())
    result = scanner.parse_file(file_path, title=args.title, author=args.author)

    print(f"\nScan of {file_path.name}:")
    print(f"  Pages:      {result.page_count or 'unknown'}")
    print(f"  Characters: {len(result.text)}")
    print(f"  Method:     {'fallback filter' if result.used_fallback else 'content stream'}")
    if args.full:
        print(result.text)
    elif result.text:
        preview = result.text[:200]
        if len(result.text) > 200:
            preview += "..."
        print(f"  Preview:    {preview}")
    return 0


async def _cmd_fingerprint(args: argparse.Namespace) -> int:
    """Print the content hash for the given fields."""
    from bookinsight.cache.fingerprint import compute_content_hash

    print(compute_content_hash(_book_fields(args)))
    return 0


async def _cmd_analyze(args: argparse.Namespace) -> int:
    """Get or create an analysis and print it as JSON."""
    from bookinsight.api.facade import build_orchestrator
    from bookinsight.config.settings import load_settings

    settings = load_settings()
    orchestrator = build_orchestrator(settings)
    try:
        record = await orchestrator.get_or_create_analysis(
            args.book_id, _book_fields(args), force_regenerate=args.force,
        )
    finally:
        orchestrator.repository.close()

    print(record.model_dump_json(indent=2))
    if record.is_fallback:
        logger.warning("Fallback analysis returned: %s", record.fallback_reason)
    return 0


async def _cmd_cleanup(args: argparse.Namespace) -> int:
    """Delete analyses idle for more than N days."""
    from bookinsight.cache.repository_factory import create_repository
    from bookinsight.config.settings import load_settings

    settings = load_settings()
    days = args.days if args.days is not None else settings.cleanup_days
    if days <= 0:
        logger.error("--days must be > 0")
        return 1

    repository = create_repository(settings)
    try:
        deleted = await repository.cleanup_older_than(days)
    finally:
        repository.close()

    print(f"Deleted {deleted} analyses idle for more than {days} days")
    return 0


async def _cmd_stats(args: argparse.Namespace) -> int:
    """Display analysis cache statistics."""
    from bookinsight.cache.repository_factory import create_repository
    from bookinsight.config.settings import load_settings

    repository = create_repository(load_settings())
    try:
        stats = await repository.stats()
    finally:
        repository.close()

    print("\nAnalysis cache:")
    print(f"  Total:        {stats.total_analyses}")
    print(f"  Last 7 days:  {stats.recent_analyses}")
    print(f"  Books:        {stats.unique_books}")
    print(f"  Fallbacks:    {stats.fallback_analyses}")
    return 0


async def _cmd_providers(args: argparse.Namespace) -> int:
    """Show which completion provider would be used (keys masked)."""
    from bookinsight.config.settings import load_settings
    from bookinsight.llm.config import describe_configuration

    print(json.dumps(describe_configuration(load_settings()), indent=2))
    return 0


def _setup_logging(verbose: bool) -> None:
    """Configure logging for CLI usage."""
    from bookinsight.logging.logger import setup_logging

    setup_logging(level="DEBUG" if verbose else "INFO", log_format="text")
    # Quiet noisy libraries
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)


if __name__ == "__main__":
    sys.exit(main())

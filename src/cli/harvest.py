# =============================================================================
# src/cli/harvest.py - Story Harvest & Embedding Sync CLI
# =============================================================================
#
# Operator entry point for both halves of storyHarvester:
#
#   harvest <toc_url>  Fetch a story's table of contents, upsert the story,
#                      walk its reviews, then import every chapter (with its
#                      comments) using a bounded worker pool.
#   embed              Chunk and embed stored stories, chapters and reviews
#                      that are not yet in the passage index.
#   status             Print document counts per collection.
#
# Exit codes:
#   0  success
#   1  nothing harvested, or at least one unit failed
#   2  configuration error (raised before any network call)
#
# Settings come from the environment / .env (see src/config/settings.py).
# Logs go to stderr; the progress line and summaries go to stdout.
# =============================================================================

"""CLI for harvesting stories and syncing the embedded-passage index.

Usage::

    # Harvest one story (reviews, chapters, comments)
    python -m src.cli harvest https://www.royalroad.com/fiction/12345/some-story

    # Harvest with 5 chapter workers and no comments
    python -m src.cli harvest <toc_url> --concurrency 5 --max-comments 0

    # Embed everything not yet indexed
    python -m src.cli embed

    # Collection counts
    python -m src.cli status
"""

from __future__ import annotations

import argparse
import asyncio
import sys

from pydantic import ValidationError

from src.config.settings import Settings
from src.main import AppContext, build_context
from src.models.outcome import OutcomeStatus, StoryHarvestReport, SyncReport
from src.utils.errors import ConfigurationError
from src.utils.logging import configure_logging

EXIT_OK = 0
EXIT_FAILURE = 1
EXIT_CONFIG = 2


# ---------------------------------------------------------------------------
# Output helpers
# ---------------------------------------------------------------------------


def _print_progress(completed: int, total: int, _url: object) -> None:
    percent = completed / total * 100 if total else 100.0
    print(f"Progress: {completed}/{total} ({percent:.0f}%)", flush=True)


def _print_harvest_report(report: StoryHarvestReport) -> None:
    print()
    if report.story.status == OutcomeStatus.FAILED:
        print(f"Harvest failed: {report.story.reason}")
        return

    print(f"Story:     {report.title} ({'new' if report.created else 'updated'})")
    if report.reviews is not None:
        print(f"Reviews:   {report.reviews.persisted} saved ({report.reviews.status.value})")
    if report.chapters is not None:
        chapters = report.chapters
        print(
            f"Chapters:  {chapters.succeeded} new, {chapters.skipped} existing, "
            f"{chapters.failed} failed (of {chapters.total})"
        )
        print(
            f"Comments:  {chapters.comments_persisted} saved, "
            f"{chapters.comments_failed} walks failed"
        )
        for outcome in chapters.outcomes:
            if outcome.status == OutcomeStatus.FAILED:
                print(f"  FAILED {outcome.url}: {outcome.chapter.reason}")


def _print_sync_report(report: SyncReport) -> None:
    print()
    for label, outcomes in (
        ("Summaries", report.summaries),
        ("Chapters", report.chapters),
        ("Reviews", report.reviews),
    ):
        done = sum(1 for o in outcomes if o.status == OutcomeStatus.SUCCESS)
        failed = sum(1 for o in outcomes if o.reason == "embedding_failed")
        print(f"{label + ':':<11}{done} embedded, {failed} embedding failures, {len(outcomes)} seen")
    print(f"Chunks written: {report.chunks_written}")


# ---------------------------------------------------------------------------
# Subcommand handlers
# ---------------------------------------------------------------------------


async def _handle_harvest(args: argparse.Namespace, context: AppContext) -> int:
    """Harvest one story and print a summary."""
    print(f"Harvesting {args.toc_url}")
    report = await context.harvest_service.harvest(
        args.toc_url,
        concurrency=args.concurrency,
        max_comments=args.max_comments,
        max_reviews=args.max_reviews,
        on_progress=_print_progress,
    )
    _print_harvest_report(report)
    return EXIT_OK if report.ok else EXIT_FAILURE


async def _handle_embed(args: argparse.Namespace, context: AppContext) -> int:
    """Run the chunk/embed sync over everything stored."""
    if context.sync_service is None or context.embedder is None:
        raise ConfigurationError("Embedding provider was not configured")
    print(f"Embedding with {context.embedder.get_provider_name()}")
    report = await context.sync_service.sync_all()
    _print_sync_report(report)
    return EXIT_OK


async def _handle_status(args: argparse.Namespace, context: AppContext) -> int:
    """Print per-collection document counts."""
    counts = await context.repository.collection_counts()
    width = max(len(name) for name in counts)
    for name, count in counts.items():
        print(f"  {name:<{width}}  {count:,}")
    return EXIT_OK


_HANDLERS = {
    "harvest": _handle_harvest,
    "embed": _handle_embed,
    "status": _handle_status,
}


async def _run(args: argparse.Namespace, settings: Settings) -> int:
    context = build_context(settings, with_embedding=args.command == "embed")
    try:
        return await _HANDLERS[args.command](args, context)
    finally:
        await context.aclose()


# ---------------------------------------------------------------------------
# Parser
# ---------------------------------------------------------------------------


def _positive_int(value: str) -> int:
    number = int(value)
    if number < 1:
        raise argparse.ArgumentTypeError(f"must be >= 1, got {number}")
    return number


def _non_negative_int(value: str) -> int:
    number = int(value)
    if number < 0:
        raise argparse.ArgumentTypeError(f"must be >= 0, got {number}")
    return number


def _build_parser() -> argparse.ArgumentParser:
    """Build the argparse parser with harvest / embed / status subcommands."""
    parser = argparse.ArgumentParser(
        prog="python -m src.cli",
        description="Harvest serialized stories and build their embedded-passage index.",
    )
    subparsers = parser.add_subparsers(dest="command", help="commands")

    # -- harvest --
    harvest_parser = subparsers.add_parser(
        "harvest",
        help="Harvest a story, its reviews, chapters and comments",
    )
    harvest_parser.add_argument("toc_url", help="Table-of-contents URL of the story")
    harvest_parser.add_argument(
        "--concurrency",
        type=_positive_int,
        default=None,
        help="Chapter workers (default: MAX_PARALLEL_REQUESTS, 3)",
    )
    harvest_parser.add_argument(
        "--max-comments",
        type=_non_negative_int,
        default=None,
        dest="max_comments",
        help="Comments to keep per chapter (default: 7)",
    )
    harvest_parser.add_argument(
        "--max-reviews",
        type=_non_negative_int,
        default=None,
        dest="max_reviews",
        help="Reviews to keep per story (default: 50)",
    )

    # -- embed --
    subparsers.add_parser("embed", help="Chunk and embed everything not yet indexed")

    # -- status --
    subparsers.add_parser("status", help="Show document counts per collection")

    return parser


# ---------------------------------------------------------------------------
# Entry point
# ---------------------------------------------------------------------------


def main(argv: list[str] | None = None) -> None:
    """CLI entry point.

    Loads settings, configures logging and dispatches to the subcommand.
    Configuration problems exit with status 2 before any network call.
    """
    parser = _build_parser()
    args = parser.parse_args(argv)

    if args.command is None:
        parser.print_help()
        sys.exit(EXIT_FAILURE)

    try:
        settings = Settings()
        configure_logging(settings.log_level, json_output=settings.app_env == "production")
        exit_code = asyncio.run(_run(args, settings))
    except (ConfigurationError, ValidationError) as exc:
        print(f"Configuration error: {exc}", file=sys.stderr)
        exit_code = EXIT_CONFIG

    sys.exit(exit_code)


if __name__ == "__main__":
    main()

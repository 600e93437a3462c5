# =============================================================================
# src/cli/__init__.py - CLI Module Overview
# =============================================================================
#
# Command-line entry point for storyHarvester, run as `python -m src.cli`.
# One module (harvest.py) carries three subcommands:
#
#   1. HARVEST  Fetch a story from its table-of-contents URL: story record,
#               reviews, chapters and each chapter's comments.
#   2. EMBED    Chunk and embed stored text into the passage index.
#   3. STATUS   Document counts per collection.
#
# Architecture Notes:
#   - argparse for argument parsing, asyncio.run for the async handlers.
#   - Components are assembled by src.main.build_context, once per run.
# =============================================================================

"""CLI tools for storyHarvester.

- ``python -m src.cli harvest <toc_url>``: harvest one story
- ``python -m src.cli embed``: sync the embedded-passage index
- ``python -m src.cli status``: collection counts
"""

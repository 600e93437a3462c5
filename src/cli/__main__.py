# =============================================================================
# src/cli/__main__.py - Package Entry Point
# =============================================================================
#
# Enables `python -m src.cli <command>`; delegates to harvest.main().
# =============================================================================

"""Allow ``python -m src.cli`` execution."""

from src.cli.harvest import main

main()

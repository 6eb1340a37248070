# =============================================================================
# src/cli/__init__.py - CLI Module Overview
# =============================================================================
#
# Command-line access to the MusicTree genre catalog, run via
# `python -m src.cli.catalog <command>` (or simply `python -m src.cli`).
#
# Architecture Notes:
#   - argparse subcommands, one async handler per command.
#   - Assembly goes through src.main.init_catalog(); the CLI never builds
#     providers itself.
#   - Results are JSON on stdout; structlog output goes to stderr.
# =============================================================================

"""CLI tools for the MusicTree genre catalog.

- ``python -m src.cli.catalog`` - create, list, relate and import genres.
"""

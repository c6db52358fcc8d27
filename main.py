#!/usr/bin/env python3
"""Main entry point for Smart Energy Sync.

This file allows running the application directly with:
    uv run python main.py

For full CLI usage, use:
    uv run sesync --help
"""

from sesync.cli import cli

if __name__ == "__main__":
    cli()

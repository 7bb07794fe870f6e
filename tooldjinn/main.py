#!/usr/bin/env python3
"""
Main entry point for the Typer-based Tool Djinn CLI.

Delegates to tooldjinn.ui.cli so the console script mapping stays stable.
"""

from tooldjinn.ui.cli import run as tool_djinn


if __name__ == "__main__":
    tool_djinn()

"""
CLI layer for delay-spine.

A Typer application that builds runs through the engine API. All behaviour
lives in ``delay_spine.engine``; this package handles only terminal
transport: argument parsing, coloured output, and table formatting.

Entry point::

    delay-spine --help
"""

from delay_spine.cli.app import app

__all__ = ["app"]

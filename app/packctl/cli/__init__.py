"""CLI package for packctl.

This package contains the Typer application and all subcommands.
"""

from packctl.cli.main import app

__all__ = ["app"]

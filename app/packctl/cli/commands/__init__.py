"""CLI commands for packctl.

This package contains all subcommand implementations.
"""

from packctl.cli.commands import config, installed, packs

__all__ = ["config", "installed", "packs"]

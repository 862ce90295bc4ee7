"""Main CLI application entry point.

Defines the Typer application and global options.
"""

import logging
from pathlib import Path
from typing import Annotated

import typer
from rich.logging import RichHandler

from packctl import __version__
from packctl.cli.commands import config, installed, packs
from packctl.core.config import ConfigError, load_config_or_default
from packctl.utils.formatting import err_console

# Create main Typer app
app = typer.Typer(
    name="packctl",
    help="Queue and track pack install, update and removal operations.",
    no_args_is_help=True,
    rich_markup_mode="rich",
    context_settings={"help_option_names": ["-h", "--help"]},
)


def version_callback(value: bool) -> None:
    """Print version and exit."""
    if value:
        typer.echo(f"packctl version {__version__}")
        raise typer.Exit()


def configure_logging(level: int) -> None:
    """Route log records to stderr through Rich.

    Args:
        level: Minimum level shown on the console.
    """
    handler = RichHandler(console=err_console, show_path=False, markup=False)
    handler.setLevel(level)
    root = logging.getLogger()
    for existing in list(root.handlers):
        if isinstance(existing, RichHandler):
            root.removeHandler(existing)
    root.addHandler(handler)
    root.setLevel(level)


def _resolve_log_level(verbose: bool, quiet: bool, config_path: Path | None) -> int:
    """Pick the console log level from flags, falling back to the config."""
    if verbose:
        return logging.DEBUG
    if quiet:
        return logging.ERROR
    try:
        configured = load_config_or_default(config_path).log_level
    except ConfigError:
        # Reported by the command that loads the config
        return logging.WARNING
    level: int = logging.getLevelName(configured)
    return level


@app.callback()
def main(
    ctx: typer.Context,
    version: Annotated[
        bool | None,
        typer.Option(
            "--version",
            "-V",
            callback=version_callback,
            is_eager=True,
            help="Show version and exit.",
        ),
    ] = None,
    verbose: Annotated[
        bool,
        typer.Option(
            "--verbose",
            "-v",
            help="Enable verbose output.",
        ),
    ] = False,
    quiet: Annotated[
        bool,
        typer.Option(
            "--quiet",
            "-q",
            help="Suppress non-essential output.",
        ),
    ] = False,
    config_path: Annotated[
        Path | None,
        typer.Option(
            "--config",
            "-c",
            help="Path to config.toml (default: ~/.config/packctl/config.toml).",
        ),
    ] = None,
) -> None:
    """packctl - queue and track pack lifecycle operations.

    Installs, updates, disables and uninstalls packs through your pack
    manager, one operation at a time, and shows what each one printed.
    """
    # Store options in context for subcommands
    ctx.ensure_object(dict)
    ctx.obj["verbose"] = verbose
    ctx.obj["quiet"] = quiet
    ctx.obj["config_path"] = config_path

    configure_logging(_resolve_log_level(verbose, quiet, config_path))


# Register commands
app.add_typer(installed.app, name="list")
app.add_typer(config.app, name="config")
app.command(name="install")(packs.install)
app.command(name="enable")(packs.enable)
app.command(name="uninstall")(packs.uninstall)
app.command(name="update")(packs.update)
app.command(name="update-all")(packs.update_all)
app.command(name="disable")(packs.disable)


if __name__ == "__main__":
    app()

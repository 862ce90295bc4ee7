"""Config command implementation.

Shows and initializes the manager configuration file.
"""

from pathlib import Path
from typing import Annotated

import tomli_w
import typer
from rich.markup import escape

from packctl.cli.types import get_config
from packctl.core.config import ConfigError, get_default_config, save_config
from packctl.core.paths import ensure_config_dir, get_config_path
from packctl.utils.formatting import console, print_error, print_info, print_success

app = typer.Typer(
    help="Show or create the manager configuration.",
    no_args_is_help=True,
)


def _config_path(ctx: typer.Context) -> Path:
    """Resolve the config path from the global --config option."""
    obj = ctx.obj or {}
    return obj.get("config_path") or get_config_path()


@app.command()
def show(ctx: typer.Context) -> None:
    """Show the effective configuration as TOML."""
    config = get_config(ctx)
    path = _config_path(ctx)

    if not path.exists():
        print_info(f"No config file at {path}, showing defaults.")

    console.print(escape(tomli_w.dumps(config.model_dump(exclude_none=True))))


@app.command()
def path(ctx: typer.Context) -> None:
    """Print the path of the configuration file."""
    console.print(str(_config_path(ctx)))


@app.command()
def init(
    ctx: typer.Context,
    force: Annotated[
        bool,
        typer.Option("--force", "-f", help="Overwrite an existing config file."),
    ] = False,
) -> None:
    """Write a default configuration file.

    The generated file has empty command templates; fill them in with
    the commands of your pack manager, e.g.:

        [commands]
        install = ["manager", "install", "{id}", "--version={version}"]
    """
    path = _config_path(ctx)

    if path.exists() and not force:
        print_error(f"Config already exists: {path} (use --force to overwrite)")
        raise typer.Exit(code=1)

    try:
        if path == get_config_path():
            ensure_config_dir()
        saved = save_config(get_default_config(), path)
    except (ConfigError, RuntimeError) as e:
        print_error(str(e))
        raise typer.Exit(code=1) from e

    print_success(f"Config written to {saved}")

"""Pack lifecycle command implementations.

Each command submits one request to a session orchestrator, waits until
the queue is idle and prints the captured task output.
"""

from typing import Annotated

import typer

from packctl.cli.types import run_pack_action
from packctl.models.pack import InstallPackParams, PackInfo

PackIdArgument = Annotated[str, typer.Argument(help="Pack id (registry or auxiliary id).")]


def install(
    ctx: typer.Context,
    pack_id: PackIdArgument,
    version: Annotated[
        str | None,
        typer.Option(
            "--version",
            help="Version to install. Changes the version if the pack is installed.",
        ),
    ] = None,
) -> None:
    """Install a pack, or switch an installed pack to another version.

    Examples:
        packctl install comfyui-impact-pack
        packctl install comfyui-impact-pack --version 8.8.1
    """
    params = InstallPackParams(id=pack_id, selected_version=version)
    run_pack_action(ctx, lambda orchestrator: orchestrator.install_pack(params))


def enable(
    ctx: typer.Context,
    pack_id: PackIdArgument,
    version: Annotated[
        str | None,
        typer.Option("--version", help="Version to enable."),
    ] = None,
) -> None:
    """Enable a disabled pack (re-installs it through the install command)."""
    params = InstallPackParams(id=pack_id, selected_version=version)
    run_pack_action(ctx, lambda orchestrator: orchestrator.enable_pack(params))


def uninstall(ctx: typer.Context, pack_id: PackIdArgument) -> None:
    """Uninstall a pack."""
    params = PackInfo(id=pack_id)
    run_pack_action(ctx, lambda orchestrator: orchestrator.uninstall_pack(params))


def update(ctx: typer.Context, pack_id: PackIdArgument) -> None:
    """Update a pack to its latest version."""
    params = PackInfo(id=pack_id)
    run_pack_action(ctx, lambda orchestrator: orchestrator.update_pack(params))


def update_all(ctx: typer.Context) -> None:
    """Update every installed pack."""
    run_pack_action(ctx, lambda orchestrator: orchestrator.update_all_packs())


def disable(ctx: typer.Context, pack_id: PackIdArgument) -> None:
    """Disable a pack without uninstalling it."""
    params = PackInfo(id=pack_id)
    run_pack_action(ctx, lambda orchestrator: orchestrator.disable_pack(params))

"""List command implementation.

Lists installed packs as reported by the pack manager, together with the
reconciled enabled/disabled state of each logical pack.
"""

import asyncio
import json
from typing import Annotated

import typer

from packctl.cli.display import create_installed_table, print_state_summary
from packctl.cli.types import OutputFormat, build_orchestrator, get_config
from packctl.core.orchestrator import PackOrchestrator
from packctl.services.base import PackServiceError
from packctl.utils.formatting import console, print_error, print_info

app = typer.Typer(
    help="List installed packs.",
    invoke_without_command=True,
)


def _state_to_dict(orchestrator: PackOrchestrator) -> dict[str, object]:
    """Serialize the installed view and reconciled id sets for JSON output."""
    return {
        "packs": {
            key: record.to_dict() for key, record in sorted(orchestrator.installed_packs.items())
        },
        "installed": sorted(orchestrator.installed_pack_ids),
        "enabled": sorted(orchestrator.enabled_pack_ids),
        "disabled": sorted(orchestrator.disabled_pack_ids),
    }


@app.callback(invoke_without_command=True)
def list_packs(
    ctx: typer.Context,
    output_format: Annotated[
        OutputFormat,
        typer.Option(
            "--format",
            "-f",
            help="Output format: table or json.",
            case_sensitive=False,
        ),
    ] = OutputFormat.TABLE,
) -> None:
    """List installed packs and their enabled state.

    Examples:
        packctl list
        packctl list --format json
    """
    if ctx.invoked_subcommand is not None:
        return

    orchestrator = build_orchestrator(get_config(ctx))

    try:
        asyncio.run(orchestrator.refresh_installed_list())
    except PackServiceError as e:
        print_error(f"Could not list installed packs: {e}")
        raise typer.Exit(code=1) from e

    if output_format == OutputFormat.JSON:
        console.print_json(json.dumps(_state_to_dict(orchestrator)))
        return

    if not orchestrator.installed_packs:
        print_info("No packs installed.")
        return

    console.print(create_installed_table(orchestrator))
    print_state_summary(orchestrator)

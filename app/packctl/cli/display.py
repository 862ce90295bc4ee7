"""Shared Rich display functions for task logs and pack state.

Provides reusable table builders and summary printers used by the pack
action and listing commands.
"""

from rich.markup import escape
from rich.table import Table

from packctl.core.orchestrator import PackOrchestrator
from packctl.models.task import TaskLog
from packctl.utils.formatting import (
    console,
    create_pack_table,
    format_pack_row,
    print_info,
    print_success,
)


def print_task_logs(task_logs: list[TaskLog]) -> None:
    """Print the captured output of each task.

    Args:
        task_logs: Task log history in dispatch order.
    """
    for entry in task_logs:
        console.print(f"\n[task_name]{escape(entry.task_name)}[/]")
        if not entry.logs:
            console.print("  [muted](no output)[/]")
            continue
        for line in entry.logs:
            console.print(f"  [task_line]{escape(line)}[/]")


def print_run_summary(task_logs: list[TaskLog]) -> None:
    """Print the outcome of a successful run.

    A run without any dispatched task was a no-op (e.g. an empty pack id
    or a request superseded before it reached the queue).

    Args:
        task_logs: Task log history of the run.
    """
    if not task_logs:
        print_info("Nothing to do.")
        return
    print_success(f"\n{len(task_logs)} task(s) completed.")


def create_installed_table(orchestrator: PackOrchestrator) -> Table:
    """Create a Rich table of the orchestrator's installed packs view.

    Args:
        orchestrator: Orchestrator whose view has been refreshed.

    Returns:
        Rich Table with one row per installed record, sorted by key.
    """
    table = create_pack_table()
    for key in sorted(orchestrator.installed_packs):
        table.add_row(*format_pack_row(key, orchestrator.installed_packs[key]))
    return table


def print_state_summary(orchestrator: PackOrchestrator) -> None:
    """Print counts of installed, enabled and disabled logical packs.

    Args:
        orchestrator: Orchestrator whose view has been refreshed.
    """
    console.print(
        f"\n[muted]{len(orchestrator.installed_pack_ids)} pack(s) installed: "
        f"[/][pack_enabled]{len(orchestrator.enabled_pack_ids)} enabled[/][muted], "
        f"[/][pack_disabled]{len(orchestrator.disabled_pack_ids)} disabled[/]"
    )

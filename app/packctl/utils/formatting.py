"""Rich console formatting utilities.

Provides consistent formatting for CLI output using Rich.
"""

from __future__ import annotations

import sys
from typing import TYPE_CHECKING

from rich.console import Console
from rich.table import Table

from packctl.core.theme import get_theme

if TYPE_CHECKING:
    from packctl.models.pack import PackRecord


def _detect_color_system() -> str | None:
    """Detect the best color system for the current terminal.

    Returns "truecolor" for interactive terminals to enable full hex color support,
    None otherwise to let Rich auto-detect.
    """
    if sys.stdout.isatty():
        return "truecolor"
    return None


# Shared console instances (theme loaded once at import)
console = Console(theme=get_theme(), color_system=_detect_color_system())
err_console = Console(theme=get_theme(), stderr=True, color_system=_detect_color_system())


def create_pack_table(title: str = "Installed Packs") -> Table:
    """Create a pre-configured table for displaying installed packs.

    Args:
        title: Table title.

    Returns:
        Rich Table configured for pack display.
    """
    table = Table(
        title=title,
        show_header=True,
        header_style="bold_header",
        border_style="border",
        row_styles=["", "on grey7"],  # Zebra striping for readability
    )
    table.add_column("", width=2, justify="center")
    table.add_column("Key", no_wrap=True, style="muted")
    table.add_column("Pack", no_wrap=True)
    table.add_column("Version", style="muted")
    table.add_column("Status")
    return table


def format_pack_row(key: str, record: PackRecord) -> tuple[str, str, str, str, str]:
    """Format an installed pack record as a table row.

    Args:
        key: Lookup key of the record in the installed view.
        record: The pack record to format.

    Returns:
        Tuple of (icon, key, pack id, version, status) with Rich markup.
    """
    if record.enabled is True:
        style, icon, status = "pack_enabled", "●", "enabled"  # Filled circle
    elif record.enabled is False:
        style, icon, status = "pack_disabled", "○", "disabled"  # Empty circle
    else:
        style, icon, status = "pack_unknown", "?", "unknown"

    pack_id = record.pack_id or "-"
    return (
        f"[{style}]{icon}[/]",
        key,
        f"[{style}]{pack_id}[/]",
        f"[muted]{record.ver or '-'}[/]",
        f"[{style}]{status}[/]",
    )


def print_info(message: str) -> None:
    """Print an info message."""
    console.print(f"[info]{message}[/]")


def print_warning(message: str) -> None:
    """Print a warning message."""
    err_console.print(f"[warning]Warning:[/] {message}")


def print_error(message: str) -> None:
    """Print an error message."""
    err_console.print(f"[error]Error:[/] {message}")


def print_success(message: str) -> None:
    """Print a success message."""
    console.print(f"[success]{message}[/]")

"""Utility modules for packctl.

This module exports commonly used utility functions.
"""

from packctl.utils.formatting import (
    console,
    create_pack_table,
    err_console,
    format_pack_row,
    print_error,
    print_info,
    print_success,
    print_warning,
)
from packctl.utils.shell import CommandResult, run_command

__all__ = [
    "CommandResult",
    "console",
    "create_pack_table",
    "err_console",
    "format_pack_row",
    "print_error",
    "print_info",
    "print_success",
    "print_warning",
    "run_command",
]

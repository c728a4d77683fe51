"""Utility modules for debloatctl.

This module exports commonly used utility functions.
"""

from debloatctl.utils.formatting import (
    console,
    create_package_table,
    err_console,
    format_package_row,
    print_error,
    print_info,
    print_success,
    print_warning,
)
from debloatctl.utils.shell import (
    CommandResult,
    command_exists,
    run_command,
    run_command_async,
)

__all__ = [
    "CommandResult",
    "command_exists",
    "console",
    "create_package_table",
    "err_console",
    "format_package_row",
    "print_error",
    "print_info",
    "print_success",
    "print_warning",
    "run_command",
    "run_command_async",
]

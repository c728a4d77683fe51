"""Rich console formatting utilities.

Provides consistent formatting for CLI output using Rich.
"""

from __future__ import annotations

import sys
from typing import TYPE_CHECKING

from rich.console import Console
from rich.table import Table

from debloatctl.core.theme import get_theme

if TYPE_CHECKING:
    from debloatctl.models.package import PackageRow


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


def create_package_table(title: str = "Packages") -> Table:
    """Create a pre-configured table for displaying packages.

    Args:
        title: Table title.

    Returns:
        Rich Table configured for package display.
    """
    table = Table(
        title=title,
        show_header=True,
        header_style="bold_header",
        border_style="border",
        row_styles=["", "on grey7"],
    )
    # Selection marker: icon only, no header text
    table.add_column("", width=2, justify="center")
    table.add_column("Package", no_wrap=True)
    table.add_column("State", width=11)
    table.add_column("List", style="muted")
    table.add_column("Removal", width=11)
    table.add_column("Description", style="text", overflow="ellipsis")
    return table


def format_package_row(row: PackageRow) -> tuple[str, str, str, str, str, str]:
    """Format a package row with state and removal styling.

    Args:
        row: The package row to format.

    Returns:
        Tuple of (marker, name, state, list, removal, description) with Rich markup.
    """
    marker = "[success]●[/]" if row.selected else "[muted]○[/]"
    name = f"[package.name]{row.name}[/]"
    state = f"[state.{row.state.value}]{row.state.value}[/]"
    removal = f"[removal.{row.removal.value}]{row.removal.value}[/]"
    # Catalog descriptions span several lines; the table shows the first
    description = row.description.strip().splitlines()[0] if row.description.strip() else "-"
    return (marker, name, state, row.catalog_list.value, removal, f"[text]{description}[/]")


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

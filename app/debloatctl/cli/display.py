"""Shared Rich display functions for devices, plans and results.

Provides reusable table builders and summary printers used by the
device, list and action commands.
"""

from collections.abc import Sequence

from rich.table import Table

from debloatctl.core.orchestrator import Dispatch
from debloatctl.models.device import Device
from debloatctl.models.package import PackageState
from debloatctl.utils.formatting import console, print_success


def create_devices_table(devices: Sequence[Device]) -> Table:
    """Create a Rich table listing attached devices and their users.

    Args:
        devices: Devices to display.

    Returns:
        Rich Table configured for device display.
    """
    table = Table(
        title="Attached Devices",
        show_header=True,
        header_style="bold_header",
        border_style="border",
    )
    table.add_column("Serial", no_wrap=True)
    table.add_column("Model")
    table.add_column("SDK", justify="right")
    table.add_column("Users", style="muted")

    for device in devices:
        table.add_row(
            f"[package.name]{device.adb_id}[/]",
            device.model,
            str(device.android_sdk),
            ", ".join(str(user.id) for user in device.users),
        )
    return table


def create_plan_table(dispatches: Sequence[Dispatch], dry_run: bool = False) -> Table:
    """Create a Rich table displaying the device commands about to run.

    Mirrored commands for other users are marked so the authoritative
    command of each package stands out.

    Args:
        dispatches: Planned dispatches.
        dry_run: Whether this is a dry-run (changes table title).

    Returns:
        Rich Table configured for plan display.
    """
    title = "Planned Commands (Dry Run)" if dry_run else "Planned Commands"

    table = Table(
        title=title,
        show_header=True,
        header_style="bold_header",
        border_style="border",
    )
    table.add_column("Package", no_wrap=True)
    table.add_column("User", width=6, justify="right")
    table.add_column("Command")

    for dispatch in dispatches:
        command = dispatch.command
        user = "-" if command.user_id is None else str(command.user_id)
        name = command.package
        if not dispatch.authoritative:
            name = f"[muted]{name} (mirror)[/]"
        table.add_row(name, user, "[muted]" + "; ".join(command.shell_lines) + "[/]")

    return table


def create_results_table(changes: Sequence[tuple[str, PackageState, PackageState]]) -> Table:
    """Create a Rich table displaying package states after an action.

    A package whose state did not change is reported as failed.

    Args:
        changes: (package, state before, state after) triples.

    Returns:
        Rich Table configured for results display.
    """
    table = Table(
        title="Results",
        show_header=True,
        header_style="bold_header",
        border_style="border",
    )
    table.add_column("Status", width=8, justify="center")
    table.add_column("Package", no_wrap=True)
    table.add_column("State")

    for name, before, after in changes:
        if before != after:
            status = "[success]OK[/success]"
            state = (
                f"[state.{before.value}]{before.value}[/] -> "
                f"[state.{after.value}]{after.value}[/]"
            )
        else:
            status = "[error]FAIL[/error]"
            state = f"[state.{after.value}]{after.value}[/]"
        table.add_row(status, name, state)

    return table


def print_results_summary(changes: Sequence[tuple[str, PackageState, PackageState]]) -> None:
    """Print a summary of action results.

    Args:
        changes: (package, state before, state after) triples.
    """
    success_count = sum(1 for _, before, after in changes if before != after)
    fail_count = len(changes) - success_count

    if fail_count == 0:
        print_success(f"All {success_count} package(s) updated successfully.")
    else:
        console.print(
            f"\n[success]{success_count} succeeded[/success], [error]{fail_count} failed[/error]"
        )

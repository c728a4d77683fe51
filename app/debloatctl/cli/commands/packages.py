"""List command implementation.

Loads the catalog and the packages of a device and prints the filtered
package table.
"""

from typing import Annotated

import typer

from debloatctl.cli.types import (
    create_controller,
    find_device,
    load_controller,
    require_settings,
    select_user,
)
from debloatctl.models.package import CatalogList, PackageState, Removal
from debloatctl.utils.formatting import (
    console,
    create_package_table,
    format_package_row,
    print_info,
)

app = typer.Typer(
    help="List device packages.",
    invoke_without_command=True,
)


@app.callback(invoke_without_command=True)
def list_packages(
    ctx: typer.Context,
    serial: Annotated[
        str | None,
        typer.Option("--serial", help="ADB serial of the device to use."),
    ] = None,
    search: Annotated[
        str,
        typer.Option("--search", "-s", help="Only packages whose name contains this text."),
    ] = "",
    catalog_list: Annotated[
        CatalogList,
        typer.Option(
            "--list",
            "-l",
            help="Only packages of this catalog list.",
            case_sensitive=False,
        ),
    ] = CatalogList.ALL,
    state: Annotated[
        PackageState,
        typer.Option("--state", "-t", help="Only packages in this state.", case_sensitive=False),
    ] = PackageState.ALL,
    removal: Annotated[
        Removal,
        typer.Option(
            "--removal",
            "-r",
            help="Only packages with this removal classification.",
            case_sensitive=False,
        ),
    ] = Removal.ALL,
    user: Annotated[
        int | None,
        typer.Option("--user", "-u", help="Android user id (default: primary user)."),
    ] = None,
    offline: Annotated[
        bool,
        typer.Option("--offline", help="Use the embedded catalog instead of downloading it."),
    ] = False,
    count_only: Annotated[
        bool,
        typer.Option("--count", "-c", help="Only show package counts."),
    ] = False,
) -> None:
    """List device packages with their catalog classification.

    Examples:
        debloatctl list --removal recommended
        debloatctl list --state disabled --user 10
        debloatctl list --search facebook --offline
    """
    if ctx.invoked_subcommand is not None:
        return

    settings = require_settings()
    device = find_device(serial)
    controller = create_controller(device, settings)
    load_controller(controller, offline=offline)
    select_user(controller, user)

    controller.set_search(search)
    controller.select_list(catalog_list)
    controller.select_state(state)
    controller.select_removal(removal)

    visible = controller.filtered_rows()
    total = len(controller.rows())
    active = controller.active_user

    if count_only:
        counts = controller.table.counts(active.index)
        console.print(
            f"[info]{device.model}[/] ({active}): {len(visible)} of {total} packages shown "
            f"([state.enabled]{counts[PackageState.ENABLED]} enabled[/], "
            f"[state.disabled]{counts[PackageState.DISABLED]} disabled[/], "
            f"[state.uninstalled]{counts[PackageState.UNINSTALLED]} uninstalled[/])"
        )
        return

    if not visible:
        print_info("No packages match the current filters.")
        return

    table = create_package_table(title=f"{device.model} ({active})")
    for _, row in visible:
        table.add_row(*format_package_row(row))
    console.print(table)
    console.print(f"\n[muted]{len(visible)} of {total} packages shown[/muted]")

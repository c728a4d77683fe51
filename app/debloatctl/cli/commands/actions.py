"""Remove and restore command implementations.

Both commands load the device packages, resolve the requested package
names for the active user, show the device commands about to run and
apply them after confirmation.
"""

import asyncio
from typing import Annotated

import typer

from debloatctl.cli.display import create_plan_table, create_results_table, print_results_summary
from debloatctl.cli.types import (
    create_controller,
    find_device,
    load_controller,
    require_settings,
    select_user,
)
from debloatctl.core.controller import Controller, ControllerEvent, LoadingPhase
from debloatctl.models.action import ToggleResult
from debloatctl.models.package import Direction, PackageState, direction_applies
from debloatctl.utils.formatting import console, print_info, print_warning

PackagesArg = Annotated[
    list[str],
    typer.Argument(help="Package identifiers, e.g. com.facebook.katana."),
]
SerialOpt = Annotated[str | None, typer.Option("--serial", help="ADB serial of the device to use.")]
UserOpt = Annotated[
    int | None,
    typer.Option("--user", "-u", help="Android user id (default: primary user)."),
]
OfflineOpt = Annotated[bool, typer.Option("--offline", help="Use the embedded catalog.")]
DryRunOpt = Annotated[
    bool,
    typer.Option("--dry-run", "-n", help="Show what would be done without making changes."),
]
YesOpt = Annotated[bool, typer.Option("--yes", "-y", help="Skip confirmation prompt and proceed.")]


def _prepare(serial: str | None, user: int | None, offline: bool) -> Controller:
    settings = require_settings()
    device = find_device(serial)
    controller = create_controller(device, settings)
    load_controller(controller, offline=offline)
    select_user(controller, user)
    return controller


def _resolve(controller: Controller, names: list[str], direction: Direction) -> list[int]:
    """Map package names to row indices the direction applies to.

    Unknown packages and packages already in the requested state are
    reported and skipped.
    """
    rows = controller.rows()
    user = controller.active_user
    indices: list[int] = []
    for name in names:
        index = controller.table.index_of(user.index, name)
        if index is None:
            print_warning(f"{name} is not a system package of {user}.")
            continue
        if not direction_applies(direction, rows[index].state):
            print_info(f"Skipping {name}: already {rows[index].state.value}.")
            continue
        if index not in indices:
            indices.append(index)
    return indices


def _confirm(label: str) -> bool:
    """Prompt user to confirm the action."""
    return typer.confirm(f"\nProceed? {label}", default=False)


def _report(controller: Controller, before: list[tuple[int, str, PackageState]]) -> None:
    rows = controller.rows()
    changes = [(name, state, rows[index].state) for index, name, state in before]
    console.print(create_results_table(changes))
    print_results_summary(changes)
    if any(old == rows[index].state for index, _, old in before):
        raise typer.Exit(code=1)


def remove(
    packages: PackagesArg,
    serial: SerialOpt = None,
    user: UserOpt = None,
    offline: OfflineOpt = False,
    dry_run: DryRunOpt = False,
    yes: YesOpt = False,
) -> None:
    """Uninstall (or disable) packages.

    Packages classified unsafe are refused unless expert mode is on.
    With multi-user mode on, the packages are removed for every user.

    Examples:
        debloatctl remove com.facebook.katana --dry-run
        debloatctl remove com.facebook.katana com.facebook.appmanager --yes
    """
    controller = _prepare(serial, user, offline)
    rows = controller.rows()

    for index in _resolve(controller, packages, Direction.REMOVE):
        if controller.toggle_package(index, True) == ToggleResult.REFUSED:
            print_warning(
                f"Skipping {rows[index].name}: classified unsafe. "
                "Enable it with 'debloatctl config set device.expert_mode true'."
            )

    if not controller.selection:
        print_info("Nothing to do.")
        return

    dispatches = controller.orchestrator.plan_selection(
        controller.device, controller.active_user, Direction.REMOVE
    )
    console.print(create_plan_table(dispatches, dry_run))
    label = controller.selection_label(Direction.REMOVE)

    if dry_run:
        print_info(f"\n{label}\nDry-run mode: No changes were made.")
        return

    if not yes and not _confirm(label):
        print_info("Aborted.")
        raise typer.Exit(code=0)

    before = [(i, rows[i].name, rows[i].state) for i in controller.selection.indices]
    asyncio.run(controller.apply_selection(Direction.REMOVE))
    _report(controller, before)


def restore(
    packages: PackagesArg,
    serial: SerialOpt = None,
    user: UserOpt = None,
    offline: OfflineOpt = False,
    dry_run: DryRunOpt = False,
    yes: YesOpt = False,
) -> None:
    """Reinstall or re-enable packages.

    Examples:
        debloatctl restore com.facebook.katana
        debloatctl restore com.facebook.katana --user 10 --yes
    """
    controller = _prepare(serial, user, offline)
    rows = controller.rows()
    indices = _resolve(controller, packages, Direction.RESTORE)

    if not indices:
        print_info("Nothing to do.")
        return

    dispatches = [
        dispatch
        for index in indices
        for dispatch in controller.orchestrator.plan_package(
            controller.device, controller.active_user, index
        )
    ]
    console.print(create_plan_table(dispatches, dry_run))
    label = f"{controller.restore_label} {len(indices)} package(s)"

    if dry_run:
        print_info(f"\n{label}\nDry-run mode: No changes were made.")
        return

    if not yes and not _confirm(label):
        print_info("Aborted.")
        raise typer.Exit(code=0)

    def show_progress(event: ControllerEvent) -> None:
        state = controller.loading_state
        if event != ControllerEvent.PHASE_CHANGED or not state.text:
            return
        if state.phase == LoadingPhase.RESTORING_DEVICE:
            console.print(f"[muted]Restoring device: {state.text}[/muted]")

    unsubscribe = controller.subscribe(show_progress)
    before = [(i, rows[i].name, rows[i].state) for i in indices]
    try:
        asyncio.run(controller.restore_packages(rows[i].name for i in indices))
    finally:
        unsubscribe()
    _report(controller, before)

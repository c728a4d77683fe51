"""Action planning policy.

Turns "act on this package" into the ordered device commands that do it.
Only the first planned command is authoritative for the package table;
the rest mirror the action on other users sharing the same package.

ADB reference:
    - SDK >= 21: pm uninstall / pm disable-user / pm enable /
      cmd package install-existing
    - SDK < 21: pm block / pm unblock (hidden packages)
    - SDK >= 23: per-user actions via ``--user <id>``
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from debloatctl.models.action import DeviceCommand, PlannedCommand
from debloatctl.models.package import PackageRow, PackageState

if TYPE_CHECKING:
    from debloatctl.core.table import PackageTable
    from debloatctl.models.device import Device, DeviceSettings, User

logger = logging.getLogger(__name__)

# First SDK with pm uninstall / install-existing
SDK_LOLLIPOP = 21
# First SDK where --user is honoured for every pm command
SDK_MARSHMALLOW = 23


def command_steps(state: PackageState, sdk: int, disable_mode: bool) -> tuple[str, ...]:
    """Return the pm steps that flip a package out of its current state.

    Args:
        state: Current package state.
        sdk: Device SDK level.
        disable_mode: Disable instead of uninstall when removing.

    Returns:
        Steps to run, without package name or user flag. Empty for the
        ALL sentinel.
    """
    legacy = sdk < SDK_LOLLIPOP

    if state == PackageState.ENABLED:
        if legacy:
            return ("pm block", "pm clear")
        if disable_mode:
            return ("pm disable-user", "am force-stop", "pm clear")
        return ("pm uninstall",)

    if state == PackageState.UNINSTALLED:
        if legacy:
            return ("pm unblock", "pm clear")
        return ("cmd package install-existing",)

    if state == PackageState.DISABLED:
        if legacy:
            return ("pm unblock", "pm clear")
        return ("pm enable",)

    return ()


def plan(
    user: User,
    package: PackageRow,
    device: Device,
    settings: DeviceSettings,
    table: PackageTable | None = None,
) -> list[PlannedCommand]:
    """Plan the device commands for one package.

    With multi-user mode on (SDK >= 23) the invoking user comes first,
    followed by every other user in device order. When a table is given,
    users whose table lacks the package are skipped.

    Args:
        user: User the action was requested for.
        package: Row of the invoking user.
        device: Attached device.
        settings: Device settings.
        table: Package table used to skip users without the package.

    Returns:
        Planned commands; the first one is authoritative.
    """
    steps = command_steps(package.state, device.android_sdk, settings.disable_mode)
    if not steps:
        return []

    if device.android_sdk < SDK_MARSHMALLOW:
        return [PlannedCommand(target_user=None, command=DeviceCommand(package.name, steps))]

    if not settings.multi_user_mode:
        command = DeviceCommand(package.name, steps, user_id=user.id)
        return [PlannedCommand(target_user=None, command=command)]

    ordered = [user, *(u for u in device.users if u.index != user.index)]
    planned: list[PlannedCommand] = []
    for target in ordered:
        if table is not None and table.index_of(target.index, package.name) is None:
            logger.debug("Skipping %s for %s: not installed for that user", package.name, target)
            continue
        command = DeviceCommand(package.name, steps, user_id=target.id)
        planned.append(PlannedCommand(target_user=target.index, command=command))
    return planned

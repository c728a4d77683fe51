"""Devices command implementation.

Lists attached ADB devices with their model, SDK level and users.
"""

import typer

from debloatctl.cli.display import create_devices_table
from debloatctl.scanners.adb import AdbDeviceScanner
from debloatctl.utils.formatting import console, print_error, print_info

app = typer.Typer(
    help="List attached devices.",
    invoke_without_command=True,
)


@app.callback(invoke_without_command=True)
def list_devices(ctx: typer.Context) -> None:
    """List attached devices.

    Devices that are unauthorized or offline are skipped.

    Examples:
        debloatctl devices
    """
    if ctx.invoked_subcommand is not None:
        return

    scanner = AdbDeviceScanner()
    try:
        devices = scanner.find_devices()
    except RuntimeError as e:
        print_error(str(e))
        raise typer.Exit(code=1) from e

    if not devices:
        print_info("No device found. Enable USB debugging and authorize this computer.")
        return

    console.print(create_devices_table(devices))

"""Shared types and utilities for CLI commands.

This module provides the device lookup and controller setup used by
every command that talks to a device.
"""

import asyncio

import typer

from debloatctl.core.catalog import CatalogLoader
from debloatctl.core.controller import Controller
from debloatctl.core.settings import AppSettings, SettingsError, load_settings
from debloatctl.models.catalog import CatalogState
from debloatctl.models.device import Device
from debloatctl.operators.adb import AdbOperator
from debloatctl.scanners.adb import AdbDeviceScanner, AdbPackageScanner
from debloatctl.utils.formatting import print_error, print_info, print_warning


def require_settings() -> AppSettings:
    """Load settings or exit with an error message."""
    try:
        return load_settings()
    except SettingsError as e:
        print_error(str(e))
        raise typer.Exit(code=1) from e


def find_device(serial: str | None = None) -> Device:
    """Find the device to work on.

    Args:
        serial: ADB serial to pick. Required when several devices are attached.

    Returns:
        The selected device.

    Raises:
        typer.Exit: If no matching device can be chosen.
    """
    scanner = AdbDeviceScanner()
    try:
        devices = scanner.find_devices()
    except RuntimeError as e:
        print_error(str(e))
        raise typer.Exit(code=1) from e

    if serial is not None:
        for device in devices:
            if device.adb_id == serial:
                return device
        print_error(f"No device with serial {serial} is attached.")
        raise typer.Exit(code=1)

    if not devices:
        print_error("No device found. Enable USB debugging and authorize this computer.")
        raise typer.Exit(code=1)
    if len(devices) > 1:
        serials = ", ".join(d.adb_id for d in devices)
        print_error(f"Several devices attached ({serials}). Pick one with --serial.")
        raise typer.Exit(code=1)
    return devices[0]


def create_controller(device: Device, settings: AppSettings) -> Controller:
    """Build a controller wired to ADB collaborators."""
    loader = CatalogLoader(url=settings.catalog.url, timeout=settings.catalog.timeout_seconds)
    return Controller(
        device=device,
        settings=settings.device,
        loader=loader,
        scanner=AdbPackageScanner(),
        operator=AdbOperator(),
    )


def load_controller(controller: Controller, offline: bool = False) -> None:
    """Load catalog and packages, exiting on scan failure.

    Args:
        controller: Controller to load.
        offline: Skip the remote catalog.
    """
    if not offline:
        print_info("Downloading package catalog...")
    try:
        state = asyncio.run(controller.load(remote=not offline))
    except RuntimeError as e:
        print_error(f"Failed to read packages: {e}")
        raise typer.Exit(code=1) from e

    if state == CatalogState.FAILED and not offline:
        print_warning("Could not download the catalog. Using the embedded (and outdated) list.")


def select_user(controller: Controller, user_id: int | None) -> None:
    """Make the user with an Android user id active.

    Raises:
        typer.Exit: If the device has no such user.
    """
    if user_id is None:
        return
    for user in controller.device.users:
        if user.id == user_id:
            controller.select_user(user.index)
            return
    known = ", ".join(str(u.id) for u in controller.device.users)
    print_error(f"Device has no user {user_id} (users: {known}).")
    raise typer.Exit(code=1)

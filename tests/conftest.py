"""Pytest configuration and shared fixtures.

This module contains fixtures used across all test modules.
"""

import asyncio

import pytest
from debloatctl.core.table import DevicePackage, PackageTable
from debloatctl.models.action import CommandOutcome, DeviceCommand, PackageTarget
from debloatctl.models.catalog import Catalog, CatalogEntry, CatalogLoadResult, CatalogState
from debloatctl.models.device import Device, DeviceSettings, User
from debloatctl.models.package import CatalogList, PackageState, Removal
from debloatctl.operators.base import Operator
from debloatctl.scanners.base import Scanner


class FakeOperator(Operator):
    """Operator that records commands and fails the packages or users it is told to."""

    def __init__(
        self,
        failing: set[str] | None = None,
        failing_users: set[int] | None = None,
        available: bool = True,
    ) -> None:
        super().__init__()
        self.failing = failing or set()
        self.failing_users = failing_users or set()
        self.available = available
        self.executed: list[DeviceCommand] = []

    def is_available(self) -> bool:
        return self.available

    async def execute(
        self,
        command: DeviceCommand,
        target: PackageTarget,
        override: PackageTarget | None = None,
    ) -> CommandOutcome:
        self.executed.append(command)
        if command.package in self.failing or command.user_id in self.failing_users:
            return CommandOutcome(
                command=command,
                target=target,
                override=override,
                success=False,
                error="Failure [DELETE_FAILED_INTERNAL_ERROR]",
            )
        return CommandOutcome(command=command, target=target, override=override, message="Success")


class GatedOperator(Operator):
    """Operator whose commands complete only when released."""

    def __init__(self) -> None:
        super().__init__()
        self.release = asyncio.Event()
        self.started = asyncio.Event()
        self.executed: list[DeviceCommand] = []

    def is_available(self) -> bool:
        return True

    async def execute(
        self,
        command: DeviceCommand,
        target: PackageTarget,
        override: PackageTarget | None = None,
    ) -> CommandOutcome:
        self.executed.append(command)
        self.started.set()
        await self.release.wait()
        return CommandOutcome(command=command, target=target, override=override)


class FakeLoader:
    """Catalog loader returning a fixed catalog."""

    def __init__(self, catalog: Catalog, state: CatalogState = CatalogState.DONE) -> None:
        self.catalog = catalog
        self.state = state
        self.calls: list[bool] = []

    async def load(self, remote: bool = True) -> CatalogLoadResult:
        self.calls.append(remote)
        state = self.state if remote else CatalogState.FAILED
        error = None if state == CatalogState.DONE else "unreachable"
        return CatalogLoadResult(catalog=self.catalog, state=state, error=error)


class FakeScanner(Scanner):
    """Scanner returning fixed inventories, one list per user."""

    def __init__(self, inventories: list[list[DevicePackage]]) -> None:
        self.inventories = inventories

    def is_available(self) -> bool:
        return True

    def scan(self, device: Device) -> list[list[DevicePackage]]:
        return [list(inventory) for inventory in self.inventories]


@pytest.fixture
def sample_catalog() -> Catalog:
    """Catalog covering each removal classification."""
    entries = [
        CatalogEntry(
            id="com.facebook.katana",
            catalog_list=CatalogList.MISC,
            description="Facebook app",
            removal=Removal.RECOMMENDED,
        ),
        CatalogEntry(
            id="com.android.chrome",
            catalog_list=CatalogList.GOOGLE,
            description="Chrome browser",
            removal=Removal.ADVANCED,
        ),
        CatalogEntry(
            id="com.android.systemui",
            catalog_list=CatalogList.AOSP,
            description="System UI",
            removal=Removal.UNSAFE,
        ),
        CatalogEntry(
            id="com.google.android.gms",
            catalog_list=CatalogList.GOOGLE,
            description="Google Play services",
            removal=Removal.EXPERT,
        ),
    ]
    return {entry.id: entry for entry in entries}


@pytest.fixture
def single_user_device() -> Device:
    """Android 13 device with only the primary user."""
    return Device(model="Pixel 7", android_sdk=33, adb_id="emulator-5554")


@pytest.fixture
def multi_user_device() -> Device:
    """Android 13 device with a primary user, a work profile and a guest."""
    return Device(
        model="Pixel 7",
        android_sdk=33,
        adb_id="emulator-5554",
        users=(User(id=0, index=0), User(id=10, index=1), User(id=11, index=2)),
    )


@pytest.fixture
def device_settings() -> DeviceSettings:
    """Default device settings (uninstall, multi-user mirroring, no expert mode)."""
    return DeviceSettings()


@pytest.fixture
def abc_packages() -> list[DevicePackage]:
    """Three packages: A enabled, B disabled, C enabled."""
    return [
        DevicePackage("com.example.a", PackageState.ENABLED),
        DevicePackage("com.example.b", PackageState.DISABLED),
        DevicePackage("com.example.c", PackageState.ENABLED),
    ]


@pytest.fixture
def abc_table(abc_packages: list[DevicePackage]) -> PackageTable:
    """Single-user table built from abc_packages with an empty catalog."""
    table = PackageTable()
    table.populate({}, [abc_packages])
    return table


@pytest.fixture
def fake_operator() -> FakeOperator:
    """Operator succeeding for every package."""
    return FakeOperator()


@pytest.fixture
def mock_pm_all_output() -> str:
    """Sample `pm list packages -s -u` output."""
    return """package:com.android.chrome
package:com.facebook.katana
package:com.android.systemui
package:com.google.android.gms
"""


@pytest.fixture
def mock_pm_enabled_output() -> str:
    """Sample `pm list packages -s -e` output."""
    return """package:com.android.chrome
package:com.android.systemui
"""


@pytest.fixture
def mock_pm_disabled_output() -> str:
    """Sample `pm list packages -s -d` output."""
    return "package:com.google.android.gms\n"


@pytest.fixture
def mock_pm_users_output() -> str:
    """Sample `pm list users` output with a work profile."""
    return """Users:
\tUserInfo{0:Owner:c13} running
\tUserInfo{10:Work profile:1030} running
"""


@pytest.fixture
def mock_adb_devices_output() -> str:
    """Sample `adb devices` output with one usable and one unauthorized device."""
    return """List of devices attached
emulator-5554\tdevice
R58M123ABC\tunauthorized

"""

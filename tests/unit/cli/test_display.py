"""Unit tests for cli/display.py.

Tests for shared Rich display functions used by the device and action commands.
"""

import io

import pytest
from debloatctl.cli.display import (
    create_devices_table,
    create_plan_table,
    create_results_table,
    print_results_summary,
)
from debloatctl.core.orchestrator import Dispatch
from debloatctl.core.theme import get_theme
from debloatctl.models.action import DeviceCommand, PackageTarget
from debloatctl.models.device import Device
from debloatctl.models.package import PackageState
from rich.console import Console
from rich.table import Table

# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def dispatches() -> list[Dispatch]:
    """An authoritative uninstall for user 0 mirrored on user 10."""
    target = PackageTarget(user_index=0, package_index=1, generation=1)
    mirror = PackageTarget(user_index=1, package_index=4, generation=1)
    return [
        Dispatch(
            command=DeviceCommand("com.facebook.katana", ("pm uninstall",), user_id=0),
            target=target,
            override=target,
            authoritative=True,
        ),
        Dispatch(
            command=DeviceCommand("com.facebook.katana", ("pm uninstall",), user_id=10),
            target=target,
            override=mirror,
            authoritative=False,
        ),
    ]


def _render(table: Table) -> str:
    buf = io.StringIO()
    Console(theme=get_theme(), file=buf, color_system=None, width=120).print(table)
    return buf.getvalue()


def _capture_console_output(func: object, *args: object, **kwargs: object) -> str:
    """Capture Rich console output by temporarily replacing the console.

    Patches the module-level console used by display functions and captures
    output to a StringIO buffer.
    """
    import debloatctl.cli.display as display_mod
    import debloatctl.utils.formatting as fmt_mod

    buf = io.StringIO()
    test_console = Console(theme=get_theme(), file=buf, color_system=None)

    original_display_console = display_mod.console
    original_fmt_console = fmt_mod.console
    display_mod.console = test_console
    fmt_mod.console = test_console
    try:
        func(*args, **kwargs)  # type: ignore[operator]
    finally:
        display_mod.console = original_display_console
        fmt_mod.console = original_fmt_console

    return buf.getvalue()


# ===========================================================================
# create_devices_table
# ===========================================================================


class TestCreateDevicesTable:
    """Tests for create_devices_table."""

    def test_lists_users(self, multi_user_device: Device) -> None:
        """Each device row shows its user ids."""
        table = create_devices_table([multi_user_device])

        assert table.row_count == 1
        output = _render(table)
        assert "emulator-5554" in output
        assert "0, 10, 11" in output


# ===========================================================================
# create_plan_table
# ===========================================================================


class TestCreatePlanTable:
    """Tests for create_plan_table."""

    def test_has_columns(self, dispatches: list[Dispatch]) -> None:
        """Table has Package, User and Command columns."""
        table = create_plan_table(dispatches)
        assert [col.header for col in table.columns] == ["Package", "User", "Command"]
        assert table.row_count == 2

    def test_marks_mirrors(self, dispatches: list[Dispatch]) -> None:
        """Mirrored commands are labeled."""
        output = _render(create_plan_table(dispatches))

        assert output.count("(mirror)") == 1
        assert "pm uninstall com.facebook.katana --user 10" in output

    def test_dry_run_title(self, dispatches: list[Dispatch]) -> None:
        """Dry-run changes the title."""
        assert create_plan_table(dispatches, dry_run=True).title == "Planned Commands (Dry Run)"
        assert create_plan_table(dispatches).title == "Planned Commands"

    def test_no_user_flag(self) -> None:
        """Commands without --user show a dash."""
        target = PackageTarget(user_index=0, package_index=0, generation=1)
        dispatch = Dispatch(
            command=DeviceCommand("com.facebook.katana", ("pm block", "pm clear")),
            target=target,
            override=None,
            authoritative=True,
        )

        output = _render(create_plan_table([dispatch]))

        assert "pm block com.facebook.katana; pm clear com.facebook.katana" in output


# ===========================================================================
# create_results_table / print_results_summary
# ===========================================================================


class TestResults:
    """Tests for results table and summary."""

    def test_changed_state_is_ok(self) -> None:
        """A package whose state changed is reported OK."""
        changes = [("com.facebook.katana", PackageState.ENABLED, PackageState.UNINSTALLED)]

        output = _render(create_results_table(changes))

        assert "OK" in output
        assert "enabled -> uninstalled" in output

    def test_unchanged_state_is_fail(self) -> None:
        """A package whose state did not change is reported failed."""
        changes = [("com.facebook.katana", PackageState.ENABLED, PackageState.ENABLED)]

        output = _render(create_results_table(changes))

        assert "FAIL" in output

    def test_summary_all_succeeded(self) -> None:
        """Summary for all successful changes."""
        changes = [("a.b", PackageState.DISABLED, PackageState.ENABLED)]

        output = _capture_console_output(print_results_summary, changes)

        assert "All 1 package(s) updated successfully." in output

    def test_summary_with_failures(self) -> None:
        """Summary counts successes and failures."""
        changes = [
            ("a.b", PackageState.DISABLED, PackageState.ENABLED),
            ("c.d", PackageState.ENABLED, PackageState.ENABLED),
        ]

        output = _capture_console_output(print_results_summary, changes)

        assert "1 succeeded" in output
        assert "1 failed" in output

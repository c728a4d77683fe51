"""Unit tests for the action orchestrator."""

import asyncio
from unittest.mock import patch

import pytest
from conftest import FakeOperator, GatedOperator
from debloatctl.core.orchestrator import ActionOrchestrator
from debloatctl.core.selection import Selection
from debloatctl.core.table import DevicePackage, PackageTable
from debloatctl.models.action import CommandOutcome, DeviceCommand, FoldResult
from debloatctl.models.device import Device, DeviceSettings
from debloatctl.models.package import Direction, PackageState


@pytest.fixture
def three_user_table() -> PackageTable:
    """Table where every user of multi_user_device has com.example.a enabled."""
    table = PackageTable()
    inventory = [
        DevicePackage("com.example.a", PackageState.ENABLED),
        DevicePackage("com.example.b", PackageState.DISABLED),
    ]
    table.populate({}, [inventory, list(inventory), list(inventory)])
    return table


def states(table: PackageTable, name: str) -> list[PackageState]:
    """State of a package for every user."""
    result = []
    for user_index in range(table.user_count):
        index = table.index_of(user_index, name)
        assert index is not None
        result.append(table.rows(user_index)[index].state)
    return result


class TestDispatchPackage:
    """Tests for single-package dispatch."""

    async def test_success_flips_state(
        self,
        abc_table: PackageTable,
        single_user_device: Device,
        device_settings: DeviceSettings,
        fake_operator: FakeOperator,
    ) -> None:
        """A successful removal uninstalls the package in the table."""
        orchestrator = ActionOrchestrator(fake_operator, device_settings, abc_table, Selection())

        results = await orchestrator.dispatch_package(
            single_user_device, single_user_device.users[0], 0
        )

        assert results == [FoldResult.APPLIED]
        assert abc_table.rows(0)[0].state == PackageState.UNINSTALLED
        assert fake_operator.executed[0].shell_lines == ["pm uninstall com.example.a --user 0"]

    async def test_restore_in_disable_mode(
        self,
        abc_table: PackageTable,
        single_user_device: Device,
        fake_operator: FakeOperator,
    ) -> None:
        """Restoring a disabled package enables it."""
        settings = DeviceSettings(disable_mode=True)
        orchestrator = ActionOrchestrator(fake_operator, settings, abc_table, Selection())

        await orchestrator.dispatch_package(single_user_device, single_user_device.users[0], 1)

        assert abc_table.rows(0)[1].state == PackageState.ENABLED
        assert fake_operator.executed[0].steps == ("pm enable",)

    async def test_failure_leaves_state(
        self,
        abc_table: PackageTable,
        single_user_device: Device,
        device_settings: DeviceSettings,
    ) -> None:
        """A failed command changes nothing and keeps the selection."""
        operator = FakeOperator(failing={"com.example.a"})
        selection = Selection()
        selection.toggle_one(abc_table.rows(0), 0, True, expert_mode=False)
        orchestrator = ActionOrchestrator(operator, device_settings, abc_table, selection)

        results = await orchestrator.dispatch_package(
            single_user_device, single_user_device.users[0], 0
        )

        assert results == [FoldResult.FAILED]
        assert abc_table.rows(0)[0].state == PackageState.ENABLED
        assert 0 in selection
        assert selection.enabled == 1

    async def test_on_fold_called_for_authoritative_outcomes(
        self,
        three_user_table: PackageTable,
        multi_user_device: Device,
        device_settings: DeviceSettings,
        fake_operator: FakeOperator,
    ) -> None:
        """The fold listener sees the first outcome of a plan only."""
        seen: list[tuple[str, FoldResult]] = []
        orchestrator = ActionOrchestrator(
            fake_operator,
            device_settings,
            three_user_table,
            Selection(),
            on_fold=lambda outcome, result: seen.append((outcome.command.package, result)),
        )

        await orchestrator.dispatch_package(multi_user_device, multi_user_device.users[0], 0)

        assert seen == [("com.example.a", FoldResult.APPLIED)]
        assert len(fake_operator.executed) == 3

    @pytest.mark.parametrize("index", [-1, 3, 99])
    async def test_index_outside_rows_dispatches_nothing(
        self,
        abc_table: PackageTable,
        single_user_device: Device,
        device_settings: DeviceSettings,
        fake_operator: FakeOperator,
        index: int,
    ) -> None:
        """No command is planned or run for an index addressing no row."""
        orchestrator = ActionOrchestrator(fake_operator, device_settings, abc_table, Selection())
        user = single_user_device.users[0]

        assert orchestrator.plan_package(single_user_device, user, index) == []
        results = await orchestrator.dispatch_package(single_user_device, user, index)

        assert results == []
        assert fake_operator.executed == []
        assert [row.state for row in abc_table.rows(0)] == [
            PackageState.ENABLED,
            PackageState.DISABLED,
            PackageState.ENABLED,
        ]


class TestInFlight:
    """Tests for repeated actions on a row whose command is still running."""

    async def test_repeated_dispatch_skipped_while_running(
        self,
        abc_table: PackageTable,
        single_user_device: Device,
        device_settings: DeviceSettings,
    ) -> None:
        """A second action on a running row is dropped, so the row flips once."""
        operator = GatedOperator()
        orchestrator = ActionOrchestrator(operator, device_settings, abc_table, Selection())
        user = single_user_device.users[0]

        first = asyncio.create_task(orchestrator.dispatch_package(single_user_device, user, 0))
        await operator.started.wait()
        second = await orchestrator.dispatch_package(single_user_device, user, 0)
        operator.release.set()

        assert second == []
        assert await first == [FoldResult.APPLIED]
        assert len(operator.executed) == 1
        assert abc_table.rows(0)[0].state == PackageState.UNINSTALLED

    async def test_concurrent_dispatches_flip_once(
        self,
        abc_table: PackageTable,
        single_user_device: Device,
        device_settings: DeviceSettings,
    ) -> None:
        """Two actions on one row gathered together apply once."""
        operator = GatedOperator()
        orchestrator = ActionOrchestrator(operator, device_settings, abc_table, Selection())
        user = single_user_device.users[0]

        both = asyncio.gather(
            orchestrator.dispatch_package(single_user_device, user, 0),
            orchestrator.dispatch_package(single_user_device, user, 0),
        )
        await operator.started.wait()
        operator.release.set()
        results = await both

        assert sorted(map(len, results)) == [0, 1]
        assert len(operator.executed) == 1
        assert abc_table.rows(0)[0].state == PackageState.UNINSTALLED

    async def test_mirrors_of_skipped_plan_not_run(
        self,
        three_user_table: PackageTable,
        multi_user_device: Device,
        device_settings: DeviceSettings,
    ) -> None:
        """A dropped plan takes its mirrored commands with it."""
        operator = GatedOperator()
        orchestrator = ActionOrchestrator(operator, device_settings, three_user_table, Selection())
        user = multi_user_device.users[0]

        first = asyncio.create_task(orchestrator.dispatch_package(multi_user_device, user, 0))
        await operator.started.wait()
        second = await orchestrator.dispatch_package(multi_user_device, user, 0)
        operator.release.set()
        await first

        assert second == []
        assert len(operator.executed) == 3
        assert states(three_user_table, "com.example.a")[0] == PackageState.UNINSTALLED

    async def test_row_released_after_completion(
        self,
        abc_table: PackageTable,
        single_user_device: Device,
        device_settings: DeviceSettings,
        fake_operator: FakeOperator,
    ) -> None:
        """Once a command has folded, the row accepts the next action."""
        orchestrator = ActionOrchestrator(fake_operator, device_settings, abc_table, Selection())
        user = single_user_device.users[0]

        await orchestrator.dispatch_package(single_user_device, user, 0)
        results = await orchestrator.dispatch_package(single_user_device, user, 0)

        assert results == [FoldResult.APPLIED]
        assert abc_table.rows(0)[0].state == PackageState.ENABLED
        assert [c.steps for c in fake_operator.executed] == [
            ("pm uninstall",),
            ("cmd package install-existing",),
        ]

    async def test_row_released_when_operator_raises(
        self,
        abc_table: PackageTable,
        single_user_device: Device,
        device_settings: DeviceSettings,
        fake_operator: FakeOperator,
    ) -> None:
        """An operator error does not leave the row blocked."""
        orchestrator = ActionOrchestrator(fake_operator, device_settings, abc_table, Selection())
        user = single_user_device.users[0]

        with patch.object(fake_operator, "execute", side_effect=RuntimeError("adb vanished")):
            with pytest.raises(RuntimeError):
                await orchestrator.dispatch_package(single_user_device, user, 0)
        results = await orchestrator.dispatch_package(single_user_device, user, 0)

        assert results == [FoldResult.APPLIED]
        assert abc_table.rows(0)[0].state == PackageState.UNINSTALLED


class TestMirroredAuthority:
    """Only the first command of a plan may change the table."""

    async def test_first_pair_mutates_only_its_row(
        self,
        three_user_table: PackageTable,
        multi_user_device: Device,
        device_settings: DeviceSettings,
        fake_operator: FakeOperator,
    ) -> None:
        """Mirrored successes run but leave the other users' rows alone."""
        orchestrator = ActionOrchestrator(
            fake_operator, device_settings, three_user_table, Selection()
        )

        results = await orchestrator.dispatch_package(
            multi_user_device, multi_user_device.users[0], 0
        )

        assert results == [FoldResult.APPLIED, FoldResult.IGNORED, FoldResult.IGNORED]
        assert [c.user_id for c in fake_operator.executed] == [0, 10, 11]
        assert states(three_user_table, "com.example.a") == [
            PackageState.UNINSTALLED,
            PackageState.ENABLED,
            PackageState.ENABLED,
        ]

    async def test_mirrored_outcomes_never_mutate(
        self,
        three_user_table: PackageTable,
        multi_user_device: Device,
        device_settings: DeviceSettings,
    ) -> None:
        """With the first pair failing, mirrored successes change nothing."""
        operator = FakeOperator(failing_users={0})
        orchestrator = ActionOrchestrator(operator, device_settings, three_user_table, Selection())

        results = await orchestrator.dispatch_package(
            multi_user_device, multi_user_device.users[0], 0
        )

        assert results == [FoldResult.FAILED, FoldResult.IGNORED, FoldResult.IGNORED]
        assert states(three_user_table, "com.example.a") == [PackageState.ENABLED] * 3

    async def test_mirrored_failures_do_not_block_first(
        self,
        three_user_table: PackageTable,
        multi_user_device: Device,
        device_settings: DeviceSettings,
    ) -> None:
        """Failures of mirrored pairs do not undo the authoritative change."""
        operator = FakeOperator(failing_users={10, 11})
        orchestrator = ActionOrchestrator(operator, device_settings, three_user_table, Selection())

        results = await orchestrator.dispatch_package(
            multi_user_device, multi_user_device.users[0], 0
        )

        assert results[0] == FoldResult.APPLIED
        assert states(three_user_table, "com.example.a")[0] == PackageState.UNINSTALLED


class TestOnCommandResult:
    """Tests for folding single outcomes."""

    def test_override_row_mutated_in_multi_user_mode(
        self, three_user_table: PackageTable, device_settings: DeviceSettings
    ) -> None:
        """The override row, not the invoking row, changes."""
        selection = Selection()
        selection.toggle_one(three_user_table.rows(0), 0, True, expert_mode=False)
        orchestrator = ActionOrchestrator(
            FakeOperator(), device_settings, three_user_table, selection
        )
        outcome = CommandOutcome(
            command=DeviceCommand("com.example.a", ("pm uninstall",), user_id=10),
            target=three_user_table.target(0, 0),
            override=three_user_table.target(1, 0),
        )

        result = orchestrator.on_command_result(outcome)

        assert result == FoldResult.APPLIED
        assert states(three_user_table, "com.example.a") == [
            PackageState.ENABLED,
            PackageState.UNINSTALLED,
            PackageState.ENABLED,
        ]
        # The active user's copy leaves the selection
        assert len(selection) == 0
        assert selection.enabled == 0
        assert not three_user_table.rows(0)[0].selected

    def test_override_ignored_without_multi_user_mode(
        self, three_user_table: PackageTable
    ) -> None:
        """Without mirroring the invoking user's row changes."""
        settings = DeviceSettings(multi_user_mode=False)
        orchestrator = ActionOrchestrator(FakeOperator(), settings, three_user_table, Selection())
        outcome = CommandOutcome(
            command=DeviceCommand("com.example.a", ("pm uninstall",), user_id=0),
            target=three_user_table.target(0, 0),
            override=three_user_table.target(1, 0),
        )

        orchestrator.on_command_result(outcome)

        assert states(three_user_table, "com.example.a")[:2] == [
            PackageState.UNINSTALLED,
            PackageState.ENABLED,
        ]

    def test_stale_outcome_discarded(
        self,
        abc_table: PackageTable,
        abc_packages: list[DevicePackage],
        device_settings: DeviceSettings,
    ) -> None:
        """An outcome from before a reload touches nothing in the new table."""
        orchestrator = ActionOrchestrator(FakeOperator(), device_settings, abc_table, Selection())
        outcome = CommandOutcome(
            command=DeviceCommand("com.example.a", ("pm uninstall",)),
            target=abc_table.target(0, 0),
        )
        abc_table.populate({}, [abc_packages])

        result = orchestrator.on_command_result(outcome)

        assert result == FoldResult.STALE
        assert abc_table.rows(0)[0].state == PackageState.ENABLED

    def test_out_of_range_outcome_discarded(
        self, abc_table: PackageTable, device_settings: DeviceSettings
    ) -> None:
        """An outcome addressing a missing row is discarded."""
        orchestrator = ActionOrchestrator(FakeOperator(), device_settings, abc_table, Selection())
        outcome = CommandOutcome(
            command=DeviceCommand("com.example.a", ("pm uninstall",)),
            target=abc_table.target(0, 42),
        )

        assert orchestrator.on_command_result(outcome) == FoldResult.STALE

    async def test_reload_while_in_flight(
        self,
        abc_table: PackageTable,
        single_user_device: Device,
        device_settings: DeviceSettings,
    ) -> None:
        """A command completing after a reload does not mutate the new table."""
        operator = GatedOperator()
        orchestrator = ActionOrchestrator(operator, device_settings, abc_table, Selection())

        task = asyncio.create_task(
            orchestrator.dispatch_package(single_user_device, single_user_device.users[0], 0)
        )
        await operator.started.wait()
        abc_table.populate({}, [[DevicePackage("com.other", PackageState.ENABLED)]])
        operator.release.set()
        results = await task

        assert results == [FoldResult.STALE]
        assert abc_table.rows(0)[0].state == PackageState.ENABLED


class TestDispatchSelection:
    """Tests for bulk dispatch."""

    async def test_scenario_bulk_remove(
        self,
        abc_table: PackageTable,
        single_user_device: Device,
        fake_operator: FakeOperator,
    ) -> None:
        """Removing A and C uninstalls both and empties the selection."""
        rows = abc_table.rows(0)
        selection = Selection()
        selection.toggle_one(rows, 0, True, expert_mode=False)
        selection.toggle_one(rows, 2, True, expert_mode=False)
        assert selection.counts() == {
            PackageState.ENABLED: 2,
            PackageState.DISABLED: 0,
            PackageState.UNINSTALLED: 0,
        }
        settings = DeviceSettings(disable_mode=False)
        orchestrator = ActionOrchestrator(fake_operator, settings, abc_table, selection)

        results = await orchestrator.dispatch_selection(
            single_user_device, single_user_device.users[0], Direction.REMOVE
        )

        assert results == [FoldResult.APPLIED, FoldResult.APPLIED]
        assert [c.package for c in fake_operator.executed] == ["com.example.a", "com.example.c"]
        assert all(c.steps == ("pm uninstall",) for c in fake_operator.executed)
        assert rows[0].state == PackageState.UNINSTALLED
        assert rows[2].state == PackageState.UNINSTALLED
        assert len(selection) == 0
        assert selection.counts() == {
            PackageState.ENABLED: 0,
            PackageState.DISABLED: 0,
            PackageState.UNINSTALLED: 0,
        }

    async def test_direction_mismatch_dropped(
        self,
        abc_table: PackageTable,
        single_user_device: Device,
        device_settings: DeviceSettings,
        fake_operator: FakeOperator,
    ) -> None:
        """Selected rows not fitting the direction are skipped silently."""
        rows = abc_table.rows(0)
        selection = Selection()
        selection.toggle_all(rows, [0, 1], True)
        orchestrator = ActionOrchestrator(fake_operator, device_settings, abc_table, selection)

        results = await orchestrator.dispatch_selection(
            single_user_device, single_user_device.users[0], Direction.RESTORE
        )

        assert results == [FoldResult.APPLIED]
        assert [c.package for c in fake_operator.executed] == ["com.example.b"]
        assert rows[1].state == PackageState.ENABLED
        assert selection.indices == [0]
        assert selection.enabled == 1

    async def test_empty_selection(
        self,
        abc_table: PackageTable,
        single_user_device: Device,
        device_settings: DeviceSettings,
        fake_operator: FakeOperator,
    ) -> None:
        """Nothing is dispatched for an empty selection."""
        orchestrator = ActionOrchestrator(fake_operator, device_settings, abc_table, Selection())

        results = await orchestrator.dispatch_selection(
            single_user_device, single_user_device.users[0], Direction.REMOVE
        )

        assert results == []
        assert fake_operator.executed == []

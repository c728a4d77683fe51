"""Action orchestration.

Plans device commands for packages, dispatches them through an Operator
and folds the outcomes back into the package table. Commands run
concurrently; folding happens on the event loop one outcome at a time,
so the table and the selection only ever have a single writer.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable
from dataclasses import dataclass

from debloatctl.core.planner import plan
from debloatctl.core.selection import Selection
from debloatctl.core.table import PackageTable
from debloatctl.models.action import CommandOutcome, DeviceCommand, FoldResult, PackageTarget
from debloatctl.models.device import Device, DeviceSettings, User
from debloatctl.models.package import Direction, direction_applies, opposite
from debloatctl.operators.base import Operator

logger = logging.getLogger(__name__)

FoldListener = Callable[[CommandOutcome, FoldResult], None]


@dataclass(frozen=True, slots=True)
class Dispatch:
    """A planned command bound to the rows its outcome addresses.

    Attributes:
        command: Command to run on the device.
        target: Row of the invoking user.
        override: Row of the plan's target user, if the plan named one.
        authoritative: Whether the outcome may mutate the table.
    """

    command: DeviceCommand
    target: PackageTarget
    override: PackageTarget | None
    authoritative: bool


class ActionOrchestrator:
    """Runs package actions and folds their outcomes.

    Only the first command of each plan is authoritative. Mirrored
    commands for other users still run, but their outcomes are only
    logged.

    Attributes:
        operator: Executes device commands.
        settings: Device settings read at plan and fold time.
        table: Package table the outcomes are folded into.
        selection: Selection of the active user.
    """

    def __init__(
        self,
        operator: Operator,
        settings: DeviceSettings,
        table: PackageTable,
        selection: Selection,
        active_user: Callable[[], int] = lambda: 0,
        on_fold: FoldListener | None = None,
    ) -> None:
        """Initialize the orchestrator.

        Args:
            operator: Executes device commands.
            settings: Device settings.
            table: Package table to fold outcomes into.
            selection: Selection of the active user.
            active_user: Returns the index of the active user when called.
            on_fold: Called after every authoritative outcome is folded.
        """
        self.operator = operator
        self.settings = settings
        self.table = table
        self.selection = selection
        self._active_user = active_user
        self._on_fold = on_fold
        # Rows with an authoritative command running
        self._in_flight: set[PackageTarget] = set()

    def plan_package(self, device: Device, user: User, index: int) -> list[Dispatch]:
        """Plan the commands for one row of a user.

        Args:
            device: Attached device.
            user: User the action was requested for.
            index: Row index in that user's table.

        Returns:
            Dispatches in plan order; the first one is authoritative.
            Empty if the index addresses no row of the user.
        """
        target = self.table.target(user.index, index)
        row = self.table.row(target)
        if row is None:
            logger.warning("Cannot plan row %d of %s: no such row", index, user)
            return []
        dispatches: list[Dispatch] = []
        for position, planned in enumerate(plan(user, row, device, self.settings, self.table)):
            override = None
            if planned.target_user is not None:
                override_index = self.table.index_of(planned.target_user, row.name)
                if override_index is not None:
                    override = self.table.target(planned.target_user, override_index)
            dispatches.append(
                Dispatch(
                    command=planned.command,
                    target=target,
                    override=override,
                    authoritative=position == 0,
                )
            )
        return dispatches

    def plan_selection(self, device: Device, user: User, direction: Direction) -> list[Dispatch]:
        """Plan the commands for every selected row fitting a direction.

        Selected rows whose state does not fit the direction are dropped
        without error.

        Args:
            device: Attached device.
            user: Active user owning the selection.
            direction: Remove or restore.

        Returns:
            Dispatches for all surviving rows, in selection order.
        """
        rows = self.table.rows(user.index)
        dispatches: list[Dispatch] = []
        for index in self.selection.indices:
            if not direction_applies(direction, rows[index].state):
                logger.debug("Skipping %s: not applicable to %s", rows[index].name, direction.value)
                continue
            dispatches.extend(self.plan_package(device, user, index))
        return dispatches

    async def dispatch_package(self, device: Device, user: User, index: int) -> list[FoldResult]:
        """Plan and run the action of one row.

        Returns:
            One FoldResult per dispatched command.
        """
        return await self.run(self.plan_package(device, user, index))

    async def dispatch_selection(
        self,
        device: Device,
        user: User,
        direction: Direction,
    ) -> list[FoldResult]:
        """Plan and run a bulk action over the selection.

        Returns:
            One FoldResult per dispatched command.
        """
        dispatches = self.plan_selection(device, user, direction)
        logger.info("Dispatching %d commands for %s", len(dispatches), direction.value)
        return await self.run(dispatches)

    async def run(self, dispatches: list[Dispatch]) -> list[FoldResult]:
        """Run dispatches concurrently.

        A plan whose row already has an authoritative command running is
        dropped whole, mirrors included: folding it too would flip the
        row twice.

        Returns:
            FoldResults of the commands actually run, in dispatch order,
            whatever the completion order.
        """
        batch: list[Dispatch] = []
        skipping = False
        for dispatch in dispatches:
            if dispatch.authoritative:
                skipping = dispatch.target in self._in_flight
                if skipping:
                    logger.info("Skipping %s: already being applied", dispatch.command.package)
                    continue
                self._in_flight.add(dispatch.target)
            elif skipping:
                continue
            batch.append(dispatch)

        if not batch:
            return []
        return list(await asyncio.gather(*(self._run_one(d) for d in batch)))

    async def _run_one(self, dispatch: Dispatch) -> FoldResult:
        try:
            outcome = await self.operator.execute(
                dispatch.command, dispatch.target, dispatch.override
            )
        finally:
            if dispatch.authoritative:
                self._in_flight.discard(dispatch.target)
        if not dispatch.authoritative:
            if outcome.failed:
                logger.warning(
                    "Mirrored command failed for %s (user %s): %s",
                    dispatch.command.package,
                    dispatch.command.user_id,
                    outcome.error,
                )
            else:
                logger.debug("Mirrored command done for %s", dispatch.command.package)
            return FoldResult.IGNORED

        result = self.on_command_result(outcome)
        if self._on_fold is not None:
            self._on_fold(outcome, result)
        return result

    def on_command_result(self, outcome: CommandOutcome) -> FoldResult:
        """Fold an authoritative outcome into the package table.

        A success flips the state of the target row (the override row
        when multi-user mode is on and the plan named one) and drops the
        package from the active user's selection. A failure changes
        nothing. An outcome from a replaced table is discarded.

        Args:
            outcome: Outcome of the first command of a plan.

        Returns:
            What folding did.
        """
        target = outcome.target
        if self.settings.multi_user_mode and outcome.override is not None:
            target = outcome.override

        row = self.table.row(target)
        if row is None or row.name != outcome.command.package:
            logger.warning("Discarding stale outcome for %s", outcome.command.package)
            return FoldResult.STALE

        if outcome.failed:
            logger.error("Action failed for %s: %s", row.name, outcome.error)
            return FoldResult.FAILED

        active = self._active_user()
        active_index = self.table.index_of(active, row.name)
        if active_index is not None:
            self.selection.remove_if_present(self.table.rows(active), active_index)

        previous = row.state
        row.state = opposite(previous, self.settings.disable_mode)
        row.selected = False
        logger.info("%s: %s -> %s", row.name, previous.value, row.state.value)
        return FoldResult.APPLIED

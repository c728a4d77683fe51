"""Package view controller.

Sequences catalog loading, package scanning and the ready-phase
interactions (filters, selection, actions) for one attached device, and
notifies subscribers when something visible changes.

All state is owned by the event loop running the controller. The device
is addressed through the process-wide ANDROID_SERIAL variable, so only
one controller may be active per process.
"""

import asyncio
import logging
import os
from collections.abc import Callable, Iterable
from dataclasses import dataclass
from enum import Enum

from debloatctl.core.catalog import CatalogLoader
from debloatctl.core.filters import FilterState, recompute
from debloatctl.core.orchestrator import ActionOrchestrator
from debloatctl.core.selection import Selection
from debloatctl.core.table import PackageTable
from debloatctl.models.action import CommandOutcome, FoldResult, ToggleResult
from debloatctl.models.catalog import Catalog, CatalogState
from debloatctl.models.device import Device, DeviceSettings, User
from debloatctl.models.package import (
    CatalogList,
    Direction,
    PackageRow,
    PackageState,
    Removal,
    direction_applies,
)
from debloatctl.operators.base import Operator
from debloatctl.scanners.base import Scanner

logger = logging.getLogger(__name__)

SERIAL_ENV = "ANDROID_SERIAL"


class LoadingPhase(str, Enum):
    """Phases of the package view."""

    FINDING_PHONES = "finding_phones"
    DOWNLOADING_LIST = "downloading_list"
    LOADING_PACKAGES = "loading_packages"
    READY = "ready"
    RESTORING_DEVICE = "restoring_device"


@dataclass(frozen=True, slots=True)
class LoadingState:
    """Current phase plus a short status text."""

    phase: LoadingPhase
    text: str = ""


class ControllerEvent(str, Enum):
    """Notifications sent to subscribers.

    Attributes:
        PHASE_CHANGED: Loading state (phase or status text) changed.
        VIEW_CHANGED: Filtered view was recomputed.
        SELECTION_CHANGED: Selection membership or counters changed.
        PACKAGE_CHANGED: A package changed state or focus.
    """

    PHASE_CHANGED = "phase_changed"
    VIEW_CHANGED = "view_changed"
    SELECTION_CHANGED = "selection_changed"
    PACKAGE_CHANGED = "package_changed"


class ControllerNotReadyError(Exception):
    """Raised when package data is accessed before it is loaded."""


Listener = Callable[[ControllerEvent], None]


class Controller:
    """State machine driving the package view of one device.

    Example:
        >>> controller = Controller(device, settings, loader, scanner, operator)
        >>> await controller.load(remote=True)
        >>> controller.set_search("facebook")
        >>> for index, row in controller.filtered_rows():
        ...     controller.toggle_package(index, True)
        >>> await controller.apply_selection(Direction.REMOVE)

    Attributes:
        device: Attached device.
        settings: Device settings, read live on every action.
        table: Package rows of every user.
        selection: Selected rows of the active user.
        filters: Current filter predicates.
        catalog: Catalog the table was built from.
        catalog_state: Whether the remote catalog could be used.
    """

    def __init__(
        self,
        device: Device,
        settings: DeviceSettings,
        loader: CatalogLoader,
        scanner: Scanner,
        operator: Operator,
    ) -> None:
        self.device = device
        self.settings = settings
        self.loader = loader
        self.scanner = scanner
        self.table = PackageTable()
        self.selection = Selection()
        self.filters = FilterState()
        self.catalog: Catalog = {}
        self.catalog_state = CatalogState.DOWNLOADING
        self.orchestrator = ActionOrchestrator(
            operator,
            settings,
            self.table,
            self.selection,
            active_user=lambda: self._user_index,
            on_fold=self._on_fold,
        )
        self._state = LoadingState(LoadingPhase.FINDING_PHONES)
        self._ready = False
        self._user_index = 0
        self._view: list[int] = []
        self._current: int | None = None
        self._description = ""
        self._restoring: set[str] = set()
        self._listeners: list[Listener] = []

    # -- events --------------------------------------------------------

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Register a listener for controller events.

        Returns:
            Function that removes the listener again.
        """
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _emit(self, event: ControllerEvent) -> None:
        for listener in list(self._listeners):
            listener(event)

    def _set_state(self, phase: LoadingPhase, text: str = "") -> None:
        self._state = LoadingState(phase, text)
        logger.debug("Loading state: %s %s", phase.value, text)
        self._emit(ControllerEvent.PHASE_CHANGED)

    # -- read accessors ------------------------------------------------

    @property
    def loading_state(self) -> LoadingState:
        """Current phase and status text."""
        return self._state

    @property
    def ready(self) -> bool:
        """Check if package data is loaded."""
        return self._ready

    def _require_ready(self) -> None:
        if not self._ready:
            msg = f"Package data is not loaded (phase: {self._state.phase.value})"
            raise ControllerNotReadyError(msg)

    @property
    def active_user(self) -> User:
        """User whose table is shown and selected from."""
        return self.device.users[self._user_index]

    @property
    def description(self) -> str:
        """Description of the focused package."""
        self._require_ready()
        return self._description

    @property
    def view(self) -> list[int]:
        """Indices of the filtered view, in table order.

        Raises:
            ControllerNotReadyError: If called before the ready phase.
        """
        self._require_ready()
        return list(self._view)

    def rows(self) -> list[PackageRow]:
        """Return every row of the active user.

        Raises:
            ControllerNotReadyError: If called before the ready phase.
        """
        self._require_ready()
        return self.table.rows(self._user_index)

    def filtered_rows(self) -> list[tuple[int, PackageRow]]:
        """Return the filtered view as (index, row) pairs.

        Raises:
            ControllerNotReadyError: If called before the ready phase.
        """
        rows = self.rows()
        return [(i, rows[i]) for i in self._view]

    @property
    def remove_label(self) -> str:
        """Verb for a removal under the current settings."""
        return "Disable" if self.settings.disable_mode else "Uninstall"

    @property
    def restore_label(self) -> str:
        """Verb for a restore under the current settings."""
        return "Enable/Restore" if self.settings.disable_mode else "Restore"

    def selection_label(self, direction: Direction) -> str:
        """Describe a bulk action with the number of rows it applies to."""
        if direction == Direction.REMOVE:
            return f"{self.remove_label} selection ({self.selection.removable})"
        return f"{self.restore_label} selection ({self.selection.restorable})"

    # -- loading -------------------------------------------------------

    async def load(self, remote: bool = True) -> CatalogState:
        """Load the catalog and the device packages.

        A failed catalog download falls back to the embedded catalog and
        loading continues. Selection, filters and focus start empty.

        Args:
            remote: Try the remote catalog first.

        Returns:
            State of the catalog the table was built from.

        Raises:
            RuntimeError: If the device cannot be scanned.
        """
        logger.info("Android SDK %d | device %s", self.device.android_sdk, self.device.model)
        self._ready = False
        self._set_state(LoadingPhase.DOWNLOADING_LIST)
        result = await self.loader.load(remote)
        self.catalog = result.catalog
        self.catalog_state = result.state
        if result.degraded:
            logger.warning("Using embedded catalog: %s", result.error)

        os.environ[SERIAL_ENV] = self.device.adb_id
        if not self.device.adb_id:
            logger.error("Package view ready but no device found")

        self._set_state(LoadingPhase.LOADING_PACKAGES)
        inventories = await asyncio.to_thread(self.scanner.scan, self.device)

        self.selection.clear()
        self.table.populate(self.catalog, inventories)
        self.filters = FilterState()
        self._user_index = 0
        self._current = None
        self._description = ""
        self._restoring.clear()
        self._ready = True
        self._refilter()
        self._set_state(LoadingPhase.READY)
        self._emit(ControllerEvent.SELECTION_CHANGED)
        return self.catalog_state

    # -- filters -------------------------------------------------------

    def _refilter(self) -> None:
        self._view = recompute(self.table.rows(self._user_index), self.filters)
        self._emit(ControllerEvent.VIEW_CHANGED)

    def set_search(self, text: str) -> None:
        """Filter on a case-sensitive substring of the package name."""
        self._require_ready()
        self.filters.search = text
        self._refilter()

    def select_list(self, catalog_list: CatalogList) -> None:
        """Filter on catalog list membership."""
        self._require_ready()
        self.filters.catalog_list = catalog_list
        self._refilter()

    def select_state(self, state: PackageState) -> None:
        """Filter on package state."""
        self._require_ready()
        self.filters.state = state
        self._refilter()

    def select_removal(self, removal: Removal) -> None:
        """Filter on removal classification."""
        self._require_ready()
        self.filters.removal = removal
        self._refilter()

    def select_user(self, index: int) -> None:
        """Switch the active user.

        The selection keeps its indices, rebound to the new user's rows.

        Args:
            index: Index of the user in the device user list.

        Raises:
            ValueError: If the device has no such user.
        """
        self._require_ready()
        if not 0 <= index < len(self.device.users):
            msg = f"No user at index {index} (device has {len(self.device.users)})"
            raise ValueError(msg)

        for row in self.table.rows(self._user_index):
            row.selected = False
            row.current = False
        self._user_index = index
        self._current = None
        self.selection.rebind(self.table.rows(index))
        self._refilter()
        self._emit(ControllerEvent.SELECTION_CHANGED)

    # -- selection -----------------------------------------------------

    def toggle_package(self, index: int, select: bool) -> ToggleResult:
        """Select or unselect one row of the active user.

        Returns:
            What the toggle did; REFUSED for unsafe packages without
            expert mode, INVALID for an index addressing no row.
        """
        self._require_ready()
        result = self.selection.toggle_one(
            self.table.rows(self._user_index),
            index,
            select,
            self.settings.expert_mode,
        )
        if result in (ToggleResult.SELECTED, ToggleResult.UNSELECTED):
            self._emit(ControllerEvent.SELECTION_CHANGED)
        return result

    def toggle_all(self, select: bool) -> int:
        """Select or unselect every row of the filtered view.

        Returns:
            Number of rows whose membership changed.
        """
        self._require_ready()
        changed = self.selection.toggle_all(self.table.rows(self._user_index), self._view, select)
        if changed:
            self._emit(ControllerEvent.SELECTION_CHANGED)
        return changed

    def focus_package(self, index: int) -> bool:
        """Make a row the current one and show its description.

        Returns:
            False, with nothing changed, if the index addresses no row.
        """
        self._require_ready()
        rows = self.table.rows(self._user_index)
        if not 0 <= index < len(rows):
            logger.warning("Cannot focus row %d: user has %d rows", index, len(rows))
            return False
        row = rows[index]
        if self._current is not None and self._current != index and self._current < len(rows):
            rows[self._current].current = False
        row.current = True
        self._current = index
        self._description = row.description
        self._emit(ControllerEvent.PACKAGE_CHANGED)
        return True

    # -- actions -------------------------------------------------------

    async def apply_action(self, index: int) -> list[FoldResult]:
        """Remove or restore one row of the active user, by its state.

        Returns:
            One FoldResult per dispatched command.
        """
        self._require_ready()
        return await self.orchestrator.dispatch_package(self.device, self.active_user, index)

    async def apply_selection(self, direction: Direction) -> list[FoldResult]:
        """Apply a bulk action to the selection.

        Selected rows that do not fit the direction are skipped.

        Returns:
            One FoldResult per dispatched command.
        """
        self._require_ready()
        return await self.orchestrator.dispatch_selection(self.device, self.active_user, direction)

    async def restore_packages(self, names: Iterable[str]) -> list[FoldResult]:
        """Restore packages of the active user by name.

        Progress is reported through the RESTORING_DEVICE phase; the
        package data stays usable meanwhile. Unknown or already enabled
        packages are skipped, as are repeated names.

        Args:
            names: Package identifiers to restore.

        Returns:
            One FoldResult per dispatched command.
        """
        self._require_ready()
        rows = self.table.rows(self._user_index)
        dispatches = []
        seen: set[int] = set()
        for name in names:
            index = self.table.index_of(self._user_index, name)
            if index is None:
                logger.warning("Cannot restore %s: not found for %s", name, self.active_user)
                continue
            if index in seen:
                logger.debug("Skipping %s: already requested", name)
                continue
            seen.add(index)
            if not direction_applies(Direction.RESTORE, rows[index].state):
                logger.debug("Skipping %s: already enabled", name)
                continue
            self._restoring.add(name)
            dispatches.extend(self.orchestrator.plan_package(self.device, self.active_user, index))

        if not dispatches:
            return []
        self._set_state(LoadingPhase.RESTORING_DEVICE)
        results = await self.orchestrator.run(dispatches)
        # Plans dropped because their row was already being applied never fold
        self._restoring.difference_update(rows[i].name for i in seen)
        if self._ready and self._state.phase == LoadingPhase.RESTORING_DEVICE:
            self._set_state(LoadingPhase.READY, self._state.text)
        return results

    def _on_fold(self, outcome: CommandOutcome, result: FoldResult) -> None:
        name = outcome.command.package
        if result == FoldResult.STALE:
            self._restoring.discard(name)
            return

        if name in self._restoring:
            self._restoring.discard(name)
            text = f"Error: {outcome.error}" if result == FoldResult.FAILED else name
            self._set_state(LoadingPhase.RESTORING_DEVICE, text)
        elif result == FoldResult.FAILED:
            self._set_state(self._state.phase, f"Error: {name}: {outcome.error}")

        if result == FoldResult.APPLIED:
            self._emit(ControllerEvent.PACKAGE_CHANGED)
            self._emit(ControllerEvent.SELECTION_CHANGED)
        self._refilter()

"""Selection tracking for bulk actions.

The selection is a set of row indices of the active user plus running
counters by package state. Counters move exactly once per membership
transition, using the row's state at the moment of the transition, so the
summary never needs a rescan.
"""

import logging
from collections.abc import Iterable, Sequence

from debloatctl.models.action import ToggleResult
from debloatctl.models.package import PackageRow, PackageState

logger = logging.getLogger(__name__)


class Selection:
    """Selected row indices with per-state counters.

    Attributes:
        uninstalled: Number of selected rows currently uninstalled.
        enabled: Number of selected rows currently enabled.
        disabled: Number of selected rows currently disabled.
    """

    def __init__(self) -> None:
        # dict keeps selection order with O(1) membership
        self._indices: dict[int, None] = {}
        self.uninstalled = 0
        self.enabled = 0
        self.disabled = 0

    def __contains__(self, index: object) -> bool:
        return index in self._indices

    def __len__(self) -> int:
        return len(self._indices)

    @property
    def indices(self) -> list[int]:
        """Selected indices in selection order."""
        return list(self._indices)

    @property
    def restorable(self) -> int:
        """Number of selected rows a restore would act on."""
        return self.uninstalled + self.disabled

    @property
    def removable(self) -> int:
        """Number of selected rows a removal would act on."""
        return self.enabled

    def counts(self) -> dict[PackageState, int]:
        """Return the running counters keyed by state."""
        return {
            PackageState.ENABLED: self.enabled,
            PackageState.DISABLED: self.disabled,
            PackageState.UNINSTALLED: self.uninstalled,
        }

    def _count(self, state: PackageState, delta: int) -> None:
        if state == PackageState.ENABLED:
            self.enabled += delta
        elif state == PackageState.DISABLED:
            self.disabled += delta
        elif state == PackageState.UNINSTALLED:
            self.uninstalled += delta

    def _set(self, row: PackageRow, index: int, select: bool) -> ToggleResult:
        row.selected = select
        if select and index not in self._indices:
            self._indices[index] = None
            self._count(row.state, 1)
            return ToggleResult.SELECTED
        if not select and index in self._indices:
            del self._indices[index]
            self._count(row.state, -1)
            return ToggleResult.UNSELECTED
        return ToggleResult.UNCHANGED

    def toggle_one(
        self,
        rows: Sequence[PackageRow],
        index: int,
        select: bool,
        expert_mode: bool,
    ) -> ToggleResult:
        """Select or unselect a single row.

        Selecting an unsafe package without expert mode is refused: the
        row is forced unselected and counters are left alone.

        Args:
            rows: Rows of the active user.
            index: Row index to toggle.
            select: Requested membership.
            expert_mode: Whether unsafe packages may be selected.

        Returns:
            What the toggle did; INVALID if the index addresses no row.
        """
        if not 0 <= index < len(rows):
            logger.warning("Ignoring toggle of row %d: user has %d rows", index, len(rows))
            return ToggleResult.INVALID
        row = rows[index]
        if select and row.is_unsafe and not expert_mode:
            row.selected = index in self._indices
            logger.debug("Refusing to select unsafe package %s", row.name)
            return ToggleResult.REFUSED
        return self._set(row, index, select)

    def toggle_all(
        self,
        rows: Sequence[PackageRow],
        visible: Iterable[int],
        select: bool,
    ) -> int:
        """Set membership of every visible row.

        Indices that address no row are skipped.

        Args:
            rows: Rows of the active user.
            visible: Indices of the filtered view.
            select: Requested membership.

        Returns:
            Number of rows whose membership changed.
        """
        changed = 0
        for index in visible:
            if not 0 <= index < len(rows):
                logger.debug("Skipping row %d: user has %d rows", index, len(rows))
                continue
            if self._set(rows[index], index, select) != ToggleResult.UNCHANGED:
                changed += 1
        return changed

    def remove_if_present(self, rows: Sequence[PackageRow], index: int) -> bool:
        """Drop an index from the selection, if it is there.

        Must be called before the row's state changes so the right
        counter is decremented.

        Returns:
            True if the index was selected.
        """
        if index not in self._indices:
            return False
        del self._indices[index]
        row = rows[index]
        row.selected = False
        self._count(row.state, -1)
        return True

    def rebind(self, rows: Sequence[PackageRow]) -> None:
        """Carry the selection over to another user's rows.

        Indices past the end of the new rows are dropped, ``selected``
        flags are synced and the counters are rebuilt against the new
        rows' states.
        """
        self._indices = {i: None for i in self._indices if 0 <= i < len(rows)}
        for i, row in enumerate(rows):
            row.selected = i in self._indices
        counts = recount(rows, self._indices)
        self.enabled = counts[PackageState.ENABLED]
        self.disabled = counts[PackageState.DISABLED]
        self.uninstalled = counts[PackageState.UNINSTALLED]

    def clear(self, rows: Sequence[PackageRow] = ()) -> None:
        """Empty the selection and reset the counters."""
        for i in self._indices:
            if 0 <= i < len(rows):
                rows[i].selected = False
        self._indices.clear()
        self.uninstalled = self.enabled = self.disabled = 0


def recount(rows: Sequence[PackageRow], indices: Iterable[int]) -> dict[PackageState, int]:
    """Count selected rows by their current state.

    Args:
        rows: Rows of the active user.
        indices: Selected indices.

    Returns:
        Counts keyed by ENABLED, DISABLED and UNINSTALLED.
    """
    counts = {
        PackageState.ENABLED: 0,
        PackageState.DISABLED: 0,
        PackageState.UNINSTALLED: 0,
    }
    for i in indices:
        counts[rows[i].state] += 1
    return counts

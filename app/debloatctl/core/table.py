"""Per-user package table.

The table holds one ordered list of PackageRow per device user. A row's
index is its identity everywhere else (selection, filtered view, command
targets), so rows are never re-sorted or compacted. A catalog reload
replaces the rows wholesale and bumps ``generation``; targets carrying an
older generation no longer address anything.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping, Sequence
from dataclasses import dataclass

from debloatctl.models.action import PackageTarget
from debloatctl.models.catalog import Catalog
from debloatctl.models.package import PackageRow, PackageState

logger = logging.getLogger(__name__)

NO_DESCRIPTION = "[No description]"


@dataclass(frozen=True, slots=True)
class DevicePackage:
    """A package as reported by the device for one user."""

    name: str
    state: PackageState


def build_rows(catalog: Catalog, packages: Iterable[DevicePackage]) -> list[PackageRow]:
    """Build table rows for one user.

    Packages absent from the catalog still get a row, classified as
    unlisted.

    Args:
        catalog: Package identifier to catalog entry mapping.
        packages: Packages reported by the device, in device order.

    Returns:
        Rows in the same order as the device reported them.
    """
    rows: list[PackageRow] = []
    for package in packages:
        entry = catalog.get(package.name)
        if entry is None:
            rows.append(PackageRow(name=package.name, state=package.state))
            continue
        rows.append(
            PackageRow(
                name=package.name,
                state=package.state,
                description=entry.description or NO_DESCRIPTION,
                catalog_list=entry.catalog_list,
                removal=entry.removal,
            )
        )
    return rows


class PackageTable:
    """Arena of per-user package rows tagged with a reload generation.

    Example:
        >>> table = PackageTable()
        >>> table.populate(catalog, [[DevicePackage("com.foo", PackageState.ENABLED)]])
        >>> table.rows(0)[0].removal
        <Removal.UNLISTED: 'unlisted'>
    """

    def __init__(self) -> None:
        self._users: list[list[PackageRow]] = []
        self._names: list[dict[str, int]] = []
        self._generation = 0

    @property
    def generation(self) -> int:
        """Reload counter; incremented by every populate()."""
        return self._generation

    @property
    def user_count(self) -> int:
        """Number of users with a table."""
        return len(self._users)

    def populate(
        self,
        catalog: Catalog,
        inventories: Sequence[Iterable[DevicePackage]],
    ) -> int:
        """Replace every user's rows from fresh device inventories.

        Args:
            catalog: Package identifier to catalog entry mapping.
            inventories: One package listing per user, in user order.

        Returns:
            The new generation.
        """
        self._users = [build_rows(catalog, inventory) for inventory in inventories]
        self._names = [{row.name: i for i, row in enumerate(rows)} for rows in self._users]
        self._generation += 1
        logger.debug(
            "Package table generation %d: %s rows per user",
            self._generation,
            [len(rows) for rows in self._users],
        )
        return self._generation

    def rows(self, user_index: int) -> list[PackageRow]:
        """Return the rows of one user.

        Raises:
            IndexError: If the user has no table.
        """
        return self._users[user_index]

    def index_of(self, user_index: int, name: str) -> int | None:
        """Return the row index of a package for one user, if present."""
        if not 0 <= user_index < len(self._names):
            return None
        return self._names[user_index].get(name)

    def target(self, user_index: int, package_index: int) -> PackageTarget:
        """Build a target descriptor stamped with the current generation."""
        return PackageTarget(
            user_index=user_index,
            package_index=package_index,
            generation=self._generation,
        )

    def is_current(self, target: PackageTarget) -> bool:
        """Check that a target still addresses a row of this table."""
        if target.generation != self._generation:
            return False
        if not 0 <= target.user_index < len(self._users):
            return False
        return 0 <= target.package_index < len(self._users[target.user_index])

    def row(self, target: PackageTarget) -> PackageRow | None:
        """Return the row a target addresses, or None if it is stale."""
        if not self.is_current(target):
            return None
        return self._users[target.user_index][target.package_index]

    def counts(self, user_index: int) -> Mapping[PackageState, int]:
        """Count one user's rows by state."""
        result = {
            PackageState.ENABLED: 0,
            PackageState.DISABLED: 0,
            PackageState.UNINSTALLED: 0,
        }
        for row in self._users[user_index]:
            result[row.state] += 1
        return result


"""Package models for the device package table.

This module defines the enumerations that classify device packages and
the mutable row type stored in the per-user package table.
"""

from dataclasses import dataclass, field
from enum import Enum


class PackageState(str, Enum):
    """On-device state of a package for one user.

    ``ALL`` is a filter sentinel and never the state of a real row.
    """

    ENABLED = "enabled"
    DISABLED = "disabled"
    UNINSTALLED = "uninstalled"
    ALL = "all"


class Removal(str, Enum):
    """Recommended-removal classification taken from the catalog.

    Attributes:
        RECOMMENDED: Safe to remove, pure bloat.
        ADVANCED: Removal breaks obvious but non-essential features.
        EXPERT: Removal breaks features most users rely on.
        UNSAFE: Removal can bootloop the device.
        UNLISTED: Package is not part of the catalog.
        ALL: Filter sentinel.
    """

    RECOMMENDED = "recommended"
    ADVANCED = "advanced"
    EXPERT = "expert"
    UNSAFE = "unsafe"
    UNLISTED = "unlisted"
    ALL = "all"


class CatalogList(str, Enum):
    """Catalog list a package belongs to."""

    AOSP = "aosp"
    CARRIER = "carrier"
    GOOGLE = "google"
    MISC = "misc"
    OEM = "oem"
    PENDING = "pending"
    UNLISTED = "unlisted"
    ALL = "all"


class Direction(str, Enum):
    """Direction of a state-changing action."""

    REMOVE = "remove"
    RESTORE = "restore"


def opposite(state: PackageState, disable_mode: bool) -> PackageState:
    """Return the state a package reaches after a successful action.

    Args:
        state: Current package state.
        disable_mode: If True, removing disables instead of uninstalling.

    Returns:
        The opposite package state.

    Raises:
        ValueError: If state is the ALL filter sentinel.
    """
    if state == PackageState.ENABLED:
        return PackageState.DISABLED if disable_mode else PackageState.UNINSTALLED
    if state in (PackageState.DISABLED, PackageState.UNINSTALLED):
        return PackageState.ENABLED
    msg = f"No opposite for filter sentinel {state.value!r}"
    raise ValueError(msg)


def direction_applies(direction: Direction, state: PackageState) -> bool:
    """Check whether an action direction is consistent with a package state.

    Removal only applies to enabled packages, restoration only to
    packages that are not enabled.
    """
    if direction == Direction.REMOVE:
        return state == PackageState.ENABLED
    return state != PackageState.ENABLED


@dataclass(slots=True)
class PackageRow:
    """A device's instance of a package for one user.

    Unlike most models this is mutable: the orchestrator flips ``state``
    in place when a device command succeeds.

    Attributes:
        name: Android package identifier (e.g., 'com.android.chrome').
        state: Current on-device state.
        description: Catalog description, or a placeholder.
        catalog_list: Catalog list membership.
        removal: Recommended-removal classification.
        selected: Whether the row is part of the pending selection.
        current: Whether the row is the focused package.
    """

    name: str
    state: PackageState
    description: str = field(default="[No description]")
    catalog_list: CatalogList = field(default=CatalogList.UNLISTED)
    removal: Removal = field(default=Removal.UNLISTED)
    selected: bool = field(default=False)
    current: bool = field(default=False)

    def __post_init__(self) -> None:
        """Validate row data after initialization."""
        if not self.name:
            msg = "Package name cannot be empty"
            raise ValueError(msg)
        if self.state == PackageState.ALL:
            msg = "Package state cannot be the 'all' sentinel"
            raise ValueError(msg)
        if self.removal == Removal.ALL:
            msg = "Package removal cannot be the 'all' sentinel"
            raise ValueError(msg)
        if self.catalog_list == CatalogList.ALL:
            msg = "Package list cannot be the 'all' sentinel"
            raise ValueError(msg)

    @property
    def is_enabled(self) -> bool:
        """Check if the package is enabled."""
        return self.state == PackageState.ENABLED

    @property
    def is_unsafe(self) -> bool:
        """Check if the package is classified unsafe to remove."""
        return self.removal == Removal.UNSAFE

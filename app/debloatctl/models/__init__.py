"""Data models for debloatctl.

This module exports the core data structures used throughout the application.
"""

from debloatctl.models.action import (
    CommandOutcome,
    DeviceCommand,
    FoldResult,
    PackageTarget,
    PlannedCommand,
    ToggleResult,
)
from debloatctl.models.catalog import Catalog, CatalogEntry, CatalogLoadResult, CatalogState
from debloatctl.models.device import PRIMARY_USER, Device, DeviceSettings, User
from debloatctl.models.package import (
    CatalogList,
    Direction,
    PackageRow,
    PackageState,
    Removal,
    direction_applies,
    opposite,
)

__all__ = [
    "PRIMARY_USER",
    "Catalog",
    "CatalogEntry",
    "CatalogList",
    "CatalogLoadResult",
    "CatalogState",
    "CommandOutcome",
    "Device",
    "DeviceCommand",
    "DeviceSettings",
    "Direction",
    "FoldResult",
    "PackageRow",
    "PackageState",
    "PackageTarget",
    "PlannedCommand",
    "Removal",
    "ToggleResult",
    "User",
    "direction_applies",
    "opposite",
]

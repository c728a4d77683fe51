"""Action models for device commands.

This module defines the data structures passed between the planner,
the orchestrator and the device operator: which row an outcome may
mutate, what runs on the device, and what came back.
"""

from dataclasses import dataclass, field
from enum import Enum


@dataclass(frozen=True, slots=True)
class PackageTarget:
    """Explicit descriptor of the table row an outcome may mutate.

    Attributes:
        user_index: Index of the user whose table holds the row.
        package_index: Row index inside that user's table.
        generation: Table generation the index was taken from.
    """

    user_index: int
    package_index: int
    generation: int


@dataclass(frozen=True, slots=True)
class DeviceCommand:
    """Shell steps to run on the device for one package.

    Attributes:
        package: Package identifier the steps operate on.
        steps: Shell commands, run in order; a failing step stops the chain.
        user_id: Android user id passed as ``--user`` (None to omit it).
    """

    package: str
    steps: tuple[str, ...]
    user_id: int | None = None

    def __post_init__(self) -> None:
        """Validate command data after initialization."""
        if not self.package:
            msg = "Package name cannot be empty"
            raise ValueError(msg)
        if not self.steps:
            msg = "Command must have at least one step"
            raise ValueError(msg)

    @property
    def shell_lines(self) -> list[str]:
        """Return the full shell line for every step."""
        suffix = f" --user {self.user_id}" if self.user_id is not None else ""
        return [f"{step} {self.package}{suffix}" for step in self.steps]


@dataclass(frozen=True, slots=True)
class PlannedCommand:
    """One element of an action plan.

    Attributes:
        target_user: User index override for the outcome. None means the
            outcome belongs to the invoking user.
        command: Command to run on the device.
    """

    target_user: int | None
    command: DeviceCommand


@dataclass(frozen=True, slots=True)
class CommandOutcome:
    """Result of running a device command.

    Echoes the target so the orchestrator can fold the outcome without
    looking at ambient state.

    Attributes:
        command: The command that was executed.
        target: Row of the invoking user the action was requested on.
        override: Row of the plan's target user, when the plan named one.
            Multi-user mode folds the outcome into this row instead.
        success: Whether every step succeeded.
        message: Optional output or information.
        error: Optional error message if a step failed.
    """

    command: DeviceCommand
    target: PackageTarget
    override: PackageTarget | None = None
    success: bool = True
    message: str | None = field(default=None)
    error: str | None = field(default=None)

    @property
    def failed(self) -> bool:
        """Check if the command failed."""
        return not self.success


class FoldResult(str, Enum):
    """What folding an outcome into the package table did.

    Attributes:
        APPLIED: The target row changed state.
        FAILED: The command failed; nothing changed.
        STALE: The outcome belongs to a replaced table; discarded.
        IGNORED: Non-authoritative outcome; observed only.
    """

    APPLIED = "applied"
    FAILED = "failed"
    STALE = "stale"
    IGNORED = "ignored"


class ToggleResult(str, Enum):
    """What a selection toggle did.

    Attributes:
        SELECTED: The index joined the selection.
        UNSELECTED: The index left the selection.
        UNCHANGED: Membership already matched the request.
        REFUSED: Unsafe package without expert mode; left unselected.
        INVALID: The index addresses no row; nothing changed.
    """

    SELECTED = "selected"
    UNSELECTED = "unselected"
    UNCHANGED = "unchanged"
    REFUSED = "refused"
    INVALID = "invalid"

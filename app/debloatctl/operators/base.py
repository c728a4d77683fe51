"""Abstract base class for device operators.

This module defines the Operator interface that executes planned device
commands and reports a typed outcome.
"""

from abc import ABC, abstractmethod

from debloatctl.models.action import CommandOutcome, DeviceCommand, PackageTarget


class Operator(ABC):
    """Abstract base class for all device operators.

    Operators run device commands asynchronously. A failing command is
    never raised: it comes back as a CommandOutcome with success=False,
    echoing the target so the caller can fold it.

    Attributes:
        dry_run: If True, only log commands without executing them.

    Example:
        >>> operator = AdbOperator(dry_run=True)
        >>> if operator.is_available():
        ...     outcome = await operator.execute(command, target)
        ...     print(f"{outcome.command.package}: {outcome.success}")
    """

    def __init__(self, dry_run: bool = False) -> None:
        """Initialize the operator.

        Args:
            dry_run: If True, only simulate commands without executing them.
        """
        self._dry_run = dry_run

    @property
    def dry_run(self) -> bool:
        """Check if operator is in dry-run mode."""
        return self._dry_run

    @abstractmethod
    def is_available(self) -> bool:
        """Check if the device transport is available on this system.

        Returns:
            True if commands can be executed, False otherwise.
        """

    @abstractmethod
    async def execute(
        self,
        command: DeviceCommand,
        target: PackageTarget,
        override: PackageTarget | None = None,
    ) -> CommandOutcome:
        """Execute a device command.

        Args:
            command: Command to run.
            target: Row the outcome may mutate, echoed back unchanged.
            override: Row of the plan's target user, echoed back unchanged.

        Returns:
            CommandOutcome describing success or failure.
        """

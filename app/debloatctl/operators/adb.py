"""ADB device operator implementation.

Executes package state changes through ``adb shell``. The target device
is selected by the process-wide ANDROID_SERIAL environment variable.
"""

import logging

from debloatctl.models.action import CommandOutcome, DeviceCommand, PackageTarget
from debloatctl.operators.base import Operator
from debloatctl.utils.shell import CommandResult, command_exists, run_command_async

logger = logging.getLogger(__name__)

# pm reports many failures on stdout with a zero exit code
_FAILURE_MARKERS = ("Failure", "Error:", "Exception occurred")


class AdbOperator(Operator):
    """Operator for Android devices reachable over ADB.

    Each step of a DeviceCommand runs as its own ``adb shell`` call; the
    first failing step stops the chain.

    Attributes:
        dry_run: If True, log steps and report success without running them.
    """

    # Timeout for a single adb shell step
    _ADB_TIMEOUT: float = 30.0

    def is_available(self) -> bool:
        """Check if adb is available."""
        return command_exists("adb")

    async def execute(
        self,
        command: DeviceCommand,
        target: PackageTarget,
        override: PackageTarget | None = None,
    ) -> CommandOutcome:
        """Run every step of a command on the device.

        Args:
            command: Command to run.
            target: Row the outcome may mutate.
            override: Row of the plan's target user.

        Returns:
            CommandOutcome with the output of the last step, or the error
            of the first failing one.
        """
        lines = command.shell_lines

        if self.dry_run:
            for line in lines:
                logger.info("[dry-run] adb shell %s", line)
            return CommandOutcome(
                command=command,
                target=target,
                override=override,
                success=True,
                message="Dry-run completed",
            )

        if not self.is_available():
            return CommandOutcome(
                command=command,
                target=target,
                override=override,
                success=False,
                error="adb is not available on this system",
            )

        output = ""
        for line in lines:
            logger.info("adb shell %s", line)
            result = await run_command_async(["adb", "shell", line], timeout=self._ADB_TIMEOUT)
            error = self._step_error(result)
            if error is not None:
                logger.warning("Step failed for %s: %s", command.package, error)
                return CommandOutcome(
                    command=command,
                    target=target,
                    override=override,
                    success=False,
                    error=error,
                )
            output = result.stdout.strip()

        return CommandOutcome(
            command=command,
            target=target,
            override=override,
            success=True,
            message=output or "Operation completed",
        )

    @staticmethod
    def _step_error(result: CommandResult) -> str | None:
        """Return the error of a step, or None if it succeeded.

        Args:
            result: Result of one ``adb shell`` call.

        Returns:
            Error text for a failed step, None otherwise.
        """
        if not result.success:
            return result.stderr.strip() or result.stdout.strip() or "adb command failed"
        stdout = result.stdout.strip()
        if stdout.startswith(_FAILURE_MARKERS):
            return stdout
        return None

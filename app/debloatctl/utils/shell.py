"""Shell execution utilities.

Provides safe subprocess execution with proper error handling, both
blocking and as asyncio coroutines.
"""

import asyncio
import os
import shutil
import subprocess
from dataclasses import dataclass


@dataclass(frozen=True, slots=True)
class CommandResult:
    """Result of a shell command execution.

    Attributes:
        stdout: Standard output from the command.
        stderr: Standard error from the command.
        returncode: Exit code of the command.
    """

    stdout: str
    stderr: str
    returncode: int

    @property
    def success(self) -> bool:
        """Check if command executed successfully."""
        return self.returncode == 0


def run_command(
    args: list[str],
    *,
    check: bool = False,
    timeout: float | None = 60.0,
    cwd: str | None = None,
) -> CommandResult:
    """Execute a shell command and return the result.

    Args:
        args: Command and arguments to execute.
        check: If True, raise CalledProcessError on non-zero exit.
        timeout: Maximum time in seconds to wait for command.
        cwd: Working directory for the command. If None, uses current directory.

    Returns:
        CommandResult with stdout, stderr, and returncode.

    Raises:
        subprocess.CalledProcessError: If check=True and command fails.
        subprocess.TimeoutExpired: If command exceeds timeout.
        FileNotFoundError: If command executable is not found.
    """
    result = subprocess.run(
        args,
        capture_output=True,
        text=True,
        check=check,
        timeout=timeout,
        cwd=cwd,
    )
    return CommandResult(
        stdout=result.stdout,
        stderr=result.stderr,
        returncode=result.returncode,
    )


async def run_command_async(
    args: list[str],
    *,
    timeout: float | None = 60.0,
    env: dict[str, str] | None = None,
) -> CommandResult:
    """Execute a command without blocking the event loop.

    Unlike run_command(), failures to launch or a timeout are reported
    as a CommandResult with returncode 127 / 124 rather than raised, so
    callers awaiting many commands at once get one result per command.

    Args:
        args: Command and arguments to execute.
        timeout: Maximum time in seconds to wait for command.
        env: Additional environment variables (merged with current env).

    Returns:
        CommandResult with stdout, stderr, and returncode.
    """
    full_env = {**os.environ, **(env or {})}
    try:
        process = await asyncio.create_subprocess_exec(
            *args,
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.PIPE,
            env=full_env,
        )
    except OSError as e:
        return CommandResult(stdout="", stderr=str(e), returncode=127)

    try:
        stdout, stderr = await asyncio.wait_for(process.communicate(), timeout=timeout)
    except TimeoutError:
        process.kill()
        await process.wait()
        return CommandResult(
            stdout="",
            stderr=f"Command timed out after {timeout}s",
            returncode=124,
        )

    return CommandResult(
        stdout=stdout.decode(errors="replace"),
        stderr=stderr.decode(errors="replace"),
        returncode=process.returncode if process.returncode is not None else -1,
    )


def command_exists(name: str) -> bool:
    """Check if a command exists in the system PATH.

    Args:
        name: Command name to check.

    Returns:
        True if command exists, False otherwise.
    """
    return shutil.which(name) is not None

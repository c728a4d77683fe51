"""ADB scanners.

Finds attached devices and their users, and lists system packages per
user with their state using ``pm list packages``.
"""

import logging
import re

from debloatctl.core.table import DevicePackage
from debloatctl.models.device import PRIMARY_USER, Device, User
from debloatctl.models.package import PackageState
from debloatctl.scanners.base import Scanner
from debloatctl.utils.shell import command_exists, run_command

logger = logging.getLogger(__name__)

_USER_PATTERN = re.compile(r"UserInfo\{(\d+):")
_PACKAGE_PREFIX = "package:"


def _parse_packages(output: str) -> list[str]:
    """Parse ``pm list packages`` output into package names.

    Args:
        output: Raw command output, one ``package:<name>`` per line.

    Returns:
        Package names in output order.
    """
    names: list[str] = []
    for line in output.splitlines():
        line = line.strip()
        if not line.startswith(_PACKAGE_PREFIX):
            continue
        name = line[len(_PACKAGE_PREFIX) :].strip()
        if name:
            names.append(name)
    return names


def _parse_users(output: str) -> tuple[User, ...]:
    """Parse ``pm list users`` output into an ordered user list."""
    ids = [int(match) for match in _USER_PATTERN.findall(output)]
    if not ids:
        return (PRIMARY_USER,)
    return tuple(User(id=user_id, index=i) for i, user_id in enumerate(ids))


class AdbPackageScanner(Scanner):
    """Scanner for system packages of an ADB device.

    For each user, ``-s -u`` lists every system package (including those
    uninstalled for the user), ``-s -e`` the enabled ones and ``-s -d``
    the disabled ones. Anything neither enabled nor disabled is
    uninstalled for that user.
    """

    # Timeout for a single pm call
    _PM_TIMEOUT: float = 60.0

    def is_available(self) -> bool:
        """Check if adb is available."""
        return command_exists("adb")

    def scan(self, device: Device) -> list[list[DevicePackage]]:
        """Scan packages of every user of a device.

        Raises:
            RuntimeError: If adb is missing or a pm call fails.
        """
        if not self.is_available():
            msg = "adb is not available on this system"
            raise RuntimeError(msg)

        if not device.is_multi_user:
            return [self._scan_user(None)]
        return [self._scan_user(user) for user in device.users]

    def _scan_user(self, user: User | None) -> list[DevicePackage]:
        """List system packages of one user (None: no --user flag)."""
        every = self._list_packages("-s", "-u", user=user)
        enabled = set(self._list_packages("-s", "-e", user=user))
        disabled = set(self._list_packages("-s", "-d", user=user))

        packages: list[DevicePackage] = []
        for name in every:
            if name in enabled:
                state = PackageState.ENABLED
            elif name in disabled:
                state = PackageState.DISABLED
            else:
                state = PackageState.UNINSTALLED
            packages.append(DevicePackage(name=name, state=state))

        logger.debug("Found %d system packages for %s", len(packages), user or PRIMARY_USER)
        return packages

    def _list_packages(self, *flags: str, user: User | None) -> list[str]:
        """Run ``pm list packages`` with flags.

        Raises:
            RuntimeError: If the command fails.
        """
        line = " ".join(("pm list packages", *flags))
        if user is not None:
            line += f" --user {user.id}"

        result = run_command(["adb", "shell", line], timeout=self._PM_TIMEOUT)
        if not result.success:
            msg = f"{line} failed: {result.stderr.strip() or 'unknown error'}"
            raise RuntimeError(msg)
        return _parse_packages(result.stdout)


class AdbDeviceScanner:
    """Finds attached devices and describes them."""

    def is_available(self) -> bool:
        """Check if adb is available."""
        return command_exists("adb")

    def find_devices(self) -> list[Device]:
        """List devices in the ``device`` state.

        Unauthorized or offline devices are skipped with a warning.

        Returns:
            Described devices, in ``adb devices`` order.

        Raises:
            RuntimeError: If adb is missing or ``adb devices`` fails.
        """
        if not self.is_available():
            msg = "adb is not available on this system"
            raise RuntimeError(msg)

        result = run_command(["adb", "devices"])
        if not result.success:
            msg = f"adb devices failed: {result.stderr.strip() or 'unknown error'}"
            raise RuntimeError(msg)

        devices: list[Device] = []
        for line in result.stdout.splitlines()[1:]:
            parts = line.split()
            if len(parts) < 2:
                continue
            serial, status = parts[0], parts[1]
            if status != "device":
                logger.warning("Skipping device %s (%s)", serial, status)
                continue
            devices.append(self.describe(serial))
        return devices

    def describe(self, serial: str) -> Device:
        """Read model, SDK level and users of one device."""
        model = self._shell(serial, "getprop ro.product.model") or "unknown"
        sdk_text = self._shell(serial, "getprop ro.build.version.sdk")
        try:
            sdk = int(sdk_text)
        except ValueError:
            logger.warning("Unreadable SDK level %r for %s", sdk_text, serial)
            sdk = 0

        users = _parse_users(self._shell(serial, "pm list users")) if sdk >= 17 else (PRIMARY_USER,)
        return Device(model=model, android_sdk=sdk, adb_id=serial, users=users)

    @staticmethod
    def _shell(serial: str, line: str) -> str:
        result = run_command(["adb", "-s", serial, "shell", line], timeout=15.0)
        if not result.success:
            logger.debug("adb -s %s shell %s failed: %s", serial, line, result.stderr.strip())
            return ""
        return result.stdout.strip()

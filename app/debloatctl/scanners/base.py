"""Abstract base class for package scanners.

This module defines the Scanner interface that reports, for every user
of a device, which packages exist and in which state.
"""

from abc import ABC, abstractmethod

from debloatctl.core.table import DevicePackage
from debloatctl.models.device import Device


class Scanner(ABC):
    """Abstract base class for all package scanners.

    Example:
        >>> scanner = AdbPackageScanner()
        >>> if scanner.is_available():
        ...     for user, packages in zip(device.users, scanner.scan(device)):
        ...         print(f"{user}: {len(packages)} packages")
    """

    @abstractmethod
    def scan(self, device: Device) -> list[list[DevicePackage]]:
        """Scan packages of every user of a device.

        Args:
            device: Device to scan.

        Returns:
            One package list per user, in user order.

        Raises:
            RuntimeError: If the device cannot be queried.
        """

    @abstractmethod
    def is_available(self) -> bool:
        """Check if the device transport is available on this system."""


"""Device scanners.

This module exports the scanner classes for querying attached devices
and their installed packages.
"""

from debloatctl.scanners.adb import AdbDeviceScanner, AdbPackageScanner
from debloatctl.scanners.base import Scanner

__all__ = ["AdbDeviceScanner", "AdbPackageScanner", "Scanner"]

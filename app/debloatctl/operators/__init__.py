"""Device operators for executing package state changes.

This module provides the abstract operator interface and the ADB
implementation.
"""

from debloatctl.operators.adb import AdbOperator
from debloatctl.operators.base import Operator

__all__ = ["AdbOperator", "Operator"]

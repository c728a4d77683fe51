"""CLI commands for debloatctl.

This package contains all subcommand implementations.
"""

from debloatctl.cli.commands import actions, config, devices, packages

__all__ = ["actions", "config", "devices", "packages"]

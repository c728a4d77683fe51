"""CLI package for debloatctl.

This package contains the Typer application and all subcommands.
"""

from debloatctl.cli.main import app

__all__ = ["app"]

"""Unit tests for the main CLI application."""

import logging

from debloatctl import __version__
from debloatctl.cli.main import app, setup_logging
from typer.testing import CliRunner

runner = CliRunner()


class TestMainApp:
    """Tests for global options."""

    def test_version(self) -> None:
        """--version prints the version."""
        result = runner.invoke(app, ["--version"])

        assert result.exit_code == 0
        assert f"debloatctl version {__version__}" in result.stdout

    def test_help_lists_commands(self) -> None:
        """--help lists every command."""
        result = runner.invoke(app, ["--help"])

        assert result.exit_code == 0
        for command in ("devices", "list", "remove", "restore", "config"):
            assert command in result.stdout


class TestSetupLogging:
    """Tests for setup_logging."""

    def test_levels(self) -> None:
        """Verbose shows debug records, quiet only errors."""
        setup_logging(verbose=True, quiet=False)
        assert logging.getLogger().level == logging.DEBUG

        setup_logging(verbose=False, quiet=True)
        assert logging.getLogger().level == logging.ERROR

        setup_logging(verbose=False, quiet=False)
        assert logging.getLogger().level == logging.WARNING
        assert logging.getLogger("httpx").level == logging.WARNING

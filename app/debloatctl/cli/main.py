"""Main CLI application entry point.

Defines the Typer application and global options.
"""

import logging
from typing import Annotated

import typer
from rich.logging import RichHandler

from debloatctl import __version__
from debloatctl.cli.commands import actions, config, devices, packages
from debloatctl.utils.formatting import err_console

# Create main Typer app
app = typer.Typer(
    name="debloatctl",
    help="Inspect and debloat the system packages of Android devices over ADB.",
    no_args_is_help=True,
    rich_markup_mode="rich",
    context_settings={"help_option_names": ["-h", "--help"]},
)


def version_callback(value: bool) -> None:
    """Print version and exit."""
    if value:
        typer.echo(f"debloatctl version {__version__}")
        raise typer.Exit()


def setup_logging(verbose: bool, quiet: bool) -> None:
    """Route log records to stderr through Rich.

    Args:
        verbose: Show debug records.
        quiet: Show errors only.
    """
    if verbose:
        level = logging.DEBUG
    elif quiet:
        level = logging.ERROR
    else:
        level = logging.WARNING

    handler = RichHandler(console=err_console, show_time=verbose, show_path=False)
    logging.basicConfig(level=level, format="%(message)s", handlers=[handler], force=True)
    # httpx logs every request at INFO
    logging.getLogger("httpx").setLevel(logging.DEBUG if verbose else logging.WARNING)


@app.callback()
def main(
    ctx: typer.Context,
    version: Annotated[
        bool | None,
        typer.Option(
            "--version",
            "-V",
            callback=version_callback,
            is_eager=True,
            help="Show version and exit.",
        ),
    ] = None,
    verbose: Annotated[
        bool,
        typer.Option(
            "--verbose",
            "-v",
            help="Enable verbose output.",
        ),
    ] = False,
    quiet: Annotated[
        bool,
        typer.Option(
            "--quiet",
            "-q",
            help="Suppress non-essential output.",
        ),
    ] = False,
) -> None:
    """debloatctl - Android system package debloater.

    Lists the system packages of an attached device, classified by a
    community catalog, and removes or restores them per user.
    """
    setup_logging(verbose, quiet)
    ctx.ensure_object(dict)
    ctx.obj["verbose"] = verbose
    ctx.obj["quiet"] = quiet


# Register commands
app.add_typer(devices.app, name="devices")
app.add_typer(packages.app, name="list")
app.command("remove")(actions.remove)
app.command("restore")(actions.restore)
app.add_typer(config.app, name="config")


if __name__ == "__main__":
    app()

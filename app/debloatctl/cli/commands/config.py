"""Config command implementation.

Shows and changes the settings stored in settings.toml.
"""

from typing import Annotated

import typer
from rich.table import Table

from debloatctl.cli.types import require_settings
from debloatctl.core.paths import get_settings_path
from debloatctl.core.settings import SettingsError, save_settings, update_setting
from debloatctl.utils.formatting import console, print_error, print_success

app = typer.Typer(
    help="Show or change settings.",
    invoke_without_command=True,
    no_args_is_help=True,
)


@app.command()
def show() -> None:
    """Show the current settings."""
    settings = require_settings()

    table = Table(
        title=str(get_settings_path()),
        show_header=True,
        header_style="bold_header",
        border_style="border",
    )
    table.add_column("Key", no_wrap=True)
    table.add_column("Value")

    for section, values in settings.model_dump(mode="json").items():
        for name, value in values.items():
            table.add_row(f"{section}.{name}", f"[info]{value}[/info]")

    console.print(table)


@app.command("set")
def set_value(
    key: Annotated[str, typer.Argument(help="Dotted key, e.g. device.expert_mode.")],
    value: Annotated[str, typer.Argument(help="New value.")],
) -> None:
    """Change one setting.

    Examples:
        debloatctl config set device.disable_mode true
        debloatctl config set catalog.timeout_seconds 30
    """
    settings = require_settings()
    try:
        updated = update_setting(settings, key, value)
        path = save_settings(updated)
    except SettingsError as e:
        print_error(str(e))
        raise typer.Exit(code=1) from e

    print_success(f"Set {key} = {value} in {path}")

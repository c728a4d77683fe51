"""Application settings.

This module provides the settings model and I/O functions for
debloatctl. Settings are stored in ~/.config/debloatctl/settings.toml:

    [device]
    expert_mode = false
    multi_user_mode = true
    disable_mode = false

    [catalog]
    url = "https://..."
    timeout_seconds = 10
"""

import logging
import os
import tomllib
from pathlib import Path
from tempfile import NamedTemporaryFile
from typing import Annotated

import tomli_w
from pydantic import BaseModel, ConfigDict, Field, ValidationError

from debloatctl.core.paths import get_settings_path
from debloatctl.models.device import DeviceSettings

logger = logging.getLogger(__name__)

DEFAULT_CATALOG_URL = (
    "https://raw.githubusercontent.com/Universal-Debloater-Alliance/"
    "universal-android-debloater-next-generation/main/resources/assets/uad_lists.json"
)


class CatalogSettings(BaseModel):
    """Where the remote catalog is downloaded from.

    Attributes:
        url: URL of the JSON catalog.
        timeout_seconds: HTTP timeout for the download.
    """

    model_config = ConfigDict(extra="forbid")

    url: Annotated[str, Field(min_length=1, description="Remote catalog URL")] = (
        DEFAULT_CATALOG_URL
    )
    timeout_seconds: Annotated[
        float,
        Field(gt=0, le=300, description="Download timeout in seconds"),
    ] = 10.0


class AppSettings(BaseModel):
    """Complete settings file."""

    model_config = ConfigDict(extra="forbid")

    device: Annotated[DeviceSettings, Field(default_factory=DeviceSettings)]
    catalog: Annotated[CatalogSettings, Field(default_factory=CatalogSettings)]


class SettingsError(Exception):
    """Base exception for settings errors."""


class SettingsParseError(SettingsError):
    """Raised when the settings file cannot be parsed."""


def load_settings(path: Path | None = None) -> AppSettings:
    """Load settings from a TOML file.

    A missing file is not an error: defaults are returned.

    Args:
        path: Path to the settings file. If None, uses the default path.

    Returns:
        Validated AppSettings object.

    Raises:
        SettingsParseError: If the TOML syntax is invalid.
        SettingsError: If the file cannot be read or the content doesn't
            match the schema.
    """
    settings_path = path or get_settings_path()

    if not settings_path.exists():
        logger.debug("No settings file at %s, using defaults", settings_path)
        return AppSettings()

    try:
        with open(settings_path, "rb") as f:
            data = tomllib.load(f)
    except tomllib.TOMLDecodeError as e:
        raise SettingsParseError(f"Invalid TOML syntax: {e}") from e
    except OSError as e:
        raise SettingsError(f"Failed to read settings: {e}") from e

    try:
        return AppSettings.model_validate(data)
    except ValidationError as e:
        raise SettingsError(f"Invalid settings content: {e}") from e


def save_settings(settings: AppSettings, path: Path | None = None) -> Path:
    """Save settings to a TOML file.

    The file is written atomically by first writing to a temporary file
    and then using os.replace() for atomic rename.

    Args:
        settings: The AppSettings object to save.
        path: Path to save the settings. If None, uses the default path.

    Returns:
        Path where the settings were saved.

    Raises:
        SettingsError: If the file cannot be written.
    """
    settings_path = path or get_settings_path()
    settings_path.parent.mkdir(parents=True, exist_ok=True)

    data = settings.model_dump(mode="json")

    tmp_path: Path | None = None
    try:
        with NamedTemporaryFile(
            mode="wb",
            dir=settings_path.parent,
            delete=False,
            suffix=".tmp",
        ) as f:
            tmp_path = Path(f.name)
            tomli_w.dump(data, f)
        os.replace(str(tmp_path), str(settings_path))
    except OSError as e:
        if tmp_path is not None and tmp_path.exists():
            tmp_path.unlink()
        raise SettingsError(f"Failed to write settings: {e}") from e

    return settings_path


def update_setting(settings: AppSettings, key: str, value: str) -> AppSettings:
    """Return a copy of settings with one dotted key changed.

    Args:
        settings: Current settings.
        key: Dotted key such as ``device.disable_mode``.
        value: Raw string value; validated and coerced by pydantic.

    Returns:
        New AppSettings instance.

    Raises:
        SettingsError: If the key is unknown or the value is invalid.
    """
    section, _, name = key.partition(".")
    data = settings.model_dump()

    if section not in data or not name or name not in data[section]:
        raise SettingsError(f"Unknown setting: {key}")

    data[section][name] = value
    try:
        return AppSettings.model_validate(data)
    except ValidationError as e:
        raise SettingsError(f"Invalid value for {key}: {e}") from e

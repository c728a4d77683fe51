"""Console color theme for debloatctl.

Colors come from the bundled ``data/theme.toml``; any key of the user's
``~/.config/debloatctl/theme.toml`` overrides the bundled value. Package
states and removal classifications each get a style of their own
(``state.<value>``, ``removal.<value>``) so tables can style a cell by
its enum value alone.
"""

import logging
import tomllib
from importlib import resources
from pathlib import Path
from typing import Any

from pydantic import BaseModel, ConfigDict, ValidationError, field_validator
from rich.theme import Theme

from debloatctl.core.paths import get_theme_path
from debloatctl.models.package import PackageState, Removal

logger = logging.getLogger(__name__)

_HEX_DIGITS = frozenset("0123456789abcdefABCDEF")


def _check_hex(name: str, value: object) -> str:
    """Return a stripped #RGB / #RRGGBB color or raise ValueError."""
    if not isinstance(value, str):
        msg = f"{name}: color must be a string"
        raise ValueError(msg)
    color = value.strip()
    if not color.startswith("#"):
        msg = f"{name}: color must start with '#'"
        raise ValueError(msg)
    digits = color[1:]
    if len(digits) not in (3, 6):
        msg = f"{name}: color must be #RGB or #RRGGBB format"
        raise ValueError(msg)
    if not _HEX_DIGITS.issuperset(digits):
        msg = f"{name}: invalid hex color '{color}'"
        raise ValueError(msg)
    return color


class ThemeColors(BaseModel):
    """Hex colors of the debloatctl console.

    Field names match the keys of the ``[colors]`` table.
    """

    model_config = ConfigDict(extra="forbid")

    text: str = "#ffffff"
    muted: str = "#b2bec3"
    header: str = "#69B9A1"
    border: str = "#29526d"

    success: str = "#03b971"
    warning: str = "#f5b332"
    error: str = "#f53263"
    info: str = "#0ec1c8"

    state_enabled: str = "#03b971"
    state_disabled: str = "#f5b332"
    state_uninstalled: str = "#f53263"

    removal_recommended: str = "#c1ff62"
    removal_advanced: str = "#faf870"
    removal_expert: str = "#f5b332"
    removal_unsafe: str = "#d44ebc"
    removal_unlisted: str = "#b2bec3"

    @field_validator("*", mode="before")
    @classmethod
    def validate_hex_color(cls, v: object, info: Any) -> str:
        return _check_hex(info.field_name, v)

    def state_color(self, state: PackageState) -> str:
        """Color of a package state."""
        return str(getattr(self, f"state_{state.value}"))

    def removal_color(self, removal: Removal) -> str:
        """Color of a removal classification."""
        return str(getattr(self, f"removal_{removal.value}"))


def get_bundled_theme_path() -> Path:
    """Path of the theme shipped in ``debloatctl.data``."""
    return Path(str(resources.files("debloatctl.data").joinpath("theme.toml")))


def _load_toml_colors(path: Path) -> dict[str, str] | None:
    """Read the ``[colors]`` table of a theme file.

    Non-string values are dropped. A missing, unreadable or malformed
    file gives None; only the latter two are logged.

    Args:
        path: Theme file.

    Returns:
        Color name to value mapping, or None.
    """
    try:
        with open(path, "rb") as f:
            data = tomllib.load(f)
    except FileNotFoundError:
        return None
    except tomllib.TOMLDecodeError as e:
        logger.warning("Failed to parse theme file %s: %s", path, e)
        return None
    except OSError as e:
        logger.warning("Failed to read theme file %s: %s", path, e)
        return None

    colors = data.get("colors", {})
    if not isinstance(colors, dict):
        logger.warning("Invalid 'colors' section in %s", path)
        return None
    return {str(key): value for key, value in colors.items() if isinstance(value, str)}


def load_theme(user_path: Path | None = None) -> ThemeColors:
    """Merge the bundled colors with the user's overrides.

    An invalid merged theme is logged and replaced by the defaults as a
    whole, so one bad override never leaves a half-applied theme.

    Args:
        user_path: User theme file. Defaults to the XDG config location.

    Returns:
        Validated colors.
    """
    colors = _load_toml_colors(get_bundled_theme_path())
    if colors is None:
        logger.error("Bundled theme is missing or unreadable, using built-in colors")
        colors = {}

    user_path = user_path or get_theme_path()
    overrides = _load_toml_colors(user_path)
    if overrides:
        logger.debug("Applying %d theme overrides from %s", len(overrides), user_path)
        colors.update(overrides)

    try:
        return ThemeColors.model_validate(colors)
    except ValidationError as e:
        logger.warning("Invalid theme, using defaults: %s", e)
        return ThemeColors()


def get_rich_theme(colors: ThemeColors | None = None) -> Theme:
    """Build the Rich theme used by every console.

    Args:
        colors: Colors to use. Loaded from the theme files when None.

    Returns:
        Rich theme with base, state and removal styles.
    """
    colors = colors or load_theme()
    styles = {
        "text": colors.text,
        "muted": colors.muted,
        "header": colors.header,
        "border": colors.border,
        "success": colors.success,
        "warning": colors.warning,
        "error": f"bold {colors.error}",
        "info": colors.info,
        "bold_header": f"bold {colors.header}",
        "package.name": f"bold {colors.text}",
    }
    for state in (PackageState.ENABLED, PackageState.DISABLED, PackageState.UNINSTALLED):
        styles[f"state.{state.value}"] = colors.state_color(state)
    for removal in Removal:
        if removal == Removal.ALL:
            continue
        styles[f"removal.{removal.value}"] = colors.removal_color(removal)
    # Unsafe packages must stand out in long listings
    styles["removal.unsafe"] = f"bold {colors.removal_unsafe}"
    return Theme(styles)


_cached_theme: Theme | None = None


def get_theme() -> Theme:
    """Return the Rich theme, building it on first use."""
    global _cached_theme
    if _cached_theme is None:
        _cached_theme = get_rich_theme()
    return _cached_theme

"""XDG-compliant path management for debloatctl.

This module provides standardized paths following the XDG Base Directory
Specification for configuration and cache storage.

XDG defaults:
- Config: ~/.config/debloatctl/
- Cache: ~/.cache/debloatctl/
"""

import os
from pathlib import Path

# Application identifier for directory naming
APP_NAME = "debloatctl"


def _get_xdg_dir(env_var: str, default_subdir: str) -> Path:
    """Get XDG directory respecting environment variable override.

    Args:
        env_var: XDG environment variable name (e.g., "XDG_CONFIG_HOME").
        default_subdir: Default subdirectory under home (e.g., ".config").

    Returns:
        Path to the application-specific directory.
    """
    base = os.environ.get(env_var)
    if base:
        return Path(base) / APP_NAME
    return Path.home() / default_subdir / APP_NAME


def get_config_dir() -> Path:
    """Get the configuration directory path.

    Returns:
        Path to ~/.config/debloatctl/ (or XDG_CONFIG_HOME/debloatctl/).
    """
    return _get_xdg_dir("XDG_CONFIG_HOME", ".config")


def get_cache_dir() -> Path:
    """Get the cache directory path.

    Cache data includes the last downloaded catalog.

    Returns:
        Path to ~/.cache/debloatctl/ (or XDG_CACHE_HOME/debloatctl/).
    """
    return _get_xdg_dir("XDG_CACHE_HOME", ".cache")


def get_settings_path() -> Path:
    """Get the settings file path.

    Returns:
        Path to ~/.config/debloatctl/settings.toml.
    """
    return get_config_dir() / "settings.toml"


def get_theme_path() -> Path:
    """Get the user theme override path.

    Returns:
        Path to ~/.config/debloatctl/theme.toml.
    """
    return get_config_dir() / "theme.toml"


def get_cached_catalog_path() -> Path:
    """Get the path of the last downloaded catalog.

    Returns:
        Path to ~/.cache/debloatctl/catalog.json.
    """
    return get_cache_dir() / "catalog.json"


def _ensure_dir(path: Path, name: str) -> Path:
    """Create directory if it doesn't exist.

    Args:
        path: Directory path to create.
        name: Human-readable name for error messages.

    Returns:
        The created/existing directory path.

    Raises:
        RuntimeError: If directory cannot be created.
    """
    try:
        path.mkdir(parents=True, exist_ok=True)
    except PermissionError as e:
        msg = f"Cannot create {name} directory {path}: Permission denied"
        raise RuntimeError(msg) from e
    except OSError as e:
        msg = f"Cannot create {name} directory {path}: {e}"
        raise RuntimeError(msg) from e
    return path


def ensure_cache_dir() -> Path:
    """Create the cache directory if it doesn't exist.

    Raises:
        RuntimeError: If the directory cannot be created.
    """
    return _ensure_dir(get_cache_dir(), "cache")

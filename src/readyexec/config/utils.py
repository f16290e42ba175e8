# src/readyexec/config/utils.py

"""Configuration utilities shared by the loaders and the resolver.

Pure helpers with no imports from the rest of the config package, so they can
be used anywhere without creating cycles.
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import TYPE_CHECKING, Literal

if TYPE_CHECKING:
    from collections.abc import Callable

# --- Constants ---

ENV_PREFIX = "READYEXEC_"

CONFIG_HOME_VAR = "READYEXEC_CONFIG_HOME"
PYPROJECT_PATH_VAR = "READYEXEC_PYPROJECT_PATH"
PROFILE_VAR = "READYEXEC_PROFILE"
DEBUG_CONFIG_VAR = "READYEXEC_DEBUG_CONFIG"

_TRUTHY = {"1", "true", "yes", "on"}

# --- Path Utilities ---


def get_config_path(path_type: Literal["project", "home"]) -> Path:
    """Get configuration file path with environment override support.

    Falls back to a cwd-based path for the "home" type when ``Path.home()``
    cannot be resolved (e.g., HOME unset in a container).
    """
    specs: dict[str, tuple[str, Callable[[], Path]]] = {
        "project": (PYPROJECT_PATH_VAR, lambda: Path.cwd() / "pyproject.toml"),
        "home": (CONFIG_HOME_VAR, lambda: Path.home() / ".config" / "readyexec.toml"),
    }
    env_var, default_factory = specs[path_type]
    if override := os.environ.get(env_var):
        return Path(override)
    try:
        return default_factory()
    except RuntimeError:
        if path_type == "home":
            return Path.cwd() / "readyexec.toml"
        raise


def get_pyproject_path() -> Path:
    """Return path to the project pyproject.toml."""
    return get_config_path("project")


def get_home_config_path() -> Path:
    """Return path to the user's home-level config TOML."""
    return get_config_path("home")


# --- Environment Utilities ---


def get_effective_profile() -> str | None:
    """Return the profile named by READYEXEC_PROFILE, if any."""
    return os.environ.get(PROFILE_VAR) or None


def is_truthy(value: str) -> bool:
    """Interpret common string spellings of a boolean flag."""
    return value.strip().lower() in _TRUTHY


def should_emit_debug() -> bool:
    """Return True when the config audit should be emitted as a warning.

    Stateless; Python's warnings filter already de-duplicates per call site.
    """
    return is_truthy(os.environ.get(DEBUG_CONFIG_VAR, ""))


# --- Field Specification Helpers ---


def field_spec_hint(field: str) -> str:
    """Return a compact hint for setting a config field via env or files."""
    env_key = f"{ENV_PREFIX}{field.upper()}"
    return (
        f"Set {env_key} or [tool.readyexec] {field} in pyproject.toml "
        "(or ~/.config/readyexec.toml)."
    )

# src/readyexec/config/loaders.py

"""Configuration loaders for environment and TOML files.

Each loader returns a plain mapping; validation happens once, in the
resolver, against the ``Settings`` schema.
"""

from __future__ import annotations

import logging
import os
import tomllib
from typing import TYPE_CHECKING, Any

from . import utils

if TYPE_CHECKING:
    from collections.abc import Mapping
    from pathlib import Path

log = logging.getLogger(__name__)

CONFIG_TOOL_NAME = "readyexec"

# Meta/control variables that steer resolution but aren't config fields
META_ENV_FIELDS = {
    "profile",
    "pyproject_path",
    "config_home",
    "debug_config",
    "validate",
    "telemetry",
}

# --- Environment Loading ---


def load_env() -> Mapping[str, Any]:
    """Load configuration from ``READYEXEC_*`` environment variables.

    Booleans and integers are coerced using the ``Settings`` field types;
    anything else is passed through as a string for the schema to validate.
    Meta variables (profile, paths, debug) are skipped.
    """
    from .core import Settings  # local import keeps loaders import-light

    config: dict[str, Any] = {}
    prefix = utils.ENV_PREFIX
    for key, value in os.environ.items():
        if not key.startswith(prefix):
            continue
        field_name = key[len(prefix) :].lower()
        if field_name in META_ENV_FIELDS:
            continue
        info = Settings.model_fields.get(field_name)
        target_type = info.annotation if info is not None else None
        config[field_name] = _coerce_env_value(value, target_type)
    return config


def _coerce_env_value(value: str, target_type: Any) -> Any:
    """Coerce an env string to ``target_type`` when it is bool or int."""
    if target_type is bool:
        return utils.is_truthy(value)
    if target_type is int:
        try:
            return int(value)
        except ValueError:
            return value
    return value


# --- Profile and file loading ---


def list_profiles() -> list[str]:
    """List profile names available in home and project TOML files."""
    names: set[str] = set()
    for path in (utils.get_pyproject_path(), utils.get_home_config_path()):
        data = _read_toml(path)
        profiles = data.get("tool", {}).get(CONFIG_TOOL_NAME, {}).get("profiles", {})
        names.update(name for name in profiles if isinstance(name, str) and name)
    return sorted(names)


def validate_profile(name: str) -> bool:
    """Return True if the profile exists in either home or project config."""
    if not name:
        return False
    return name in set(list_profiles())


def profile_validation_error(name: str) -> str:
    """Describe why a profile name is invalid, listing available profiles."""
    if not name:
        return "Profile name cannot be empty"
    available = list_profiles()
    if not available:
        return (
            f"Profile '{name}' not found. No profiles are configured in "
            f"{utils.get_pyproject_path()} or {utils.get_home_config_path()}"
        )
    return f"Profile '{name}' not found. Available profiles: {', '.join(available)}"


def _read_toml(path: Path) -> dict[str, Any]:
    """Read a TOML file, returning an empty dict when missing or unparsable."""
    if not path.exists():
        return {}
    try:
        with path.open("rb") as f:
            return tomllib.load(f)
    except (OSError, tomllib.TOMLDecodeError) as e:
        log.warning("Ignoring unreadable config file %s: %s", path, e)
        return {}


def _extract_tables(data: dict[str, Any], profile: str | None) -> dict[str, Any]:
    """Extract ``[tool.readyexec]`` plus an optional profile overlay."""
    section = data.get("tool", {}).get(CONFIG_TOOL_NAME, {})
    base = {k: v for k, v in section.items() if k != "profiles"}
    if profile:
        base.update(section.get("profiles", {}).get(profile, {}))
    return base


def _load_config_file(path: Path, profile: str | None = None) -> Mapping[str, Any]:
    return _extract_tables(_read_toml(path), profile or utils.get_effective_profile())


def load_pyproject(profile: str | None = None) -> Mapping[str, Any]:
    """Load ``[tool.readyexec]`` from the project pyproject.toml."""
    return _load_config_file(utils.get_pyproject_path(), profile)


def load_home(profile: str | None = None) -> Mapping[str, Any]:
    """Load ``[tool.readyexec]`` from the user's readyexec.toml."""
    return _load_config_file(utils.get_home_config_path(), profile)

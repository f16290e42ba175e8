# src/readyexec/config/__init__.py

"""Configuration management for readyexec executors.

Resolve-once, freeze-then-flow: configuration is resolved at entry points
into immutable ``FrozenConfig`` objects that executors read.

Key exports:
- resolve_config: Main API for configuration resolution
- FrozenConfig: Immutable configuration payload
- config_scope: Context manager for scoped configuration
- Settings: Pydantic schema for validation and defaults
"""

# ruff: noqa: I001

from .core import (
    FrozenConfig,
    Origin,
    FieldOrigin,
    Settings,
    SourceMap,
    ambient_config,
    audit_layers_summary,
    audit_lines,
    audit_text,
    check_environment,
    config_scope,
    doctor,
    resolve_config,
    summarize_origins,
    to_redacted_dict,
    was_field_overridden,
)
from .loaders import list_profiles, profile_validation_error, validate_profile
from .utils import field_spec_hint, get_effective_profile

__all__ = [  # noqa: RUF022
    # Main public API
    "resolve_config",
    "FrozenConfig",
    "config_scope",
    "ambient_config",
    # Core types
    "Settings",
    "Origin",
    "FieldOrigin",
    "SourceMap",
    # Provenance and audit
    "was_field_overridden",
    "field_spec_hint",
    "to_redacted_dict",
    "audit_layers_summary",
    "audit_lines",
    "audit_text",
    "summarize_origins",
    "doctor",
    "check_environment",
    # Profiles
    "list_profiles",
    "get_effective_profile",
    "validate_profile",
    "profile_validation_error",
]

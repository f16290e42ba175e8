# src/readyexec/config/core.py

"""Configuration schema and resolution for readyexec executors.

Resolve once, freeze, then flow: entry points resolve layered sources into an
immutable ``FrozenConfig`` that executors read but never mutate.

- ``Settings``: the single schema for fields, defaults and validation
- ``FrozenConfig``: the immutable runtime payload
- ``SourceMap``: where each field value came from, for audits
- ``config_scope``: guarded ambient configuration for entry-time convenience
"""

from __future__ import annotations

from contextlib import contextmanager, suppress
import contextvars
from dataclasses import dataclass, field
from enum import Enum
from functools import cache
import os
from typing import TYPE_CHECKING, Any, Literal, overload
import warnings

from pydantic import BaseModel, Field, ValidationError, field_validator

from readyexec.bulk import BulkFailurePolicy
from readyexec.core.exceptions import HINTS, ConfigurationError

from .utils import ENV_PREFIX, field_spec_hint, should_emit_debug

if TYPE_CHECKING:
    from collections.abc import Generator, Mapping

# --- Schema ---


class Settings(BaseModel):
    """Pydantic schema for executor configuration."""

    bulk_failure_policy: BulkFailurePolicy = Field(default=BulkFailurePolicy.STOP)
    telemetry_enabled: bool = Field(default=False)
    validate_invariants: bool = Field(default=False)
    log_captured_failures: bool = Field(default=True)

    model_config = {"extra": "allow"}  # Preserve unknown keys for extensions

    @field_validator("bulk_failure_policy", mode="before")
    @classmethod
    def normalize_policy(cls, v: Any) -> Any:
        """Accept the enum, its value ("stop") or its name ("STOP")."""
        if isinstance(v, BulkFailurePolicy):
            return v
        if isinstance(v, str):
            with suppress(ValueError):
                return BulkFailurePolicy(v)
        return v  # Let Pydantic raise with a precise message


@cache
def _default_settings() -> dict[str, Any]:
    return Settings().model_dump()


# --- Immutable runtime payload ---


@dataclass(frozen=True)
class FrozenConfig:
    """Validated, immutable configuration consumed by executors."""

    bulk_failure_policy: BulkFailurePolicy = BulkFailurePolicy.STOP
    telemetry_enabled: bool = False
    validate_invariants: bool = False
    log_captured_failures: bool = True
    extra: Mapping[str, Any] = field(default_factory=dict)


# --- Audit types ---


class Origin(str, Enum):
    """Source origin for configuration field values."""

    DEFAULT = "default"
    HOME = "home"
    PROJECT = "project"
    ENV = "env"
    OVERRIDES = "overrides"


@dataclass(frozen=True)
class FieldOrigin:
    """Tracks the origin and context of a configuration field value."""

    origin: Origin
    env_key: str | None = None  # e.g., "READYEXEC_BULK_FAILURE_POLICY"
    file: str | None = None  # e.g., "~/.config/readyexec.toml"


SourceMap = dict[str, FieldOrigin]


# --- Ambient scope (guarded) ---

_AMBIENT: contextvars.ContextVar[FrozenConfig | None] = contextvars.ContextVar(
    "readyexec_ambient_config", default=None
)

_DOTENV_LOADED: bool = False


def ambient_config() -> FrozenConfig | None:
    """Return the configuration set by the innermost ``config_scope``, if any."""
    return _AMBIENT.get()


@contextmanager
def config_scope(
    cfg_or_overrides: Mapping[str, Any] | FrozenConfig | None = None,
    *,
    profile: str | None = None,
    **overrides: object,
) -> Generator[FrozenConfig]:
    """Run a block with an ambient configuration.

    Thread-safe and async-safe (backed by a ``ContextVar``).

    Args:
        cfg_or_overrides: A FrozenConfig to use directly, or a mapping of
            overrides to apply during resolution.
        profile: Optional profile name for the TOML loaders.
        **overrides: Additional overrides merged over ``cfg_or_overrides``.

    Example:
        with config_scope(bulk_failure_policy="complete"):
            executor = create_executor()
    """
    if isinstance(cfg_or_overrides, FrozenConfig):
        cfg = cfg_or_overrides
    else:
        combined = {**(cfg_or_overrides or {}), **overrides}
        cfg = resolve_config(overrides=combined, profile=profile)

    token = _AMBIENT.set(cfg)
    try:
        yield cfg
    finally:
        _AMBIENT.reset(token)


def _try_load_dotenv() -> None:
    """Load a .env file once via python-dotenv; loading errors are ignored."""
    global _DOTENV_LOADED
    if _DOTENV_LOADED:
        return
    _DOTENV_LOADED = True
    from dotenv import load_dotenv

    with suppress(OSError, ValueError):
        load_dotenv()


# --- Public resolution API ---


@overload
def resolve_config(
    overrides: Mapping[str, Any] | None = ...,
    profile: str | None = ...,
    *,
    explain: Literal[True],
) -> tuple[FrozenConfig, SourceMap]: ...


@overload
def resolve_config(
    overrides: Mapping[str, Any] | None = ...,
    profile: str | None = ...,
    *,
    explain: Literal[False] = ...,
) -> FrozenConfig: ...


def resolve_config(
    overrides: Mapping[str, Any] | None = None,
    profile: str | None = None,
    *,
    explain: bool = False,
) -> FrozenConfig | tuple[FrozenConfig, SourceMap]:
    """Resolve configuration from all sources into a FrozenConfig.

    Precedence: defaults < home < project < env < overrides.

    Args:
        overrides: Programmatic configuration overrides.
        profile: Configuration profile name to use from TOML files.
        explain: If True, return ``(config, source_map)`` for audit.

    Raises:
        ConfigurationError: If configuration validation fails.
    """
    _try_load_dotenv()

    from . import utils as _utils
    from .loaders import load_env, load_home, load_pyproject

    effective_profile = profile if profile is not None else _utils.get_effective_profile()

    merged, sources = _resolve_layers(
        overrides=overrides or {},
        env=load_env(),
        project=load_pyproject(profile=effective_profile),
        home=load_home(profile=effective_profile),
    )

    try:
        settings = Settings.model_validate(merged)
    except ValidationError as e:
        err = e.errors()[0]
        loc = ".".join(str(p) for p in err.get("loc", ()))
        msg = err.get("msg", "invalid value")
        if msg.startswith("Value error, "):
            msg = msg[len("Value error, ") :]
        hint = HINTS["bulk_policy"] if loc == "bulk_failure_policy" else None
        raise ConfigurationError(
            f"Configuration validation failed for '{loc}': {msg}", hint=hint
        ) from e
    frozen = _freeze(settings, merged)

    if not explain and should_emit_debug():
        warnings.warn(
            "Config audit\n" + "\n".join(audit_lines(frozen, sources)),
            stacklevel=2,
        )

    return (frozen, sources) if explain else frozen


# --- Internal helpers ---


def _freeze(settings: Settings, merged: Mapping[str, Any]) -> FrozenConfig:
    known_fields = set(Settings.model_fields.keys())
    extra = {k: v for k, v in merged.items() if k not in known_fields}
    return FrozenConfig(
        bulk_failure_policy=settings.bulk_failure_policy,
        telemetry_enabled=settings.telemetry_enabled,
        validate_invariants=settings.validate_invariants,
        log_captured_failures=settings.log_captured_failures,
        extra=extra,
    )


def _resolve_layers(
    *,
    overrides: Mapping[str, Any],
    env: Mapping[str, Any],
    project: Mapping[str, Any],
    home: Mapping[str, Any],
) -> tuple[dict[str, Any], SourceMap]:
    """Merge layers last-wins while recording where each field came from."""
    layers = [
        (Origin.HOME, home),
        (Origin.PROJECT, project),
        (Origin.ENV, env),
        (Origin.OVERRIDES, overrides),
    ]

    out: dict[str, Any] = dict(_default_settings())
    src: SourceMap = {k: FieldOrigin(origin=Origin.DEFAULT) for k in out}

    from .utils import get_home_config_path, get_pyproject_path

    for origin, payload in layers:
        for k, v in payload.items():
            out[k] = v
            if origin is Origin.ENV:
                src[k] = FieldOrigin(origin=origin, env_key=f"{ENV_PREFIX}{k.upper()}")
            elif origin is Origin.PROJECT:
                src[k] = FieldOrigin(origin=origin, file=str(get_pyproject_path()))
            elif origin is Origin.HOME:
                src[k] = FieldOrigin(origin=origin, file=str(get_home_config_path()))
            else:
                src[k] = FieldOrigin(origin=origin)

    return out, src


# --- Audit helpers ---


def _origin_label(name: str, where: FieldOrigin) -> str:
    match where.origin:
        case Origin.ENV:
            return f"env:{where.env_key or f'{ENV_PREFIX}{name.upper()}'}"
        case Origin.PROJECT:
            return f"file:{where.file or 'pyproject.toml'}"
        case Origin.HOME:
            return f"file:{where.file or '~/.config/readyexec.toml'}"
        case _:
            return str(where.origin.value)


def audit_lines(cfg: FrozenConfig, sources: SourceMap) -> list[str]:
    """Produce human-readable ``field: origin`` lines, schema fields first."""
    lines: list[str] = []
    for name in Settings.model_fields:
        fo = sources.get(name)
        if fo is not None:
            lines.append(f"{name}: {_origin_label(name, fo)}")
    for k in sorted(k for k in cfg.extra if k in sources):
        lines.append(f"{k}: {_origin_label(k, sources[k])}")
    return lines


def audit_text(cfg: FrozenConfig, sources: SourceMap) -> str:
    """Format the audit as a single string suitable for printing/logging."""
    return "\n".join(audit_lines(cfg, sources))


def summarize_origins(sources: SourceMap) -> dict[str, int]:
    """Count how many fields originated from each layer."""
    counts: dict[str, int] = {}
    for fo in sources.values():
        counts[fo.origin.value] = counts.get(fo.origin.value, 0) + 1
    return counts


def audit_layers_summary(src: SourceMap) -> list[str]:
    """Human-friendly summary of layer counts in fixed order."""
    counts = summarize_origins(src)
    return [f"{o.value:9s}: {counts.get(o.value, 0)} fields" for o in Origin]


def was_field_overridden(sources: SourceMap, name: str) -> bool:
    """Return True if a field's value did not come from defaults."""
    fo = sources.get(name)
    return bool(fo and fo.origin is not Origin.DEFAULT)


def to_redacted_dict(cfg: FrozenConfig) -> dict[str, Any]:
    """Plain dict view of a config for structured logging and JSON output."""
    return {
        "bulk_failure_policy": cfg.bulk_failure_policy.value,
        "telemetry_enabled": cfg.telemetry_enabled,
        "validate_invariants": cfg.validate_invariants,
        "log_captured_failures": cfg.log_captured_failures,
        "extra": {k: _redact(k, v) for k, v in dict(cfg.extra).items()},
    }


def _redact(key: str, value: Any) -> Any:
    lowered = key.lower()
    if any(s in lowered for s in ("key", "token", "secret", "password")):
        return "***redacted***"
    return value


def check_environment() -> dict[str, str]:
    """Return current ``READYEXEC_*`` variables, secrets redacted."""
    return {
        k: _redact(k, v) for k, v in os.environ.items() if k.startswith(ENV_PREFIX)
    }


def doctor() -> list[str]:
    """Quick environment/config check with actionable messages."""
    msgs: list[str] = []
    try:
        cfg, src = resolve_config(explain=True)
    except ConfigurationError as e:
        return [str(e)]
    if cfg.validate_invariants:
        msgs.append(
            "Advisory: validate_invariants is on; it adds per-call checks. "
            "Disable it for benchmarks."
        )
    if not was_field_overridden(src, "bulk_failure_policy"):
        msgs.append(
            "Advisory: 'bulk_failure_policy' not specified; using default 'stop'. "
            + field_spec_hint("bulk_failure_policy")
        )
    unknown = sorted(cfg.extra)
    if unknown:
        msgs.append(f"Unknown configuration keys preserved as extras: {', '.join(unknown)}")
    return msgs or ["No issues detected."]


# --- Minimal CLI entrypoint ---


def main(argv: list[str] | None = None) -> int:
    """Entry point for ``readyexec-config``."""
    import argparse
    import json
    import sys

    parser = argparse.ArgumentParser("readyexec-config")
    sub = parser.add_subparsers(dest="cmd", required=True)
    sub.add_parser("show")
    sub.add_parser("audit")
    sub.add_parser("doctor")
    sub.add_parser("env")
    args = parser.parse_args(argv)

    try:
        if args.cmd == "show":
            cfg = resolve_config()
            sys.stdout.write(json.dumps(to_redacted_dict(cfg), indent=2) + "\n")
        elif args.cmd == "audit":
            cfg, src = resolve_config(explain=True)
            sys.stdout.write(audit_text(cfg, src) + "\n")
            for line in audit_layers_summary(src):
                sys.stdout.write(line + "\n")
        elif args.cmd == "doctor":
            for m in doctor():
                sys.stdout.write(m + "\n")
        elif args.cmd == "env":
            for k, v in sorted(check_environment().items()):
                sys.stdout.write(f"{k}={v}\n")
    except ConfigurationError as e:
        sys.stderr.write(f"{e}\n")
        return 1
    return 0


if __name__ == "__main__":  # pragma: no cover
    raise SystemExit(main())

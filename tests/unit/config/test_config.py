"""Tests for the layered configuration system.

Covers the Settings schema, precedence and merging, TOML profiles, the
ambient scope and SourceMap provenance.
"""

from pathlib import Path
from unittest.mock import patch

from pydantic import ValidationError
import pytest

from readyexec.bulk import BulkFailurePolicy
from readyexec.config import (
    FrozenConfig,
    Origin,
    Settings,
    ambient_config,
    config_scope,
    list_profiles,
    profile_validation_error,
    resolve_config,
    validate_profile,
    was_field_overridden,
)
from readyexec.core.exceptions import ConfigurationError

pytestmark = pytest.mark.unit


def _write(path: Path, text: str) -> Path:
    path.write_text(text, encoding="utf-8")
    return path


class TestSettings:
    """Test the Pydantic Settings schema validation."""

    @pytest.mark.smoke
    def test_settings_defaults(self):
        settings = Settings()
        assert settings.bulk_failure_policy is BulkFailurePolicy.STOP
        assert settings.telemetry_enabled is False
        assert settings.validate_invariants is False
        assert settings.log_captured_failures is True

    @pytest.mark.parametrize("raw", ["complete", "COMPLETE", " Complete ", BulkFailurePolicy.COMPLETE])
    def test_policy_normalization(self, raw):
        assert Settings(bulk_failure_policy=raw).bulk_failure_policy is BulkFailurePolicy.COMPLETE

    def test_invalid_policy_rejected(self):
        with pytest.raises(ValidationError):
            Settings(bulk_failure_policy="sometimes")

    def test_extra_fields_preserved(self):
        assert Settings(experimental_flag=1).model_extra == {"experimental_flag": 1}


class TestResolution:
    def test_defaults_only(self):
        cfg, src = resolve_config(explain=True)
        assert cfg == FrozenConfig()
        assert all(fo.origin is Origin.DEFAULT for fo in src.values())

    def test_overrides_win(self, monkeypatch):
        monkeypatch.setenv("READYEXEC_BULK_FAILURE_POLICY", "stop")
        cfg, src = resolve_config({"bulk_failure_policy": "complete"}, explain=True)
        assert cfg.bulk_failure_policy is BulkFailurePolicy.COMPLETE
        assert src["bulk_failure_policy"].origin is Origin.OVERRIDES

    def test_env_coerces_booleans(self, monkeypatch):
        monkeypatch.setenv("READYEXEC_TELEMETRY_ENABLED", "yes")
        monkeypatch.setenv("READYEXEC_LOG_CAPTURED_FAILURES", "0")
        cfg, src = resolve_config(explain=True)
        assert cfg.telemetry_enabled is True
        assert cfg.log_captured_failures is False
        assert src["telemetry_enabled"].env_key == "READYEXEC_TELEMETRY_ENABLED"

    def test_meta_env_vars_are_not_fields(self, monkeypatch):
        monkeypatch.setenv("READYEXEC_PROFILE", "fast")
        monkeypatch.setenv("READYEXEC_VALIDATE", "1")
        cfg = resolve_config()
        assert cfg.extra == {}
        assert "profile" not in cfg.extra
        assert "pyproject_path" not in cfg.extra

    def test_project_file_and_profile(self, tmp_path, monkeypatch):
        project = _write(
            tmp_path / "pyproject.toml",
            """
[tool.readyexec]
telemetry_enabled = true

[tool.readyexec.profiles.lenient]
bulk_failure_policy = "complete"
""",
        )
        monkeypatch.setenv("READYEXEC_PYPROJECT_PATH", str(project))

        base, src = resolve_config(explain=True)
        assert base.telemetry_enabled is True
        assert base.bulk_failure_policy is BulkFailurePolicy.STOP
        assert src["telemetry_enabled"].origin is Origin.PROJECT
        assert src["telemetry_enabled"].file == str(project)

        lenient = resolve_config(profile="lenient")
        assert lenient.bulk_failure_policy is BulkFailurePolicy.COMPLETE

    def test_project_beats_home(self, tmp_path, monkeypatch):
        home = _write(tmp_path / "home.toml", '[tool.readyexec]\nbulk_failure_policy = "complete"\n')
        project = _write(tmp_path / "pyproject.toml", '[tool.readyexec]\nbulk_failure_policy = "stop"\n')
        monkeypatch.setenv("READYEXEC_CONFIG_HOME", str(home))
        monkeypatch.setenv("READYEXEC_PYPROJECT_PATH", str(project))
        cfg, src = resolve_config(explain=True)
        assert cfg.bulk_failure_policy is BulkFailurePolicy.STOP
        assert src["bulk_failure_policy"].origin is Origin.PROJECT

    def test_unreadable_toml_is_ignored(self, tmp_path, monkeypatch):
        broken = _write(tmp_path / "pyproject.toml", "[tool.readyexec\n")
        monkeypatch.setenv("READYEXEC_PYPROJECT_PATH", str(broken))
        assert resolve_config() == FrozenConfig()

    def test_invalid_value_raises_configuration_error(self):
        with pytest.raises(ConfigurationError) as ei:
            resolve_config({"bulk_failure_policy": "sometimes"})
        assert "bulk_failure_policy" in str(ei.value)
        assert ei.value.hint is not None

    def test_extras_flow_into_frozen_config(self):
        cfg = resolve_config({"experimental_chunking": 8})
        assert cfg.extra == {"experimental_chunking": 8}

    def test_loaders_can_be_patched(self):
        with (
            patch("readyexec.config.loaders.load_env", return_value={"validate_invariants": True}),
            patch("readyexec.config.loaders.load_pyproject", return_value={}),
            patch("readyexec.config.loaders.load_home", return_value={}),
        ):
            cfg, src = resolve_config(explain=True)
        assert cfg.validate_invariants is True
        assert was_field_overridden(src, "validate_invariants")
        assert not was_field_overridden(src, "telemetry_enabled")


class TestProfiles:
    def test_list_and_validate(self, tmp_path, monkeypatch):
        project = _write(
            tmp_path / "pyproject.toml",
            "[tool.readyexec.profiles.a]\n[tool.readyexec.profiles.b]\n",
        )
        monkeypatch.setenv("READYEXEC_PYPROJECT_PATH", str(project))
        assert list_profiles() == ["a", "b"]
        assert validate_profile("a")
        assert not validate_profile("c")
        assert not validate_profile("")
        assert "Available profiles: a, b" in profile_validation_error("c")

    def test_error_without_profiles(self):
        assert "No profiles are configured" in profile_validation_error("x")
        assert profile_validation_error("") == "Profile name cannot be empty"


class TestAmbientScope:
    def test_scope_sets_and_restores(self):
        assert ambient_config() is None
        with config_scope(telemetry_enabled=True) as cfg:
            assert ambient_config() is cfg
            assert cfg.telemetry_enabled is True
        assert ambient_config() is None

    def test_scope_accepts_frozen_config(self):
        frozen = FrozenConfig(validate_invariants=True)
        with config_scope(frozen) as cfg:
            assert cfg is frozen

    def test_nested_scopes(self):
        with config_scope(bulk_failure_policy="complete"):
            with config_scope(bulk_failure_policy="stop") as inner:
                assert ambient_config() is inner
            assert ambient_config().bulk_failure_policy is BulkFailurePolicy.COMPLETE

    def test_frozen_config_is_immutable(self):
        cfg = FrozenConfig()
        with pytest.raises(AttributeError):
            cfg.telemetry_enabled = True  # type: ignore[misc]

"""Pytest configuration and fixtures.

Provides environment isolation, logging configuration and shared test
doubles. Isolation fixtures are autouse unless noted.
"""

from __future__ import annotations

from contextlib import suppress
from dataclasses import dataclass, field
import logging
import os
from typing import Any

import pytest

from readyexec.telemetry import SimpleReporter

# =============================================================================
# Test Doubles
# =============================================================================


@dataclass
class CountingFactory:
    """Shared-state factory that records every call and what it produced."""

    calls: int = 0
    produced: list[Any] = field(default_factory=list)

    def __call__(self) -> list[int]:
        self.calls += 1
        obj: list[int] = []
        self.produced.append(obj)
        return obj


@dataclass
class RecordingBody:
    """Bulk element function recording (index, shared_a, shared_b) per call."""

    fail_on: frozenset[int] = frozenset()
    calls: list[tuple[int, Any, Any]] = field(default_factory=list)

    def __call__(self, i: int, a: Any, b: Any) -> None:
        self.calls.append((i, a, b))
        if i in self.fail_on:
            raise RuntimeError(f"element {i} failed")

    @property
    def indices(self) -> list[int]:
        return [c[0] for c in self.calls]


@pytest.fixture
def counting_factory() -> type[CountingFactory]:
    """Return the CountingFactory class for tests that need several."""
    return CountingFactory


@pytest.fixture
def recording_body() -> type[RecordingBody]:
    """Return the RecordingBody class."""
    return RecordingBody


@pytest.fixture
def reporter() -> SimpleReporter:
    """Fresh in-memory telemetry reporter (not autouse)."""
    return SimpleReporter()


# =============================================================================
# Environment Isolation (Autouse)
# =============================================================================


@pytest.fixture(autouse=True)
def block_dotenv(request, monkeypatch):
    """Prevent python-dotenv from loading project .env files during tests.

    Opt-out: @pytest.mark.allow_dotenv
    """
    if request.node.get_closest_marker("allow_dotenv"):
        return
    with suppress(Exception):
        monkeypatch.setattr(
            "dotenv.load_dotenv", lambda *_args, **_kwargs: False, raising=False
        )


@pytest.fixture(autouse=True)
def isolate_readyexec_env(request, monkeypatch, tmp_path):
    """Clear READYEXEC_* variables and point config files at an empty dir.

    Opt-out: @pytest.mark.allow_env_pollution
    """
    if request.node.get_closest_marker("allow_env_pollution"):
        return
    for key in list(os.environ.keys()):
        if key.startswith("READYEXEC_"):
            monkeypatch.delenv(key, raising=False)
    monkeypatch.setenv("READYEXEC_PYPROJECT_PATH", str(tmp_path / "missing-pyproject.toml"))
    monkeypatch.setenv("READYEXEC_CONFIG_HOME", str(tmp_path / "missing-home.toml"))


# =============================================================================
# Logging
# =============================================================================


@pytest.fixture(scope="session", autouse=True)
def quiet_library_logging():
    """Keep library debug records out of test output unless requested."""
    logging.getLogger("readyexec").setLevel(logging.INFO)

"""Shared test fixtures for rescache.

Provides a controllable clock, in-memory and on-disk stores, an isolated
configuration environment and a CLI runner. These fixtures are discovered
by pytest and available to all test modules without explicit imports.
"""

from __future__ import annotations

from pathlib import Path

import pytest

from rescache.backends import DiskBackend, MemoryBackend
from rescache.models import RequestDescriptor
from rescache.output import reset_output
from rescache.storage import Storage


class FakeClock:
    """A manually advanced epoch clock."""

    def __init__(self, now: float = 1_700_000_000.0) -> None:
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


# ---------------------------------------------------------------------------
# Auto-reset global output state between tests
# ---------------------------------------------------------------------------


@pytest.fixture(autouse=True)
def _reset_output_between_tests() -> None:
    """Reset the global OutputManager after every test.

    The OutputManager caches references to sys.stdout/sys.stderr at
    creation time, which go stale once Typer's CliRunner restores them.
    """
    yield
    reset_output()


# ---------------------------------------------------------------------------
# Clock and store fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def backend() -> MemoryBackend:
    return MemoryBackend()


@pytest.fixture
def storage(backend: MemoryBackend, clock: FakeClock) -> Storage:
    """A JSON-codec store over an in-memory backend driven by the fake clock."""
    return Storage(backend, clock=clock)


@pytest.fixture
def disk_backend(tmp_path: Path) -> DiskBackend:
    b = DiskBackend(tmp_path / "responses")
    yield b
    b.close()


@pytest.fixture
def request_descriptor() -> RequestDescriptor:
    return RequestDescriptor(method="GET", url="http://foo.bar/", headers={})


# ---------------------------------------------------------------------------
# Config isolation fixture
# ---------------------------------------------------------------------------


@pytest.fixture
def isolated_config(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Isolate configuration to a temporary directory.

    Points XDG_CONFIG_HOME and XDG_CACHE_HOME at subdirectories of
    tmp_path and clears all RESCACHE_* environment variables.

    Returns:
        The tmp_path root directory.
    """
    monkeypatch.setattr("rescache.config._is_xdg_platform", lambda: True)
    monkeypatch.setenv("XDG_CONFIG_HOME", str(tmp_path / "config"))
    monkeypatch.setenv("XDG_CACHE_HOME", str(tmp_path / "cache"))
    for var in ["RESCACHE_CODEC", "RESCACHE_BACKEND", "RESCACHE_DIR"]:
        monkeypatch.delenv(var, raising=False)
    return tmp_path


@pytest.fixture
def cli_runner():
    """Typer CLI test runner."""
    from typer.testing import CliRunner

    return CliRunner()

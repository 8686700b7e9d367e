"""Root pytest configuration and shared fixtures for the cencli test suite."""

import os
from pathlib import Path

import pytest
from click.testing import CliRunner


@pytest.fixture(autouse=True)
def isolated_environment(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Point the data and cache directories at ``tmp_path``.

    Every ``CENCLI_*`` variable from the developer's shell is removed so that
    tests only see the settings they create.

    Returns
    -------
    Path
        The isolated data directory
    """
    for name in list(os.environ):
        if name.startswith("CENCLI_"):
            monkeypatch.delenv(name)
    monkeypatch.delenv("NO_COLOR", raising=False)

    data_dir = tmp_path / "data"
    monkeypatch.setenv("CENCLI_DATA_DIR", str(data_dir))
    monkeypatch.setenv("XDG_CACHE_HOME", str(tmp_path / "cache"))
    return data_dir


@pytest.fixture
def data_dir(isolated_environment: Path) -> Path:
    """The isolated cencli data directory."""
    return isolated_environment


@pytest.fixture
def cli_runner() -> CliRunner:
    """Provide Click CLI runner for testing commands."""
    return CliRunner()

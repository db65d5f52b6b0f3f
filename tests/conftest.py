"""Shared fixtures."""

import pytest

from autopkg_ops import settings
from autopkg_ops.cli.logging import reset_cli_logging


@pytest.fixture(autouse=True)
def _isolated_cli_logging():
    """CLI commands attach handlers to the package logger; drop them per test."""
    yield
    reset_cli_logging()


@pytest.fixture
def autopkg_home(tmp_path, monkeypatch):
    """Point every derived path at a temporary AutoPkg home."""
    settings._load_pyproject_settings.cache_clear()
    home = tmp_path / "home"
    home.mkdir()
    monkeypatch.setenv("AUTOPKG_OPS_HOME", str(home))
    monkeypatch.setenv("AUTOPKG_OPS_STATUS_DIR", str(tmp_path / "status"))
    monkeypatch.setenv("AUTOPKG_OPS_EA_LOG", str(tmp_path / "ea.log"))
    monkeypatch.setenv("AUTOPKG_OPS_TMP_ROOT", str(tmp_path / "tmp"))
    return home

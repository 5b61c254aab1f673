import sys
from pathlib import Path

import pytest

sys.path.insert(0, str(Path(__file__).resolve().parents[1]))

from whisperd import paths


@pytest.fixture(autouse=True)
def isolated_environment(tmp_path, monkeypatch):
    """Point HOME and every fixed system location into the test's tmp dir."""

    home = tmp_path / "home"
    home.mkdir()
    monkeypatch.setenv("HOME", str(home))
    monkeypatch.setenv("WHISPERD_CONFIG_DIR", str(tmp_path / "config"))
    monkeypatch.setenv("WHISPERD_DATA_DIR", str(tmp_path / "data"))
    monkeypatch.setattr(paths, "SYSTEM_MODELS_DIR", tmp_path / "system" / "models")
    monkeypatch.setattr(paths, "SYSTEM_BINARY_DIR", tmp_path / "system" / "bin")
    monkeypatch.setattr(paths, "INSTALLED_ASSETS_DIR", tmp_path / "system" / "assets")
    return home


@pytest.fixture
def config_dir(tmp_path):
    return tmp_path / "config"

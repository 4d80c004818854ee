"""Tests for decksmith/config.py"""

from pathlib import Path

from decksmith import config
from decksmith.config import get_settings


def test_defaults(monkeypatch):
    for var in ("CR_TOKEN", "CR_API_BASE_URL", "DECKSMITH_DATA_DIR", "DECKSMITH_ROLES_FILE",
                "DECKSMITH_MODEL_DIR", "DECKSMITH_API_TIMEOUT"):
        monkeypatch.delenv(var, raising=False)
    s = get_settings()
    assert s.api_token is None
    assert s.api_base_url == config.DEFAULT_API_BASE_URL
    assert s.api_timeout == 10.0
    assert s.roles_file == config.DEFAULT_ROLES_FILE
    assert s.model_dir == config.DEFAULT_MODEL_DIR


def test_data_dir_moves_derived_paths(monkeypatch, tmp_path):
    monkeypatch.setenv("DECKSMITH_DATA_DIR", str(tmp_path))
    monkeypatch.delenv("DECKSMITH_ROLES_FILE", raising=False)
    monkeypatch.delenv("DECKSMITH_MODEL_DIR", raising=False)
    s = get_settings()
    assert s.roles_file == tmp_path / "roles.map.json"
    assert s.model_dir == tmp_path / "models"


def test_explicit_overrides(monkeypatch):
    monkeypatch.setenv("CR_TOKEN", "abc")
    monkeypatch.setenv("DECKSMITH_ROLES_FILE", "/tmp/roles.json")
    monkeypatch.setenv("DECKSMITH_API_TIMEOUT", "2.5")
    s = get_settings()
    assert s.api_token == "abc"
    assert s.roles_file == Path("/tmp/roles.json")
    assert s.api_timeout == 2.5


def test_invalid_timeout_falls_back(monkeypatch):
    monkeypatch.setenv("DECKSMITH_API_TIMEOUT", "soon")
    assert get_settings().api_timeout == config.DEFAULT_API_TIMEOUT

"""
Tests for environment-driven settings.
"""

import importlib

import pytest

import config


@pytest.fixture
def reload_config(monkeypatch):
    def reload(**env):
        for key, value in env.items():
            monkeypatch.setenv(key, value)
        return importlib.reload(config)

    yield reload
    monkeypatch.undo()
    importlib.reload(config)


def test_env_overrides(reload_config, tmp_path):
    settings = reload_config(
        MINDCASCADE_PROBE_URL="https://example.com/check",
        MINDCASCADE_PROBE_TIMEOUT="5",
        MINDCASCADE_DB=str(tmp_path / "progress.db"),
        MINDCASCADE_PERSIST="false",
        LOG_LEVEL="debug",
    )
    assert settings.probe_url == "https://example.com/check"
    assert settings.probe_timeout == 5.0
    assert settings.db_path == tmp_path / "progress.db"
    assert settings.persist is False
    assert settings.log_level == "DEBUG"


@pytest.mark.parametrize("value,expected", [("1", True), ("yes", True), ("0", False), ("No", False)])
def test_persist_flag(reload_config, value, expected):
    assert reload_config(MINDCASCADE_PERSIST=value).persist is expected


def test_import_has_no_output(reload_config, capsys):
    reload_config()
    assert capsys.readouterr().out == ""

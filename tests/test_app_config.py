"""Tests for the bootstrap config file and its environment overrides."""

import json

import pytest

from utils import app_config
from utils.constants import DEFAULT_PERSONA, DEFAULT_SERVER_HOST, DEFAULT_SERVER_PORT


@pytest.fixture(autouse=True)
def config_home(tmp_path, monkeypatch):
    monkeypatch.setenv("GASTOS_CONFIG_DIR", str(tmp_path / "cfg"))
    monkeypatch.delenv("GASTOS_API_URL", raising=False)
    monkeypatch.delenv("GASTOS_LOG_LEVEL", raising=False)
    return tmp_path / "cfg"


def test_missing_file_gives_defaults():
    assert app_config.load_config() == {}
    assert app_config.get_api_url() is None
    assert app_config.get_server_address() == (DEFAULT_SERVER_HOST, DEFAULT_SERVER_PORT)
    assert app_config.get_default_persona() == DEFAULT_PERSONA
    assert app_config.get_log_level() == "INFO"


def test_values_round_trip(config_home):
    app_config.set_api_url("http://nas:8000")
    app_config.set_default_persona("Valen")
    app_config.set_db_folder("/data")
    saved = json.loads((config_home / "config.json").read_text(encoding="utf-8"))
    assert saved == {"api_url": "http://nas:8000", "default_persona": "Valen", "db_folder": "/data"}

    app_config.set_api_url("")
    assert app_config.get_api_url() is None
    assert app_config.get_db_folder() == "/data"


def test_unknown_persona_is_ignored():
    app_config.set_default_persona("Nadie")
    assert app_config.load_config() == {}


def test_corrupt_file_is_ignored(config_home, caplog):
    config_home.mkdir()
    (config_home / "config.json").write_text("{not json", encoding="utf-8")
    assert app_config.load_config() == {}
    assert "Ignoring unreadable config" in caplog.text


def test_bad_port_falls_back(config_home):
    app_config.save_config({"server_host": "0.0.0.0", "server_port": "abc"})
    assert app_config.get_server_address() == ("0.0.0.0", DEFAULT_SERVER_PORT)


def test_environment_overrides(monkeypatch):
    app_config.save_config({"api_url": "http://file:1", "log_level": "warning"})
    assert app_config.get_api_url() == "http://file:1"
    assert app_config.get_log_level() == "WARNING"

    monkeypatch.setenv("GASTOS_API_URL", "http://env:2")
    monkeypatch.setenv("GASTOS_LOG_LEVEL", "debug")
    assert app_config.get_api_url() == "http://env:2"
    assert app_config.get_log_level() == "DEBUG"

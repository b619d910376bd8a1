from __future__ import annotations

import os

import pytest

import client.config as client_config
import server.config as server_config
from shared.settings import ConfigError, coerce_type


@pytest.fixture(autouse=True)
def _reset_configs(monkeypatch):
    monkeypatch.setattr(server_config, "SERVER_CONFIG", server_config.DEFAULT_SERVER_CONFIG.copy())
    monkeypatch.setattr(client_config, "CLIENT_CONFIG", client_config.DEFAULT_CONFIG.copy())


def test_server_defaults_are_valid(tmp_path):
    config = server_config.load_server_config(str(tmp_path / "missing.env"))
    assert config["port"] == 8084
    assert config["max_payload_size"] == 100 * 1024 * 1024


def test_server_env_overrides_are_coerced(tmp_path, monkeypatch):
    monkeypatch.setenv("SERVER_PORT", "9100")
    monkeypatch.setenv("SERVER_REQUEST_TIMEOUT", "2.5")
    monkeypatch.setenv("SERVER_LOG_LEVEL", "debug")
    config = server_config.load_server_config(str(tmp_path / "missing.env"))
    assert config["port"] == 9100
    assert config["request_timeout"] == 2.5
    assert config["log_level"] == "DEBUG"


def test_server_env_file_is_loaded(tmp_path):
    env_file = tmp_path / ".env"
    env_file.write_text("SERVER_MAX_CONNECTIONS=7\n")
    try:
        config = server_config.load_server_config(str(env_file))
    finally:
        os.environ.pop("SERVER_MAX_CONNECTIONS", None)
    assert config["max_connections"] == 7


def test_out_of_range_values_fail_schema(tmp_path, monkeypatch):
    monkeypatch.setenv("SERVER_PORT", "70000")
    with pytest.raises(ConfigError, match="port"):
        server_config.load_server_config(str(tmp_path / "missing.env"))


def test_unparseable_value_raises_config_error(tmp_path, monkeypatch):
    monkeypatch.setenv("CLIENT_SERVER_PORT", "not-a-port")
    with pytest.raises(ConfigError):
        client_config.load_config(str(tmp_path / "missing.env"))


def test_client_rejects_unknown_log_level(tmp_path, monkeypatch):
    monkeypatch.setenv("CLIENT_LOG_LEVEL", "chatty")
    with pytest.raises(ConfigError, match="log_level"):
        client_config.load_config(str(tmp_path / "missing.env"))


def test_coerce_type_bool():
    assert coerce_type("yes", bool) is True
    assert coerce_type("0", bool) is False

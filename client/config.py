from __future__ import annotations

from typing import Any, Dict

from shared.protocol.constants import DEFAULT_PORT, MAX_PAYLOAD_SIZE, READ_CHUNK_SIZE
from shared.protocol.validator import validate_config
from shared.settings import ConfigError, apply_env, load_env

DEFAULT_CONFIG: Dict[str, Any] = {
    "server_host": "127.0.0.1",
    "server_port": DEFAULT_PORT,
    "connect_timeout": 10.0,
    "request_timeout": 30.0,
    "max_payload_size": MAX_PAYLOAD_SIZE,
    "read_chunk_size": READ_CHUNK_SIZE,
    "log_level": "INFO",
}

CLIENT_CONFIG: Dict[str, Any] = DEFAULT_CONFIG.copy()


def load_config(env_path: str = ".env") -> Dict[str, Any]:
    """Load client configuration from env file/environment variables (CLIENT_*)."""
    load_env(env_path)
    apply_env(CLIENT_CONFIG, DEFAULT_CONFIG, "CLIENT")
    CLIENT_CONFIG["log_level"] = str(CLIENT_CONFIG["log_level"]).upper()
    validate_config(CLIENT_CONFIG, "client")
    return CLIENT_CONFIG


__all__ = ["CLIENT_CONFIG", "DEFAULT_CONFIG", "ConfigError", "load_config"]

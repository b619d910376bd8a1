from __future__ import annotations

from typing import Any, Dict

from shared.protocol.constants import DEFAULT_PORT, MAX_PAYLOAD_SIZE, READ_CHUNK_SIZE
from shared.protocol.validator import validate_config
from shared.settings import apply_env, load_env

DEFAULT_SERVER_CONFIG: Dict[str, Any] = {
    "host": "0.0.0.0",
    "port": DEFAULT_PORT,
    "max_connections": 200,
    "max_payload_size": MAX_PAYLOAD_SIZE,
    "request_timeout": 60.0,
    "max_store_bytes": 0,
    "read_chunk_size": READ_CHUNK_SIZE,
    "log_level": "INFO",
}

SERVER_CONFIG = DEFAULT_SERVER_CONFIG.copy()


def load_server_config(env_path: str = ".env") -> Dict[str, Any]:
    """Load server configuration from env file/environment variables (SERVER_*)."""
    load_env(env_path)
    apply_env(SERVER_CONFIG, DEFAULT_SERVER_CONFIG, "SERVER")
    SERVER_CONFIG["log_level"] = str(SERVER_CONFIG["log_level"]).upper()
    validate_config(SERVER_CONFIG, "server")
    return SERVER_CONFIG


__all__ = ["DEFAULT_SERVER_CONFIG", "SERVER_CONFIG", "load_server_config"]

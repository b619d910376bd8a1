from __future__ import annotations

import os
from pathlib import Path
from typing import Any, Dict, Mapping

from dotenv import load_dotenv


class ConfigError(Exception):
    """Raised when configuration values are invalid."""

    pass


def load_env(env_path: str = ".env") -> None:
    """Load variables from an env file into the process environment, if it exists."""
    if Path(env_path).exists():
        load_dotenv(env_path)


def coerce_type(value: Any, target_type: type) -> Any:
    if isinstance(value, target_type):
        return value
    try:
        if target_type is bool:
            return str(value).lower() in ("1", "true", "yes", "on")
        return target_type(value)
    except (TypeError, ValueError) as exc:
        raise ConfigError(f"Cannot convert {value} to {target_type}") from exc


def apply_env(config: Dict[str, Any], defaults: Mapping[str, Any], prefix: str) -> Dict[str, Any]:
    """Overlay `PREFIX_KEY` environment variables onto `config`, typed like `defaults`."""
    for key, default_value in defaults.items():
        env_key = f"{prefix}_{key.upper()}"
        value = os.getenv(env_key, config.get(key, default_value))
        config[key] = coerce_type(value, type(default_value))
    return config


__all__ = ["ConfigError", "load_env", "coerce_type", "apply_env"]

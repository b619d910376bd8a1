from __future__ import annotations

import json
from functools import lru_cache
from pathlib import Path
from typing import Any, Dict, Optional

import jsonschema

from shared.settings import ConfigError

from .commands import MsgType
from .constants import ENCODING, MAX_IMAGE_ID_LENGTH
from .errors import ErrorCode, ProtocolError, StatusCode
from .messages import Message, StorePayload

SCHEMA_DIR = Path(__file__).parent / "schemas"

# Mapping config name -> schema filename (relative to SCHEMA_DIR)
SCHEMA_REGISTRY: Dict[str, str] = {
    "server": "server_config.json",
    "client": "client_config.json",
}


def _schema_path(name: str) -> Optional[Path]:
    filename = SCHEMA_REGISTRY.get(name)
    if not filename:
        return None
    path = SCHEMA_DIR / filename
    return path if path.exists() else None


@lru_cache(maxsize=16)
def load_schema(name: str) -> Optional[dict]:
    """Load JSON schema registered under `name` if present."""
    path = _schema_path(name)
    if not path:
        return None
    with path.open("r", encoding="utf-8") as fp:
        return json.load(fp)


def validate_config(config: Dict[str, Any], name: str) -> None:
    """Check a loaded config mapping against its JSON schema."""
    schema = load_schema(name)
    if not schema:
        raise ConfigError(f"No schema registered for {name!r} config")
    try:
        jsonschema.validate(instance=config, schema=schema)
    except jsonschema.ValidationError as exc:
        location = ".".join(str(part) for part in exc.absolute_path) or name
        raise ConfigError(f"Invalid {name} config at {location}: {exc.message}") from exc


def validate_image_id(image_id: str) -> str:
    if not image_id:
        raise ProtocolError(StatusCode.BAD_REQUEST, ErrorCode.MALFORMED_PAYLOAD, "Image id must not be empty")
    if len(image_id.encode(ENCODING)) > MAX_IMAGE_ID_LENGTH:
        raise ProtocolError(
            StatusCode.BAD_REQUEST,
            ErrorCode.MALFORMED_PAYLOAD,
            f"Image id longer than {MAX_IMAGE_ID_LENGTH} bytes",
        )
    return image_id


def decode_image_id(raw: bytes) -> str:
    """Decode and check the UTF-8 id carried by a data request."""
    try:
        image_id = raw.decode(ENCODING)
    except UnicodeDecodeError as exc:
        raise ProtocolError(
            StatusCode.BAD_REQUEST, ErrorCode.MALFORMED_PAYLOAD, f"Image id is not valid UTF-8: {exc}"
        ) from exc
    return validate_image_id(image_id)


def validate_request(message: Message) -> None:
    """Reject request frames whose payload cannot be interpreted."""
    if message.type == MsgType.DATA_REQUEST:
        decode_image_id(message.payload)
    elif message.type == MsgType.STORE_REQUEST:
        validate_image_id(StorePayload.read_header(message.payload)[0])


__all__ = [
    "load_schema",
    "validate_config",
    "validate_image_id",
    "decode_image_id",
    "validate_request",
]

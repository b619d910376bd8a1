from __future__ import annotations

import hashlib
import time
from typing import Any


def utc_timestamp() -> float:
    """Current UTC timestamp in seconds."""
    return time.time()


def sha256_hex(data: bytes) -> str:
    """Hex digest of a byte payload."""
    return hashlib.sha256(data).hexdigest()


def format_peer(peername: Any) -> str:
    """Render a socket peername tuple as host:port."""
    if isinstance(peername, tuple) and len(peername) >= 2:
        return f"{peername[0]}:{peername[1]}"
    return str(peername)


__all__ = ["utc_timestamp", "sha256_hex", "format_peer"]

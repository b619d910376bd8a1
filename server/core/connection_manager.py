from __future__ import annotations

import asyncio
from typing import Dict, Optional

from .connection import ConnectionContext


class ConnectionManager:
    """Tracks active connections and enforces the concurrent connection cap."""

    def __init__(self, max_connections: Optional[int] = None) -> None:
        self.max_connections = max_connections
        self._by_writer: Dict[asyncio.StreamWriter, ConnectionContext] = {}

    def register(self, writer: asyncio.StreamWriter, ctx: ConnectionContext) -> bool:
        """Track `ctx`; returns False without tracking it when the cap is reached."""
        if self.max_connections is not None and len(self._by_writer) >= self.max_connections:
            return False
        self._by_writer[writer] = ctx
        return True

    def unregister(self, writer: asyncio.StreamWriter) -> Optional[ConnectionContext]:
        return self._by_writer.pop(writer, None)

    def active_count(self) -> int:
        return len(self._by_writer)

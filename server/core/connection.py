from __future__ import annotations

import asyncio
import time
from dataclasses import dataclass, field

from shared.protocol.framing import FrameAssembler


@dataclass
class ConnectionContext:
    reader: asyncio.StreamReader
    writer: asyncio.StreamWriter
    peername: str
    assembler: FrameAssembler = field(default_factory=FrameAssembler)
    opened_at: float = field(default_factory=time.time)

    @property
    def elapsed(self) -> float:
        return time.time() - self.opened_at

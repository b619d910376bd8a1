from __future__ import annotations

from collections.abc import Awaitable, Callable, Iterable
from typing import Dict, TYPE_CHECKING

from shared.protocol.commands import MsgType
from shared.protocol.errors import ErrorCode, ProtocolError, StatusCode
from shared.protocol.messages import Message

if TYPE_CHECKING:
    from .connection import ConnectionContext

Handler = Callable[[Message, "ConnectionContext"], Awaitable[Message]]


class CommandRouter:
    """Maps request types to async handlers."""

    def __init__(self) -> None:
        self._handlers: Dict[MsgType, Handler] = {}

    def register(self, command: MsgType, handler: Handler) -> None:
        self._handlers[MsgType(command)] = handler

    def ensure_complete(self, commands: Iterable[MsgType]) -> None:
        """Raise unless every command in `commands` has a handler."""
        missing = sorted(command.name for command in commands if command not in self._handlers)
        if missing:
            raise RuntimeError(f"No handler registered for: {', '.join(missing)}")

    async def dispatch(self, message: Message, ctx: "ConnectionContext") -> Message:
        handler = self._handlers.get(message.type)
        if handler is None:
            raise ProtocolError(
                StatusCode.BAD_REQUEST,
                ErrorCode.UNSUPPORTED_REQUEST,
                f"{message.type.name} is not a request type",
            )
        return await handler(message, ctx)

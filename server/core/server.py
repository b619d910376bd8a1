from __future__ import annotations

import asyncio
import logging
from typing import Optional

from shared.protocol import framing, messages, validator
from shared.protocol.constants import HEADER_SIZE, MAX_PAYLOAD_SIZE, READ_CHUNK_SIZE
from shared.protocol.errors import ErrorCode, ProtocolError, StatusCode
from shared.protocol.framing import FrameAssembler
from shared.protocol.messages import Message
from shared.utils.common import format_peer

from .connection import ConnectionContext
from .connection_manager import ConnectionManager
from .router import CommandRouter

logger = logging.getLogger(__name__)

# Bounds on how long, and how much, a rejected peer may keep sending before the socket is closed.
LINGER_TIMEOUT = 5.0
LINGER_MAX_BYTES = HEADER_SIZE + MAX_PAYLOAD_SIZE


class SocketServer:
    """
    Accepts TCP connections and serves exactly one request per connection:
    read one frame, dispatch it, write one response frame, close.
    """

    def __init__(
        self,
        host: str,
        port: int,
        router: CommandRouter,
        connection_manager: ConnectionManager,
        max_payload_size: int = MAX_PAYLOAD_SIZE,
        request_timeout: Optional[float] = 60.0,
        read_chunk_size: int = READ_CHUNK_SIZE,
    ) -> None:
        self.host = host
        self.port = port
        self.router = router
        self.connection_manager = connection_manager
        self.max_payload_size = max_payload_size
        self.request_timeout = request_timeout
        self.read_chunk_size = read_chunk_size
        self._server: Optional[asyncio.AbstractServer] = None

    async def start(self) -> None:
        self._server = await asyncio.start_server(self._handle_client, self.host, self.port)
        # Port 0 asks the OS for a free port; report the one actually bound.
        self.port = self._server.sockets[0].getsockname()[1]
        logger.info("TCP server listening on %s:%s", self.host, self.port)

    async def stop(self) -> None:
        if self._server:
            self._server.close()
            await self._server.wait_closed()
            self._server = None
            logger.info("TCP server on %s:%s stopped", self.host, self.port)

    async def _handle_client(self, reader: asyncio.StreamReader, writer: asyncio.StreamWriter) -> None:
        ctx = ConnectionContext(
            reader=reader,
            writer=writer,
            peername=format_peer(writer.get_extra_info("peername")),
            assembler=FrameAssembler(self.max_payload_size),
        )
        if not self.connection_manager.register(writer, ctx):
            logger.warning(
                "Rejecting %s: %s connections already active", ctx.peername, self.connection_manager.active_count()
            )
            await self._send_error(
                writer, ProtocolError(StatusCode.TOO_MANY_REQUESTS, ErrorCode.SERVER_BUSY, "Server is busy")
            )
            await self._linger(reader, writer)
            await self._close(writer)
            return

        logger.info("New connection from %s", ctx.peername)
        try:
            try:
                request = await asyncio.wait_for(
                    framing.async_read_message(reader, ctx.assembler, self.read_chunk_size),
                    self.request_timeout,
                )
                logger.debug("Request %s (%s bytes) from %s", request.type.name, request.length, ctx.peername)
                validator.validate_request(request)
                response = await self.router.dispatch(request, ctx)
            except ProtocolError as exc:
                logger.warning("Protocol error for %s: %s", ctx.peername, exc)
                response = messages.error_response(exc)
            await self._send(writer, response)
            if response.is_error:
                await self._linger(reader, writer)
        except asyncio.IncompleteReadError:
            logger.info("Client %s disconnected before sending a complete frame", ctx.peername)
        except asyncio.TimeoutError:
            logger.info("Client %s sent no complete request within %ss", ctx.peername, self.request_timeout)
            await self._send_error(
                writer,
                ProtocolError(StatusCode.REQUEST_TIMEOUT, ErrorCode.REQUEST_TIMEOUT, "Request not received in time"),
            )
            await self._linger(reader, writer)
        except (ConnectionResetError, ConnectionAbortedError, BrokenPipeError, OSError) as exc:
            logger.info("Client %s connection reset: %s", ctx.peername, exc)
        except Exception as exc:
            logger.exception("Unhandled error serving %s: %s", ctx.peername, exc)
            await self._send_error(writer, ProtocolError(StatusCode.INTERNAL_ERROR, message="Internal server error"))
        finally:
            await self._close(writer)
            self.connection_manager.unregister(writer)
            logger.debug("Closed connection from %s after %.3fs", ctx.peername, ctx.elapsed)

    async def _send(self, writer: asyncio.StreamWriter, message: Message) -> None:
        writer.write(framing.encode_message(message))
        await writer.drain()

    async def _send_error(self, writer: asyncio.StreamWriter, error: ProtocolError) -> None:
        """Best-effort error notification; the connection is closed right after."""
        if writer.is_closing():
            return
        try:
            await self._send(writer, messages.error_response(error))
        except (ConnectionError, OSError) as exc:
            logger.debug("Could not deliver error response: %s", exc)

    async def _linger(self, reader: asyncio.StreamReader, writer: asyncio.StreamWriter) -> None:
        """
        Half-close after an error response and discard whatever the peer is still sending.

        Closing a socket with unread input makes the kernel reset the connection,
        and the peer would then lose the response it has not read yet.
        """
        if writer.is_closing() or not writer.can_write_eof():
            return
        try:
            writer.write_eof()
            discarded = await asyncio.wait_for(self._discard(reader, LINGER_MAX_BYTES), LINGER_TIMEOUT)
            logger.debug("Discarded %s unread bytes before closing", discarded)
        except asyncio.TimeoutError:
            logger.debug("Peer still sending after %ss; closing anyway", LINGER_TIMEOUT)
        except (ConnectionError, OSError) as exc:
            logger.debug("Connection dropped while discarding input: %s", exc)

    async def _discard(self, reader: asyncio.StreamReader, limit: int) -> int:
        discarded = 0
        while discarded < limit:
            chunk = await reader.read(self.read_chunk_size)
            if not chunk:
                break
            discarded += len(chunk)
        return discarded

    @staticmethod
    async def _close(writer: asyncio.StreamWriter) -> None:
        try:
            writer.close()
            await writer.wait_closed()
        except Exception as e:
            logger.debug("Error during writer cleanup: %s", e)

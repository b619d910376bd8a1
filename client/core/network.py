from __future__ import annotations

import asyncio
import logging
from typing import Any, Dict, Optional, Tuple, Union

from client.config import CLIENT_CONFIG
from shared.protocol import framing, messages, validator
from shared.protocol.commands import MsgType
from shared.protocol.errors import ErrorCode, ProtocolError, StatusCode
from shared.protocol.framing import FrameAssembler
from shared.protocol.messages import Message

logger = logging.getLogger(__name__)


class NetworkError(ConnectionError):
    """Transport level failure (refused, reset, closed early, timed out) surfaced to callers."""

    pass


def parse_address(server_addr: str) -> Tuple[str, int]:
    """Split a `host:port` address; IPv6 hosts may be bracketed."""
    host, sep, port = server_addr.rpartition(":")
    if not sep or not host or not port.isdigit():
        raise ValueError(f"Invalid server address {server_addr!r}, expected host:port")
    return host.strip("[]"), int(port)


class BlobClient:
    """
    One-shot TCP client: every call opens a fresh connection, writes one request
    frame, reads one response frame and closes. Failures are never retried.
    """

    def __init__(
        self,
        host: Optional[str] = None,
        port: Optional[int] = None,
        config: Optional[Dict[str, Any]] = None,
    ) -> None:
        self.config = config or CLIENT_CONFIG
        self.host: str = host or self.config["server_host"]
        self.port: int = int(port if port is not None else self.config["server_port"])
        self.connect_timeout: float = float(self.config["connect_timeout"])
        self.request_timeout: float = float(self.config["request_timeout"])
        self.max_payload_size: int = int(self.config["max_payload_size"])
        self.read_chunk_size: int = int(self.config["read_chunk_size"])

    @classmethod
    def from_address(cls, server_addr: str, config: Optional[Dict[str, Any]] = None) -> "BlobClient":
        host, port = parse_address(server_addr)
        return cls(host, port, config)

    @property
    def address(self) -> str:
        return f"{self.host}:{self.port}"

    async def request(self, message: Message) -> Message:
        """Send one request and return the response; error responses are raised as ProtocolError."""
        frame = framing.encode_message(message, self.max_payload_size)
        reader, writer = await self._open()
        send_error: Optional[BaseException] = None
        try:
            try:
                writer.write(frame)
                await writer.drain()
            except (ConnectionError, OSError) as exc:
                # The server may already have answered (e.g. payload too large) before hanging up.
                send_error = exc
            response = await asyncio.wait_for(
                framing.async_read_message(reader, FrameAssembler(self.max_payload_size), self.read_chunk_size),
                self.request_timeout,
            )
        except asyncio.IncompleteReadError as exc:
            if send_error is not None:
                raise NetworkError(f"Failed to send request to {self.address}: {send_error}") from send_error
            raise NetworkError(f"Connection to {self.address} closed before a complete response") from exc
        except asyncio.TimeoutError as exc:
            raise NetworkError(f"No response from {self.address} within {self.request_timeout}s") from exc
        except (ConnectionError, OSError) as exc:
            raise NetworkError(f"Connection to {self.address} failed: {exc}") from exc
        finally:
            await self._close(writer)

        logger.debug("Received %s (%s bytes) from %s", response.type.name, response.length, self.address)
        if response.is_error:
            raise ProtocolError.from_payload(response.payload)
        return response

    async def fetch(self, image_id: str) -> bytes:
        """Retrieve the blob stored under `image_id`."""
        validator.validate_image_id(image_id)
        logger.info("Requesting image %r from %s", image_id, self.address)
        response = await self.request(messages.data_request(image_id))
        _expect(response, MsgType.DATA_RESPONSE)
        logger.info("Received %s bytes of image %r", response.length, image_id)
        return response.payload

    async def store(self, image_id: str, data: bytes) -> None:
        """Push `data` to the server under `image_id`."""
        validator.validate_image_id(image_id)
        logger.info("Sending image %r (%s bytes) to %s", image_id, len(data), self.address)
        response = await self.request(messages.store_request(image_id, data))
        _expect(response, MsgType.ACKNOWLEDGE)

    async def _open(self) -> Tuple[asyncio.StreamReader, asyncio.StreamWriter]:
        try:
            return await asyncio.wait_for(asyncio.open_connection(self.host, self.port), self.connect_timeout)
        except (OSError, asyncio.TimeoutError) as exc:
            raise NetworkError(f"Failed to connect to {self.address}: {exc}") from exc

    @staticmethod
    async def _close(writer: asyncio.StreamWriter) -> None:
        try:
            writer.close()
            await writer.wait_closed()
        except (ConnectionError, OSError) as exc:
            logger.debug("Error during writer cleanup: %s", exc)


def _expect(response: Message, expected: MsgType) -> None:
    if response.type != expected:
        raise ProtocolError(
            StatusCode.BAD_REQUEST,
            ErrorCode.UNEXPECTED_RESPONSE,
            f"Unexpected response type {response.type.name}, expected {expected.name}",
        )


async def send_request(
    server_addr: str,
    command: Union[int, MsgType],
    payload: bytes,
    config: Optional[Dict[str, Any]] = None,
) -> Message:
    """Open a connection to `server_addr`, send one frame and return the response Message."""
    client = BlobClient.from_address(server_addr, config)
    return await client.request(Message(type=MsgType(command), payload=payload))

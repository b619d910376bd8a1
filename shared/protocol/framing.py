from __future__ import annotations

import asyncio
import logging
from enum import Enum
from typing import List, Optional

from .commands import MsgType, is_command
from .constants import HEADER, HEADER_SIZE, LENGTH_SIZE, MAX_FRAME_LENGTH, MAX_PAYLOAD_SIZE, READ_CHUNK_SIZE
from .errors import ErrorCode, ProtocolError, StatusCode
from .messages import Message

logger = logging.getLogger(__name__)

# Consumed bytes are dropped from the front of the buffer once the cursor passes this mark.
COMPACT_THRESHOLD = 64 * 1024


class AssemblyStage(Enum):
    AWAITING_TYPE = "awaiting_type"
    AWAITING_LENGTH = "awaiting_length"
    AWAITING_PAYLOAD = "awaiting_payload"


def encode_frame(type_byte: int, payload: bytes, max_payload_size: Optional[int] = None) -> bytes:
    """
    Encode one frame: 1 byte type + 4 bytes big-endian length + payload.

    Any type byte is accepted; deciding whether a type is known is left to the
    receiving side.
    """
    if not (0 <= type_byte <= 255):
        raise ProtocolError(StatusCode.BAD_REQUEST, ErrorCode.UNKNOWN_TYPE, "Frame type must be 0-255")
    limit = MAX_FRAME_LENGTH if max_payload_size is None else min(max_payload_size, MAX_FRAME_LENGTH)
    if len(payload) > limit:
        raise ProtocolError(
            StatusCode.PAYLOAD_TOO_LARGE,
            ErrorCode.FRAME_TOO_LARGE,
            f"Payload of {len(payload)} bytes exceeds limit of {limit}",
        )
    return HEADER.pack(type_byte, len(payload)) + bytes(payload)


def encode_message(message: Message, max_payload_size: Optional[int] = None) -> bytes:
    """Encode a Message into a complete frame."""
    return encode_frame(int(message.type), message.payload, max_payload_size)


def decode_frame(data: bytes, max_payload_size: Optional[int] = None) -> Message:
    """Decode a buffer holding exactly one complete frame."""
    if len(data) < HEADER_SIZE:
        raise ProtocolError(StatusCode.BAD_REQUEST, ErrorCode.MALFORMED_PAYLOAD, "Frame shorter than header")
    assembler = FrameAssembler(max_payload_size)
    messages = assembler.feed(data)
    if not messages:
        raise ProtocolError(StatusCode.BAD_REQUEST, ErrorCode.MALFORMED_PAYLOAD, "Frame truncated")
    if len(messages) > 1 or not assembler.is_idle:
        raise ProtocolError(StatusCode.BAD_REQUEST, ErrorCode.MALFORMED_PAYLOAD, "Trailing bytes after frame")
    return messages[0]


class FrameAssembler:
    """
    Incremental stream reassembly for one connection.

    Bytes may arrive in any chunking; every call to `feed` returns the Messages
    completed so far, in order, and keeps any leftover bytes as the start of the
    next frame. A protocol error leaves the assembler failed: the error is raised
    again on every later call. When frames were completed earlier in the same
    call, they are returned first and the error surfaces on the next call.
    """

    def __init__(self, max_payload_size: Optional[int] = MAX_PAYLOAD_SIZE) -> None:
        self.max_payload_size = MAX_FRAME_LENGTH if max_payload_size is None else max_payload_size
        self._buffer = bytearray()
        self._cursor = 0
        self._stage = AssemblyStage.AWAITING_TYPE
        self._type: Optional[MsgType] = None
        self._length = 0
        self._failure: Optional[ProtocolError] = None

    @property
    def stage(self) -> AssemblyStage:
        return self._stage

    @property
    def pending_bytes(self) -> int:
        return len(self._buffer) - self._cursor

    @property
    def is_idle(self) -> bool:
        return self._stage is AssemblyStage.AWAITING_TYPE and self.pending_bytes == 0

    @property
    def failed(self) -> bool:
        return self._failure is not None

    def feed(self, chunk: bytes) -> List[Message]:
        if self._failure is not None:
            raise self._failure
        if chunk:
            self._buffer.extend(chunk)
        messages: List[Message] = []
        try:
            while True:
                message = self._advance()
                if message is None:
                    break
                messages.append(message)
        except ProtocolError as exc:
            self._failure = exc
            if not messages:
                raise
        finally:
            self._compact()
        return messages

    def _advance(self) -> Optional[Message]:
        if self._stage is AssemblyStage.AWAITING_TYPE:
            if self.pending_bytes < 1:
                return None
            type_byte = self._buffer[self._cursor]
            if not is_command(type_byte):
                raise ProtocolError(
                    StatusCode.BAD_REQUEST, ErrorCode.UNKNOWN_TYPE, f"Unknown message type {type_byte}"
                )
            self._type = MsgType(type_byte)
            self._cursor += 1
            self._stage = AssemblyStage.AWAITING_LENGTH

        if self._stage is AssemblyStage.AWAITING_LENGTH:
            if self.pending_bytes < LENGTH_SIZE:
                return None
            length = int.from_bytes(self._buffer[self._cursor : self._cursor + LENGTH_SIZE], "big")
            if length > self.max_payload_size:
                raise ProtocolError(
                    StatusCode.PAYLOAD_TOO_LARGE,
                    ErrorCode.FRAME_TOO_LARGE,
                    f"Declared length {length} exceeds limit of {self.max_payload_size}",
                )
            self._length = length
            self._cursor += LENGTH_SIZE
            self._stage = AssemblyStage.AWAITING_PAYLOAD

        if self.pending_bytes < self._length:
            return None
        end = self._cursor + self._length
        payload = bytes(self._buffer[self._cursor : end])
        self._cursor = end
        message = Message(type=self._type, payload=payload)
        self._stage = AssemblyStage.AWAITING_TYPE
        self._type = None
        self._length = 0
        return message

    def _compact(self) -> None:
        if self._cursor == len(self._buffer):
            self._buffer.clear()
            self._cursor = 0
        elif self._cursor >= COMPACT_THRESHOLD:
            del self._buffer[: self._cursor]
            self._cursor = 0


async def async_read_message(
    reader: asyncio.StreamReader,
    assembler: FrameAssembler,
    chunk_size: int = READ_CHUNK_SIZE,
) -> Message:
    """Read from the stream until the assembler yields one Message."""
    while True:
        chunk = await reader.read(chunk_size)
        if not chunk:
            raise asyncio.IncompleteReadError(b"", None)
        messages = assembler.feed(chunk)
        if messages:
            if len(messages) > 1:
                logger.debug("Ignoring %s extra frame(s) after the first", len(messages) - 1)
            return messages[0]

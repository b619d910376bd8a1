from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field

from .commands import MsgType
from .constants import ENCODING, LENGTH_SIZE
from .errors import ErrorCode, ProtocolError, StatusCode


class Message(BaseModel):
    """One complete protocol unit: type tag + payload. Immutable once built."""

    model_config = ConfigDict(frozen=True)

    type: MsgType = Field(..., description="One-byte type tag")
    payload: bytes = Field(default=b"", description="Raw payload, interpretation depends on type")

    @property
    def length(self) -> int:
        return len(self.payload)

    @property
    def is_error(self) -> bool:
        return self.type == MsgType.ERROR_RESPONSE


class StorePayload(BaseModel):
    """Body of a store request: id_len:4 big-endian | id | blob bytes."""

    model_config = ConfigDict(frozen=True)

    image_id: str
    data: bytes = b""

    def to_bytes(self) -> bytes:
        raw_id = self.image_id.encode(ENCODING)
        return len(raw_id).to_bytes(LENGTH_SIZE, "big") + raw_id + self.data

    @staticmethod
    def read_header(raw: bytes) -> tuple[str, int]:
        """Parse only the id prefix; returns the id and the offset where the blob starts."""
        if len(raw) < LENGTH_SIZE:
            raise ProtocolError(StatusCode.BAD_REQUEST, ErrorCode.MALFORMED_PAYLOAD, "Store payload missing id length")
        id_len = int.from_bytes(raw[:LENGTH_SIZE], "big")
        end = LENGTH_SIZE + id_len
        if len(raw) < end:
            raise ProtocolError(StatusCode.BAD_REQUEST, ErrorCode.MALFORMED_PAYLOAD, "Store payload id truncated")
        try:
            image_id = raw[LENGTH_SIZE:end].decode(ENCODING)
        except UnicodeDecodeError as exc:
            raise ProtocolError(
                StatusCode.BAD_REQUEST, ErrorCode.MALFORMED_PAYLOAD, f"Image id is not valid UTF-8: {exc}"
            ) from exc
        return image_id, end

    @classmethod
    def from_bytes(cls, raw: bytes) -> "StorePayload":
        image_id, end = cls.read_header(raw)
        return cls(image_id=image_id, data=raw[end:])


def data_request(image_id: str) -> Message:
    return Message(type=MsgType.DATA_REQUEST, payload=image_id.encode(ENCODING))


def data_response(data: bytes) -> Message:
    return Message(type=MsgType.DATA_RESPONSE, payload=data)


def store_request(image_id: str, data: bytes) -> Message:
    body = StorePayload(image_id=image_id, data=data)
    return Message(type=MsgType.STORE_REQUEST, payload=body.to_bytes())


def acknowledge(image_id: str) -> Message:
    return Message(type=MsgType.ACKNOWLEDGE, payload=image_id.encode(ENCODING))


def error_response(error: ProtocolError) -> Message:
    return Message(type=MsgType.ERROR_RESPONSE, payload=error.to_payload())


__all__ = [
    "Message",
    "StorePayload",
    "data_request",
    "data_response",
    "store_request",
    "acknowledge",
    "error_response",
]

from __future__ import annotations

from enum import IntEnum
from typing import Optional

from .constants import ENCODING


class StatusCode(IntEnum):
    """HTTP-like status codes carried in error responses."""

    SUCCESS = 200
    BAD_REQUEST = 400
    NOT_FOUND = 404
    REQUEST_TIMEOUT = 408
    PAYLOAD_TOO_LARGE = 413
    TOO_MANY_REQUESTS = 429
    INTERNAL_ERROR = 500
    INSUFFICIENT_STORAGE = 507


class ErrorCode(IntEnum):
    """Domain specific error codes."""

    UNKNOWN_TYPE = 1001
    FRAME_TOO_LARGE = 1002
    MALFORMED_PAYLOAD = 1003
    UNSUPPORTED_REQUEST = 1004
    IMAGE_NOT_FOUND = 1005
    STORE_FULL = 1006
    SERVER_BUSY = 1007
    REQUEST_TIMEOUT = 1008
    UNEXPECTED_RESPONSE = 1009


class ProtocolError(Exception):
    """Structured protocol exception carrying status + code + message."""

    def __init__(self, status: StatusCode, code: Optional[ErrorCode] = None, message: str = "") -> None:
        self.status = status
        self.code = code
        self.message = message
        super().__init__(f"{status.name} ({int(status)}): {message} (code={code.name if code else 'n/a'})")

    def to_payload(self) -> bytes:
        """Render the error as the UTF-8 text carried by an error response."""
        code_name = self.code.name if self.code is not None else "ERROR"
        return f"{int(self.status)} {code_name}: {self.message}".encode(ENCODING)

    @classmethod
    def from_payload(cls, payload: bytes) -> "ProtocolError":
        """Rebuild an error from error response text; unparseable text maps to INTERNAL_ERROR."""
        text = payload.decode(ENCODING, errors="replace")
        status_text, _, rest = text.partition(" ")
        code_name, sep, message = rest.partition(": ")
        try:
            status = StatusCode(int(status_text))
        except ValueError:
            return ProtocolError(StatusCode.INTERNAL_ERROR, message=text)
        if not sep:
            code_name, message = "", rest
        code = ErrorCode.__members__.get(code_name)
        error_cls = _ERRORS_BY_STATUS.get(status, ProtocolError)
        return error_cls(status, code, message)


class NotFoundError(ProtocolError):
    """Raised when an image id has no stored blob."""

    def __init__(
        self,
        status: StatusCode = StatusCode.NOT_FOUND,
        code: Optional[ErrorCode] = ErrorCode.IMAGE_NOT_FOUND,
        message: str = "",
    ) -> None:
        super().__init__(status, code, message)


class StoreFullError(ProtocolError):
    """Raised when the blob store cannot accept more data."""

    def __init__(
        self,
        status: StatusCode = StatusCode.INSUFFICIENT_STORAGE,
        code: Optional[ErrorCode] = ErrorCode.STORE_FULL,
        message: str = "",
    ) -> None:
        super().__init__(status, code, message)


_ERRORS_BY_STATUS = {
    StatusCode.NOT_FOUND: NotFoundError,
    StatusCode.INSUFFICIENT_STORAGE: StoreFullError,
}


__all__ = ["StatusCode", "ErrorCode", "ProtocolError", "NotFoundError", "StoreFullError"]

"""
Shared protocol package that centralizes message types, the frame codec,
stream reassembly and validation helpers for both client and server.
"""

from .commands import MsgType, commands_in_group, is_command
from .constants import ENCODING, HEADER_SIZE, MAX_IMAGE_ID_LENGTH, MAX_PAYLOAD_SIZE
from .errors import ErrorCode, NotFoundError, ProtocolError, StatusCode, StoreFullError
from .framing import (
    AssemblyStage,
    FrameAssembler,
    async_read_message,
    decode_frame,
    encode_frame,
    encode_message,
)
from .messages import (
    Message,
    StorePayload,
    acknowledge,
    data_request,
    data_response,
    error_response,
    store_request,
)
from .validator import decode_image_id, load_schema, validate_config, validate_image_id, validate_request

__all__ = [
    "MsgType",
    "commands_in_group",
    "is_command",
    "ENCODING",
    "HEADER_SIZE",
    "MAX_IMAGE_ID_LENGTH",
    "MAX_PAYLOAD_SIZE",
    "ErrorCode",
    "NotFoundError",
    "ProtocolError",
    "StatusCode",
    "StoreFullError",
    "AssemblyStage",
    "FrameAssembler",
    "async_read_message",
    "decode_frame",
    "encode_frame",
    "encode_message",
    "Message",
    "StorePayload",
    "acknowledge",
    "data_request",
    "data_response",
    "error_response",
    "store_request",
    "decode_image_id",
    "load_schema",
    "validate_config",
    "validate_image_id",
    "validate_request",
]

"""Protocol-wide constants shared by client and server."""

import struct

ENCODING = "utf-8"
HEADER = struct.Struct(">BI")  # type:1 | length:4 big-endian unsigned
HEADER_SIZE = HEADER.size
LENGTH_SIZE = 4
MAX_FRAME_LENGTH = 0xFFFFFFFF
MAX_PAYLOAD_SIZE = 100 * 1024 * 1024  # 100 MB default cap for a single frame
MAX_IMAGE_ID_LENGTH = 1024
READ_CHUNK_SIZE = 64 * 1024
DEFAULT_PORT = 8084

__all__ = [
    "ENCODING",
    "HEADER",
    "HEADER_SIZE",
    "LENGTH_SIZE",
    "MAX_FRAME_LENGTH",
    "MAX_PAYLOAD_SIZE",
    "MAX_IMAGE_ID_LENGTH",
    "READ_CHUNK_SIZE",
    "DEFAULT_PORT",
]

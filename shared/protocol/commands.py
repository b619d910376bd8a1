from __future__ import annotations

from enum import IntEnum
from typing import Dict, Iterable


class MsgType(IntEnum):
    """
    Wire values of the one-byte type tag that opens every frame.
    The set is closed: any other byte value is a protocol error.
    """

    DATA_REQUEST = 1
    DATA_RESPONSE = 2
    STORE_REQUEST = 3
    ACKNOWLEDGE = 4
    ERROR_RESPONSE = 5


COMMAND_GROUPS: Dict[int, str] = {
    MsgType.DATA_REQUEST.value: "request",
    MsgType.STORE_REQUEST.value: "request",
    MsgType.DATA_RESPONSE.value: "response",
    MsgType.ACKNOWLEDGE.value: "response",
    MsgType.ERROR_RESPONSE.value: "response",
}


def is_command(value: int) -> bool:
    """Check if `value` is a known type tag."""
    try:
        MsgType(value)
        return True
    except ValueError:
        return False


def commands_in_group(group: str) -> Iterable[MsgType]:
    """Yield message types belonging to the specified group (request / response)."""
    for command, grp in COMMAND_GROUPS.items():
        if grp == group:
            yield MsgType(command)


__all__ = [
    "MsgType",
    "COMMAND_GROUPS",
    "is_command",
    "commands_in_group",
]

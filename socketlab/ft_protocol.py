"""Wire format shared by the file transfer client and server."""

from __future__ import annotations

import os
import struct
from enum import IntEnum
from typing import Tuple, Union

BUF_SIZE = 1024
REQUEST_SIZE = BUF_SIZE
MAX_FILENAME_LEN = 255

# DATA byte, 32-bit big-endian size, four zero bytes.
GET_HEADER = struct.Struct("!BI4x")
# PUT byte, 32-bit big-endian size, four zero bytes, 32-bit name length; the name follows.
PUT_HEADER = struct.Struct("!BI4xI")

_MAX_SIZE = 0xFFFFFFFF

_TCP_STATES = (
    "",
    "TCP_ESTABLISHED",
    "TCP_SYN_SENT",
    "TCP_SYN_RECV",
    "TCP_FIN_WAIT1",
    "TCP_FIN_WAIT2",
    "TCP_TIME_WAIT",
    "TCP_CLOSE",
    "TCP_CLOSE_WAIT",
    "TCP_LAST_ACK",
    "TCP_LISTEN",
    "TCP_CLOSING",
)

PathLike = Union[str, "os.PathLike[str]"]


class Request(IntEnum):
    """Request and response type codes; each travels as one byte."""

    ERROR = -1
    DATA = 0
    LS = 1
    PWD = 2
    CD = 3
    GET = 4
    PUT = 5
    EXIT = 6
    END = 127

    @property
    def byte(self) -> int:
        """The value as it appears on the wire."""
        return self.value & 0xFF

    @classmethod
    def from_byte(cls, value: int) -> "Request":
        """Decode a wire byte; raises ValueError for an unknown code."""
        return cls(value - 256 if value >= 128 else value)


def file_size(path: PathLike) -> int:
    """Size of the file at ``path`` in bytes, or 0 if it cannot be examined."""
    try:
        return os.stat(path).st_size
    except OSError:
        return 0


def tcp_state_name(state: int) -> str:
    """Name of a kernel TCP state number (``""`` for 0)."""
    if not 0 <= state < len(_TCP_STATES):
        raise ValueError(f"unknown TCP state: {state}")
    return _TCP_STATES[state]


def _check_size(size: int) -> None:
    if not 0 <= size <= _MAX_SIZE:
        raise ValueError(f"file size out of range: {size}")


def encode_put_header(filename: str, size: int) -> bytes:
    """The header that starts an upload of ``size`` bytes named ``filename``."""
    name = os.fsencode(filename)
    if not name:
        raise ValueError("file name not given")
    if len(name) > MAX_FILENAME_LEN:
        raise ValueError(f"file name longer than {MAX_FILENAME_LEN} bytes")
    _check_size(size)
    return PUT_HEADER.pack(Request.PUT.byte, size, len(name)) + name


def decode_put_header(data: bytes) -> Tuple[str, int, int]:
    """Parse an upload header: returns ``(filename, size, offset of file data)``."""
    data = bytes(data)
    if len(data) < PUT_HEADER.size:
        raise ValueError("truncated PUT header")
    kind, size, name_len = PUT_HEADER.unpack_from(data)
    if kind != Request.PUT.byte:
        raise ValueError(f"not a PUT header: type {kind}")
    if name_len > MAX_FILENAME_LEN:
        raise ValueError(f"file name longer than {MAX_FILENAME_LEN} bytes")
    end = PUT_HEADER.size + name_len
    if len(data) < end:
        raise ValueError("truncated file name in PUT header")
    return os.fsdecode(data[PUT_HEADER.size:end]), size, end


def encode_get_header(size: int) -> bytes:
    """The header that answers a download request for a file of ``size`` bytes."""
    _check_size(size)
    return GET_HEADER.pack(Request.DATA.byte, size)


def decode_get_header(data: bytes) -> int:
    """File size from a download answer; an error answer raises OSError with its text."""
    data = bytes(data)
    if not data:
        raise ValueError("empty GET answer")
    if data[0] == Request.ERROR.byte:
        raise OSError(data[1:].decode("utf-8", errors="replace"))
    if data[0] != Request.DATA.byte:
        raise ValueError(f"unexpected answer type {data[0]}")
    if len(data) < GET_HEADER.size:
        raise ValueError("truncated GET header")
    _, size = GET_HEADER.unpack_from(data)
    return size
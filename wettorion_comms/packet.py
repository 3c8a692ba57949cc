"""Fixed-size packet buffer with typed writes and reads."""

from __future__ import annotations

import struct
from dataclasses import dataclass, field
from enum import IntEnum

PKT_BUF_SIZE = 1024
PKT_HEADER_SIZE = 5
PKT_TOTAL_SIZE = PKT_HEADER_SIZE + PKT_BUF_SIZE
PKT_START_BYTE = 0x42

PKT_RESP_SUCCESS = 0xFF
PKT_RESP_FAIL = 0x69

_U8 = struct.Struct("<B")
_U16 = struct.Struct("<H")
_U32 = struct.Struct("<I")
_FLOAT = struct.Struct("<f")


class PacketType(IntEnum):
    NONE = 0
    PING = 1
    RECONNECT = 2
    SHUTDOWN = 3
    ACTION = 4


class ActionType(IntEnum):
    DISCONNECT = 0


def compute_checksum(data: bytes) -> int:
    """Fletcher-16 checksum of data."""
    sum1 = 0
    sum2 = 0
    for byte in data:
        sum1 = (sum1 + byte) % 255
        sum2 = (sum2 + sum1) % 255
    return (sum2 << 8) | sum1


@dataclass
class Packet:
    """A packet payload buffer with a cursor.

    Writes that would reach the end of the buffer are dropped and report False.
    Numeric reads return the value at the cursor without moving it; string
    reads advance the cursor.
    """

    buf: bytearray = field(default_factory=lambda: bytearray(PKT_BUF_SIZE))
    offset: int = 0

    def __post_init__(self) -> None:
        if len(self.buf) > PKT_BUF_SIZE:
            raise ValueError(f"packet buffer larger than {PKT_BUF_SIZE} bytes")
        if not 0 <= self.offset <= PKT_BUF_SIZE:
            raise ValueError(f"offset {self.offset} outside the buffer")
        self.buf = bytearray(self.buf) + bytearray(PKT_BUF_SIZE - len(self.buf))

    def _fits(self, size: int) -> bool:
        return self.offset < PKT_BUF_SIZE and self.offset + size < PKT_BUF_SIZE

    def _write(self, codec: struct.Struct, value: object) -> bool:
        if not self._fits(codec.size):
            return False
        codec.pack_into(self.buf, self.offset, value)
        self.offset += codec.size
        return True

    def _read(self, codec: struct.Struct, default: object):
        if not self._fits(codec.size):
            return default
        return codec.unpack_from(self.buf, self.offset)[0]

    def flip(self) -> None:
        """Move the cursor back to the start."""
        self.offset = 0

    def write_u8(self, value: int) -> bool:
        return self._write(_U8, int(value) & 0xFF)

    def write_u16(self, value: int) -> bool:
        return self._write(_U16, int(value) & 0xFFFF)

    def write_u32(self, value: int) -> bool:
        return self._write(_U32, int(value) & 0xFFFFFFFF)

    def write_float(self, value: float) -> bool:
        return self._write(_FLOAT, float(value))

    def read_u8(self) -> int:
        return self._read(_U8, 0)

    def read_u16(self) -> int:
        return self._read(_U16, 0)

    def read_u32(self) -> int:
        return self._read(_U32, 0)

    def read_float(self) -> float:
        return self._read(_FLOAT, 0.0)

    def write_string(self, value: str | bytes) -> bool:
        """Append the raw bytes of value, without a terminator."""
        data = value.encode("utf-8") if isinstance(value, str) else bytes(value)
        if not self._fits(len(data)):
            return False
        self.buf[self.offset:self.offset + len(data)] = data
        self.offset += len(data)
        return True

    def read_string(self, size: int, default: str = "") -> str:
        """Read size bytes as a string, stopping the text at the first NUL."""
        if size < 0:
            raise ValueError("size must not be negative")
        if not self._fits(size):
            return default
        chunk = bytes(self.buf[self.offset:self.offset + size])
        self.offset += size
        return chunk.split(b"\0", 1)[0].decode("utf-8", errors="replace")

    def payload(self) -> bytes:
        """The bytes written so far, up to the cursor."""
        return bytes(self.buf[:self.offset])

    def checksum(self) -> int:
        return compute_checksum(self.payload())
"""Byte-addressed EEPROM store, in memory or backed by a file."""

from __future__ import annotations

import os
from pathlib import Path

DEFAULT_SIZE = 32 * 1024
ADDRESS_SPACE = 0x10000
ERASED_BYTE = 0xFF
MAX_TRANSFER = 255


class EEPROMError(OSError):
    """An access fell outside the device."""


class EEPROM:
    """An EEPROM with 16-bit addressing and transfers of at most 255 bytes."""

    def __init__(self, size: int = DEFAULT_SIZE, path: str | os.PathLike | None = None) -> None:
        if not 0 < size <= ADDRESS_SPACE:
            raise ValueError(f"size must be between 1 and {ADDRESS_SPACE}")
        self.size = size
        self.path = Path(path) if path is not None else None
        self._cells = bytearray([ERASED_BYTE]) * size
        if self.path is not None:
            if self.path.exists():
                stored = self.path.read_bytes()[:size]
                self._cells[:len(stored)] = stored
            self.path.write_bytes(bytes(self._cells))

    def _check(self, address: int, length: int) -> None:
        if not 0 <= length <= MAX_TRANSFER:
            raise ValueError(f"transfer length must be between 0 and {MAX_TRANSFER}")
        if address < 0 or address + length > self.size:
            raise EEPROMError(f"access of {length} bytes at {address:#06x} is outside the device")

    def write_byte(self, address: int, data: int) -> None:
        if not 0 <= data <= 0xFF:
            raise ValueError("byte value must be between 0 and 255")
        self.write(address, bytes([data]))

    def write(self, address: int, data: bytes) -> None:
        payload = bytes(data)
        self._check(address, len(payload))
        self._cells[address:address + len(payload)] = payload
        if self.path is not None and payload:
            with self.path.open("r+b") as handle:
                handle.seek(address)
                handle.write(payload)

    def read(self, address: int, length: int) -> bytes:
        self._check(address, length)
        return bytes(self._cells[address:address + length])

    def read_byte(self, address: int) -> int:
        return self.read(address, 1)[0]
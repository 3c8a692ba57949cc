"""Typed settings kept in a registry on an EEPROM store."""

from __future__ import annotations

import struct
from dataclasses import dataclass
from enum import IntEnum

from .config import Config
from .eeprom import EEPROM

_DEFAULTS = Config()
REGISTRY_SIZE = _DEFAULTS.settings_registry_size
REGISTRY_ADDRESS = _DEFAULTS.settings_registry_address
VALUE_SIZE = _DEFAULTS.settings_value_size
VALUES_ADDRESS = _DEFAULTS.settings_values_address

_ENTRY_SIZE = 2


class SettingType(IntEnum):
    U8 = 0
    U16 = 1
    U32 = 2
    FLOAT = 3


_CODECS = {
    SettingType.U8: struct.Struct("<B"),
    SettingType.U16: struct.Struct("<H"),
    SettingType.U32: struct.Struct("<I"),
    SettingType.FLOAT: struct.Struct("<f"),
}


@dataclass(frozen=True)
class Setting:
    """A setting value together with the type it is stored as."""

    type: SettingType
    value: int | float = 0

    def encode(self) -> bytes:
        try:
            return _CODECS[SettingType(self.type)].pack(self.value)
        except struct.error as exc:
            raise ValueError(f"value {self.value!r} does not fit {self.type.name}") from exc


class Settings:
    """Reads and writes settings through a registry of (key, type) entries.

    The registry length is kept in one byte at the registry address, followed
    by the entries; each value occupies a fixed slot after the registry.
    """

    def __init__(self, store: EEPROM) -> None:
        self.store = store
        self._registry: list[tuple[int, SettingType]] | None = None

    def _entries(self) -> list[tuple[int, SettingType]]:
        if self._registry is None:
            self._registry = self._load()
        return self._registry

    def _load(self) -> list[tuple[int, SettingType]]:
        count = self.store.read_byte(REGISTRY_ADDRESS)
        if count > REGISTRY_SIZE:
            return []
        raw = self.store.read(REGISTRY_ADDRESS + 1, count * _ENTRY_SIZE)
        return [(key, SettingType(kind)) for key, kind in zip(raw[0::2], raw[1::2])]

    def _save(self) -> None:
        entries = self._entries()
        data = bytearray(REGISTRY_SIZE * _ENTRY_SIZE)
        flat = bytes(part for key, kind in entries for part in (key, int(kind)))
        data[:len(flat)] = flat
        self.store.write_byte(REGISTRY_ADDRESS, len(entries))
        self.store.write(REGISTRY_ADDRESS + 1, bytes(data))

    def _index(self, key: int) -> int | None:
        return next(
            (index for index, (stored, _) in enumerate(self._entries()) if stored == key),
            None,
        )

    @staticmethod
    def _check_key(key: int) -> None:
        if not 0 <= key <= 0xFF:
            raise ValueError("setting key must be between 0 and 255")

    @staticmethod
    def _address(index: int) -> int:
        return VALUES_ADDRESS + index * VALUE_SIZE

    def set_setting(self, key: int, setting: Setting, overwrite: bool = True) -> bool:
        """Store a setting; returns False if it exists and overwrite is off."""
        self._check_key(key)
        payload = setting.encode()
        entries = self._entries()
        index = self._index(key)
        if index is not None and not overwrite:
            return False
        kind = SettingType(setting.type)
        if index is None:
            if len(entries) >= REGISTRY_SIZE:
                raise ValueError(f"settings registry is full ({REGISTRY_SIZE} entries)")
            entries.append((key, kind))
            self._save()
            index = len(entries) - 1
        elif entries[index][1] != kind:
            entries[index] = (key, kind)
            self._save()
        self.store.write(self._address(index), payload)
        return True

    def get_setting(self, key: int) -> Setting | None:
        """Return the stored setting, or None if the key is unknown."""
        self._check_key(key)
        index = self._index(key)
        if index is None:
            return None
        kind = self._entries()[index][1]
        codec = _CODECS[kind]
        (value,) = codec.unpack(self.store.read(self._address(index), codec.size))
        return Setting(kind, value)
"""Runtime configuration of the comms module."""

from __future__ import annotations

import os
from collections.abc import Mapping
from dataclasses import dataclass, fields

ENV_PREFIX = "WETTORION_"

_TRUE_WORDS = frozenset({"1", "true", "yes", "on"})
_FALSE_WORDS = frozenset({"0", "false", "no", "off"})


@dataclass(frozen=True)
class Config:
    """Network, logging and settings-storage parameters."""

    wifi_connect_timeout: int = 15
    wifi_ssid: str = "wettorion"
    wifi_password: str = "placeholder"
    net_host: str = "192.168.178.48"
    net_port: int = 8086
    net_connect_tries: int = 5
    net_reconnect_wait: int = 15
    log_enabled: bool = True
    log_debug_enabled: bool = True
    settings_registry_size: int = 24
    settings_registry_address: int = 0x00
    settings_value_size: int = 64
    settings_values_address: int = 0x41


def _parse_value(name: str, raw: str, default: object) -> object:
    text = raw.strip()
    if isinstance(default, bool):
        lowered = text.lower()
        if lowered in _TRUE_WORDS:
            return True
        if lowered in _FALSE_WORDS:
            return False
        raise ValueError(f"{name}: invalid boolean {raw!r}")
    if isinstance(default, int):
        try:
            return int(text, 0)
        except ValueError:
            raise ValueError(f"{name}: invalid integer {raw!r}") from None
    return raw


def config_from_env(environ: Mapping[str, str] | None = None) -> Config:
    """Build a Config, overriding defaults with WETTORION_* variables."""
    env = os.environ if environ is None else environ
    overrides = {}
    for item in fields(Config):
        raw = env.get(ENV_PREFIX + item.name.upper())
        if raw is not None:
            overrides[item.name] = _parse_value(item.name, raw, item.default)
    return Config(**overrides)
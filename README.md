# wettorion-comms

The communications module of the Wettorion weather station. It keeps a TCP
link to a backend server, exchanges framed binary packets with it, answers
pings and reconnect requests, and stores small typed settings in a
byte-addressed store that lives in memory or in a file.

It has no dependencies outside the standard library.

## Installation

```
pip install .
```

For running the tests:

```
pip install ".[test]"
pytest
```

## Running

```
wettorion-comms [--host HOST] [--port PORT] [--tries N]
```

The command builds its configuration with `config_from_env()`, applies the
command-line options on top, connects to the backend and performs the
handshake. It then calls `NetManager.update()` every 50 ms, which reconnects
when the server asks for it or when the link is lost. If the first connection
fails it logs a fatal message and exits with status 1; Ctrl-C disconnects and
exits with status 0.

## Configuration

`wettorion_comms.config.Config` is a frozen dataclass holding the network,
logging and settings-storage parameters. Its defaults:

| field                       | default            |
|-----------------------------|--------------------|
| `net_host`                  | `"192.168.178.48"` |
| `net_port`                  | `8086`             |
| `net_connect_tries`         | `5`                |
| `net_reconnect_wait`        | `15` (seconds)     |
| `log_enabled`               | `True`             |
| `log_debug_enabled`         | `True`             |
| `settings_registry_size`    | `24`               |
| `settings_registry_address` | `0x00`             |
| `settings_value_size`       | `64`               |
| `settings_values_address`   | `0x41`             |
| `wifi_connect_timeout`      | `15`               |
| `wifi_ssid`                 | `"wettorion"`      |
| `wifi_password`             | `"placeholder"`    |

`config_from_env(environ=None)` returns a `Config` in which every field can be
overridden by an environment variable named `WETTORION_` plus the field name in
upper case, for example `WETTORION_NET_PORT=9000`. Integers are parsed with
base prefixes (`0x41` works); booleans accept `1/true/yes/on` and
`0/false/no/off`. Any other value raises `ValueError`. By default it reads
`os.environ`; pass a mapping to read from that instead.

## Library use

### Packets

`wettorion_comms.packet.Packet` is a 1024-byte payload buffer with a cursor
(`offset`).

```python
from wettorion_comms.packet import Packet, PacketType, compute_checksum

pkt = Packet()
pkt.write_u8(PacketType.PING)
pkt.write_string("hi")
data = pkt.payload()                  # the bytes up to the cursor
assert pkt.checksum() == compute_checksum(data)

pkt.flip()                            # cursor back to 0
kind = pkt.read_u8()
```

- `write_u8`, `write_u16`, `write_u32`, `write_float` and `write_string` append
  little-endian values (strings as raw UTF-8 bytes, no terminator) and return
  `True`; a write that would reach the end of the buffer is dropped and
  returns `False`.
- `read_u8`, `read_u16`, `read_u32` and `read_float` return the value at the
  cursor **without moving it**, or `0` / `0.0` if it would reach the end.
- `read_string(size, default="")` reads `size` bytes, advances the cursor, and
  cuts the text at the first NUL byte; out of range it returns `default`.
- `compute_checksum(data)` is a Fletcher-16 checksum.

`PacketType` has `NONE`, `PING`, `RECONNECT`, `SHUTDOWN` and `ACTION`;
`ActionType` has `DISCONNECT`.

### Wire format

`encode_frame(packet)` in `wettorion_comms.netmanager` builds the frame sent
over the socket:

| bytes | meaning                              |
|-------|--------------------------------------|
| 1     | start byte `0x42`                    |
| 2     | Fletcher-16 checksum, big-endian     |
| 2     | payload length, big-endian           |
| n     | payload                              |

Every frame is acknowledged by a single byte: `0xFF` for success, `0x69` for
failure.

### Connection

```python
from wettorion_comms.config import Config
from wettorion_comms.logger import Logger
from wettorion_comms.netmanager import NetManager
from wettorion_comms.packet_handler import PacketHandler

config = Config(net_host="127.0.0.1")
logger = Logger()
manager = NetManager(config, logger)
manager.on_packet = PacketHandler(manager, logger, config.net_reconnect_wait).handle_packet

if manager.init_client():
    manager.update()      # call periodically; reconnects when needed
```

- `init_client()` tries `net_connect_tries` times to connect, then expects a
  packet holding `"Hello, world!"` and replies with a packet holding `"hi"`.
  On success it starts a background reader thread that passes each received
  packet to `on_packet`, and returns `True`.
- `send_packet(packet)` sends a frame and resends it until the peer
  acknowledges with `0xFF` (up to 1000 times); it returns `False` for an empty
  packet, a broken connection or no acknowledgement.
- `receive_packet()` blocks until a frame arrives, acknowledges it and returns
  the `Packet` (cursor at 0), or `None` if none could be read.
- `schedule_reconnect()` marks a reconnect for the next `update()`;
  `reconnect()` disconnects and retries every `net_reconnect_wait` seconds
  until connected; `disconnect()` stops the reader and closes the socket.
- `connected` tells whether a socket is open.

`PacketHandler.handle_packet(packet)` answers `PING` with a `PING` packet,
schedules a reconnect on `RECONNECT`, and on `SHUTDOWN` waits
`reconnect_wait` seconds before scheduling one. Any other type is logged and
returns `False`.

### Settings

```python
from wettorion_comms.eeprom import EEPROM
from wettorion_comms.settings import Setting, Settings, SettingType

settings = Settings(EEPROM(path="settings.bin"))
settings.set_setting(3, Setting(SettingType.U16, 1200))
stored = settings.get_setting(3)      # Setting(type=SettingType.U16, value=1200), or None
```

- `Setting(type, value)` stores a value as `U8`, `U16`, `U32` or `FLOAT`;
  a value that does not fit its type raises `ValueError`.
- `set_setting(key, setting, overwrite=True)` returns `False` if the key
  exists and `overwrite` is off. Keys are 0–255. The registry holds up to 24
  entries; adding a 25th raises `ValueError`.
- `get_setting(key)` returns the stored `Setting`, or `None` for an unknown key.

The registry length is a byte at address `0x00`, followed by two-byte
`(key, type)` entries; each value has its own 64-byte slot starting at `0x41`.

`EEPROM(size=32768, path=None)` is a byte store with 16-bit addressing, erased
to `0xFF`. With a `path` it loads existing contents from that file and writes
every change through to it. `read`, `read_byte`, `write` and `write_byte`
raise `EEPROMError` for accesses outside the device and `ValueError` for
transfers longer than 255 bytes.

### Logging

`Logger(stream=None, enabled=True, debug_enabled=True)` writes lines of the
form `[tag/LEVEL]: message` to `stream` (standard output by default) with
`info`, `warn`, `error`, `fatal` and `debug`, using `%`-style formatting.
Messages are cut to 127 characters. `format_message(tag, level, fmt, *args)`
builds such a line without writing it.

## What this package does not do

- It does not join a wireless network: the `wifi_*` fields of `Config` are
  carried along but nothing in the package uses them. The host must already
  have a network connection.
- It does not talk to other controllers of the station over a serial or
  message bus; only the TCP link to the backend is implemented.
- `EEPROM` is a memory or file store, not a driver for a chip on an I²C bus.
- `ACTION` packets are not handled; `PacketHandler` reports them as unknown.
- The command does not read or write settings; `Settings` is available only as
  a library.
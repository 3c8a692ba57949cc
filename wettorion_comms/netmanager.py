"""Framed packet connection to the backend."""

from __future__ import annotations

import select
import socket
import struct
import threading
import time
from collections.abc import Callable

from .config import Config
from .logger import Logger
from .packet import (
    PKT_BUF_SIZE,
    PKT_HEADER_SIZE,
    PKT_RESP_FAIL,
    PKT_RESP_SUCCESS,
    PKT_START_BYTE,
    Packet,
    compute_checksum,
)

TAG = "netmanager"
HANDSHAKE_GREETING = "Hello, world!"
HANDSHAKE_REPLY = "hi"
SEND_ATTEMPTS = 1000
RECEIVE_ATTEMPTS = 31
START_BYTE_SCAN = 256
READ_INTERVAL = 0.05
CONNECT_TIMEOUT = 5.0

_HEADER = struct.Struct(">BHH")
_SIZES = struct.Struct(">HH")


def encode_frame(packet: Packet) -> bytes:
    """Start byte, big-endian checksum and length, then the payload."""
    payload = packet.payload()
    return _HEADER.pack(PKT_START_BYTE, compute_checksum(payload), len(payload)) + payload


class NetManager:
    """Keeps a TCP connection to the backend and exchanges framed packets.

    Every frame sent is acknowledged by the peer with a single response byte;
    received packets are passed to ``on_packet`` by a background reader.
    """

    def __init__(self, config: Config | None = None, logger: Logger | None = None) -> None:
        self.config = config if config is not None else Config()
        self.logger = logger if logger is not None else Logger()
        self.on_packet: Callable[[Packet], bool] | None = None
        self._sock: socket.socket | None = None
        self._inbox = bytearray()
        self._lock = threading.RLock()
        self._stop = threading.Event()
        self._reader: threading.Thread | None = None
        self._reconnect_scheduled = False

    @property
    def connected(self) -> bool:
        return self._sock is not None

    # -- low-level stream handling (callers hold the lock) --

    def _drop(self) -> None:
        if self._sock is not None:
            try:
                self._sock.close()
            except OSError:
                pass
        self._sock = None
        self._inbox.clear()

    def _fill(self, timeout: float | None) -> None:
        sock = self._sock
        if sock is None:
            raise ConnectionError("not connected")
        try:
            ready, _, _ = select.select([sock], [], [], timeout)
            if not ready:
                return
            chunk = sock.recv(4096)
        except (OSError, ValueError) as exc:
            self._drop()
            raise ConnectionError(str(exc)) from exc
        if not chunk:
            self._drop()
            raise ConnectionError("connection closed by peer")
        self._inbox += chunk

    def _poll(self) -> bool:
        self._fill(0)
        return bool(self._inbox)

    def _take(self, count: int) -> bytes:
        while len(self._inbox) < count:
            self._fill(None)
        data = bytes(self._inbox[:count])
        del self._inbox[:count]
        return data

    def _send_raw(self, data: bytes) -> None:
        if self._sock is None:
            raise ConnectionError("not connected")
        try:
            self._sock.sendall(data)
        except OSError as exc:
            self._drop()
            raise ConnectionError(str(exc)) from exc

    def _find_start(self) -> bool:
        for _ in range(START_BYTE_SCAN):
            if not self._inbox:
                self._fill(0)
            if not self._inbox:
                continue
            if self._inbox.pop(0) == PKT_START_BYTE:
                return True
        return False

    def _receive(self) -> Packet | None:
        for _ in range(RECEIVE_ATTEMPTS):
            while len(self._inbox) < PKT_HEADER_SIZE:
                self._fill(None)
            if not self._find_start():
                self._send_raw(bytes([PKT_RESP_FAIL]))
                continue
            _checksum, size = _SIZES.unpack(self._take(_SIZES.size))
            if size > PKT_BUF_SIZE:
                self._send_raw(bytes([PKT_RESP_FAIL]))
                continue
            data = self._take(size)
            self._send_raw(bytes([PKT_RESP_SUCCESS]))
            return Packet(buf=bytearray(data))
        return None

    # -- public interface --

    def receive_packet(self) -> Packet | None:
        """Block until a packet arrives; None if none could be read."""
        with self._lock:
            try:
                return self._receive()
            except ConnectionError as exc:
                self.logger.error(TAG, "ReceivePacket(): %s", exc)
                return None

    def send_packet(self, packet: Packet) -> bool:
        """Send a packet, resending until the peer acknowledges it."""
        with self._lock:
            try:
                self._fill(0)
            except ConnectionError:
                pass
            while len(self._inbox) > 1:
                self.logger.debug(TAG, "discarding: %#02x", self._inbox.pop(0))

            if packet.offset == 0:
                self.logger.warn(TAG, "Tried to send a packet with no data.")
                return False

            frame = encode_frame(packet)
            try:
                for _ in range(SEND_ATTEMPTS):
                    self._send_raw(frame)
                    if self._take(1)[0] == PKT_RESP_SUCCESS:
                        return True
            except ConnectionError:
                self.logger.warn(TAG, "SendPacket(): Connection broke.")
                return False

            self.logger.warn(TAG, "Failed to send packet. (timeout)")
            return False

    def _handshake(self) -> bool:
        self.logger.debug(TAG, "Receiving handshake packet...")
        packet = self.receive_packet()
        if packet is None:
            self.logger.error(TAG, "Failed to receive handshake packet!")
            return False

        message = packet.read_string(len(HANDSHAKE_GREETING))
        if message != HANDSHAKE_GREETING:
            self.logger.error(
                TAG, "Received wrong handshake message: %s (expected: '%s')",
                message, HANDSHAKE_GREETING,
            )
            return False

        self.logger.debug(TAG, "Sending handshake response...")
        reply = Packet()
        reply.write_string(HANDSHAKE_REPLY)
        self.send_packet(reply)
        return True

    def _connect(self) -> bool:
        address = (self.config.net_host, self.config.net_port)
        for attempt in range(self.config.net_connect_tries):
            self.logger.info(TAG, "Connection try #%d", attempt + 1)
            try:
                sock = socket.create_connection(address, timeout=CONNECT_TIMEOUT)
            except OSError:
                continue
            sock.settimeout(None)
            with self._lock:
                self._drop()
                self._sock = sock
            return self._handshake()
        return False

    def _read_loop(self, stop: threading.Event) -> None:
        while not stop.wait(READ_INTERVAL):
            with self._lock:
                try:
                    if self._sock is None or not self._poll():
                        continue
                    packet = self._receive()
                except ConnectionError:
                    continue
            if packet is None:
                continue
            handler = self.on_packet
            if handler is None or not handler(packet):
                self.logger.warn(TAG, "Failed to handle packet!")

    def init_client(self) -> bool:
        """Connect, perform the handshake and start the background reader."""
        self.logger.info(
            TAG, "Connecting to backend... (%s:%d)", self.config.net_host, self.config.net_port
        )
        if not self._connect():
            with self._lock:
                self._drop()
            self.logger.error(
                TAG, "Failed to connect to backend! (%d tries)", self.config.net_connect_tries
            )
            return False

        self._stop = threading.Event()
        self._reader = threading.Thread(
            target=self._read_loop, args=(self._stop,), name="NetReadTask", daemon=True
        )
        self._reader.start()
        self.logger.info(TAG, "Connected to backend!")
        return True

    def disconnect(self) -> None:
        """Stop the reader and close the connection."""
        self._stop.set()
        sock = self._sock
        if sock is not None:
            try:
                sock.shutdown(socket.SHUT_RDWR)
            except OSError:
                pass
        reader = self._reader
        if reader is not None:
            if reader is not threading.current_thread():
                reader.join()
            self._reader = None
        with self._lock:
            self._drop()

    def reconnect(self) -> None:
        """Disconnect, then retry connecting until it succeeds."""
        self.disconnect()
        while not self.init_client():
            self.logger.error(
                TAG, "Failed to connect to backend! Retrying in %d seconds...",
                self.config.net_reconnect_wait,
            )
            time.sleep(self.config.net_reconnect_wait)

    def schedule_reconnect(self) -> None:
        self._reconnect_scheduled = True

    def update(self) -> None:
        """Carry out a scheduled reconnect, or reconnect after a lost connection."""
        if self._reconnect_scheduled:
            self._reconnect_scheduled = False
            self.reconnect()

        if not self._reconnect_scheduled:
            with self._lock:
                try:
                    if self._sock is not None:
                        self._fill(0)
                except ConnectionError:
                    pass
                alive = self._sock is not None
            if not alive:
                self.logger.error(
                    TAG, "Lost connection to backend! Reconnecting in %d seconds...",
                    self.config.net_reconnect_wait,
                )
                self.reconnect()
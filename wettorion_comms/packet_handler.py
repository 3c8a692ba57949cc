"""Dispatch of packets received from the backend."""

from __future__ import annotations

import time
from typing import Protocol

from .config import Config
from .logger import Logger
from .packet import Packet, PacketType

TAG = "packethandler"
_DEFAULT_RECONNECT_WAIT = Config().net_reconnect_wait


class _Manager(Protocol):
    def send_packet(self, packet: Packet) -> bool: ...

    def schedule_reconnect(self) -> None: ...


class PacketHandler:
    """Answers pings and turns reconnect and shutdown requests into reconnects."""

    def __init__(
        self,
        manager: _Manager,
        logger: Logger | None = None,
        reconnect_wait: float = _DEFAULT_RECONNECT_WAIT,
    ) -> None:
        self.manager = manager
        self.logger = logger if logger is not None else Logger()
        self.reconnect_wait = reconnect_wait

    def handle_packet(self, packet: Packet) -> bool:
        """Act on a packet; False if its type is not handled."""
        kind = packet.read_u8()
        self.logger.debug(TAG, "Packet received! (type: %d)", kind)

        if kind == PacketType.PING:
            reply = Packet()
            reply.write_u8(PacketType.PING)
            self.manager.send_packet(reply)
        elif kind == PacketType.RECONNECT:
            self.logger.info(TAG, "Server sent reconnect request! Reconnecting...")
            self.manager.schedule_reconnect()
        elif kind == PacketType.SHUTDOWN:
            self.logger.warn(
                TAG, "Server sent shutdown packet! Attempting reconnect in %d seconds...",
                self.reconnect_wait,
            )
            time.sleep(self.reconnect_wait)
            self.manager.schedule_reconnect()
        else:
            self.logger.warn(TAG, "Received unknown packet type: %d", kind)
            return False
        return True
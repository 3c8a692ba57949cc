import io
import queue
import socket
import struct
import threading
import time

import pytest

from wettorion_comms.config import Config
from wettorion_comms.logger import Logger
from wettorion_comms.netmanager import NetManager, encode_frame
from wettorion_comms.packet import (
    PKT_RESP_FAIL,
    PKT_RESP_SUCCESS,
    PKT_START_BYTE,
    Packet,
    PacketType,
)


def _recv_exact(conn, count):
    data = b""
    while len(data) < count:
        chunk = conn.recv(count - len(data))
        if not chunk:
            raise ConnectionError("closed")
        data += chunk
    return data


def _greeting(text="Hello, world!"):
    packet = Packet()
    packet.write_string(text)
    return encode_frame(packet)


def _read_frame(conn):
    start, checksum, size = struct.unpack(">BHH", _recv_exact(conn, 5))
    return start, checksum, _recv_exact(conn, size)


def _serve_handshake(conn):
    conn.sendall(_greeting())
    ack = _recv_exact(conn, 1)
    _, _, payload = _read_frame(conn)
    conn.sendall(bytes([PKT_RESP_SUCCESS]))
    return ack, payload


class Backend:
    """A scripted TCP peer; only the last connection is held open until release."""

    def __init__(self, scripts):
        self.listener = socket.create_server(("127.0.0.1", 0))
        self.listener.settimeout(5)
        self.port = self.listener.getsockname()[1]
        self.results = []
        self.release = threading.Event()
        self.thread = threading.Thread(target=self._run, args=(scripts,), daemon=True)
        self.thread.start()

    def _run(self, scripts):
        with self.listener:
            for position, script in enumerate(scripts):
                conn, _ = self.listener.accept()
                conn.settimeout(5)
                with conn:
                    self.results.append(script(conn))
                    if position == len(scripts) - 1:
                        self.release.wait(5)

    def finish(self):
        self.release.set()
        self.thread.join(5)


def _manager(port, tries=1):
    log = io.StringIO()
    config = Config(net_host="127.0.0.1", net_port=port, net_connect_tries=tries, net_reconnect_wait=0)
    return NetManager(config, Logger(stream=log)), log


def _closed_port():
    probe = socket.socket()
    probe.bind(("127.0.0.1", 0))
    port = probe.getsockname()[1]
    probe.close()
    return port


def test_encode_frame_wire_bytes():
    packet = Packet()
    packet.write_u8(1)
    assert encode_frame(packet) == bytes([0x42, 0x01, 0x01, 0x00, 0x01, 0x01])


def test_encode_frame_header_matches_payload():
    packet = Packet()
    packet.write_string("Hello, world!")
    frame = encode_frame(packet)
    start, checksum, size = struct.unpack(">BHH", frame[:5])
    assert start == PKT_START_BYTE
    assert checksum == packet.checksum()
    assert size == len(packet.payload())
    assert frame[5:] == packet.payload()


def test_handshake_succeeds():
    backend = Backend([_serve_handshake])
    manager, log = _manager(backend.port)
    try:
        assert manager.init_client() is True
        assert manager.connected
    finally:
        manager.disconnect()
        backend.finish()
    assert backend.results == [(bytes([PKT_RESP_SUCCESS]), b"hi")]
    assert "[netmanager/INFO]: Connected to backend!" in log.getvalue()
    assert not manager.connected


def test_handshake_wrong_greeting():
    def script(conn):
        conn.sendall(_greeting("Hello, there!"))
        return _recv_exact(conn, 1)

    backend = Backend([script])
    manager, log = _manager(backend.port)
    try:
        assert manager.init_client() is False
    finally:
        manager.disconnect()
        backend.finish()
    assert "Received wrong handshake message: Hello, there!" in log.getvalue()
    assert not manager.connected


def test_connection_refused_uses_all_tries():
    manager, log = _manager(_closed_port(), tries=2)
    assert manager.init_client() is False
    text = log.getvalue()
    assert "Connection try #2" in text
    assert "Failed to connect to backend! (2 tries)" in text


def test_send_empty_packet_is_rejected():
    manager, log = _manager(_closed_port())
    assert manager.send_packet(Packet()) is False
    assert "Tried to send a packet with no data." in log.getvalue()


def test_send_without_connection():
    manager, log = _manager(_closed_port())
    packet = Packet()
    packet.write_u8(PacketType.PING)
    assert manager.send_packet(packet) is False
    assert "SendPacket(): Connection broke." in log.getvalue()


def test_receive_without_connection():
    manager, _ = _manager(_closed_port())
    assert manager.receive_packet() is None


def test_send_resends_until_acknowledged():
    def script(conn):
        _serve_handshake(conn)
        first = _read_frame(conn)
        conn.sendall(bytes([PKT_RESP_FAIL]))
        second = _read_frame(conn)
        conn.sendall(bytes([PKT_RESP_SUCCESS]))
        return first, second

    backend = Backend([script])
    manager, _ = _manager(backend.port)
    packet = Packet()
    packet.write_u8(PacketType.PING)
    try:
        assert manager.init_client()
        assert manager.send_packet(packet) is True
    finally:
        manager.disconnect()
        backend.finish()
    first, second = backend.results[0]
    assert first == second
    assert first[2] == bytes([PacketType.PING])


def test_reader_delivers_packets_after_garbage():
    received = queue.Queue()

    def script(conn):
        _serve_handshake(conn)
        ping = Packet()
        ping.write_u8(PacketType.PING)
        conn.sendall(b"\x00\x13" + encode_frame(ping))
        return _recv_exact(conn, 1)

    backend = Backend([script])
    manager, _ = _manager(backend.port)
    manager.on_packet = lambda packet: received.put(packet) or True
    try:
        assert manager.init_client()
        packet = received.get(timeout=5)
    finally:
        manager.disconnect()
        backend.finish()
    assert packet.read_u8() == PacketType.PING
    assert backend.results == [bytes([PKT_RESP_SUCCESS])]


def test_scheduled_reconnect():
    backend = Backend([_serve_handshake, _serve_handshake])
    manager, _ = _manager(backend.port)
    try:
        assert manager.init_client()
        manager.schedule_reconnect()
        manager.update()
        assert manager.connected
    finally:
        manager.disconnect()
        backend.finish()
    assert [payload for _, payload in backend.results] == [b"hi", b"hi"]


def test_update_reconnects_after_lost_connection():
    backend = Backend([_serve_handshake, _serve_handshake])
    manager, log = _manager(backend.port)
    try:
        assert manager.init_client()
        for _ in range(100):
            manager.update()
            if len(backend.results) == 2:
                break
            time.sleep(0.05)
    finally:
        manager.disconnect()
        backend.finish()
    assert len(backend.results) == 2
    assert "Lost connection to backend!" in log.getvalue()
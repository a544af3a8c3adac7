"""Shared fixtures: a loopback fake controller and settings stores."""

from __future__ import annotations

import socket
import struct
import threading
import time

import pytest

from piled_mcp.models.settings import MemorySettings
from piled_mcp.protocol.auth import sign

SECRET = "shared_secret"


def wait_until(predicate, timeout: float = 2.0, interval: float = 0.01) -> bool:
    """Poll ``predicate`` until it is true or ``timeout`` expires."""
    deadline = time.monotonic() + timeout
    while time.monotonic() < deadline:
        if predicate():
            return True
        time.sleep(interval)
    return predicate()


def push_frame(red: int, green: int, blue: int, key: str | None = None) -> bytes:
    """Build a 55-byte ColorChangedPush frame as the controller sends it.

    The tag is zeroed unless ``key`` is given.
    """
    header = struct.pack(">qQBB", 1700000000, 7, 4, 5)
    payload = bytes([red, green, blue, 0, 0])
    tag = sign(key, header, payload) if key else b"\x00" * 32
    return header + tag + payload


class FakeController:
    """Single-client TCP server on 127.0.0.1 that records what it receives."""

    def __init__(self) -> None:
        self._server = socket.create_server(("127.0.0.1", 0))
        self.port = self._server.getsockname()[1]
        self._client: socket.socket | None = None
        self._accepted = threading.Event()
        self._lock = threading.Lock()
        self._received = bytearray()
        self._thread = threading.Thread(target=self._serve, daemon=True)
        self._thread.start()

    @property
    def received(self) -> bytes:
        with self._lock:
            return bytes(self._received)

    def _serve(self) -> None:
        try:
            conn, _ = self._server.accept()
        except OSError:
            return
        self._client = conn
        self._accepted.set()
        while True:
            try:
                data = conn.recv(4096)
            except OSError:
                break
            if not data:
                break
            with self._lock:
                self._received += data

    def wait_for_bytes(self, count: int, timeout: float = 2.0) -> bytes:
        assert wait_until(lambda: len(self.received) >= count, timeout), (
            f"expected {count} bytes, got {len(self.received)}"
        )
        return self.received

    def send(self, data: bytes) -> None:
        assert self._accepted.wait(2.0), "client never connected"
        self._client.sendall(data)

    def drop_client(self) -> None:
        assert self._accepted.wait(2.0), "client never connected"
        try:
            self._client.shutdown(socket.SHUT_RDWR)
        except OSError:
            pass
        self._client.close()

    def close(self) -> None:
        self._server.close()
        if self._client is not None:
            self._client.close()


@pytest.fixture
def controller():
    fake = FakeController()
    yield fake
    fake.close()


@pytest.fixture
def settings():
    return MemorySettings({"shared_secret": SECRET})


@pytest.fixture
def closed_port():
    """A local port with nothing listening on it."""
    sock = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
    sock.bind(("127.0.0.1", 0))
    port = sock.getsockname()[1]
    sock.close()
    return port

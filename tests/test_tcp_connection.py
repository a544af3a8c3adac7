"""Tests for the raw TCP connection."""

import threading

import pytest

from piled_mcp.errors import ConnectError, NoConnection
from piled_mcp.transport.tcp_connection import TCPConnection


def test_open_write_close(controller):
    conn = TCPConnection()
    conn.open("127.0.0.1", controller.port, timeout=1.0)
    assert conn.connected
    assert conn.peer == ("127.0.0.1", controller.port)

    conn.write(b"\x01\x02\x03")
    assert controller.wait_for_bytes(3) == b"\x01\x02\x03"

    conn.close()
    conn.close()
    assert not conn.connected


def test_open_refused(closed_port):
    conn = TCPConnection()
    with pytest.raises(ConnectError):
        conn.open("127.0.0.1", closed_port, timeout=1.0)
    assert not conn.connected


def test_open_twice(controller):
    conn = TCPConnection()
    conn.open("127.0.0.1", controller.port, timeout=1.0)
    try:
        with pytest.raises(ConnectError):
            conn.open("127.0.0.1", controller.port, timeout=1.0)
    finally:
        conn.close()


def test_read_and_write_when_closed():
    conn = TCPConnection()
    with pytest.raises(NoConnection):
        conn.write(b"\x00")
    with pytest.raises(NoConnection):
        conn.read()


def test_read_returns_empty_on_peer_close(controller):
    conn = TCPConnection()
    conn.open("127.0.0.1", controller.port, timeout=1.0)
    try:
        controller.drop_client()
        assert conn.read() == b""
    finally:
        conn.close()


def test_close_unblocks_reader(controller):
    """Closing from another thread ends a blocked read."""
    conn = TCPConnection()
    conn.open("127.0.0.1", controller.port, timeout=1.0)
    outcome = []

    def reader():
        try:
            outcome.append(conn.read())
        except OSError as e:
            outcome.append(e)

    thread = threading.Thread(target=reader, daemon=True)
    thread.start()
    thread.join(0.1)
    conn.close()
    thread.join(2.0)

    assert not thread.is_alive()
    assert outcome and (outcome[0] == b"" or isinstance(outcome[0], OSError))

"""TCP connection to the PiLED controller.

Owns the socket only; connection state, the listener thread and the
credential live in :class:`~piled_mcp.session.ClientSession`.
"""

from __future__ import annotations

import logging
import socket
import threading

from ..errors import ConnectError, NoConnection, SendError
from ..protocol.framing import MAX_FRAME_SIZE

logger = logging.getLogger(__name__)

DEFAULT_PORT = 3384
CONNECT_TIMEOUT = 5.0


class TCPConnection:
    """Manages the socket to a PiLED controller.

    Usage::

        conn = TCPConnection()
        conn.open("192.168.0.4", 3384)
        conn.write(frame_bytes)
        data = conn.read()
        conn.close()
    """

    def __init__(self) -> None:
        self._socket: socket.socket | None = None
        self._write_lock = threading.Lock()
        self._peer: tuple[str, int] | None = None

    @property
    def connected(self) -> bool:
        return self._socket is not None

    @property
    def peer(self) -> tuple[str, int] | None:
        return self._peer

    def open(self, host: str, port: int, timeout: float = CONNECT_TIMEOUT) -> None:
        """Connect to the controller.

        Args:
            host: Controller IP address or hostname.
            port: Controller TCP port.
            timeout: Connect timeout in seconds. Reads afterwards block
                without a timeout.

        Raises:
            ConnectError: On timeout, refusal, or name resolution failure.
                No socket is left open.
        """
        if self._socket is not None:
            raise ConnectError(f"Already connected to {self._peer}")

        try:
            sock = socket.create_connection((host, port), timeout=timeout)
        except socket.timeout as e:
            raise ConnectError(
                f"Connection to {host}:{port} timed out after {timeout}s"
            ) from e
        except OSError as e:
            raise ConnectError(f"Could not connect to {host}:{port}: {e}") from e

        sock.settimeout(None)
        self._socket = sock
        self._peer = (host, port)
        logger.info("Connected to %s:%s", host, port)

    def close(self) -> None:
        """Close the socket. Safe to call repeatedly.

        The socket is shut down first so a thread blocked in :meth:`read`
        wakes up with an empty read or an error.
        """
        sock, self._socket = self._socket, None
        if sock is None:
            return
        try:
            sock.shutdown(socket.SHUT_RDWR)
        except OSError:
            # Peer already gone; close() below still releases the fd.
            pass
        try:
            sock.close()
        except OSError as e:
            logger.warning("Error closing socket: %s", e)
        finally:
            logger.info("Disconnected from %s", self._peer)

    def write(self, data: bytes) -> None:
        """Write a whole frame.

        Raises:
            NoConnection: If not connected.
            SendError: If the write fails. The caller must treat the
                stream as lost.
        """
        sock = self._socket
        if sock is None:
            raise NoConnection("Not connected to controller")

        logger.debug("Sending packet to %s: %s", self._peer, data.hex(" "))
        try:
            with self._write_lock:
                sock.sendall(data)
        except OSError as e:
            raise SendError(f"Error sending packet to {self._peer}: {e}") from e

    def read(self, size: int = MAX_FRAME_SIZE) -> bytes:
        """Block until data arrives.

        Returns:
            Up to ``size`` bytes, or ``b""`` if the peer closed the stream.

        Raises:
            NoConnection: If not connected.
            OSError: If the read fails, including when :meth:`close` is
                called from another thread.
        """
        sock = self._socket
        if sock is None:
            raise NoConnection("Not connected to controller")
        return sock.recv(size)

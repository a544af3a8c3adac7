"""Background reader for server-initiated frames.

One listener thread exists per connection. It never mutates session
state itself: decoded messages and the end-of-stream event are handed
back through the ``on_message`` and ``on_closed`` callbacks.
"""

from __future__ import annotations

import logging
import threading
from typing import Callable

from ..errors import MalformedFrame
from ..protocol.auth import verify
from ..protocol.framing import MAX_FRAME_SIZE, InboundFrame, parse_inbound
from ..protocol.parser import InboundMessage, parse_message
from .tcp_connection import TCPConnection

logger = logging.getLogger(__name__)


class InboundListener(threading.Thread):
    """Reads frames from a connection until it closes or is stopped.

    Args:
        connection: The open connection to read from.
        on_message: Called with each decoded message.
        on_closed: Called once if the stream ends or fails while the
            listener was not asked to stop.
        key_provider: Returns the shared secret. When given, inbound tags
            are verified and frames that fail are dropped.
    """

    def __init__(
        self,
        connection: TCPConnection,
        on_message: Callable[[InboundMessage], None],
        on_closed: Callable[[], None],
        key_provider: Callable[[], str | None] | None = None,
    ) -> None:
        super().__init__(name="piled-listener", daemon=True)
        self._connection = connection
        self._on_message = on_message
        self._on_closed = on_closed
        self._key_provider = key_provider
        self._stop_event = threading.Event()

    def stop(self) -> None:
        """Ask the loop to exit. The caller must also close the connection
        to unblock a pending read."""
        self._stop_event.set()

    def run(self) -> None:
        while not self._stop_event.is_set():
            try:
                data = self._connection.read(MAX_FRAME_SIZE)
            except OSError as e:
                if not self._stop_event.is_set():
                    logger.error("Error in listening: %s", e)
                break

            if not data:
                if not self._stop_event.is_set():
                    logger.info("Controller closed the connection")
                break

            try:
                self._handle(data)
            except Exception:
                logger.exception("Failed to handle inbound data: %s", data.hex(" "))

        if not self._stop_event.is_set():
            self._on_closed()

    def _handle(self, data: bytes) -> None:
        logger.debug("Received data: %s", data.hex(" "))
        try:
            frame = parse_inbound(data)
        except MalformedFrame as e:
            logger.warning("Dropping malformed frame: %s", e)
            return

        logger.debug("Version: %d, operational code: %d", frame.version, frame.opcode)

        if self._key_provider is not None and not self._verified(frame):
            return

        message = parse_message(frame)
        try:
            self._on_message(message)
        except Exception:
            logger.exception("Inbound message handler failed for %r", message)

    def _verified(self, frame: InboundFrame) -> bool:
        key = self._key_provider()
        if not key:
            logger.warning("Cannot verify inbound frame: no shared secret configured")
            return False
        if not verify(key, frame.header, frame.payload, frame.auth_tag):
            logger.warning("Dropping frame with bad auth tag (opcode %d)", frame.opcode)
            return False
        return True

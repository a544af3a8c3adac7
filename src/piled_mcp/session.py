"""Client session: connection state machine and the command API.

A :class:`ClientSession` owns one socket, its listener thread, the
last-known color and access to the shared secret. Sessions share no
state, so an application may run several side by side.

State machine::

    DISCONNECTED --connect()--> CONNECTING --success--> CONNECTED
         ^                           |                      |
         +-------- failure ----------+--- disconnect()/error+

The color is only ever updated from the controller's ColorChangedPush
frames. Sending SetColor does not change :attr:`ClientSession.current_color`
until the controller reports the new color.
"""

from __future__ import annotations

import logging
import threading
from enum import Enum
from typing import Callable

from .config import ClientConfig
from .errors import ConnectError, NoConnection, NoCredential, SendError
from .models.color import Color
from .models.settings import KEY_IP, KEY_PORT, SettingsStore
from .protocol.commands import (
    build_fade,
    build_get_current_color,
    build_pulse,
    build_set_color,
    build_toggle_suspend,
)
from .protocol.parser import ColorChanged, InboundMessage
from .transport.listener import InboundListener
from .transport.tcp_connection import TCPConnection

logger = logging.getLogger(__name__)

LISTENER_JOIN_TIMEOUT = 2.0

ColorCallback = Callable[[Color], None]
StateCallback = Callable[["ConnectionState"], None]


class ConnectionState(Enum):
    DISCONNECTED = "disconnected"
    CONNECTING = "connecting"
    CONNECTED = "connected"


class ClientSession:
    """A connection to one PiLED controller.

    Usage::

        session = ClientSession(MemorySettings({"shared_secret": "..."}))
        session.subscribe_color(print)
        if session.connect("192.168.0.4", 3384):
            session.send_set_color(1.0, 0.0, 0.0)
        session.disconnect()

    Args:
        settings: Source of the shared secret and the stored address.
        config: Fallback address, timeouts and inbound verification.
        verify_inbound: Overrides ``config.verify_inbound``.
        on_color_changed: Called from the listener thread with each
            color the controller reports.
        on_state_changed: Called on every connection state transition.
    """

    def __init__(
        self,
        settings: SettingsStore,
        config: ClientConfig | None = None,
        *,
        verify_inbound: bool | None = None,
        on_color_changed: ColorCallback | None = None,
        on_state_changed: StateCallback | None = None,
    ) -> None:
        self._settings = settings
        self._config = config or ClientConfig()
        self._verify_inbound = (
            self._config.verify_inbound if verify_inbound is None else verify_inbound
        )

        self._lock = threading.Lock()
        self._state = ConnectionState.DISCONNECTED
        self._color = Color()
        self._connection: TCPConnection | None = None
        self._listener: InboundListener | None = None

        self._color_callbacks: list[ColorCallback] = []
        self._state_callbacks: list[StateCallback] = []
        if on_color_changed is not None:
            self._color_callbacks.append(on_color_changed)
        if on_state_changed is not None:
            self._state_callbacks.append(on_state_changed)

    # ─── OBSERVABLE STATE ────────────────────────────────────────────

    @property
    def state(self) -> ConnectionState:
        with self._lock:
            return self._state

    @property
    def is_connected(self) -> bool:
        return self.state is ConnectionState.CONNECTED

    @property
    def current_color(self) -> Color:
        with self._lock:
            return self._color

    @property
    def address(self) -> tuple[str, int] | None:
        """``(host, port)`` of the current connection, if any."""
        with self._lock:
            return self._connection.peer if self._connection else None

    def subscribe_color(self, callback: ColorCallback) -> None:
        self._color_callbacks.append(callback)

    def subscribe_state(self, callback: StateCallback) -> None:
        self._state_callbacks.append(callback)

    # ─── LIFECYCLE ───────────────────────────────────────────────────

    def resolve_address(
        self, host: str | None = None, port: int | str | None = None
    ) -> tuple[str, int]:
        """Fill a missing host/port from the settings store, then config.

        Raises:
            ValueError: If the port is not a valid TCP port.
        """
        host = host or self._settings.get(KEY_IP) or self._config.host
        raw_port = port if port is not None else self._settings.get(KEY_PORT)
        if raw_port is None or raw_port == "":
            raw_port = self._config.port
        try:
            port_num = int(raw_port)
        except (TypeError, ValueError):
            raise ValueError(f"Invalid port: {raw_port!r}") from None
        if not 0 < port_num < 65536:
            raise ValueError(f"Invalid port: {port_num}. Must be 1-65535.")
        return host, port_num

    def connect(self, host: str | None = None, port: int | str | None = None) -> bool:
        """Open the connection, start the listener and request the color.

        Blocks for at most the configured connect timeout.

        Returns:
            True if connected, False on any failure. The session is left
            DISCONNECTED after a failure.
        """
        try:
            host, port = self.resolve_address(host, port)
        except ValueError as e:
            logger.error("Connection failed: %s", e)
            return False

        with self._lock:
            if self._state is ConnectionState.CONNECTED:
                logger.warning("Already connected to %s", self._connection.peer)
                return True
            if self._state is ConnectionState.CONNECTING:
                logger.warning("Connection attempt already in progress")
                return False
            self._state = ConnectionState.CONNECTING
        self._notify_state(ConnectionState.CONNECTING)

        connection = TCPConnection()
        try:
            connection.open(host, port, timeout=self._config.connect_timeout)
        except ConnectError as e:
            logger.error("Connection failed: %s", e)
            self._set_disconnected()
            return False

        listener = InboundListener(
            connection,
            on_message=self._handle_message,
            on_closed=lambda: self._teardown(connection),
            key_provider=self._secret if self._verify_inbound else None,
        )

        with self._lock:
            if self._state is not ConnectionState.CONNECTING:
                # disconnect() ran while the socket was opening
                aborted = True
            else:
                aborted = False
                self._connection = connection
                self._listener = listener
                self._state = ConnectionState.CONNECTED
                listener.start()
        if aborted:
            logger.info("Connection to %s:%s aborted", host, port)
            connection.close()
            return False

        self._notify_state(ConnectionState.CONNECTED)

        try:
            self.request_current_color()
        except NoCredential:
            logger.warning("Connected without a shared secret; color not requested")
        except NoConnection as e:
            logger.error("Connection lost right after connecting: %s", e)
            return False
        return True

    def disconnect(self) -> None:
        """Stop the listener and close the socket. Safe to call at any time."""
        self._teardown()

    def _teardown(self, connection: TCPConnection | None = None) -> None:
        """Drop the current connection.

        If ``connection`` is given, only tear down when it is still the
        session's active connection, so a late error from an old socket
        cannot close a newer one.
        """
        with self._lock:
            if connection is not None and self._connection is not connection:
                return
            listener, self._listener = self._listener, None
            active, self._connection = self._connection, None
            changed = self._state is not ConnectionState.DISCONNECTED
            self._state = ConnectionState.DISCONNECTED

        if listener is not None:
            listener.stop()
        if active is not None:
            active.close()
        if listener is not None and listener is not threading.current_thread():
            listener.join(LISTENER_JOIN_TIMEOUT)
            if listener.is_alive():
                logger.warning("Listener thread did not stop within %ss", LISTENER_JOIN_TIMEOUT)

        if changed:
            logger.info("Disconnected")
            self._notify_state(ConnectionState.DISCONNECTED)

    def _set_disconnected(self) -> None:
        with self._lock:
            self._state = ConnectionState.DISCONNECTED
        self._notify_state(ConnectionState.DISCONNECTED)

    # ─── COMMANDS ────────────────────────────────────────────────────

    def send_set_color(self, red: float, green: float, blue: float) -> None:
        """Set a static color. Channels are 0.0-1.0."""
        color = Color(red, green, blue)
        self._send(lambda key: build_set_color(key, color))

    def send_fade(
        self, red: float, green: float, blue: float, duration: int, speed: int
    ) -> None:
        """Start the fade animation.

        Args:
            red, green, blue: Channels, 0.0-1.0.
            duration: 0-255.
            speed: 0-255.

        Raises:
            ValueOutOfRange: If duration or speed do not fit in a byte.
            NoCredential: If no shared secret is configured.
            NoConnection: If not connected.
            SendError: If the write failed; the session is now disconnected.
        """
        color = Color(red, green, blue)
        self._send(lambda key: build_fade(key, color, duration, speed))

    def send_pulse(
        self, red: float, green: float, blue: float, duration: int, speed: int
    ) -> None:
        """Start the pulse animation. Same arguments as :meth:`send_fade`."""
        color = Color(red, green, blue)
        self._send(lambda key: build_pulse(key, color, duration, speed))

    def send_toggle_suspend(self) -> None:
        self._send(build_toggle_suspend)

    def request_current_color(self) -> None:
        """Ask for the current color. The answer arrives as a push frame."""
        self._send(build_get_current_color)

    def _secret(self) -> str | None:
        return self._settings.shared_secret

    def _send(self, build: Callable[[str], bytes]) -> None:
        key = self._secret()
        if key is None:
            logger.warning("Shared secret is not defined. Please set it in settings.")
            raise NoCredential("Shared secret is not defined. Please set it in settings.")

        frame = build(key)

        with self._lock:
            connection = self._connection
        if connection is None:
            raise NoConnection("Not connected to controller")

        try:
            connection.write(frame)
        except SendError as e:
            logger.error("%s", e)
            self._teardown(connection)
            raise

    # ─── INBOUND ─────────────────────────────────────────────────────

    def _handle_message(self, message: InboundMessage) -> None:
        if isinstance(message, ColorChanged):
            with self._lock:
                self._color = message.color
            logger.debug("New color: %r", message.color)
            for callback in list(self._color_callbacks):
                try:
                    callback(message.color)
                except Exception:
                    logger.exception("Color callback %r failed", callback)
        else:
            logger.debug("No handler for inbound %r", message)

    def _notify_state(self, state: ConnectionState) -> None:
        for callback in list(self._state_callbacks):
            try:
                callback(state)
            except Exception:
                logger.exception("State callback %r failed", callback)

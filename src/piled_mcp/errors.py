"""Exception types raised by the PiLED client core."""

from __future__ import annotations


class PiLEDError(Exception):
    """Base class for all client errors."""


class ConnectError(PiLEDError, ConnectionError):
    """The TCP connection could not be established (timeout, refused, DNS)."""


class NoConnection(PiLEDError, ConnectionError):
    """A command was issued while the session is not connected."""


class SendError(NoConnection):
    """Writing a frame failed; the connection has been dropped."""


class NoCredential(PiLEDError):
    """No shared secret is configured, so the command was not sent."""


class MalformedFrame(PiLEDError, ValueError):
    """An inbound frame is shorter than the offsets its opcode requires."""


class ValueOutOfRange(PiLEDError, ValueError):
    """An encoder input lies outside the range its wire field can carry."""

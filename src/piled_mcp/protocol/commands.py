"""Operation payload encoders and high-level command builders.

Every builder returns a complete signed frame. The key is the shared
secret; a missing key raises :class:`~piled_mcp.errors.NoCredential`
before anything is produced.
"""

from __future__ import annotations

from ..errors import ValueOutOfRange
from ..models.color import Color
from .framing import build_frame
from .opcodes import CLIENT_OPERATIONS, Operation

# Opaque marker understood by the controller; not decoded client-side.
TOGGLE_SUSPEND_PAYLOAD = bytes([209, 0, 255, 3, 0])


def _check_byte(name: str, value: int) -> int:
    if isinstance(value, bool) or not isinstance(value, int):
        raise ValueOutOfRange(f"{name} must be an integer, got {value!r}")
    if not 0 <= value <= 255:
        raise ValueOutOfRange(f"{name} must be 0-255, got {value}")
    return value


def encode_color_payload(color: Color) -> bytes:
    """``[R, G, B, 0, 0]``"""
    return color.to_bytes() + b"\x00\x00"


def encode_animation_payload(color: Color, duration: int, speed: int) -> bytes:
    """``[R, G, B, duration, speed]``

    Args:
        color: Animation color.
        duration: Animation duration (0-255).
        speed: Animation speed (0-255).
    """
    return color.to_bytes() + bytes([
        _check_byte("duration", duration),
        _check_byte("speed", speed),
    ])


def payload_for(
    operation: Operation,
    color: Color | None = None,
    duration: int = 0,
    speed: int = 0,
) -> bytes:
    """Return the payload bytes for any client operation."""
    if operation not in CLIENT_OPERATIONS:
        raise ValueError(f"{operation.name} is not a client command")
    if operation == Operation.GET_CURRENT_COLOR:
        return b""
    if operation == Operation.TOGGLE_SUSPEND:
        return TOGGLE_SUSPEND_PAYLOAD
    if color is None:
        raise ValueError(f"{operation.name} requires a color")
    if operation == Operation.SET_COLOR:
        return encode_color_payload(color)
    return encode_animation_payload(color, duration, speed)


def build_command(key: str | None, operation: Operation, payload: bytes = b"") -> bytes:
    """Build a signed frame for an operation and a pre-encoded payload."""
    if operation not in CLIENT_OPERATIONS:
        raise ValueError(f"{operation.name} is not a client command")
    return build_frame(key, operation.value, payload)


def build_set_color(key: str | None, color: Color) -> bytes:
    return build_command(key, Operation.SET_COLOR, encode_color_payload(color))


def build_fade(key: str | None, color: Color, duration: int, speed: int) -> bytes:
    """Build a SetFadeAnimation command."""
    return build_command(
        key,
        Operation.SET_FADE_ANIMATION,
        encode_animation_payload(color, duration, speed),
    )


def build_pulse(key: str | None, color: Color, duration: int, speed: int) -> bytes:
    """Build a SetPulseAnimation command."""
    return build_command(
        key,
        Operation.SET_PULSE_ANIMATION,
        encode_animation_payload(color, duration, speed),
    )


def build_toggle_suspend(key: str | None) -> bytes:
    return build_command(key, Operation.TOGGLE_SUSPEND, TOGGLE_SUSPEND_PAYLOAD)


def build_get_current_color(key: str | None) -> bytes:
    """Build a GetCurrentColor request (empty payload)."""
    return build_command(key, Operation.GET_CURRENT_COLOR)

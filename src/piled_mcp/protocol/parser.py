"""Decoding of inbound frames into structured messages."""

from __future__ import annotations

from dataclasses import dataclass

from ..models.color import Color
from .framing import InboundFrame
from .opcodes import Operation


@dataclass
class ColorChanged:
    """Parsed ColorChangedPush (5): the controller's current color."""

    color: Color
    frame: InboundFrame


@dataclass
class UnhandledMessage:
    """Any opcode the client has no handling for."""

    opcode: int
    payload: bytes
    frame: InboundFrame

    def __repr__(self) -> str:
        return (
            f"UnhandledMessage(opcode={self.opcode}, "
            f"payload={self.payload.hex(' ') if self.payload else '(empty)'})"
        )


InboundMessage = ColorChanged | UnhandledMessage


def parse_color_changed(frame: InboundFrame) -> ColorChanged | None:
    """Parse a ColorChangedPush frame; R, G, B are the first payload bytes."""
    if frame.opcode != Operation.COLOR_CHANGED_PUSH:
        return None
    if len(frame.payload) < 3:
        return None
    return ColorChanged(color=Color.from_bytes(frame.payload), frame=frame)


def parse_message(frame: InboundFrame) -> InboundMessage:
    """Auto-dispatch a frame to the matching message parser.

    Returns an :class:`UnhandledMessage` when no parser matches.
    """
    parsers = {
        Operation.COLOR_CHANGED_PUSH: parse_color_changed,
    }
    parser = parsers.get(frame.opcode)
    if parser:
        result = parser(frame)
        if result is not None:
            return result
    return UnhandledMessage(opcode=frame.opcode, payload=frame.payload, frame=frame)

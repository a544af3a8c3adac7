"""RGB color with unit-interval float and 8-bit views."""

from __future__ import annotations

import math
from dataclasses import dataclass

from ..errors import ValueOutOfRange


def to_byte(value: float) -> int:
    """Convert a unit-interval channel to a byte, clamped to 0-255."""
    if not math.isfinite(value):
        raise ValueOutOfRange(f"Color channel must be a finite number, got {value}")
    return min(255, max(0, round(value * 255)))


def to_float(value: int) -> float:
    """Convert a byte channel to the unit interval."""
    if not 0 <= value <= 255:
        raise ValueOutOfRange(f"Color byte must be 0-255, got {value}")
    return value / 255


@dataclass(frozen=True)
class Color:
    """Last-known device color. Immutable so readers never see a torn update."""

    red: float = 0.0
    green: float = 0.0
    blue: float = 0.0

    def to_bytes(self) -> bytes:
        return bytes([to_byte(self.red), to_byte(self.green), to_byte(self.blue)])

    @classmethod
    def from_bytes(cls, data: bytes) -> Color:
        """Build a color from the first three bytes of ``data``."""
        if len(data) < 3:
            raise ValueError(f"Color needs 3 bytes, got {len(data)}")
        return cls(to_float(data[0]), to_float(data[1]), to_float(data[2]))

    def as_tuple(self) -> tuple[float, float, float]:
        return (self.red, self.green, self.blue)

    def to_dict(self) -> dict:
        r, g, b = self.to_bytes()
        return {
            "red": self.red,
            "green": self.green,
            "blue": self.blue,
            "hex": f"#{r:02x}{g:02x}{b:02x}",
        }

    def __repr__(self) -> str:
        return f"Color({self.to_bytes().hex()})"

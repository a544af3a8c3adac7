"""Tests for the color model."""

import pytest

from piled_mcp.errors import ValueOutOfRange
from piled_mcp.models.color import Color, to_byte, to_float


def test_byte_roundtrip_all_values():
    """to_byte(to_float(b)) == b for every byte."""
    for b in range(256):
        assert to_byte(to_float(b)) == b


def test_midpoints():
    assert to_byte(to_float(127)) == 127
    assert to_byte(to_float(128)) == 128


def test_to_byte_rounds_and_clamps():
    assert to_byte(0.0) == 0
    assert to_byte(1.0) == 255
    assert to_byte(0.2) == 51
    assert to_byte(2.0) == 255
    assert to_byte(-1.0) == 0


def test_to_byte_rejects_non_finite():
    with pytest.raises(ValueOutOfRange):
        to_byte(float("inf"))


def test_to_float_range():
    assert to_float(0) == 0.0
    assert to_float(255) == 1.0
    with pytest.raises(ValueOutOfRange):
        to_float(256)


def test_color_from_bytes():
    color = Color.from_bytes(bytes([10, 20, 30, 99]))
    assert color.as_tuple() == (10 / 255, 20 / 255, 30 / 255)
    assert color.to_bytes() == bytes([10, 20, 30])


def test_color_from_short_bytes():
    with pytest.raises(ValueError):
        Color.from_bytes(b"\x01\x02")


def test_color_is_immutable():
    color = Color()
    with pytest.raises(AttributeError):
        color.red = 1.0


def test_color_to_dict():
    d = Color(1.0, 0.0, 0.0).to_dict()
    assert d["hex"] == "#ff0000"
    assert d["red"] == 1.0

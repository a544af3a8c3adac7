"""Operation codes carried in byte 17 of every frame."""

from __future__ import annotations

from enum import IntEnum


class Operation(IntEnum):
    """Wire opcodes.

    ``COLOR_CHANGED_PUSH`` is only ever sent by the controller; the rest
    are client-to-controller commands.
    """

    SET_COLOR = 0
    GET_CURRENT_COLOR = 1
    SET_FADE_ANIMATION = 2
    SET_PULSE_ANIMATION = 3
    TOGGLE_SUSPEND = 4
    COLOR_CHANGED_PUSH = 5


CLIENT_OPERATIONS = frozenset(
    op for op in Operation if op is not Operation.COLOR_CHANGED_PUSH
)

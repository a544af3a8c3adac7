"""Frame builder and parser for the PiLED wire protocol.

Frame layout::

    +-----------+---------+---------+--------+------------------+-------------+
    | Timestamp |  Nonce  | Version | Opcode |     Auth tag     |   Payload   |
    |  8 bytes  | 8 bytes | 1 byte  | 1 byte |     32 bytes     |  0-5 bytes  |
    +-----------+---------+---------+--------+------------------+-------------+

- Timestamp: big-endian signed unix seconds at send time
- Nonce: big-endian random 64-bit value, fresh for every frame
- Version: protocol generation, currently 4
- Auth tag: HMAC-SHA256 over (header + payload), see :mod:`.auth`

There is no length prefix. The receiver reads into a fixed 55-byte buffer
and relies on structural offsets.
"""

from __future__ import annotations

import secrets
import struct
import time
from dataclasses import dataclass

from ..errors import MalformedFrame, ValueOutOfRange
from .auth import TAG_SIZE, sign
from .opcodes import Operation

PROTOCOL_VERSION = 4
HEADER_FORMAT = ">qQBB"
HEADER_SIZE = struct.calcsize(HEADER_FORMAT)  # 18
MAX_PAYLOAD_SIZE = 5
MAX_FRAME_SIZE = HEADER_SIZE + TAG_SIZE + MAX_PAYLOAD_SIZE  # 55

OFF_VERSION = 16
OFF_OPCODE = 17
OFF_TAG = HEADER_SIZE
OFF_PAYLOAD = HEADER_SIZE + TAG_SIZE  # 50

# Payload bytes an inbound opcode must carry before it can be decoded
REQUIRED_PAYLOAD = {
    Operation.COLOR_CHANGED_PUSH: 3,
}


@dataclass
class InboundFrame:
    """A frame split into its structural regions."""

    version: int
    opcode: int
    header: bytes
    auth_tag: bytes
    payload: bytes

    def __repr__(self) -> str:
        return (
            f"InboundFrame(version={self.version}, opcode={self.opcode}, "
            f"payload={self.payload.hex(' ') if self.payload else '(empty)'})"
        )


def encode_header(timestamp: int, nonce: int, version: int, opcode: int) -> bytes:
    """Pack the 18-byte frame header.

    Args:
        timestamp: Unix seconds, signed 64-bit.
        nonce: Unsigned 64-bit random value.
        version: Protocol version byte.
        opcode: Operation byte.
    """
    try:
        return struct.pack(HEADER_FORMAT, timestamp, nonce, version, opcode)
    except struct.error as e:
        raise ValueOutOfRange(f"Header field out of range: {e}") from e


def assemble(header: bytes, auth_tag: bytes, payload: bytes = b"") -> bytes:
    """Concatenate ``header || auth_tag || payload``."""
    if len(header) != HEADER_SIZE:
        raise ValueError(f"Header must be {HEADER_SIZE} bytes, got {len(header)}")
    if len(auth_tag) != TAG_SIZE:
        raise ValueError(f"Auth tag must be {TAG_SIZE} bytes, got {len(auth_tag)}")
    if len(payload) > MAX_PAYLOAD_SIZE:
        raise ValueError(
            f"Payload must be at most {MAX_PAYLOAD_SIZE} bytes, got {len(payload)}"
        )
    return header + auth_tag + payload


def new_nonce() -> int:
    return secrets.randbits(64)


def build_frame(
    key: str | None,
    opcode: int,
    payload: bytes = b"",
    *,
    timestamp: int | None = None,
    nonce: int | None = None,
) -> bytes:
    """Build a complete signed frame ready to write to the socket.

    ``timestamp`` and ``nonce`` default to the current time and a fresh
    random value; pass them explicitly only for reproducible output.

    Raises:
        NoCredential: If ``key`` is missing.
    """
    if timestamp is None:
        timestamp = int(time.time())
    if nonce is None:
        nonce = new_nonce()
    header = encode_header(timestamp, nonce, PROTOCOL_VERSION, opcode)
    tag = sign(key, header, payload)
    return assemble(header, tag, payload)


def parse_inbound(raw: bytes) -> InboundFrame:
    """Split a received buffer into header, tag and payload regions.

    The payload is everything after the tag, up to the 55-byte frame
    limit. A ColorChangedPush carries R, G, B at offsets 50, 51, 52.

    Args:
        raw: The bytes returned by a single read (at most 55).

    Raises:
        MalformedFrame: If ``raw`` is too short for the header, or for the
            payload offsets its opcode requires.
    """
    if len(raw) < HEADER_SIZE:
        raise MalformedFrame(
            f"Frame too short for header: {len(raw)} < {HEADER_SIZE} bytes"
        )

    version = raw[OFF_VERSION]
    opcode = raw[OFF_OPCODE]

    needed = OFF_PAYLOAD + REQUIRED_PAYLOAD.get(opcode, 0)
    if opcode in REQUIRED_PAYLOAD and len(raw) < needed:
        raise MalformedFrame(
            f"Frame for opcode {opcode} too short: {len(raw)} < {needed} bytes"
        )

    return InboundFrame(
        version=version,
        opcode=opcode,
        header=raw[:HEADER_SIZE],
        auth_tag=raw[OFF_TAG:OFF_PAYLOAD],
        payload=raw[OFF_PAYLOAD:MAX_FRAME_SIZE],
    )

"""Frame authentication: HMAC-SHA256 over ``header || payload``.

The tag is keyed with the shared secret (UTF-8 encoded) and is never
transmitted alongside the key. A fresh tag is computed for every frame.
"""

from __future__ import annotations

import hashlib
import hmac

from ..errors import NoCredential

TAG_SIZE = 32


def _key_bytes(key: str | None) -> bytes:
    if not key:
        raise NoCredential("Shared secret is not defined. Please set it in settings.")
    return key.encode("utf-8")


def sign(key: str | None, header: bytes, payload: bytes = b"") -> bytes:
    """Compute the 32-byte authentication tag for a frame.

    Args:
        key: Shared secret.
        header: The 18-byte frame header.
        payload: Operation payload (0-5 bytes).

    Raises:
        NoCredential: If ``key`` is ``None`` or empty.
    """
    return hmac.new(_key_bytes(key), header + payload, hashlib.sha256).digest()


def verify(key: str | None, header: bytes, payload: bytes, tag: bytes) -> bool:
    """Check an inbound tag in constant time."""
    expected = sign(key, header, payload)
    return hmac.compare_digest(expected, tag)

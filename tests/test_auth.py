"""Tests for HMAC-SHA256 frame authentication."""

import hashlib
import hmac

import pytest

from piled_mcp.errors import NoCredential
from piled_mcp.protocol.auth import TAG_SIZE, sign, verify

HEADER = bytes(range(18))
PAYLOAD = b"\xff\x00\x00\x00\x00"


def test_tag_size():
    assert len(sign("key", HEADER, PAYLOAD)) == TAG_SIZE


def test_matches_stdlib_hmac():
    expected = hmac.new(b"key", HEADER + PAYLOAD, hashlib.sha256).digest()
    assert sign("key", HEADER, PAYLOAD) == expected


def test_deterministic():
    """Same key and message always produce the same tag."""
    assert sign("key", HEADER, PAYLOAD) == sign("key", HEADER, PAYLOAD)


def test_changes_with_key():
    assert sign("key", HEADER, PAYLOAD) != sign("kez", HEADER, PAYLOAD)


def test_changes_with_header():
    flipped = bytes([HEADER[0] ^ 1]) + HEADER[1:]
    assert sign("key", HEADER, PAYLOAD) != sign("key", flipped, PAYLOAD)


def test_changes_with_payload():
    assert sign("key", HEADER, PAYLOAD) != sign("key", HEADER, b"\xfe\x00\x00\x00\x00")


def test_utf8_key():
    expected = hmac.new("clé".encode("utf-8"), HEADER, hashlib.sha256).digest()
    assert sign("clé", HEADER) == expected


def test_missing_key():
    with pytest.raises(NoCredential):
        sign(None, HEADER, PAYLOAD)
    with pytest.raises(NoCredential):
        sign("", HEADER, PAYLOAD)


def test_verify():
    tag = sign("key", HEADER, PAYLOAD)
    assert verify("key", HEADER, PAYLOAD, tag)
    assert not verify("other", HEADER, PAYLOAD, tag)
    assert not verify("key", HEADER, PAYLOAD, b"\x00" * 32)
    assert not verify("key", HEADER, PAYLOAD, tag[:16])

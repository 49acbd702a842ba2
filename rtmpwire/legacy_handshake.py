"""Handshake packets of the earlier connection layer."""

from __future__ import annotations

import os
from typing import Any

from .handshake import (
    RTMP_VERSION,
    _CLIENT_FULL_KEY,
    _CLIENT_PARTIAL_KEY,
    _SERVER_PARTIAL_KEY,
    _digest_pos,
    _make_digest,
    _parse_digest,
)

_PACKET_SIZE = 1536
_DIGEST_SIZE = 32
_C1_VERSION = bytes([0x09, 0x00, 0x7C, 0x02])


class LegacyHandshakeError(Exception):
    """Raised when a handshake step fails."""


class HandshakeC0:
    """C0 part of a handshake: the protocol version byte."""

    def write(self, writer: Any) -> None:
        writer.write(bytes([RTMP_VERSION]))


class HandshakeC1:
    """C1 part of a handshake, signed with the client key."""

    def write(self, writer: Any) -> None:
        buf = bytearray(_PACKET_SIZE)
        buf[4:8] = _C1_VERSION
        buf[8:] = os.urandom(_PACKET_SIZE - 8)
        gap = _digest_pos(buf, 8)
        buf[gap : gap + _DIGEST_SIZE] = _make_digest(_CLIENT_PARTIAL_KEY, bytes(buf), gap)
        writer.write(bytes(buf))


class HandshakeC2:
    """C2 part of a handshake, signed with a key derived from S1."""

    def write(self, writer: Any, s1s2: bytes) -> None:
        key = _parse_digest(bytes(s1s2[:_PACKET_SIZE]), _SERVER_PARTIAL_KEY, _CLIENT_FULL_KEY)
        if key is None:
            raise LegacyHandshakeError("unable to parse S1+S2")

        buf = bytearray(os.urandom(_PACKET_SIZE))
        gap = _PACKET_SIZE - _DIGEST_SIZE
        buf[gap:] = _make_digest(key, bytes(buf), gap)
        writer.write(bytes(buf))


class HandshakeS0:
    """S0 part of a handshake: the protocol version byte."""

    def read(self, reader: Any) -> None:
        data = reader.read(1)
        if not data:
            raise EOFError("unexpected end of stream")
        if data[0] != RTMP_VERSION:
            raise LegacyHandshakeError(f"invalid rtmp version ({data[0]})")
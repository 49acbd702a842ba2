"""RTMP handshake packets C0/S0, C1/S1 and C2/S2."""

from __future__ import annotations

import hashlib
import hmac
import os
from dataclasses import dataclass
from typing import Any, Optional

RTMP_VERSION = 0x03

_PACKET_SIZE = 1536
_RANDOM_SIZE = _PACKET_SIZE - 8
_DIGEST_SIZE = 32

_KEY_TAIL = bytes(
    [
        0xF0, 0xEE, 0xC2, 0x4A, 0x80, 0x68, 0xBE, 0xE8, 0x2E, 0x00, 0xD0, 0xD1,
        0x02, 0x9E, 0x7E, 0x57, 0x6E, 0xEC, 0x5D, 0x2D, 0x29, 0x80, 0x6F, 0xAB,
        0x93, 0xB8, 0xE6, 0x36, 0xCF, 0xEB, 0x31, 0xAE,
    ]
)
_CLIENT_FULL_KEY = b"Genuine Adobe Flash Player 001" + _KEY_TAIL
_SERVER_FULL_KEY = b"Genuine Adobe Flash Media Server 001" + _KEY_TAIL
_CLIENT_PARTIAL_KEY = _CLIENT_FULL_KEY[:30]
_SERVER_PARTIAL_KEY = _SERVER_FULL_KEY[:36]


class HandshakeError(Exception):
    """Raised when a handshake packet is invalid."""


def _read_exact(reader: Any, size: int) -> bytes:
    buf = bytearray()
    while len(buf) < size:
        part = reader.read(size - len(buf))
        if not part:
            raise EOFError("unexpected end of stream")
        buf += part
    return bytes(buf)


def _digest_pos(packet: bytes, base: int) -> int:
    return sum(packet[base : base + 4]) % 728 + base + 4


def _make_digest(key: bytes, src: bytes, gap: int) -> bytes:
    mac = hmac.new(key, digestmod=hashlib.sha256)
    if gap <= 0:
        mac.update(src)
    else:
        mac.update(src[:gap])
        mac.update(src[gap + _DIGEST_SIZE :])
    return mac.digest()


def _find_digest(packet: bytes, key: bytes, base: int) -> Optional[int]:
    gap = _digest_pos(packet, base)
    if bytes(packet[gap : gap + _DIGEST_SIZE]) != _make_digest(key, packet, gap):
        return None
    return gap


def _parse_digest(packet: bytes, peer_key: bytes, key: bytes) -> Optional[bytes]:
    pos = _find_digest(packet, peer_key, 772)
    if pos is None:
        pos = _find_digest(packet, peer_key, 8)
        if pos is None:
            return None
    return _make_digest(key, packet[pos : pos + _DIGEST_SIZE], -1)


def _fill_random(buf: bytearray, random: Optional[bytes]) -> None:
    data = os.urandom(_RANDOM_SIZE) if random is None else bytes(random[:_RANDOM_SIZE])
    buf[8 : 8 + len(data)] = data


@dataclass
class C0S0:
    """C0 or S0 packet: the protocol version byte."""

    def read(self, reader: Any) -> None:
        version = _read_exact(reader, 1)[0]
        if version != RTMP_VERSION:
            raise HandshakeError(f"invalid rtmp version ({version})")

    def write(self, writer: Any) -> None:
        writer.write(bytes([RTMP_VERSION]))


@dataclass
class C1S1:
    """C1 or S1 packet.

    After reading or writing, ``digest`` holds the key the peer's C2/S2
    packet is signed with.
    """

    time: int = 0
    random: Optional[bytes] = None
    digest: Optional[bytes] = None

    def read(self, reader: Any, is_c1: bool) -> None:
        buf = _read_exact(reader, _PACKET_SIZE)
        if is_c1:
            peer_key, key = _CLIENT_PARTIAL_KEY, _SERVER_FULL_KEY
        else:
            peer_key, key = _SERVER_PARTIAL_KEY, _CLIENT_FULL_KEY
        digest = _parse_digest(buf, peer_key, key)
        if digest is None:
            raise HandshakeError("unable to validate C1/S1 signature")
        self.time = int.from_bytes(buf[:4], "big")
        self.random = buf[8:]
        self.digest = digest

    def write(self, writer: Any, is_c1: bool) -> None:
        buf = bytearray(_PACKET_SIZE)
        buf[0:4] = (self.time & 0xFFFFFFFF).to_bytes(4, "big")
        _fill_random(buf, self.random)

        gap = _digest_pos(buf, 8)
        if is_c1:
            key, peer_full_key = _CLIENT_PARTIAL_KEY, _SERVER_FULL_KEY
        else:
            key, peer_full_key = _SERVER_PARTIAL_KEY, _CLIENT_FULL_KEY
        signature = _make_digest(key, bytes(buf), gap)
        buf[gap : gap + _DIGEST_SIZE] = signature
        self.digest = _make_digest(peer_full_key, signature, -1)

        writer.write(bytes(buf))


@dataclass
class C2S2:
    """C2 or S2 packet, signed with ``digest`` when one is set."""

    time: int = 0
    time2: int = 0
    random: Optional[bytes] = None
    digest: Optional[bytes] = None

    def read(self, reader: Any) -> None:
        buf = _read_exact(reader, _PACKET_SIZE)
        gap = _PACKET_SIZE - _DIGEST_SIZE
        expected = _make_digest(self.digest or b"", buf, gap)
        if buf[gap : gap + _DIGEST_SIZE] != expected:
            raise HandshakeError("unable to validate C2/S2 signature")
        self.time = int.from_bytes(buf[:4], "big")
        self.time2 = int.from_bytes(buf[4:8], "big")
        self.random = buf[8:]

    def write(self, writer: Any) -> None:
        buf = bytearray(_PACKET_SIZE)
        buf[0:4] = (self.time & 0xFFFFFFFF).to_bytes(4, "big")
        buf[4:8] = (self.time2 & 0xFFFFFFFF).to_bytes(4, "big")
        _fill_random(buf, self.random)

        if self.digest is not None:
            gap = _PACKET_SIZE - _DIGEST_SIZE
            buf[gap:] = _make_digest(self.digest, bytes(buf), gap)

        writer.write(bytes(buf))
"""RTMP chunk formats 0 to 3."""

from __future__ import annotations

import enum
from dataclasses import dataclass
from typing import Any


class MessageType(enum.IntEnum):
    """RTMP message type identifiers."""

    SET_CHUNK_SIZE = 1
    ABORT_MESSAGE = 2
    ACKNOWLEDGE = 3
    USER_CONTROL = 4
    SET_WINDOW_ACK_SIZE = 5
    SET_PEER_BANDWIDTH = 6
    AUDIO = 8
    VIDEO = 9
    DATA_AMF3 = 15
    COMMAND_AMF3 = 17
    DATA_AMF0 = 18
    COMMAND_AMF0 = 20


def _to_message_type(value: int) -> int:
    try:
        return MessageType(value)
    except ValueError:
        return value


def _read_exact(reader: Any, size: int) -> bytes:
    buf = bytearray()
    while len(buf) < size:
        part = reader.read(size - len(buf))
        if not part:
            raise EOFError("unexpected end of stream")
        buf += part
    return bytes(buf)


def _u24(value: int) -> bytes:
    return (value & 0xFFFFFF).to_bytes(3, "big")


@dataclass
class Chunk0:
    """Type 0 chunk: starts a chunk stream or follows a backward timestamp."""

    chunk_stream_id: int = 0
    timestamp: int = 0
    type: int = 0
    message_stream_id: int = 0
    body_len: int = 0
    body: bytes = b""

    @classmethod
    def read(cls, reader: Any, chunk_max_body_len: int) -> "Chunk0":
        header = _read_exact(reader, 12)
        body_len = int.from_bytes(header[4:7], "big")
        body = _read_exact(reader, min(body_len, chunk_max_body_len))
        return cls(
            chunk_stream_id=header[0] & 0x3F,
            timestamp=int.from_bytes(header[1:4], "big"),
            type=_to_message_type(header[7]),
            message_stream_id=int.from_bytes(header[8:12], "big"),
            body_len=body_len,
            body=body,
        )

    def encode(self) -> bytes:
        return b"".join(
            (
                bytes([self.chunk_stream_id & 0xFF]),
                _u24(self.timestamp),
                _u24(self.body_len),
                bytes([int(self.type) & 0xFF]),
                (self.message_stream_id & 0xFFFFFFFF).to_bytes(4, "big"),
                bytes(self.body),
            )
        )


@dataclass
class Chunk1:
    """Type 1 chunk: reuses the message stream ID of the preceding chunk."""

    chunk_stream_id: int = 0
    timestamp_delta: int = 0
    type: int = 0
    body_len: int = 0
    body: bytes = b""

    @classmethod
    def read(cls, reader: Any, chunk_max_body_len: int) -> "Chunk1":
        header = _read_exact(reader, 8)
        body_len = int.from_bytes(header[4:7], "big")
        body = _read_exact(reader, min(body_len, chunk_max_body_len))
        return cls(
            chunk_stream_id=header[0] & 0x3F,
            timestamp_delta=int.from_bytes(header[1:4], "big"),
            type=_to_message_type(header[7]),
            body_len=body_len,
            body=body,
        )

    def encode(self) -> bytes:
        return b"".join(
            (
                bytes([(1 << 6 | self.chunk_stream_id) & 0xFF]),
                _u24(self.timestamp_delta),
                _u24(self.body_len),
                bytes([int(self.type) & 0xFF]),
                bytes(self.body),
            )
        )


@dataclass
class Chunk2:
    """Type 2 chunk: reuses stream ID and message length of the preceding chunk."""

    chunk_stream_id: int = 0
    timestamp_delta: int = 0
    body: bytes = b""

    @classmethod
    def read(cls, reader: Any, chunk_body_len: int) -> "Chunk2":
        header = _read_exact(reader, 4)
        body = _read_exact(reader, chunk_body_len)
        return cls(
            chunk_stream_id=header[0] & 0x3F,
            timestamp_delta=int.from_bytes(header[1:4], "big"),
            body=body,
        )

    def encode(self) -> bytes:
        return b"".join(
            (
                bytes([(2 << 6 | self.chunk_stream_id) & 0xFF]),
                _u24(self.timestamp_delta),
                bytes(self.body),
            )
        )


@dataclass
class Chunk3:
    """Type 3 chunk: no message header, values come from the preceding chunk."""

    chunk_stream_id: int = 0
    body: bytes = b""

    @classmethod
    def read(cls, reader: Any, chunk_body_len: int) -> "Chunk3":
        header = _read_exact(reader, 1)
        body = _read_exact(reader, chunk_body_len)
        return cls(chunk_stream_id=header[0] & 0x3F, body=body)

    def encode(self) -> bytes:
        return bytes([(3 << 6 | self.chunk_stream_id) & 0xFF]) + bytes(self.body)
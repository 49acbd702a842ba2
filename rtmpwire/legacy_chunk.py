"""Chunk formats of the earlier message layer, with their header checks."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Union

from .chunk import MessageType


class ChunkHeaderError(Exception):
    """Raised when a chunk header carries an unexpected format type."""


@dataclass
class LegacyMessage:
    """A message of the earlier message layer."""

    chunk_stream_id: int = 0
    timestamp: int = 0
    type: Union[MessageType, int] = 0
    message_stream_id: int = 0
    body: bytes = b""


def _read_exact(reader: Any, size: int) -> bytes:
    buf = bytearray()
    while len(buf) < size:
        part = reader.read(size - len(buf))
        if not part:
            raise EOFError("unexpected end of stream")
        buf += part
    return bytes(buf)


def _check_format(first_byte: int, expected: int) -> None:
    if first_byte >> 6 != expected:
        raise ChunkHeaderError("wrong chunk header type")


def _message_type(value: int) -> Union[MessageType, int]:
    try:
        return MessageType(value)
    except ValueError:
        return value


def _read_delta(header: bytes) -> int:
    # Timestamps are read with their bytes in reverse order.
    return header[3] << 16 | header[2] << 8 | header[1]


def _u24(value: int) -> bytes:
    return (value & 0xFFFFFF).to_bytes(3, "big")


@dataclass
class Chunk0:
    """Type 0 chunk: starts a chunk stream or follows a backward timestamp."""

    chunk_stream_id: int = 0
    timestamp: int = 0
    type: Union[MessageType, int] = 0
    message_stream_id: int = 0
    body_len: int = 0
    body: bytes = b""

    @classmethod
    def read(cls, reader: Any, chunk_max_body_len: int) -> "Chunk0":
        header = _read_exact(reader, 12)
        _check_format(header[0], 0)
        body_len = int.from_bytes(header[4:7], "big")
        body = _read_exact(reader, min(body_len, chunk_max_body_len))
        return cls(
            chunk_stream_id=header[0] & 0x3F,
            timestamp=_read_delta(header),
            type=_message_type(header[7]),
            message_stream_id=int.from_bytes(header[8:12], "big"),
            body_len=body_len,
            body=body,
        )

    def write(self, writer: Any) -> None:
        # Only the low byte of the message stream ID is written.
        header = b"".join(
            (
                bytes([self.chunk_stream_id & 0xFF]),
                _u24(self.timestamp),
                _u24(self.body_len),
                bytes([int(self.type) & 0xFF]),
                bytes([self.message_stream_id & 0xFF, 0, 0, 0]),
            )
        )
        writer.write(header)
        writer.write(bytes(self.body))


@dataclass
class Chunk1:
    """Type 1 chunk: reuses the message stream ID of the preceding chunk."""

    chunk_stream_id: int = 0
    timestamp_delta: int = 0
    type: Union[MessageType, int] = 0
    body_len: int = 0
    body: bytes = b""

    @classmethod
    def read(cls, reader: Any, chunk_max_body_len: int) -> "Chunk1":
        header = _read_exact(reader, 8)
        _check_format(header[0], 1)
        body_len = int.from_bytes(header[4:7], "big")
        body = _read_exact(reader, min(body_len, chunk_max_body_len))
        return cls(
            chunk_stream_id=header[0] & 0x3F,
            timestamp_delta=_read_delta(header),
            type=_message_type(header[7]),
            body_len=body_len,
            body=body,
        )

    def write(self, writer: Any) -> None:
        header = b"".join(
            (
                bytes([(1 << 6 | self.chunk_stream_id) & 0xFF]),
                _u24(self.timestamp_delta),
                _u24(self.body_len),
                bytes([int(self.type) & 0xFF]),
            )
        )
        writer.write(header)
        writer.write(bytes(self.body))


@dataclass
class Chunk2:
    """Type 2 chunk: reuses stream ID and message length of the preceding chunk."""

    chunk_stream_id: int = 0
    timestamp_delta: int = 0
    body: bytes = b""

    @classmethod
    def read(cls, reader: Any, chunk_body_len: int) -> "Chunk2":
        header = _read_exact(reader, 4)
        _check_format(header[0], 2)
        body = _read_exact(reader, chunk_body_len)
        return cls(
            chunk_stream_id=header[0] & 0x3F,
            timestamp_delta=_read_delta(header),
            body=body,
        )

    def write(self, writer: Any) -> None:
        # The header is written with the type 1 format bits.
        header = bytes([(1 << 6 | self.chunk_stream_id) & 0xFF]) + _u24(
            self.timestamp_delta
        )
        writer.write(header)
        writer.write(bytes(self.body))


@dataclass
class Chunk3:
    """Type 3 chunk: no message header, values come from the preceding chunk."""

    chunk_stream_id: int = 0
    body: bytes = b""

    @classmethod
    def read(cls, reader: Any, chunk_body_len: int) -> "Chunk3":
        header = _read_exact(reader, 1)
        # The reader expects the type 2 format bits.
        _check_format(header[0], 2)
        body = _read_exact(reader, chunk_body_len)
        return cls(chunk_stream_id=header[0] & 0x3F, body=body)

    def write(self, writer: Any) -> None:
        writer.write(bytes([(3 << 6 | self.chunk_stream_id) & 0xFF]))
        writer.write(bytes(self.body))
"""Message reader and writer of the earlier message layer."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Optional, Union

from .bytecounter import CountingReader
from .chunk import MessageType
from .legacy_chunk import Chunk0, Chunk1, Chunk2, Chunk3, LegacyMessage
from .rawmessage import ChunkStreamError

_UINT32_MASK = 0xFFFFFFFF
_DEFAULT_CHUNK_SIZE = 128

_LegacyChunk = Union[Chunk0, Chunk1, Chunk2, Chunk3]


@dataclass
class _ReaderChunkStream:
    owner: "LegacyMessageReader"
    timestamp: Optional[int] = None
    type: Union[MessageType, int, None] = None
    message_stream_id: Optional[int] = None
    body_len: Optional[int] = None
    body: Optional[bytearray] = None

    def read(self, typ: int) -> Optional[LegacyMessage]:
        """Consume one chunk; return a message once one is complete."""
        reader = self.owner._reader
        chunk_size = self.owner.chunk_size

        if typ == 0:
            if self.body is not None:
                raise ChunkStreamError("received type 0 chunk but expected type 3 chunk")
            c0 = Chunk0.read(reader, chunk_size)
            self.message_stream_id = c0.message_stream_id
            self.type = c0.type
            self.timestamp = c0.timestamp
            self.body_len = c0.body_len
            if c0.body_len != len(c0.body):
                self.body = bytearray(c0.body)
                return None
            return LegacyMessage(
                timestamp=c0.timestamp,
                type=c0.type,
                message_stream_id=c0.message_stream_id,
                body=bytes(c0.body),
            )

        if typ == 1:
            if self.timestamp is None:
                raise ChunkStreamError("received type 1 chunk without previous chunk")
            if self.body is not None:
                raise ChunkStreamError("received type 1 chunk but expected type 3 chunk")
            c1 = Chunk1.read(reader, chunk_size)
            self.type = c1.type
            self.timestamp = (self.timestamp + c1.timestamp_delta) & _UINT32_MASK
            self.body_len = c1.body_len
            if c1.body_len != len(c1.body):
                self.body = bytearray(c1.body)
                return None
            # The delta is applied once more to the returned timestamp.
            return LegacyMessage(
                timestamp=(self.timestamp + c1.timestamp_delta) & _UINT32_MASK,
                type=c1.type,
                message_stream_id=self.message_stream_id,
                body=bytes(c1.body),
            )

        if typ == 2:
            if self.timestamp is None:
                raise ChunkStreamError("received type 2 chunk without previous chunk")
            if self.body is not None:
                raise ChunkStreamError("received type 2 chunk but expected type 3 chunk")
            chunk_body_len = min(self.body_len, chunk_size)
            c2 = Chunk2.read(reader, chunk_body_len)
            self.timestamp = (self.timestamp + c2.timestamp_delta) & _UINT32_MASK
            if chunk_body_len != len(c2.body):
                self.body = bytearray(c2.body)
                return None
            return LegacyMessage(
                timestamp=(self.timestamp + c2.timestamp_delta) & _UINT32_MASK,
                type=self.type,
                message_stream_id=self.message_stream_id,
                body=bytes(c2.body),
            )

        if self.timestamp is None:
            raise ChunkStreamError("received type 3 chunk without previous chunk")
        if self.body is None:
            raise ChunkStreamError("unsupported")

        c3 = Chunk3.read(reader, min(self.body_len, chunk_size))
        self.body += c3.body
        if self.body_len != len(self.body):
            return None

        body, self.body = bytes(self.body), None
        return LegacyMessage(
            timestamp=self.timestamp,
            type=self.type,
            message_stream_id=self.message_stream_id,
            body=body,
        )


class LegacyMessageReader:
    """Reads messages from a stream, reassembling them from chunks."""

    def __init__(self, stream: Any) -> None:
        if hasattr(stream, "read_byte") and hasattr(stream, "unread_byte"):
            self._reader = stream
        else:
            self._reader = CountingReader(stream)
        self.chunk_size = _DEFAULT_CHUNK_SIZE
        self._chunk_streams: dict[int, _ReaderChunkStream] = {}

    def set_chunk_size(self, value: int) -> None:
        """Set the maximum chunk body size."""
        self.chunk_size = value

    def read(self) -> LegacyMessage:
        """Read chunks until a whole message is available and return it."""
        while True:
            byte = self._reader.read_byte()
            typ = byte >> 6
            chunk_stream_id = byte & 0x3F

            stream = self._chunk_streams.get(chunk_stream_id)
            if stream is None:
                stream = _ReaderChunkStream(owner=self)
                self._chunk_streams[chunk_stream_id] = stream

            self._reader.unread_byte()

            msg = stream.read(typ)
            if msg is None:
                continue

            msg.chunk_stream_id = chunk_stream_id
            return msg


@dataclass
class _WriterChunkStream:
    owner: "LegacyMessageWriter"
    last_message_stream_id: Optional[int] = None
    last_type: Union[MessageType, int, None] = None
    last_body_len: Optional[int] = None
    last_timestamp: Optional[int] = None
    last_timestamp_delta: Optional[int] = None

    def _first_chunk(
        self, msg: LegacyMessage, delta: Optional[int], piece: bytes
    ) -> _LegacyChunk:
        body_len = len(msg.body)
        if (
            self.last_message_stream_id is None
            or delta is None
            or self.last_message_stream_id != msg.message_stream_id
        ):
            return Chunk0(
                chunk_stream_id=msg.chunk_stream_id,
                timestamp=msg.timestamp,
                type=msg.type,
                message_stream_id=msg.message_stream_id,
                body_len=body_len,
                body=piece,
            )
        if self.last_type != msg.type or self.last_body_len != body_len:
            return Chunk1(
                chunk_stream_id=msg.chunk_stream_id,
                timestamp_delta=delta,
                type=msg.type,
                body_len=body_len,
                body=piece,
            )
        if self.last_timestamp_delta is None or self.last_timestamp_delta != delta:
            return Chunk2(
                chunk_stream_id=msg.chunk_stream_id,
                timestamp_delta=delta,
                body=piece,
            )
        return Chunk3(chunk_stream_id=msg.chunk_stream_id, body=piece)

    def write(self, msg: LegacyMessage) -> None:
        body = bytes(msg.body)
        body_len = len(body)
        chunk_size = self.owner.chunk_size
        writer = self.owner._writer

        delta: Optional[int] = None
        if self.last_timestamp is not None:
            diff = msg.timestamp - self.last_timestamp
            # a delta can only express forward movement
            if diff >= 0:
                delta = diff & _UINT32_MASK

        pos = 0
        first = True
        while True:
            piece = body[pos : pos + chunk_size]
            if first:
                first = False
                self._first_chunk(msg, delta, piece).write(writer)
                self.last_message_stream_id = msg.message_stream_id
                self.last_type = msg.type
                self.last_body_len = body_len
                self.last_timestamp = msg.timestamp
                if delta is not None:
                    self.last_timestamp_delta = delta
            else:
                Chunk3(chunk_stream_id=msg.chunk_stream_id, body=piece).write(writer)

            pos += len(piece)
            if pos >= body_len:
                return


class LegacyMessageWriter:
    """Writes messages to a stream, splitting them into chunks."""

    def __init__(self, writer: Any) -> None:
        self._writer = writer
        self.chunk_size = _DEFAULT_CHUNK_SIZE
        self._chunk_streams: dict[int, _WriterChunkStream] = {}

    def set_chunk_size(self, value: int) -> None:
        """Set the maximum chunk body size."""
        self.chunk_size = value

    def write(self, msg: LegacyMessage) -> None:
        """Write a message as one or more chunks."""
        stream = self._chunk_streams.get(msg.chunk_stream_id)
        if stream is None:
            stream = _WriterChunkStream(owner=self)
            self._chunk_streams[msg.chunk_stream_id] = stream
        stream.write(msg)
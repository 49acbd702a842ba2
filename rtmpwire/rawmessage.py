"""Raw RTMP messages assembled from and split into chunks."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Callable, Optional, Union

from .bytecounter import CountingReader, CountingWriter
from .chunk import Chunk0, Chunk1, Chunk2, Chunk3, MessageType

_UINT32_MASK = 0xFFFFFFFF
_DEFAULT_CHUNK_SIZE = 128

ChunkType = Union[Chunk0, Chunk1, Chunk2, Chunk3]


class ChunkStreamError(Exception):
    """Raised when a chunk stream is inconsistent or acknowledgements are missing."""


@dataclass
class RawMessage:
    """A message before its body is interpreted."""

    chunk_stream_id: int = 0
    timestamp: int = 0
    type: Union[MessageType, int] = 0
    message_stream_id: int = 0
    body: bytes = b""


@dataclass
class _ReaderChunkStream:
    owner: "RawMessageReader"
    timestamp: Optional[int] = None
    type: Union[MessageType, int, None] = None
    message_stream_id: Optional[int] = None
    body_len: Optional[int] = None
    body: Optional[bytearray] = None
    timestamp_delta: Optional[int] = None

    def _read_chunk(self, chunk_cls: type, body_size: int) -> Any:
        return self.owner._read_chunk(chunk_cls, body_size)

    def _message(self, body: bytes) -> RawMessage:
        return RawMessage(
            timestamp=self.timestamp,
            type=self.type,
            message_stream_id=self.message_stream_id,
            body=bytes(body),
        )

    def _pending(self, body: bytes) -> Optional[RawMessage]:
        """Return a message if ``body`` is complete, otherwise start accumulating."""
        if self.body_len != len(body):
            self.body = bytearray(body)
            return None
        return self._message(body)

    def read_message(self, typ: int) -> Optional[RawMessage]:
        """Consume one chunk; return a message once one is complete."""
        chunk_size = self.owner.chunk_size

        if typ == 0:
            if self.body is not None:
                raise ChunkStreamError("received type 0 chunk but expected type 3 chunk")
            c0 = self._read_chunk(Chunk0, chunk_size)
            self.message_stream_id = c0.message_stream_id
            self.type = c0.type
            self.timestamp = c0.timestamp
            self.body_len = c0.body_len
            self.timestamp_delta = None
            return self._pending(c0.body)

        if typ == 1:
            if self.timestamp is None:
                raise ChunkStreamError("received type 1 chunk without previous chunk")
            if self.body is not None:
                raise ChunkStreamError("received type 1 chunk but expected type 3 chunk")
            c1 = self._read_chunk(Chunk1, chunk_size)
            self.type = c1.type
            self.timestamp = (self.timestamp + c1.timestamp_delta) & _UINT32_MASK
            self.body_len = c1.body_len
            self.timestamp_delta = c1.timestamp_delta
            return self._pending(c1.body)

        if typ == 2:
            if self.timestamp is None:
                raise ChunkStreamError("received type 2 chunk without previous chunk")
            if self.body is not None:
                raise ChunkStreamError("received type 2 chunk but expected type 3 chunk")
            c2 = self._read_chunk(Chunk2, min(self.body_len, chunk_size))
            self.timestamp = (self.timestamp + c2.timestamp_delta) & _UINT32_MASK
            self.timestamp_delta = c2.timestamp_delta
            return self._pending(c2.body)

        if self.body is None and self.timestamp_delta is None:
            raise ChunkStreamError("received type 3 chunk without previous chunk")

        if self.body is not None:
            remaining = self.body_len - len(self.body)
            c3 = self._read_chunk(Chunk3, min(remaining, chunk_size))
            self.body += c3.body
            if self.body_len != len(self.body):
                return None
            body, self.body = self.body, None
            return self._message(body)

        c3 = self._read_chunk(Chunk3, min(self.body_len, chunk_size))
        self.timestamp = (self.timestamp + self.timestamp_delta) & _UINT32_MASK
        return self._pending(c3.body)


class RawMessageReader:
    """Reads raw messages from a counting reader, reassembling chunks.

    ``on_ack_needed`` is called with the received byte count whenever more
    than the window acknowledgement size has been received since the last
    acknowledgement.
    """

    def __init__(
        self,
        reader: CountingReader,
        on_ack_needed: Callable[[int], None],
    ) -> None:
        self._reader = reader
        self._on_ack_needed = on_ack_needed
        self.chunk_size = _DEFAULT_CHUNK_SIZE
        self._ack_window_size = 0
        self._last_ack_count = 0
        self._chunk_streams: dict[int, _ReaderChunkStream] = {}

    def set_chunk_size(self, value: int) -> None:
        """Set the maximum chunk body size."""
        self.chunk_size = value

    def set_window_ack_size(self, value: int) -> None:
        """Set the window acknowledgement size."""
        self._ack_window_size = value

    def _read_chunk(self, chunk_cls: type, body_size: int) -> Any:
        chunk = chunk_cls.read(self._reader, body_size)

        if self._ack_window_size != 0:
            count = self._reader.count()
            diff = (count - self._last_ack_count) & _UINT32_MASK
            if diff > self._ack_window_size:
                self._on_ack_needed(count)
                self._last_ack_count = (
                    self._last_ack_count + self._ack_window_size
                ) & _UINT32_MASK

        return chunk

    def read(self) -> RawMessage:
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

            msg = stream.read_message(typ)
            if msg is None:
                continue

            msg.chunk_stream_id = chunk_stream_id
            return msg


@dataclass
class _WriterChunkStream:
    owner: "RawMessageWriter"
    last_message_stream_id: Optional[int] = None
    last_type: Union[MessageType, int, None] = None
    last_body_len: Optional[int] = None
    last_timestamp: Optional[int] = None
    last_timestamp_delta: Optional[int] = None

    def _first_chunk(
        self, msg: RawMessage, delta: Optional[int], piece: bytes
    ) -> ChunkType:
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

    def write_message(self, msg: RawMessage) -> None:
        body = bytes(msg.body)
        body_len = len(body)
        chunk_size = self.owner.chunk_size

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
                self.owner._write_chunk(self._first_chunk(msg, delta, piece))
                self.last_message_stream_id = msg.message_stream_id
                self.last_type = msg.type
                self.last_body_len = body_len
                self.last_timestamp = msg.timestamp
                if delta is not None:
                    self.last_timestamp_delta = delta
            else:
                self.owner._write_chunk(
                    Chunk3(chunk_stream_id=msg.chunk_stream_id, body=piece)
                )

            pos += len(piece)
            if pos >= body_len:
                return


class RawMessageWriter:
    """Writes raw messages to a counting writer, splitting them into chunks."""

    def __init__(self, writer: CountingWriter) -> None:
        self._writer = writer
        self.chunk_size = _DEFAULT_CHUNK_SIZE
        self._ack_window_size = 0
        self._ack_value = 0
        self._chunk_streams: dict[int, _WriterChunkStream] = field(
            default_factory=dict
        ) if False else {}

    def set_chunk_size(self, value: int) -> None:
        """Set the maximum chunk body size."""
        self.chunk_size = value

    def set_window_ack_size(self, value: int) -> None:
        """Set the window acknowledgement size."""
        self._ack_window_size = value

    def set_acknowledge_value(self, value: int) -> None:
        """Record the byte count carried by the last received acknowledgement."""
        self._ack_value = value

    def _write_chunk(self, chunk: ChunkType) -> None:
        self._writer.write(chunk.encode())

        if self._ack_window_size != 0:
            diff = (self._writer.count() - self._ack_value) & _UINT32_MASK
            limit = (self._ack_window_size * 3 // 2) & _UINT32_MASK
            if diff > limit:
                raise ChunkStreamError("no acknowledge received within window")

    def write(self, msg: RawMessage) -> None:
        """Write a message as one or more chunks."""
        stream = self._chunk_streams.get(msg.chunk_stream_id)
        if stream is None:
            stream = _WriterChunkStream(owner=self)
            self._chunk_streams[msg.chunk_stream_id] = stream
        stream.write_message(msg)
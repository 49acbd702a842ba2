"""Reading and writing decoded RTMP messages."""

from __future__ import annotations

import contextlib
import struct
from typing import Callable

from .bytecounter import CountingReadWriter, CountingReader, CountingWriter
from .chunk import MessageType
from .control import (
    Message,
    MessageError,
    MsgAcknowledge,
    MsgSetChunkSize,
    MsgSetPeerBandwidth,
    MsgSetWindowAckSize,
    MsgUserControlPingRequest,
    MsgUserControlPingResponse,
    MsgUserControlSetBufferLength,
    MsgUserControlStreamBegin,
    MsgUserControlStreamDry,
    MsgUserControlStreamEOF,
    MsgUserControlStreamIsRecorded,
    UserControlType,
)
from .media import MsgAudio, MsgCommandAMF0, MsgDataAMF0, MsgVideo
from .rawmessage import ChunkStreamError, RawMessage, RawMessageReader, RawMessageWriter

_MESSAGE_CLASSES: dict[int, type[Message]] = {
    MessageType.SET_CHUNK_SIZE: MsgSetChunkSize,
    MessageType.ACKNOWLEDGE: MsgAcknowledge,
    MessageType.SET_WINDOW_ACK_SIZE: MsgSetWindowAckSize,
    MessageType.SET_PEER_BANDWIDTH: MsgSetPeerBandwidth,
    MessageType.COMMAND_AMF0: MsgCommandAMF0,
    MessageType.DATA_AMF0: MsgDataAMF0,
    MessageType.AUDIO: MsgAudio,
    MessageType.VIDEO: MsgVideo,
}

_USER_CONTROL_CLASSES: dict[int, type[Message]] = {
    UserControlType.STREAM_BEGIN: MsgUserControlStreamBegin,
    UserControlType.STREAM_EOF: MsgUserControlStreamEOF,
    UserControlType.STREAM_DRY: MsgUserControlStreamDry,
    UserControlType.SET_BUFFER_LENGTH: MsgUserControlSetBufferLength,
    UserControlType.STREAM_IS_RECORDED: MsgUserControlStreamIsRecorded,
    UserControlType.PING_REQUEST: MsgUserControlPingRequest,
    UserControlType.PING_RESPONSE: MsgUserControlPingResponse,
}


def _message_class(raw: RawMessage) -> type[Message]:
    if raw.type == MessageType.USER_CONTROL:
        if len(raw.body) < 2:
            raise MessageError("invalid body size")
        (sub_type,) = struct.unpack_from(">H", bytes(raw.body))
        try:
            return _USER_CONTROL_CLASSES[sub_type]
        except KeyError:
            raise MessageError("invalid user control type") from None
    try:
        return _MESSAGE_CLASSES[int(raw.type)]
    except KeyError:
        raise MessageError("unhandled message") from None


class MessageReader:
    """Reads decoded messages, following chunk size and window size changes."""

    def __init__(self, reader: CountingReader, on_ack_needed: Callable[[int], None]) -> None:
        self._raw = RawMessageReader(reader, on_ack_needed)

    def read(self) -> Message:
        """Read the next message."""
        raw = self._raw.read()
        msg = _message_class(raw).unmarshal(raw)

        if isinstance(msg, MsgSetChunkSize):
            self._raw.set_chunk_size(msg.value)
        elif isinstance(msg, MsgSetWindowAckSize):
            self._raw.set_window_ack_size(msg.value)

        return msg


class MessageWriter:
    """Writes messages, applying chunk size and window size changes it sends."""

    def __init__(self, writer: CountingWriter) -> None:
        self._raw = RawMessageWriter(writer)

    def set_acknowledge_value(self, value: int) -> None:
        """Record the value of the last received acknowledgement."""
        self._raw.set_acknowledge_value(value)

    def write(self, msg: Message) -> None:
        """Write a message."""
        self._raw.write(msg.marshal())

        if isinstance(msg, MsgSetChunkSize):
            self._raw.set_chunk_size(msg.value)
        elif isinstance(msg, MsgSetWindowAckSize):
            self._raw.set_window_ack_size(msg.value)


class MessageReadWriter:
    """Message reader and writer over one connection.

    Acknowledgements are sent automatically when the receive window fills,
    received acknowledgements are passed to the writer, and ping requests
    are answered.
    """

    def __init__(self, stream: CountingReadWriter) -> None:
        self._writer = MessageWriter(stream.writer)
        self._reader = MessageReader(
            stream.reader,
            lambda count: self._writer.write(MsgAcknowledge(value=count)),
        )

    def read(self) -> Message:
        """Read the next message."""
        msg = self._reader.read()

        if isinstance(msg, MsgAcknowledge):
            self._writer.set_acknowledge_value(msg.value)
        elif isinstance(msg, MsgUserControlPingRequest):
            with contextlib.suppress(ChunkStreamError, MessageError, OSError):
                self._writer.write(MsgUserControlPingRequest(server_time=msg.server_time))

        return msg

    def write(self, msg: Message) -> None:
        """Write a message."""
        self._writer.write(msg)
"""Protocol control and user control messages."""

from __future__ import annotations

import abc
import enum
import struct
from dataclasses import dataclass

from .chunk import MessageType
from .rawmessage import RawMessage

CONTROL_CHUNK_STREAM_ID = 2
"""Chunk stream ID used for control messages."""

_UINT32_MASK = 0xFFFFFFFF


class MessageError(Exception):
    """Raised when a raw message cannot be decoded into a message."""


class Message(abc.ABC):
    """A decoded RTMP message that can be turned back into a raw message."""

    @classmethod
    @abc.abstractmethod
    def unmarshal(cls, raw: RawMessage) -> "Message":
        """Decode ``raw`` into a new message."""

    @abc.abstractmethod
    def marshal(self) -> RawMessage:
        """Encode the message as a raw message."""


class UserControlType(enum.IntEnum):
    """Event types carried by user control messages."""

    STREAM_BEGIN = 0
    STREAM_EOF = 1
    STREAM_DRY = 2
    SET_BUFFER_LENGTH = 3
    STREAM_IS_RECORDED = 4
    PING_REQUEST = 6
    PING_RESPONSE = 7


def _check_protocol_control(raw: RawMessage, size: int) -> None:
    if raw.chunk_stream_id != CONTROL_CHUNK_STREAM_ID:
        raise MessageError("unexpected chunk stream ID")
    if len(raw.body) != size:
        raise MessageError("unexpected body size")


def _check_user_control(raw: RawMessage, size: int) -> None:
    if raw.chunk_stream_id != CONTROL_CHUNK_STREAM_ID:
        raise MessageError("unexpected chunk stream ID")
    if len(raw.body) != size:
        raise MessageError("invalid body size")


def _u32(value: int) -> bytes:
    return struct.pack(">I", value & _UINT32_MASK)


def _control(msg_type: MessageType, body: bytes) -> RawMessage:
    return RawMessage(
        chunk_stream_id=CONTROL_CHUNK_STREAM_ID,
        type=msg_type,
        body=body,
    )


def _user_control(event: UserControlType, *values: int) -> RawMessage:
    body = struct.pack(">H", int(event)) + b"".join(_u32(v) for v in values)
    return _control(MessageType.USER_CONTROL, body)


def _user_control_value(raw: RawMessage) -> int:
    _check_user_control(raw, 6)
    return struct.unpack_from(">I", raw.body, 2)[0]


@dataclass
class MsgAcknowledge(Message):
    """Acknowledgement of the number of bytes received."""

    value: int = 0

    @classmethod
    def unmarshal(cls, raw: RawMessage) -> "MsgAcknowledge":
        _check_protocol_control(raw, 4)
        return cls(value=struct.unpack(">I", bytes(raw.body))[0])

    def marshal(self) -> RawMessage:
        return _control(MessageType.ACKNOWLEDGE, _u32(self.value))


@dataclass
class MsgSetChunkSize(Message):
    """Sets the maximum chunk size."""

    value: int = 0

    @classmethod
    def unmarshal(cls, raw: RawMessage) -> "MsgSetChunkSize":
        _check_protocol_control(raw, 4)
        return cls(value=struct.unpack(">I", bytes(raw.body))[0])

    def marshal(self) -> RawMessage:
        return _control(MessageType.SET_CHUNK_SIZE, _u32(self.value))


@dataclass
class MsgSetPeerBandwidth(Message):
    """Sets the peer's output bandwidth and the limit type."""

    value: int = 0
    type: int = 0

    @classmethod
    def unmarshal(cls, raw: RawMessage) -> "MsgSetPeerBandwidth":
        _check_protocol_control(raw, 5)
        body = bytes(raw.body)
        return cls(value=struct.unpack_from(">I", body)[0], type=body[4])

    def marshal(self) -> RawMessage:
        body = _u32(self.value) + bytes([self.type & 0xFF])
        # The message goes out under the set-chunk-size type identifier.
        return _control(MessageType.SET_CHUNK_SIZE, body)


@dataclass
class MsgSetWindowAckSize(Message):
    """Sets the window acknowledgement size."""

    value: int = 0

    @classmethod
    def unmarshal(cls, raw: RawMessage) -> "MsgSetWindowAckSize":
        _check_protocol_control(raw, 4)
        return cls(value=struct.unpack(">I", bytes(raw.body))[0])

    def marshal(self) -> RawMessage:
        return _control(MessageType.SET_WINDOW_ACK_SIZE, _u32(self.value))


@dataclass
class MsgUserControlPingRequest(Message):
    """User control ping request."""

    server_time: int = 0

    @classmethod
    def unmarshal(cls, raw: RawMessage) -> "MsgUserControlPingRequest":
        return cls(server_time=_user_control_value(raw))

    def marshal(self) -> RawMessage:
        return _user_control(UserControlType.PING_REQUEST, self.server_time)


@dataclass
class MsgUserControlPingResponse(Message):
    """User control ping response."""

    server_time: int = 0

    @classmethod
    def unmarshal(cls, raw: RawMessage) -> "MsgUserControlPingResponse":
        return cls(server_time=_user_control_value(raw))

    def marshal(self) -> RawMessage:
        return _user_control(UserControlType.PING_RESPONSE, self.server_time)


@dataclass
class MsgUserControlSetBufferLength(Message):
    """User control message setting a stream's buffer length."""

    stream_id: int = 0
    buffer_length: int = 0

    @classmethod
    def unmarshal(cls, raw: RawMessage) -> "MsgUserControlSetBufferLength":
        _check_user_control(raw, 10)
        stream_id, buffer_length = struct.unpack_from(">II", bytes(raw.body), 2)
        return cls(stream_id=stream_id, buffer_length=buffer_length)

    def marshal(self) -> RawMessage:
        return _user_control(
            UserControlType.SET_BUFFER_LENGTH, self.stream_id, self.buffer_length
        )


@dataclass
class MsgUserControlStreamBegin(Message):
    """User control message announcing the start of a stream."""

    stream_id: int = 0

    @classmethod
    def unmarshal(cls, raw: RawMessage) -> "MsgUserControlStreamBegin":
        return cls(stream_id=_user_control_value(raw))

    def marshal(self) -> RawMessage:
        return _user_control(UserControlType.STREAM_BEGIN, self.stream_id)


@dataclass
class MsgUserControlStreamDry(Message):
    """User control message announcing that a stream has no more data."""

    stream_id: int = 0

    @classmethod
    def unmarshal(cls, raw: RawMessage) -> "MsgUserControlStreamDry":
        return cls(stream_id=_user_control_value(raw))

    def marshal(self) -> RawMessage:
        return _user_control(UserControlType.STREAM_DRY, self.stream_id)


@dataclass
class MsgUserControlStreamEOF(Message):
    """User control message announcing the end of a stream."""

    stream_id: int = 0

    @classmethod
    def unmarshal(cls, raw: RawMessage) -> "MsgUserControlStreamEOF":
        return cls(stream_id=_user_control_value(raw))

    def marshal(self) -> RawMessage:
        return _user_control(UserControlType.STREAM_EOF, self.stream_id)


@dataclass
class MsgUserControlStreamIsRecorded(Message):
    """User control message announcing that a stream is recorded."""

    stream_id: int = 0

    @classmethod
    def unmarshal(cls, raw: RawMessage) -> "MsgUserControlStreamIsRecorded":
        return cls(stream_id=_user_control_value(raw))

    def marshal(self) -> RawMessage:
        return _user_control(UserControlType.STREAM_IS_RECORDED, self.stream_id)
import io

import pytest

from rtmpwire.chunk import MessageType
from rtmpwire.legacy_chunk import (
    Chunk0,
    Chunk1,
    Chunk2,
    Chunk3,
    ChunkHeaderError,
    LegacyMessage,
)
from rtmpwire.legacy_messaging import LegacyMessageReader, LegacyMessageWriter
from rtmpwire.rawmessage import ChunkStreamError


def _written(*chunks):
    buf = io.BytesIO()
    for chunk in chunks:
        chunk.write(buf)
    return buf.getvalue()


def _reader(data):
    return LegacyMessageReader(io.BytesIO(data))


def test_writer_first_message_is_chunk0():
    buf = io.BytesIO()
    w = LegacyMessageWriter(buf)
    body = bytes([0x01]) * 10
    w.write(
        LegacyMessage(
            chunk_stream_id=5,
            timestamp=100,
            type=MessageType.AUDIO,
            message_stream_id=1,
            body=body,
        )
    )
    assert buf.getvalue() == _written(
        Chunk0(
            chunk_stream_id=5,
            timestamp=100,
            type=MessageType.AUDIO,
            message_stream_id=1,
            body_len=10,
            body=body,
        )
    )


def test_writer_chunk1_chunk2_chunk3_sequence():
    buf = io.BytesIO()
    w = LegacyMessageWriter(buf)
    body = bytes([0x02]) * 10

    def msg(ts, typ):
        return LegacyMessage(
            chunk_stream_id=5,
            timestamp=ts,
            type=typ,
            message_stream_id=1,
            body=body,
        )

    w.write(msg(100, MessageType.AUDIO))
    w.write(msg(110, MessageType.VIDEO))
    w.write(msg(130, MessageType.VIDEO))
    w.write(msg(150, MessageType.VIDEO))

    expected = _written(
        Chunk0(
            chunk_stream_id=5,
            timestamp=100,
            type=MessageType.AUDIO,
            message_stream_id=1,
            body_len=10,
            body=body,
        ),
        Chunk1(
            chunk_stream_id=5,
            timestamp_delta=10,
            type=MessageType.VIDEO,
            body_len=10,
            body=body,
        ),
        Chunk2(chunk_stream_id=5, timestamp_delta=20, body=body),
        Chunk3(chunk_stream_id=5, body=body),
    )
    assert buf.getvalue() == expected


def test_writer_backward_timestamp_uses_chunk0():
    buf = io.BytesIO()
    w = LegacyMessageWriter(buf)
    body = b"abc"
    first = LegacyMessage(
        chunk_stream_id=3, timestamp=500, type=MessageType.AUDIO, body=body
    )
    second = LegacyMessage(
        chunk_stream_id=3, timestamp=400, type=MessageType.AUDIO, body=body
    )
    w.write(first)
    w.write(second)
    expected = _written(
        Chunk0(chunk_stream_id=3, timestamp=500, type=MessageType.AUDIO, body_len=3, body=body),
        Chunk0(chunk_stream_id=3, timestamp=400, type=MessageType.AUDIO, body_len=3, body=body),
    )
    assert buf.getvalue() == expected


def test_writer_new_message_stream_id_uses_chunk0():
    buf = io.BytesIO()
    w = LegacyMessageWriter(buf)
    body = b"xy"
    w.write(LegacyMessage(chunk_stream_id=3, timestamp=1, message_stream_id=1, body=body))
    w.write(LegacyMessage(chunk_stream_id=3, timestamp=2, message_stream_id=2, body=body))
    expected = _written(
        Chunk0(chunk_stream_id=3, timestamp=1, message_stream_id=1, body_len=2, body=body),
        Chunk0(chunk_stream_id=3, timestamp=2, message_stream_id=2, body_len=2, body=body),
    )
    assert buf.getvalue() == expected


def test_writer_splits_long_body():
    buf = io.BytesIO()
    w = LegacyMessageWriter(buf)
    body = bytes(range(200))
    w.write(
        LegacyMessage(
            chunk_stream_id=5,
            timestamp=0,
            type=MessageType.VIDEO,
            message_stream_id=0,
            body=body,
        )
    )
    expected = _written(
        Chunk0(
            chunk_stream_id=5,
            type=MessageType.VIDEO,
            body_len=200,
            body=body[:128],
        ),
        Chunk3(chunk_stream_id=5, body=body[128:]),
    )
    out = buf.getvalue()
    assert out == expected
    assert out[12 + 128] == 0xC5


def test_writer_respects_chunk_size():
    buf = io.BytesIO()
    w = LegacyMessageWriter(buf)
    w.set_chunk_size(64)
    body = bytes([7]) * 150
    w.write(LegacyMessage(chunk_stream_id=4, type=MessageType.AUDIO, body=body))
    expected = _written(
        Chunk0(chunk_stream_id=4, type=MessageType.AUDIO, body_len=150, body=body[:64]),
        Chunk3(chunk_stream_id=4, body=body[64:128]),
        Chunk3(chunk_stream_id=4, body=body[128:]),
    )
    assert buf.getvalue() == expected


def test_reader_reads_single_chunk_message():
    body = bytes([0x09]) * 20
    buf = io.BytesIO()
    LegacyMessageWriter(buf).write(
        LegacyMessage(chunk_stream_id=4, type=MessageType.AUDIO, body=body)
    )
    msg = _reader(buf.getvalue()).read()
    assert msg == LegacyMessage(
        chunk_stream_id=4,
        timestamp=0,
        type=MessageType.AUDIO,
        message_stream_id=0,
        body=body,
    )


def test_reader_message_stream_id_of_written_chunk0():
    data = _written(
        Chunk0(chunk_stream_id=4, message_stream_id=1, body_len=2, body=b"ab")
    )
    msg = _reader(data).read()
    assert msg.message_stream_id == 16777216


def test_reader_chunk1_applies_delta():
    delta = 0x070007
    data = _written(
        Chunk0(chunk_stream_id=6, type=MessageType.AUDIO, body_len=4, body=b"aaaa"),
        Chunk1(
            chunk_stream_id=6,
            timestamp_delta=delta,
            type=MessageType.VIDEO,
            body_len=4,
            body=b"bbbb",
        ),
    )
    r = _reader(data)
    first = r.read()
    second = r.read()
    assert first.body == b"aaaa"
    assert second.type == MessageType.VIDEO
    assert second.chunk_stream_id == 6
    assert second.body == b"bbbb"
    assert second.timestamp == delta * 2


def test_reader_chunk2_keeps_type():
    data = _written(
        Chunk0(chunk_stream_id=6, type=MessageType.AUDIO, body_len=4, body=b"aaaa")
    ) + bytes([0x80 | 6, 0x07, 0x00, 0x07]) + b"cccc"
    r = _reader(data)
    r.read()
    msg = r.read()
    assert msg.type == MessageType.AUDIO
    assert msg.body == b"cccc"
    assert msg.timestamp == 0x070007 * 2


def test_reader_type1_without_previous_chunk():
    data = _written(Chunk1(chunk_stream_id=3, body_len=1, body=b"a"))
    with pytest.raises(ChunkStreamError, match="type 1 chunk without previous chunk"):
        _reader(data).read()


def test_reader_type3_without_previous_chunk():
    data = bytes([0xC0 | 3]) + b"a"
    with pytest.raises(ChunkStreamError, match="type 3 chunk without previous chunk"):
        _reader(data).read()


def test_reader_type3_after_complete_message_unsupported():
    data = _written(
        Chunk0(chunk_stream_id=3, body_len=1, body=b"a"),
        Chunk3(chunk_stream_id=3, body=b"b"),
    )
    r = _reader(data)
    assert r.read().body == b"a"
    with pytest.raises(ChunkStreamError, match="unsupported"):
        r.read()


def test_reader_type0_during_partial_message():
    data = _written(
        Chunk0(chunk_stream_id=3, body_len=200, body=bytes(128)),
        Chunk0(chunk_stream_id=3, body_len=1, body=b"a"),
    )
    with pytest.raises(ChunkStreamError, match="expected type 3 chunk"):
        _reader(data).read()


def test_reader_continuation_header_rejected():
    data = _written(
        Chunk0(chunk_stream_id=3, body_len=200, body=bytes(128)),
        Chunk3(chunk_stream_id=3, body=bytes(72)),
    )
    with pytest.raises(ChunkHeaderError):
        _reader(data).read()


def test_reader_empty_stream():
    with pytest.raises(EOFError):
        _reader(b"").read()


def test_reader_chunk_size_controls_partial_reads():
    body = bytes([3]) * 150
    data = _written(
        Chunk0(chunk_stream_id=2, type=MessageType.VIDEO, body_len=150, body=body)
    )
    r = _reader(data)
    r.set_chunk_size(256)
    msg = r.read()
    assert msg.body == body
    assert msg.type == MessageType.VIDEO
    assert msg.chunk_stream_id == 2
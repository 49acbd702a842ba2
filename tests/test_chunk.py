import io

import pytest

from rtmpwire.chunk import Chunk0, Chunk1, Chunk2, Chunk3, MessageType

BODY = bytes([0x01, 0x02, 0x03, 0x04])

CHUNK0_ENC = bytes(
    [
        0x19, 0xB1, 0xA1, 0x91, 0x0, 0x0, 0x14, 0x14,
        0x3, 0x5D, 0x17, 0x3D, 0x1, 0x2, 0x3, 0x4,
    ]
)
CHUNK0_DEC = Chunk0(
    chunk_stream_id=25,
    timestamp=11641233,
    type=MessageType.COMMAND_AMF0,
    message_stream_id=56432445,
    body_len=20,
    body=BODY,
)

CHUNK1_ENC = bytes(
    [
        0x59, 0xB1, 0xA1, 0x91, 0x0, 0x0, 0x14, 0x14,
        0x1, 0x2, 0x3, 0x4,
    ]
)
CHUNK1_DEC = Chunk1(
    chunk_stream_id=25,
    timestamp_delta=11641233,
    type=MessageType.COMMAND_AMF0,
    body_len=20,
    body=BODY,
)

CHUNK2_ENC = bytes([0x99, 0xB1, 0xA1, 0x91, 0x1, 0x2, 0x3, 0x4])
CHUNK2_DEC = Chunk2(chunk_stream_id=25, timestamp_delta=11641233, body=BODY)

CHUNK3_ENC = bytes([0xD9, 0x1, 0x2, 0x3, 0x4])
CHUNK3_DEC = Chunk3(chunk_stream_id=25, body=BODY)


def test_chunk0_read():
    assert Chunk0.read(io.BytesIO(CHUNK0_ENC), 4) == CHUNK0_DEC


def test_chunk0_encode():
    assert CHUNK0_DEC.encode() == CHUNK0_ENC


def test_chunk1_read():
    assert Chunk1.read(io.BytesIO(CHUNK1_ENC), 4) == CHUNK1_DEC


def test_chunk1_encode():
    assert CHUNK1_DEC.encode() == CHUNK1_ENC


def test_chunk2_read():
    assert Chunk2.read(io.BytesIO(CHUNK2_ENC), 4) == CHUNK2_DEC


def test_chunk2_encode():
    assert CHUNK2_DEC.encode() == CHUNK2_ENC


def test_chunk3_read():
    assert Chunk3.read(io.BytesIO(CHUNK3_ENC), 4) == CHUNK3_DEC


def test_chunk3_encode():
    assert CHUNK3_DEC.encode() == CHUNK3_ENC


def test_chunk0_read_type_is_enum():
    chunk = Chunk0.read(io.BytesIO(CHUNK0_ENC), 4)
    assert chunk.type is MessageType.COMMAND_AMF0


def test_chunk0_unknown_type_kept_as_int():
    enc = bytearray(CHUNK0_ENC)
    enc[7] = 99
    chunk = Chunk0.read(io.BytesIO(bytes(enc)), 4)
    assert chunk.type == 99


def test_chunk0_body_limited_by_max_len():
    chunk = Chunk0(
        chunk_stream_id=3,
        timestamp=0,
        type=MessageType.AUDIO,
        message_stream_id=1,
        body_len=10,
        body=bytes(range(10)),
    )
    decoded = Chunk0.read(io.BytesIO(chunk.encode()), 6)
    assert decoded.body == bytes(range(6))
    assert decoded.body_len == 10


@pytest.mark.parametrize(
    "chunk, reader_args",
    [
        (Chunk1(chunk_stream_id=5, timestamp_delta=40, type=MessageType.VIDEO, body_len=3, body=b"abc"), (128,)),
        (Chunk2(chunk_stream_id=63, timestamp_delta=0xFFFFFF, body=b"xy"), (2,)),
        (Chunk3(chunk_stream_id=2, body=b""), (0,)),
    ],
)
def test_round_trip(chunk, reader_args):
    decoded = type(chunk).read(io.BytesIO(chunk.encode()), *reader_args)
    assert decoded == chunk


def test_truncated_header_raises():
    with pytest.raises(EOFError):
        Chunk0.read(io.BytesIO(CHUNK0_ENC[:5]), 4)


def test_truncated_body_raises():
    with pytest.raises(EOFError):
        Chunk3.read(io.BytesIO(CHUNK3_ENC[:3]), 4)
import pytest

from rtmpwire.chunk import MessageType
from rtmpwire.control import MessageError
from rtmpwire.media import (
    AAC_SEQHDR,
    AVC_SEQHDR,
    SOUND_16BIT,
    SOUND_44KHZ,
    SOUND_STEREO,
    MsgAudio,
    MsgCommandAMF0,
    MsgDataAMF0,
    MsgVideo,
)
from rtmpwire.rawmessage import RawMessage

H264_CONFIG = bytes(
    [
        0x1, 0x64, 0x0,
        0xc, 0xff, 0xe1, 0x0, 0x15, 0x67, 0x64, 0x0,
        0xc, 0xac, 0x3b, 0x50, 0xb0, 0x4b, 0x42, 0x0,
        0x0, 0x3, 0x0, 0x2, 0x0, 0x0, 0x3, 0x0,
        0x3d, 0x8, 0x1, 0x0, 0x4, 0x68, 0xee, 0x3c,
        0x80,
    ]
)


def _audio():
    return MsgAudio(
        chunk_stream_id=4,
        message_stream_id=16777216,
        rate=SOUND_44KHZ,
        depth=SOUND_16BIT,
        channels=SOUND_STEREO,
        aac_type=AAC_SEQHDR,
        payload=bytes([0x12, 0x10]),
    )


def _video():
    return MsgVideo(
        chunk_stream_id=6,
        message_stream_id=16777216,
        is_key_frame=True,
        h264_type=AVC_SEQHDR,
        payload=H264_CONFIG,
    )


def test_audio_marshal_wire():
    raw = _audio().marshal()
    assert raw.type == MessageType.AUDIO
    assert raw.chunk_stream_id == 4
    assert raw.message_stream_id == 16777216
    assert raw.body == b"\xaf\x00\x12\x10"


def test_audio_round_trip():
    msg = _audio()
    msg.dts = 1234
    assert MsgAudio.unmarshal(msg.marshal()) == msg


def test_audio_too_short():
    with pytest.raises(MessageError, match="invalid body size"):
        MsgAudio.unmarshal(RawMessage(type=MessageType.AUDIO, body=b"\xaf"))


def test_audio_unsupported_codec():
    with pytest.raises(MessageError, match="unsupported audio codec: 2"):
        MsgAudio.unmarshal(RawMessage(type=MessageType.AUDIO, body=b"\x20\x00"))


def test_video_marshal_wire():
    raw = _video().marshal()
    assert raw.type == MessageType.VIDEO
    assert raw.body[:5] == b"\x17\x00\x00\x00\x00"
    assert raw.body[5:] == H264_CONFIG


def test_video_round_trip():
    msg = _video()
    msg.pts_delta = 40
    msg.dts = 900
    assert MsgVideo.unmarshal(msg.marshal()) == msg


def test_video_inter_frame_round_trip():
    msg = MsgVideo(chunk_stream_id=6, is_key_frame=False, h264_type=1, payload=b"\x01\x02")
    decoded = MsgVideo.unmarshal(msg.marshal())
    assert decoded.is_key_frame is False
    assert decoded == msg


def test_video_too_short():
    with pytest.raises(MessageError, match="invalid body size"):
        MsgVideo.unmarshal(RawMessage(type=MessageType.VIDEO, body=b"\x17\x00\x00\x00"))


def test_video_unsupported_codec():
    with pytest.raises(MessageError, match="unsupported video codec: 2"):
        MsgVideo.unmarshal(RawMessage(type=MessageType.VIDEO, body=b"\x12\x00\x00\x00\x00"))


def test_command_round_trip():
    msg = MsgCommandAMF0(
        chunk_stream_id=5,
        message_stream_id=16777216,
        payload=[
            "onStatus",
            5.0,
            None,
            {
                "level": "status",
                "code": "NetStream.Publish.Start",
                "description": "publish start",
            },
        ],
    )
    raw = msg.marshal()
    assert raw.type == MessageType.COMMAND_AMF0
    assert MsgCommandAMF0.unmarshal(raw) == msg


def test_data_round_trip():
    msg = MsgDataAMF0(
        chunk_stream_id=4,
        message_stream_id=16777216,
        payload=[
            "onMetaData",
            {"videodatarate": 0.0, "videocodecid": 7.0, "audiodatarate": 0.0, "audiocodecid": 10.0},
        ],
    )
    raw = msg.marshal()
    assert raw.type == MessageType.DATA_AMF0
    assert MsgDataAMF0.unmarshal(raw) == msg


def test_command_with_bad_body_raises():
    with pytest.raises(MessageError):
        MsgCommandAMF0.unmarshal(RawMessage(type=MessageType.COMMAND_AMF0, body=b"\xff"))
# rtmpwire

Pure-Python building blocks for the RTMP wire protocol. The package uses
only the standard library.

## Modules

- `rtmpwire.bytecounter`: `CountingReader`, `CountingWriter` and
  `CountingReadWriter`. They wrap binary streams and count the bytes that
  pass through them. The acknowledgement window relies on these counts.
  `CountingReader` is buffered and provides `read`, `read_byte`,
  `unread_byte` and `count`.
- `rtmpwire.handshake`: the `C0S0`, `C1S1` and `C2S2` handshake packets, with
  HMAC-SHA256 digest signing and validation. A wrong version byte or a
  signature that does not validate raises `HandshakeError`. After a `C1S1` is
  read or written, its `digest` field holds the key that the peer's
  `C2S2` is signed with.
- `rtmpwire.chunk`: the four chunk header formats, `Chunk0` to `Chunk3`, each
  with a `read` class method and an `encode` method. The module also
  defines the `MessageType` enumeration.
- `rtmpwire.rawmessage`: `RawMessageReader` and `RawMessageWriter`. They turn
  `RawMessage` objects into chunks and back, keeping per-chunk-stream
  state.
  - The reader calls an `on_ack_needed` callback once more bytes than the
    window acknowledgement size have arrived.
  - The writer raises `ChunkStreamError` ("no acknowledge received within
    window") when it gets too far ahead of the last acknowledgement value.
- `rtmpwire.control`: protocol control messages (`MsgAcknowledge`,
  `MsgSetChunkSize`, `MsgSetPeerBandwidth`, `MsgSetWindowAckSize`) and user
  control messages (`MsgUserControlStreamBegin`, `MsgUserControlStreamEOF`,
  `MsgUserControlStreamDry`, `MsgUserControlStreamIsRecorded`,
  `MsgUserControlSetBufferLength`, `MsgUserControlPingRequest`,
  `MsgUserControlPingResponse`). Every message has `unmarshal` (class method)
  and `marshal`. A body that cannot be decoded raises `MessageError`.
- `rtmpwire.amf0`: `encode_values` and `decode_values` for sequences of AMF0
  values. Supported values are numbers, booleans, strings, objects (Python
  mappings), strict arrays, null and dates. Failures raise `AMFError`.
- `rtmpwire.media`: `MsgAudio` (AAC), `MsgVideo` (H264), `MsgCommandAMF0` and
  `MsgDataAMF0`.
- `rtmpwire.msgio`: `MessageReader`, `MessageWriter` and `MessageReadWriter`,
  which work with the typed messages above.
  - The reader and the writer apply the chunk size and window size changes
    they see.
  - `MessageReadWriter` sends `MsgAcknowledge` when the receive window
    fills.
  - It passes received acknowledgements on to its writer.
  - It answers a ping request by writing a `MsgUserControlPingRequest`
    with the same server time.
- `rtmpwire.legacy_chunk`, `rtmpwire.legacy_handshake` and
  `rtmpwire.legacy_messaging`: an earlier, simpler chunk, handshake and
  message reader/writer layer. Its wire behaviour differs in places from
  the modules above.

## Example

```python
import io

from rtmpwire.bytecounter import CountingReader, CountingWriter
from rtmpwire.chunk import MessageType
from rtmpwire.rawmessage import RawMessage, RawMessageReader, RawMessageWriter

buf = io.BytesIO()
writer = RawMessageWriter(CountingWriter(buf))
writer.write(RawMessage(
    chunk_stream_id=3,
    timestamp=0,
    type=MessageType.COMMAND_AMF0,
    message_stream_id=0,
    body=b"\x02\x00\x07connect",
))

buf.seek(0)
reader = RawMessageReader(CountingReader(buf), lambda count: None)
msg = reader.read()
assert msg.body == b"\x02\x00\x07connect"
```

## What it does not do

The package works on streams you supply. It does not:

- open sockets;
- run an RTMP server or client;
- drive a full connect, publish or play exchange;
- turn stream metadata or decoder configurations into media tracks.

## Running the tests

```
pip install -e ".[test]"
pytest
```
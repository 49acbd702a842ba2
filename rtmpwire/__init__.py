"""RTMP wire protocol: handshake, chunk stream framing and message codecs."""

__version__ = "0.1.0"

__all__ = [
    "amf0",
    "bytecounter",
    "chunk",
    "control",
    "handshake",
    "legacy_chunk",
    "legacy_handshake",
    "legacy_messaging",
    "media",
    "msgio",
    "rawmessage",
]
"""Encoding and decoding of AMF0 value sequences."""

from __future__ import annotations

import struct
from collections.abc import Mapping
from datetime import datetime, timezone
from typing import Any, Iterable

_NUMBER = 0x00
_BOOLEAN = 0x01
_STRING = 0x02
_OBJECT = 0x03
_NULL = 0x05
_UNDEFINED = 0x06
_ECMA_ARRAY = 0x08
_OBJECT_END = 0x09
_STRICT_ARRAY = 0x0A
_DATE = 0x0B
_LONG_STRING = 0x0C

_MAX_SHORT_STRING = 0xFFFF


class AMFError(Exception):
    """Raised when values cannot be encoded to or decoded from AMF0."""


def _encode_utf8(text: str) -> bytes:
    try:
        return text.encode("utf-8")
    except UnicodeEncodeError as exc:
        raise AMFError(f"invalid string: {exc}") from exc


def _encode_key(out: bytearray, key: Any) -> None:
    if not isinstance(key, str):
        raise AMFError(f"object keys must be strings, not {type(key).__name__}")
    raw = _encode_utf8(key)
    if len(raw) > _MAX_SHORT_STRING:
        raise AMFError("object key too long")
    out += struct.pack(">H", len(raw))
    out += raw


def _encode_properties(out: bytearray, mapping: Mapping) -> None:
    for key, item in mapping.items():
        _encode_key(out, key)
        _encode(out, item)
    out += bytes([0x00, 0x00, _OBJECT_END])


def _encode(out: bytearray, value: Any) -> None:
    if value is None:
        out.append(_NULL)
    elif isinstance(value, bool):
        out += bytes([_BOOLEAN, 1 if value else 0])
    elif isinstance(value, (int, float)):
        try:
            number = float(value)
        except OverflowError as exc:
            raise AMFError("number out of range") from exc
        out.append(_NUMBER)
        out += struct.pack(">d", number)
    elif isinstance(value, str):
        raw = _encode_utf8(value)
        if len(raw) > _MAX_SHORT_STRING:
            out.append(_LONG_STRING)
            out += struct.pack(">I", len(raw))
        else:
            out.append(_STRING)
            out += struct.pack(">H", len(raw))
        out += raw
    elif isinstance(value, Mapping):
        out.append(_OBJECT)
        _encode_properties(out, value)
    elif isinstance(value, (list, tuple)):
        out.append(_STRICT_ARRAY)
        out += struct.pack(">I", len(value))
        for item in value:
            _encode(out, item)
    elif isinstance(value, datetime):
        moment = value if value.tzinfo else value.replace(tzinfo=timezone.utc)
        out.append(_DATE)
        out += struct.pack(">dh", moment.timestamp() * 1000.0, 0)
    else:
        raise AMFError(f"unsupported value type {type(value).__name__}")


def encode_values(values: Iterable[Any]) -> bytes:
    """Encode a sequence of Python values as consecutive AMF0 values."""
    out = bytearray()
    for value in values:
        _encode(out, value)
    return bytes(out)


class _Decoder:
    def __init__(self, data: bytes) -> None:
        self._data = data
        self.pos = 0

    def at_end(self) -> bool:
        return self.pos >= len(self._data)

    def _take(self, size: int) -> bytes:
        end = self.pos + size
        if end > len(self._data):
            raise AMFError("truncated AMF0 data")
        chunk = self._data[self.pos : end]
        self.pos = end
        return chunk

    def _text(self, size: int) -> str:
        try:
            return self._take(size).decode("utf-8")
        except UnicodeDecodeError as exc:
            raise AMFError(f"invalid string: {exc}") from exc

    def _short_string(self) -> str:
        (size,) = struct.unpack(">H", self._take(2))
        return self._text(size)

    def _properties(self) -> dict[str, Any]:
        result: dict[str, Any] = {}
        while True:
            key = self._short_string()
            if not key:
                if self._take(1)[0] != _OBJECT_END:
                    raise AMFError("missing object end marker")
                return result
            result[key] = self.value()

    def value(self) -> Any:
        marker = self._take(1)[0]
        if marker == _NUMBER:
            return struct.unpack(">d", self._take(8))[0]
        if marker == _BOOLEAN:
            return self._take(1)[0] != 0
        if marker == _STRING:
            return self._short_string()
        if marker == _LONG_STRING:
            (size,) = struct.unpack(">I", self._take(4))
            return self._text(size)
        if marker == _OBJECT:
            return self._properties()
        if marker == _ECMA_ARRAY:
            self._take(4)
            return self._properties()
        if marker == _STRICT_ARRAY:
            (count,) = struct.unpack(">I", self._take(4))
            return [self.value() for _ in range(count)]
        if marker in (_NULL, _UNDEFINED):
            return None
        if marker == _DATE:
            millis, _tz = struct.unpack(">dh", self._take(10))
            try:
                return datetime.fromtimestamp(millis / 1000.0, tz=timezone.utc)
            except (OverflowError, OSError, ValueError) as exc:
                raise AMFError("date out of range") from exc
        raise AMFError(f"unsupported AMF0 marker 0x{marker:02x}")


def decode_values(data: bytes) -> list[Any]:
    """Decode every AMF0 value in ``data``."""
    decoder = _Decoder(bytes(data))
    values = []
    while not decoder.at_end():
        values.append(decoder.value())
    return values
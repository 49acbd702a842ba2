"""Byte-counting wrappers around binary streams."""

from __future__ import annotations

from typing import Any

_DEFAULT_BUFFER_SIZE = 4096
_UINT32_MASK = 0xFFFFFFFF


class CountingReader:
    """Buffered reader that counts the bytes pulled from the underlying stream.

    The count reflects what was read from the wrapped stream, including bytes
    still waiting in the internal buffer.
    """

    def __init__(self, stream: Any, buffer_size: int = _DEFAULT_BUFFER_SIZE) -> None:
        if buffer_size <= 0:
            raise ValueError("buffer_size must be positive")
        self._stream = stream
        self._buffer_size = buffer_size
        self._buf = b""
        self._pos = 0
        self._count = 0

    def _pull(self, size: int) -> bytes:
        data = self._stream.read(size) or b""
        self._count = (self._count + len(data)) & _UINT32_MASK
        return bytes(data)

    def _fill(self) -> bool:
        # Keep the last consumed byte so that it can still be unread.
        keep = self._buf[self._pos - 1 : self._pos] if self._pos else b""
        data = self._pull(self._buffer_size)
        self._buf = keep + data
        self._pos = len(keep)
        return bool(data)

    def read(self, size: int = -1) -> bytes:
        """Read up to ``size`` bytes; fewer are returned only at end of stream."""
        if size is None or size < 0:
            parts = [self._buf[self._pos :]]
            self._pos = len(self._buf)
            while self._fill():
                parts.append(self._buf[self._pos :])
                self._pos = len(self._buf)
            return b"".join(parts)

        parts: list[bytes] = []
        remaining = size
        while remaining > 0:
            available = len(self._buf) - self._pos
            if available == 0:
                if remaining >= self._buffer_size:
                    data = self._pull(remaining)
                    if not data:
                        break
                    parts.append(data)
                    remaining -= len(data)
                    self._buf = data[-1:]
                    self._pos = 1
                    continue
                if not self._fill():
                    break
                continue
            take = min(available, remaining)
            parts.append(self._buf[self._pos : self._pos + take])
            self._pos += take
            remaining -= take
        return b"".join(parts)

    def read_byte(self) -> int:
        """Read a single byte, raising EOFError at end of stream."""
        if self._pos >= len(self._buf) and not self._fill():
            raise EOFError("end of stream")
        value = self._buf[self._pos]
        self._pos += 1
        return value

    def unread_byte(self) -> None:
        """Step back over the last byte that was read."""
        if self._pos == 0:
            raise ValueError("no byte to unread")
        self._pos -= 1

    def count(self) -> int:
        """Return the number of bytes read from the underlying stream."""
        return self._count


class CountingWriter:
    """Writer that counts the bytes written to the underlying stream."""

    def __init__(self, stream: Any) -> None:
        self._stream = stream
        self._count = 0

    def write(self, data: bytes) -> int:
        """Write ``data`` and return the number of bytes written."""
        written = self._stream.write(data)
        if written is None:
            written = len(data)
        self._count = (self._count + written) & _UINT32_MASK
        return written

    def count(self) -> int:
        """Return the number of bytes written."""
        return self._count


class CountingReadWriter:
    """Pair of a counting reader and a counting writer over one duplex stream."""

    def __init__(self, stream: Any) -> None:
        self.reader = CountingReader(stream)
        self.writer = CountingWriter(stream)
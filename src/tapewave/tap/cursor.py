"""
Bounded Byte Reader
===================

ByteCursor reads fixed-width little-endian integers and exact-length byte
runs from either an in-memory buffer or a binary stream. Every read either
returns exactly what was asked for or raises UnexpectedEndOfInput; the
cursor never pads or truncates.

The cursor tracks an absolute offset so that errors can point at the
corrupt region of the image.

    >>> cursor = ByteCursor(b"\\x13\\x00\\xff")
    >>> cursor.read_u16_le()
    19
    >>> cursor.read_u8()
    255
    >>> cursor.at_end()
    True
"""

from typing import BinaryIO, Optional, Union
import struct

from tapewave.errors import UnexpectedEndOfInput


class ByteCursor:
    """
    Little-endian reader over bytes or a binary stream.

    Args:
        source: A bytes-like object, or a readable binary stream
        base_offset: Absolute offset of the first byte of ``source``
            (used when the cursor reads a window of a larger image)
    """

    def __init__(self, source: Union[bytes, bytearray, memoryview, BinaryIO], base_offset: int = 0):
        if isinstance(source, (bytes, bytearray, memoryview)):
            self._buffer: Optional[bytes] = bytes(source)
            self._stream: Optional[BinaryIO] = None
        else:
            self._buffer = None
            self._stream = source
        self._position = 0
        self._base_offset = base_offset
        # One byte read ahead by at_end() on a stream
        self._pending = b""

    @property
    def offset(self) -> int:
        """Absolute offset of the next byte to be read."""
        return self._base_offset + self._position

    def remaining(self) -> Optional[int]:
        """Bytes left to read, or None when the source is a stream."""
        if self._buffer is None:
            return None
        return len(self._buffer) - self._position

    def at_end(self) -> bool:
        """Return True when no further byte can be read."""
        if self._buffer is not None:
            return self._position >= len(self._buffer)
        if not self._pending:
            self._pending = self._stream.read(1)
        return not self._pending

    def read_exact(self, count: int) -> bytes:
        """
        Read exactly ``count`` bytes.

        Raises:
            UnexpectedEndOfInput: If fewer than ``count`` bytes remain
        """
        if count < 0:
            raise ValueError(f"cannot read a negative byte count ({count})")
        if count == 0:
            return b""

        if self._buffer is not None:
            available = len(self._buffer) - self._position
            if available < count:
                raise UnexpectedEndOfInput(count, available, offset=self.offset)
            data = self._buffer[self._position:self._position + count]
        else:
            data = self._pending
            # Raw streams may return fewer bytes than asked before the real end
            while len(data) < count:
                chunk = self._stream.read(count - len(data))
                if not chunk:
                    break
                data += chunk
            if len(data) < count:
                # Keep what was read so the error reports the real shortfall
                self._pending = data
                raise UnexpectedEndOfInput(count, len(data), offset=self.offset)
            self._pending = b""

        self._position += count
        return data

    def read_u8(self) -> int:
        """Read one unsigned byte."""
        return self.read_exact(1)[0]

    def read_u16_le(self) -> int:
        """Read an unsigned 16-bit little-endian word."""
        return struct.unpack("<H", self.read_exact(2))[0]

    def __repr__(self) -> str:
        kind = "stream" if self._buffer is None else f"{len(self._buffer)} bytes"
        return f"ByteCursor({kind}, offset={self.offset})"

"""
iff_cursor.py — Sequential big-endian reader over an in-memory byte buffer

Every read is bounds checked: running past the end raises
MalformedChunkError instead of returning short data.
"""

import struct

from iff_errors import MalformedChunkError


class ByteCursor:
    def __init__(self, data: bytes, offset: int = 0):
        self.data = bytes(data)
        self.length = len(self.data)
        if not 0 <= offset <= self.length:
            raise MalformedChunkError(f"Offset {offset} outside buffer of {self.length} bytes")
        self.offset = offset

    def remaining(self) -> int:
        return self.length - self.offset

    def at_end(self) -> bool:
        return self.offset >= self.length

    def _take(self, n: int) -> bytes:
        if n < 0 or n > self.remaining():
            raise MalformedChunkError(
                f"Read of {n} bytes at offset {self.offset} runs past end of {self.length}-byte buffer"
            )
        self.offset += n
        return self.data[self.offset - n:self.offset]

    def _unpack(self, fmt: str, size: int) -> int:
        return struct.unpack(fmt, self._take(size))[0]

    def read_int8(self) -> int: return self._unpack(">b", 1)
    def read_uint8(self) -> int: return self._unpack(">B", 1)
    def read_int16(self) -> int: return self._unpack(">h", 2)
    def read_uint16(self) -> int: return self._unpack(">H", 2)
    def read_int32(self) -> int: return self._unpack(">i", 4)
    def read_uint32(self) -> int: return self._unpack(">I", 4)

    def read_bytes(self, n: int) -> bytes:
        return self._take(n)

    def read_ascii(self, n: int) -> str:
        return self._take(n).decode("latin-1")

    def skip(self, n: int):
        self._take(n)

    def seek(self, offset: int):
        if not 0 <= offset <= self.length:
            raise MalformedChunkError(f"Seek to {offset} outside buffer of {self.length} bytes")
        self.offset = offset

    def sub_cursor(self, n: int) -> "ByteCursor":
        """Return a cursor over the next n bytes and step over them."""
        return ByteCursor(self._take(n))

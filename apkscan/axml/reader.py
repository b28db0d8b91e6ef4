"""Bounds-checked little-endian reads over an immutable byte buffer."""

from __future__ import annotations

import struct

from .errors import UnexpectedEndOfBuffer

_U16 = struct.Struct("<H")
_U32 = struct.Struct("<I")


class BufferReader:
    """Random-access reader; every read raises instead of running off the end."""

    def __init__(self, data: bytes) -> None:
        self._data = memoryview(bytes(data))

    def __len__(self) -> int:
        return len(self._data)

    def require(self, offset: int, length: int) -> None:
        if offset < 0 or length < 0 or offset + length > len(self._data):
            raise UnexpectedEndOfBuffer(offset, length, len(self._data))

    def u8(self, offset: int) -> int:
        self.require(offset, 1)
        return self._data[offset]

    def u16(self, offset: int) -> int:
        self.require(offset, 2)
        return _U16.unpack_from(self._data, offset)[0]

    def u32(self, offset: int) -> int:
        self.require(offset, 4)
        return _U32.unpack_from(self._data, offset)[0]

    def read(self, offset: int, length: int) -> bytes:
        self.require(offset, length)
        return bytes(self._data[offset : offset + length])


__all__ = ["BufferReader"]

"""String pool decoding.

The pool chunk header is seven words::

    type | chunk size | string count | style count | flags | strings start | styles start

followed by ``string count`` offsets (relative to ``strings start``). Entries are
length-prefixed and encoded as UTF-8 or UTF-16 depending on ``flags & 0x100``.
"""

from __future__ import annotations

from typing import List, Sequence

from .constants import NO_INDEX, STRING_TABLE_HEADER_WORDS, UTF8_FLAG, WORD_SIZE
from .errors import StringIndexOutOfRange
from .reader import BufferReader


class StringPoolResolver:
    """Decodes individual pool entries for one encoding."""

    def __init__(self, reader: BufferReader, *, utf8: bool) -> None:
        self._reader = reader
        self.utf8 = utf8

    def decode_entry(self, offset: int) -> str:
        if self.utf8:
            return self._decode_utf8(offset)
        return self._decode_utf16(offset)

    def _decode_utf8(self, offset: int) -> str:
        # First byte is the character count, second the encoded byte length.
        # Both are single bytes here, so entries cap out at 255 bytes.
        length = self._reader.u8(offset + 1)
        raw = self._reader.read(offset + 2, length)
        return raw.decode("utf-8", errors="replace")

    def _decode_utf16(self, offset: int) -> str:
        count = self._reader.u16(offset)
        start = offset + 2
        self._reader.require(start, count * 2)
        # Code units map one-to-one to characters; surrogate pairs stay split.
        return "".join(chr(self._reader.u16(start + 2 * i)) for i in range(count))


class StringPool(Sequence[str]):
    """Ordered strings of one pool chunk, addressed by index."""

    def __init__(self, strings: List[str] | None = None, *, utf8: bool = False) -> None:
        self._strings: List[str] = list(strings or [])
        self.utf8 = utf8

    @classmethod
    def parse(cls, reader: BufferReader, chunk_offset: int) -> "StringPool":
        count = reader.u32(chunk_offset + 2 * WORD_SIZE)
        flags = reader.u32(chunk_offset + 4 * WORD_SIZE)
        strings_start = chunk_offset + reader.u32(chunk_offset + 5 * WORD_SIZE)
        resolver = StringPoolResolver(reader, utf8=bool(flags & UTF8_FLAG))

        strings: List[str] = []
        table = chunk_offset + STRING_TABLE_HEADER_WORDS * WORD_SIZE
        for index in range(count):
            entry_offset = reader.u32(table + index * WORD_SIZE)
            strings.append(resolver.decode_entry(strings_start + entry_offset))
        return cls(strings, utf8=resolver.utf8)

    def __getitem__(self, index):  # type: ignore[override]
        return self._strings[index]

    def __len__(self) -> int:
        return len(self._strings)

    def get(self, index: int) -> str:
        """Return the string at ``index``; out-of-range indexes are fatal."""
        if 0 <= index < len(self._strings):
            return self._strings[index]
        raise StringIndexOutOfRange(index, len(self._strings))

    def optional(self, index: int) -> str | None:
        """Like :meth:`get` but maps the ``0xFFFFFFFF`` sentinel to ``None``."""
        if index == NO_INDEX:
            return None
        return self.get(index)


__all__ = ["StringPool", "StringPoolResolver"]

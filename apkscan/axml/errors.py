"""Decode failures raised by the AXML decoder."""

from __future__ import annotations


class DecodeError(ValueError):
    """Raised when a binary manifest cannot be decoded."""


class UnexpectedEndOfBuffer(DecodeError):
    """A read would run past the end of the buffer."""

    def __init__(self, offset: int, length: int, size: int) -> None:
        super().__init__(
            f"Unexpected end of buffer: {length} byte(s) at offset {offset} "
            f"exceed buffer length {size}"
        )
        self.offset = offset
        self.length = length
        self.size = size


class StringIndexOutOfRange(DecodeError):
    """A string-pool index does not lie in ``[0, count)``."""

    def __init__(self, index: int, count: int) -> None:
        super().__init__(f"String index {index} out of range (pool holds {count})")
        self.index = index
        self.count = count


class MissingRootElement(DecodeError):
    """The stream ended without a single start tag."""

    def __init__(self) -> None:
        super().__init__("Document contains no root element")


__all__ = [
    "DecodeError",
    "MissingRootElement",
    "StringIndexOutOfRange",
    "UnexpectedEndOfBuffer",
]

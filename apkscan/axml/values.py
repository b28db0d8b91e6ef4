"""Typed attribute payload decoding."""

from __future__ import annotations

import struct
from typing import Union

from .constants import (
    DIMENSION_UNITS,
    FRACTION_SCALE,
    TYPE_ATTR_REF,
    TYPE_BOOL,
    TYPE_COLOR,
    TYPE_COLOR2,
    TYPE_DIMEN,
    TYPE_FLAGS,
    TYPE_FLOAT,
    TYPE_FRACTION,
    TYPE_ID_REF,
    TYPE_INT,
    TYPE_STRING,
)
from .strings import StringPool

AttributeValue = Union[str, int, float, bool]


def _hex8(value: int) -> str:
    return f"{value & 0xFFFFFFFF:08X}"


def _as_int32(value: int) -> int:
    value &= 0xFFFFFFFF
    return value - 0x100000000 if value & 0x80000000 else value


class AttributeValueCoder:
    """Interprets the ``(type, data)`` pair of a typed attribute value.

    Unknown types never fail the decode; they come back as the placeholder
    ``"<TYPE>/0x<DATA>"`` so newer attribute kinds degrade gracefully.
    """

    def __init__(self, strings: StringPool) -> None:
        self._strings = strings

    def decode(self, value_type: int, data: int) -> AttributeValue:
        if value_type == TYPE_STRING:
            return self._strings.get(data)
        if value_type == TYPE_DIMEN:
            return self._dimension(value_type, data)
        if value_type == TYPE_FRACTION:
            return f"{(data & 0xFFFFFFFF) / FRACTION_SCALE:.2f}"
        if value_type == TYPE_FLOAT:
            return struct.unpack("<f", struct.pack("<I", data & 0xFFFFFFFF))[0]
        if value_type in (TYPE_INT, TYPE_FLAGS):
            return data
        if value_type == TYPE_BOOL:
            return data != 0
        if value_type in (TYPE_COLOR, TYPE_COLOR2):
            return f"#{_hex8(data)}"
        if value_type == TYPE_ID_REF:
            return f"@id/0x{_hex8(data)}"
        if value_type == TYPE_ATTR_REF:
            return f"?id/0x{_hex8(data)}"
        return self.placeholder(value_type, data)

    @staticmethod
    def placeholder(value_type: int, data: int) -> str:
        return f"{_hex8(value_type)}/0x{_hex8(data)}"

    def _dimension(self, value_type: int, data: int) -> str:
        unit_index = data & 0xFF
        if unit_index >= len(DIMENSION_UNITS):
            return self.placeholder(value_type, data)
        return f"{_as_int32(data) >> 8}{DIMENSION_UNITS[unit_index]}"


def format_value(value: AttributeValue) -> str:
    """Render a decoded value the way it appears in serialized XML."""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, float):
        return repr(value)
    return str(value)


__all__ = ["AttributeValue", "AttributeValueCoder", "format_value"]

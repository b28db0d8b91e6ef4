"""Decoder for Android's compiled binary XML."""

from __future__ import annotations

from .decoder import Attribute, BinaryXmlDecoder, DecodeStats, XmlDocument, XmlNode
from .errors import DecodeError, MissingRootElement, StringIndexOutOfRange, UnexpectedEndOfBuffer
from .printer import to_xml
from .strings import StringPool, StringPoolResolver
from .values import AttributeValueCoder, format_value


def decode_to_xml(data: bytes) -> str:
    """Decode AXML bytes straight to pretty-printed XML text."""
    return to_xml(BinaryXmlDecoder().decode(data))


__all__ = [
    "Attribute",
    "AttributeValueCoder",
    "BinaryXmlDecoder",
    "DecodeError",
    "DecodeStats",
    "MissingRootElement",
    "StringIndexOutOfRange",
    "StringPool",
    "StringPoolResolver",
    "UnexpectedEndOfBuffer",
    "XmlDocument",
    "XmlNode",
    "decode_to_xml",
    "format_value",
    "to_xml",
]

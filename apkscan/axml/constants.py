"""Chunk words and typed-value tags of the compiled Android XML format."""

from __future__ import annotations

WORD_SIZE = 4

# Leading little-endian word of each chunk (type and header size packed).
WORD_START_DOCUMENT = 0x00080003
WORD_STRING_TABLE = 0x001C0001
WORD_RES_TABLE = 0x00080180
WORD_START_NS = 0x00100100
WORD_END_NS = 0x00100101
WORD_START_TAG = 0x00100102
WORD_END_TAG = 0x00100103
WORD_TEXT = 0x00100104
WORD_EOS = 0xFFFFFFFF

# Fixed chunk lengths, in words.
START_DOCUMENT_WORDS = 2
NAMESPACE_WORDS = 6
START_TAG_WORDS = 9
ATTRIBUTE_WORDS = 5
END_TAG_WORDS = 6
TEXT_WORDS = 7
STRING_TABLE_HEADER_WORDS = 7

NO_INDEX = 0xFFFFFFFF
UTF8_FLAG = 0x100

# Res_value words: size (8), res0 (0) and the data type in the high byte.
TYPE_ID_REF = 0x01000008
TYPE_ATTR_REF = 0x02000008
TYPE_STRING = 0x03000008
TYPE_FLOAT = 0x04000008
TYPE_DIMEN = 0x05000008
TYPE_FRACTION = 0x06000008
TYPE_INT = 0x10000008
TYPE_FLAGS = 0x11000008
TYPE_BOOL = 0x12000008
TYPE_COLOR = 0x1C000008
TYPE_COLOR2 = 0x1D000008

DIMENSION_UNITS = ("px", "dp", "sp", "pt", "in", "mm")

FRACTION_SCALE = 0x7FFFFFFF

ANDROID_NS = "http://schemas.android.com/apk/res/android"

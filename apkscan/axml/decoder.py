"""Chunk-stream decoder for compiled Android XML (AXML)."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, Iterator, List, Optional, Tuple

from ..logging import get_logger
from .constants import (
    ATTRIBUTE_WORDS,
    END_TAG_WORDS,
    NAMESPACE_WORDS,
    NO_INDEX,
    START_DOCUMENT_WORDS,
    START_TAG_WORDS,
    STRING_TABLE_HEADER_WORDS,
    TEXT_WORDS,
    WORD_END_NS,
    WORD_END_TAG,
    WORD_EOS,
    WORD_RES_TABLE,
    WORD_SIZE,
    WORD_START_DOCUMENT,
    WORD_START_NS,
    WORD_START_TAG,
    WORD_STRING_TABLE,
    WORD_TEXT,
)
from .errors import DecodeError, MissingRootElement, StringIndexOutOfRange, UnexpectedEndOfBuffer
from .reader import BufferReader
from .strings import StringPool
from .values import AttributeValue, AttributeValueCoder


@dataclass
class Attribute:
    """A decoded attribute; ``value`` keeps its typed Python form."""

    name: str
    value: AttributeValue
    namespace: Optional[str] = None
    prefix: Optional[str] = None

    @property
    def qualified_name(self) -> str:
        return f"{self.prefix}:{self.name}" if self.prefix else self.name


@dataclass
class XmlNode:
    """Element of the decoded tree. Children are owned exclusively by their parent."""

    uri: str
    local_name: str
    qname: str
    attributes: List[Attribute] = field(default_factory=list)
    children: List["XmlNode"] = field(default_factory=list)
    prefixes: List[Tuple[str, str]] = field(default_factory=list)

    def get(self, name: str, namespace: Optional[str] = None) -> Optional[AttributeValue]:
        """Return the first attribute value named ``name`` (optionally namespaced)."""
        for attribute in self.attributes:
            if attribute.name != name:
                continue
            if namespace is not None and attribute.namespace != namespace:
                continue
            return attribute.value
        return None

    def iter(self, local_name: Optional[str] = None) -> Iterator["XmlNode"]:
        """Walk this node and its descendants in document order."""
        stack = [self]
        while stack:
            node = stack.pop()
            if local_name is None or node.local_name == local_name:
                yield node
            stack.extend(reversed(node.children))


@dataclass
class DecodeStats:
    """Counters for the decoder's tolerated irregularities."""

    skipped_words: int = 0
    mismatched_end_tags: int = 0
    unmatched_end_tags: int = 0
    string_count: int = 0
    utf8: bool = False
    resource_ids: List[int] = field(default_factory=list)
    reached_end_marker: bool = False

    @property
    def skipped_bytes(self) -> int:
        return self.skipped_words * WORD_SIZE


@dataclass
class XmlDocument:
    """Result of one decode call."""

    root: XmlNode
    strings: StringPool
    stats: DecodeStats


class _DecodeRun:
    """State of a single pass over one buffer."""

    def __init__(self, data: bytes) -> None:
        self.reader = BufferReader(data)
        self.offset = 0
        self.strings = StringPool()
        self.coder = AttributeValueCoder(self.strings)
        self.stats = DecodeStats()
        self.namespaces: Dict[str, str] = {}
        self.pending_prefixes: List[Tuple[str, str]] = []
        self.sentinel = XmlNode(uri="", local_name="", qname="")
        self.stack: List[XmlNode] = [self.sentinel]

    def _word(self, index: int) -> int:
        return self.reader.u32(self.offset + index * WORD_SIZE)

    def _claim(self, words: int) -> None:
        self.reader.require(self.offset, words * WORD_SIZE)

    def run(self) -> XmlDocument:
        handlers = {
            WORD_START_DOCUMENT: self._start_document,
            WORD_STRING_TABLE: self._string_table,
            WORD_RES_TABLE: self._resource_table,
            WORD_START_NS: self._start_namespace,
            WORD_END_NS: self._end_namespace,
            WORD_START_TAG: self._start_tag,
            WORD_END_TAG: self._end_tag,
            WORD_TEXT: self._text,
        }
        size = len(self.reader)
        while self.offset < size:
            word = self.reader.u32(self.offset)
            if word == WORD_EOS:
                self.stats.reached_end_marker = True
                break
            handler = handlers.get(word)
            if handler is None:
                # Unrecognized chunk: step one word and try to resynchronize.
                self.stats.skipped_words += 1
                self.offset += WORD_SIZE
                continue
            handler()

        if not self.sentinel.children:
            raise MissingRootElement()
        return XmlDocument(root=self.sentinel.children[0], strings=self.strings, stats=self.stats)

    def _start_document(self) -> None:
        self._claim(START_DOCUMENT_WORDS)
        self.offset += START_DOCUMENT_WORDS * WORD_SIZE

    def _explicit_chunk_size(self, minimum_words: int) -> int:
        chunk_size = self._word(1)
        advance = max(chunk_size, minimum_words * WORD_SIZE)
        self.reader.require(self.offset, advance)
        return advance

    def _string_table(self) -> None:
        advance = self._explicit_chunk_size(STRING_TABLE_HEADER_WORDS)
        self.strings = StringPool.parse(self.reader, self.offset)
        self.coder = AttributeValueCoder(self.strings)
        self.stats.string_count = len(self.strings)
        self.stats.utf8 = self.strings.utf8
        self.offset += advance

    def _resource_table(self) -> None:
        advance = self._explicit_chunk_size(2)
        count = advance // WORD_SIZE - 2
        self.stats.resource_ids = [self._word(index + 2) for index in range(count)]
        self.offset += advance

    def _namespace_pair(self) -> Tuple[Optional[str], Optional[str]]:
        self._claim(NAMESPACE_WORDS)
        prefix = self.strings.optional(self._word(4))
        uri = self.strings.optional(self._word(5))
        return prefix, uri

    def _start_namespace(self) -> None:
        prefix, uri = self._namespace_pair()
        if uri and prefix:
            # A rebound URI overwrites the earlier prefix until its end event.
            self.namespaces[uri] = prefix
            self.pending_prefixes.append((prefix, uri))
        self.offset += NAMESPACE_WORDS * WORD_SIZE

    def _end_namespace(self) -> None:
        prefix, uri = self._namespace_pair()
        if uri:
            self.namespaces.pop(uri, None)
        if (prefix, uri) in self.pending_prefixes:
            # Scope closed before any element could declare it.
            self.pending_prefixes.remove((prefix, uri))
        self.offset += NAMESPACE_WORDS * WORD_SIZE

    def _start_tag(self) -> None:
        self._claim(START_TAG_WORDS)
        uri_index = self._word(4)
        name = self.strings.get(self._word(5))
        attribute_count = self.reader.u16(self.offset + 7 * WORD_SIZE)

        if uri_index == NO_INDEX:
            uri, qname = "", name
        else:
            uri = self.strings.get(uri_index)
            prefix = self.namespaces.get(uri)
            qname = f"{prefix}:{name}" if prefix else name

        self.offset += START_TAG_WORDS * WORD_SIZE
        attributes = []
        for _ in range(attribute_count):
            attributes.append(self._attribute())
            self.offset += ATTRIBUTE_WORDS * WORD_SIZE

        node = XmlNode(
            uri=uri,
            local_name=name,
            qname=qname,
            attributes=attributes,
            prefixes=self.pending_prefixes,
        )
        self.pending_prefixes = []
        self.stack[-1].children.append(node)
        self.stack.append(node)

    def _attribute(self) -> Attribute:
        self._claim(ATTRIBUTE_WORDS)
        namespace_index = self._word(0)
        name = self.strings.get(self._word(1))
        raw_index = self._word(2)
        value_type = self._word(3)
        data = self._word(4)

        namespace = prefix = None
        if namespace_index != NO_INDEX:
            namespace = self.strings.get(namespace_index)
            prefix = self.namespaces.get(namespace)

        if raw_index != NO_INDEX:
            value: AttributeValue = self.strings.get(raw_index)
        else:
            value = self.coder.decode(value_type, data)
        return Attribute(name=name, value=value, namespace=namespace, prefix=prefix)

    def _end_tag(self) -> None:
        self._claim(END_TAG_WORDS)
        uri_index = self._word(4)
        name = self.strings.get(self._word(5))
        uri = "" if uri_index == NO_INDEX else self.strings.get(uri_index)
        self.offset += END_TAG_WORDS * WORD_SIZE

        if len(self.stack) == 1:
            self.stats.unmatched_end_tags += 1
            return
        node = self.stack.pop()
        if node.local_name != name or node.uri != uri:
            self.stats.mismatched_end_tags += 1

    def _text(self) -> None:
        self._claim(TEXT_WORDS)
        # Character data is validated but not kept; manifests carry none.
        self.strings.optional(self._word(4))
        self.offset += TEXT_WORDS * WORD_SIZE


class BinaryXmlDecoder:
    """Decodes AXML bytes into an :class:`XmlNode` tree.

    Unrecognized leading words are skipped one word at a time and counted in
    :attr:`DecodeStats.skipped_words`; a corrupt stream may therefore
    desynchronize instead of failing. Reads past the buffer and bad string
    indexes raise :class:`DecodeError` subclasses.
    """

    def __init__(self) -> None:
        self.logger = get_logger("axml.decoder")

    def decode(self, data: bytes) -> XmlNode:
        return self.decode_document(data).root

    def decode_document(self, data: bytes) -> XmlDocument:
        document = _DecodeRun(data).run()
        stats = document.stats
        self.logger.debug(
            "Decoded %d string(s) (%s), %d resource id(s)",
            stats.string_count,
            "utf-8" if stats.utf8 else "utf-16",
            len(stats.resource_ids),
        )
        if stats.skipped_words:
            self.logger.debug("Skipped %d unrecognized word(s)", stats.skipped_words)
        if stats.mismatched_end_tags or stats.unmatched_end_tags:
            self.logger.debug(
                "End tags out of order: %d mismatched, %d without an open element",
                stats.mismatched_end_tags,
                stats.unmatched_end_tags,
            )
        return document


__all__ = [
    "Attribute",
    "BinaryXmlDecoder",
    "DecodeError",
    "DecodeStats",
    "MissingRootElement",
    "StringIndexOutOfRange",
    "UnexpectedEndOfBuffer",
    "XmlDocument",
    "XmlNode",
]

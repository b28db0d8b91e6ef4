"""Pretty-printed XML text for decoded trees."""

from __future__ import annotations

from typing import List
from xml.sax.saxutils import escape

from .decoder import XmlNode
from .values import format_value

XML_DECLARATION = '<?xml version="1.0" encoding="utf-8"?>\n'

_ATTRIBUTE_ENTITIES = {'"': "&quot;", "\n": "&#10;", "\t": "&#9;"}


def _quote(value: str) -> str:
    return escape(value, _ATTRIBUTE_ENTITIES)


def _render(node: XmlNode, depth: int, out: List[str]) -> None:
    indent = "\t" * depth
    parts = [indent, "<", node.qname]
    for prefix, uri in node.prefixes:
        parts.append(f' xmlns:{prefix}="{_quote(uri)}"')
    for attribute in node.attributes:
        parts.append(f' {attribute.qualified_name}="{_quote(format_value(attribute.value))}"')

    if not node.children:
        parts.append(" />\n")
        out.append("".join(parts))
        return

    parts.append(">\n")
    out.append("".join(parts))
    for child in node.children:
        _render(child, depth + 1, out)
    out.append(f"{indent}</{node.qname}>\n")


def to_xml(node: XmlNode, *, declaration: bool = True) -> str:
    """Serialize ``node`` with one tab of indentation per depth level."""
    out: List[str] = [XML_DECLARATION] if declaration else []
    _render(node, 0, out)
    return "".join(out)


__all__ = ["XML_DECLARATION", "to_xml"]

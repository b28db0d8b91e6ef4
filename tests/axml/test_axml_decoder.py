"""Decoder behaviour on synthetic AXML streams."""

from __future__ import annotations

import struct

import pytest

from apkscan.axml import (
    BinaryXmlDecoder,
    MissingRootElement,
    StringIndexOutOfRange,
    UnexpectedEndOfBuffer,
    decode_to_xml,
    to_xml,
)
from apkscan.axml import constants as c
from tests._fixtures.axml_builder import AxmlBuilder, sample_manifest


def _minimal_manifest() -> bytes:
    builder = AxmlBuilder()
    builder.start_namespace("android", c.ANDROID_NS)
    builder.element("manifest", [(None, "package", "com.example.min")])
    builder.end_namespace("android", c.ANDROID_NS)
    return builder.build()


def test_minimal_document_renders_self_closing_root() -> None:
    xml_text = decode_to_xml(_minimal_manifest())

    assert xml_text == (
        '<?xml version="1.0" encoding="utf-8"?>\n'
        '<manifest xmlns:android="http://schemas.android.com/apk/res/android" '
        'package="com.example.min" />\n'
    )


def test_sample_manifest_tree_shape() -> None:
    root = BinaryXmlDecoder().decode(sample_manifest())

    assert root.local_name == "manifest"
    assert root.prefixes == [("android", c.ANDROID_NS)]
    assert [child.local_name for child in root.children] == ["uses-sdk", "application"]
    application = root.children[1]
    assert [child.local_name for child in application.children] == [
        "activity",
        "activity",
        "service",
        "provider",
        "receiver",
    ]
    assert root.get("versionCode", c.ANDROID_NS) == 42
    assert root.get("versionName") == "1.4.2"
    assert root.get("package") == "com.example.app"
    assert application.get("debuggable") is True


def test_attributes_carry_bound_prefix() -> None:
    root = BinaryXmlDecoder().decode(sample_manifest())

    names = [attribute.qualified_name for attribute in root.attributes]
    assert names == ["android:versionCode", "android:versionName", "package"]


def test_document_stats_record_pool_and_resource_ids() -> None:
    document = BinaryXmlDecoder().decode_document(sample_manifest())

    stats = document.stats
    assert stats.resource_ids == [0x0101021B, 0x0101021C]
    assert stats.reached_end_marker is True
    assert stats.string_count == len(document.strings)
    assert stats.utf8 is False
    assert stats.skipped_words == 0


def test_utf8_pool_decodes_to_same_xml() -> None:
    assert decode_to_xml(sample_manifest(utf8=True)) == decode_to_xml(sample_manifest())


def test_iter_walks_in_document_order() -> None:
    root = BinaryXmlDecoder().decode(sample_manifest())

    order = [node.local_name for node in root.iter()]
    assert order[:4] == ["manifest", "uses-sdk", "application", "activity"]
    assert len(list(root.iter("activity"))) == 2


@pytest.mark.parametrize("cut", [40, 10])
def test_truncated_stream_raises(cut: int) -> None:
    data = sample_manifest()
    truncated = data[:cut] if cut == 40 else data[:-cut]

    with pytest.raises(UnexpectedEndOfBuffer):
        BinaryXmlDecoder().decode(truncated)


def test_string_index_past_pool_raises() -> None:
    builder = AxmlBuilder()
    builder.string("only")
    bad_tag = struct.pack("<6I", c.WORD_START_TAG, 36, 1, c.NO_INDEX, c.NO_INDEX, 99)
    bad_tag += struct.pack("<HHHHHH", 0x14, 0x14, 0, 0, 0, 0)
    builder.raw(bad_tag)

    with pytest.raises(StringIndexOutOfRange) as excinfo:
        BinaryXmlDecoder().decode(builder.build())
    assert excinfo.value.index == 99
    assert excinfo.value.count == 1


def test_unknown_words_are_skipped_and_counted() -> None:
    builder = AxmlBuilder()
    builder.start_tag("manifest")
    builder.raw(b"\x00" * 8)
    builder.element("application")
    builder.end_tag("manifest")

    document = BinaryXmlDecoder().decode_document(builder.build())

    assert document.stats.skipped_words == 2
    assert document.stats.skipped_bytes == 8
    assert [child.local_name for child in document.root.children] == ["application"]


def test_stream_without_elements_has_no_root() -> None:
    builder = AxmlBuilder()
    builder.start_namespace("android", c.ANDROID_NS)
    builder.end_namespace("android", c.ANDROID_NS)

    with pytest.raises(MissingRootElement):
        BinaryXmlDecoder().decode(builder.build())


def test_empty_input_has_no_root() -> None:
    with pytest.raises(MissingRootElement):
        BinaryXmlDecoder().decode(b"")


def test_unknown_value_type_uses_placeholder() -> None:
    builder = AxmlBuilder()
    builder.element("manifest", [(None, "weird", (0x07000008, 0x12))])

    root = BinaryXmlDecoder().decode(builder.build())

    assert root.get("weird") == "07000008/0x00000012"


def test_out_of_order_end_tags_are_tolerated() -> None:
    builder = AxmlBuilder()
    builder.start_tag("a")
    builder.start_tag("b")
    builder.end_tag("c")
    builder.end_tag("a")
    builder.end_tag("z")

    document = BinaryXmlDecoder().decode_document(builder.build())

    assert document.root.local_name == "a"
    assert [child.local_name for child in document.root.children] == ["b"]
    assert document.stats.mismatched_end_tags == 1
    assert document.stats.unmatched_end_tags == 1


def test_namespaced_tag_uses_prefix_in_qname() -> None:
    builder = AxmlBuilder()
    builder.start_namespace("android", c.ANDROID_NS)
    builder.element("manifest", uri=c.ANDROID_NS)
    builder.end_namespace("android", c.ANDROID_NS)

    root = BinaryXmlDecoder().decode(builder.build())

    assert root.qname == "android:manifest"
    assert root.uri == c.ANDROID_NS


def test_text_chunks_do_not_disturb_tree() -> None:
    builder = AxmlBuilder()
    builder.start_tag("manifest")
    builder.text("hello")
    builder.element("application")
    builder.end_tag("manifest")

    root = BinaryXmlDecoder().decode(builder.build())

    assert [child.local_name for child in root.children] == ["application"]


def test_bytes_after_end_marker_are_ignored() -> None:
    builder = AxmlBuilder()
    builder.element("manifest")
    data = builder.build(end_marker=True) + b"\x01\x02\x03"

    root = BinaryXmlDecoder().decode(data)

    assert to_xml(root, declaration=False) == "<manifest />\n"


def test_single_string_document() -> None:
    builder = AxmlBuilder()
    builder.element("manifest")

    document = BinaryXmlDecoder().decode_document(builder.build())

    assert document.stats.string_count == 1
    assert document.root.qname == "manifest"
    assert document.root.attributes == []
    assert to_xml(document.root).endswith("<manifest />\n")


def test_namespace_closed_before_any_element_is_not_declared() -> None:
    builder = AxmlBuilder()
    builder.start_namespace("tools", "http://schemas.android.com/tools")
    builder.end_namespace("tools", "http://schemas.android.com/tools")
    builder.element("manifest")

    root = BinaryXmlDecoder().decode(builder.build())

    assert root.prefixes == []
    assert to_xml(root, declaration=False) == "<manifest />\n"

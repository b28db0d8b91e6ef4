"""Candidate generation for raw artifact names."""

from __future__ import annotations

import pytest

from apkscan.matching import NameNormalizer, Recipe
from apkscan.matching.normalizer import (
    strip_build_suffix,
    strip_extension,
    strip_lib_prefix,
    strip_package_prefix,
    strip_version,
)


def test_candidates_follow_recipe_order() -> None:
    candidates = NameNormalizer().candidates("libacra-5.9.7.so")

    assert candidates[:5] == (
        "acra-5.9.7",
        "libacra-5.9.7",
        "libacra",
        "libacra.so",
        "liblibacra.so",
    )
    assert "acra" in candidates
    assert "libacra.so" in candidates


def test_candidates_are_deterministic_and_unique() -> None:
    normalizer = NameNormalizer()
    first = normalizer.candidates("libSentry_Release-2.1.0.so")

    assert first == normalizer.candidates("libSentry_Release-2.1.0.so")
    assert len(first) == len(set(first))
    assert "" not in first


def test_package_recipe_only_fires_when_prefix_is_stripped() -> None:
    plain = NameNormalizer().candidates("libnative.so")
    packaged = NameNormalizer().candidates("com_example_app_native.so")

    assert "native" in packaged
    assert "libnative.so" in packaged
    assert plain.count("native") == 1


def test_custom_recipe_table() -> None:
    normalizer = NameNormalizer([Recipe("upper", (str.upper,))])

    assert normalizer.candidates("libz.so") == ("LIBZ",)


@pytest.mark.parametrize(
    ("raw", "expected"),
    [
        ("libfoo-5.9.7", "libfoo"),
        ("libfoo_v2.0", "libfoo"),
        ("libfoo.5.9", "libfoo"),
        ("libfoo-release-3", "libfoo"),
        ("libfoo_12", "libfoo"),
        ("libfoo", "libfoo"),
    ],
)
def test_strip_version(raw: str, expected: str) -> None:
    assert strip_version(raw) == expected


@pytest.mark.parametrize(
    ("raw", "expected"),
    [
        ("foo-debug", "foo"),
        ("foo_release", "foo"),
        ("foo-arm64-v8a", "foo"),
        ("foo_alijtca_plus", "foo"),
        ("foo-debug-extra", "foo-debug-extra"),
    ],
)
def test_strip_build_suffix(raw: str, expected: str) -> None:
    assert strip_build_suffix(raw) == expected


def test_small_transforms() -> None:
    assert strip_extension("libfoo.SO") == "libfoo"
    assert strip_lib_prefix("LibFoo") == "Foo"
    assert strip_lib_prefix("foo") == "foo"
    assert strip_package_prefix("com_example_native") == "native"
    assert strip_package_prefix("com_native") == "com_native"
    assert strip_package_prefix("example_app_native") == "example_app_native"

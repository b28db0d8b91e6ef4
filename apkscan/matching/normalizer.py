"""Candidate spellings for raw artifact names.

Every transform is a pure ``str -> str`` function and candidates are produced
from an ordered recipe table, so the lookup order is fixed and auditable::

    >>> NameNormalizer().candidates("libacra-5.9.7.so")[:5]
    ('acra-5.9.7', 'libacra-5.9.7', 'libacra', 'libacra.so', 'liblibacra.so')
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Callable, List, Sequence, Tuple

Transform = Callable[[str], str]

_EXTENSION = re.compile(r"\.so$", re.IGNORECASE)
_VERSION_PATTERNS = (
    re.compile(r"[-_.]?v?\d+(\.\d+)+"),
    re.compile(r"-release-\d+"),
    re.compile(r"_\d+$"),
)
BUILD_SUFFIXES = (
    "-debug",
    "-release",
    "-prod",
    "-dev",
    "_debug",
    "_release",
    "_prod",
    "_dev",
    "_arm64",
    "_armeabi",
    "_x86",
    "_x86_64",
    "-arm64-v8a",
    "-armeabi-v7a",
    "-x86",
    "-x86_64",
    "_alijtca_plus",
)
_SUFFIX_PATTERNS = tuple(re.compile(re.escape(suffix) + "$", re.IGNORECASE) for suffix in BUILD_SUFFIXES)
PACKAGE_PREFIXES = ("com_", "cn_", "org_", "io_", "net_", "android_")


def strip_extension(name: str) -> str:
    return _EXTENSION.sub("", name)


def strip_lib_prefix(name: str) -> str:
    return name[3:] if name.lower().startswith("lib") else name


def lowercase(name: str) -> str:
    return name.lower()


def strip_version(name: str) -> str:
    """Drop version-looking runs such as ``-5.9.7``, ``_v2.0`` or ``.5.9``."""
    for pattern in _VERSION_PATTERNS:
        name = pattern.sub("", name)
    return name


def strip_build_suffix(name: str) -> str:
    """Drop build-flavour and ABI suffixes anchored at the end, in table order."""
    for pattern in _SUFFIX_PATTERNS:
        name = pattern.sub("", name)
    return name


def strip_package_prefix(name: str) -> str:
    """``com_example_app_native`` -> ``native``; needs at least three segments."""
    if name.lower().startswith(PACKAGE_PREFIXES):
        parts = name.split("_")
        if len(parts) >= 3:
            return parts[-1]
    return name


@dataclass(frozen=True)
class Recipe:
    """One candidate family: transforms applied left to right to the base name."""

    name: str
    transforms: Tuple[Transform, ...]
    wrap: bool = False
    only_if_changed: bool = False

    def apply(self, base: str) -> List[str]:
        value = base
        for transform in self.transforms:
            value = transform(value)
        if self.only_if_changed and value == base:
            return []
        if not self.wrap:
            return [value]
        # Catalog keys are usually filename shaped, so also try lib<x>.so forms.
        return [value, f"{value}.so", f"lib{value}.so"]


DEFAULT_RECIPES: Tuple[Recipe, ...] = (
    Recipe("without_lib", (strip_lib_prefix,)),
    Recipe("lowercase", (lowercase,)),
    Recipe("lowercase_without_lib", (lowercase, strip_lib_prefix)),
    Recipe("without_version", (strip_version,), wrap=True),
    Recipe("without_build_suffix", (strip_build_suffix,), wrap=True),
    Recipe("without_package", (strip_package_prefix,), wrap=True, only_if_changed=True),
    Recipe(
        "fully_normalized",
        (strip_lib_prefix, strip_version, strip_build_suffix, strip_package_prefix),
        wrap=True,
    ),
)


class NameNormalizer:
    """Generates the ordered, de-duplicated candidate list for a raw name."""

    def __init__(self, recipes: Sequence[Recipe] = DEFAULT_RECIPES) -> None:
        self.recipes = tuple(recipes)

    def candidates(self, raw_name: str) -> Tuple[str, ...]:
        base = strip_extension(raw_name)
        seen = set()
        ordered: List[str] = []
        for recipe in self.recipes:
            for candidate in recipe.apply(base):
                if candidate and candidate not in seen:
                    seen.add(candidate)
                    ordered.append(candidate)
        return tuple(ordered)


__all__ = [
    "BUILD_SUFFIXES",
    "DEFAULT_RECIPES",
    "NameNormalizer",
    "PACKAGE_PREFIXES",
    "Recipe",
    "lowercase",
    "strip_build_suffix",
    "strip_extension",
    "strip_lib_prefix",
    "strip_package_prefix",
    "strip_version",
]

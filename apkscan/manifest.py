"""Manifest metadata and component extraction from a decoded tree."""

from __future__ import annotations

from typing import Dict, Iterable, List, Optional, Tuple

from .axml import XmlNode
from .axml.constants import ANDROID_NS
from .models import COMPONENT_KINDS, ComponentLists, ManifestInfo

_ELEMENT_KINDS = {
    "activity": "activities",
    "service": "services",
    "provider": "providers",
    "receiver": "receivers",
}


def _android_attr(node: XmlNode, name: str) -> object:
    """Return ``android:<name>``, accepting a bound namespace or a bare prefix."""
    for attribute in node.attributes:
        if attribute.name != name:
            continue
        if attribute.namespace == ANDROID_NS or attribute.prefix == "android":
            return attribute.value
    return None


def _as_int(value: object) -> Optional[int]:
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, str):
        try:
            return int(value.strip(), 0)
        except ValueError:
            return None
    return None


def _as_text(value: object) -> Optional[str]:
    if value is None or isinstance(value, bool):
        return None
    return str(value)


class ComponentExtractor:
    """Walks the manifest tree for package identity and the four component lists."""

    def extract(self, root: XmlNode) -> Tuple[ManifestInfo, ComponentLists]:
        return self.manifest_info(root), self.components(root)

    def manifest_info(self, root: XmlNode) -> ManifestInfo:
        info = ManifestInfo()
        package = _as_text(root.get("package"))
        if package:
            info.package_name = package
        version_name = _as_text(_android_attr(root, "versionName"))
        if version_name:
            info.version_name = version_name
        version_code = _as_int(_android_attr(root, "versionCode"))
        if version_code is not None:
            info.version_code = version_code

        uses_sdk = next(root.iter("uses-sdk"), None)
        if uses_sdk is not None:
            info.min_sdk_version = _as_int(_android_attr(uses_sdk, "minSdkVersion"))
            info.target_sdk_version = _as_int(_android_attr(uses_sdk, "targetSdkVersion"))
        return info

    def components(self, root: XmlNode) -> ComponentLists:
        lists = ComponentLists()
        for node in root.iter():
            kind = _ELEMENT_KINDS.get(node.local_name)
            if kind is None:
                continue
            name = _as_text(_android_attr(node, "name"))
            if name:
                getattr(lists, kind).append(name)
        return lists


def deduplicate(names: Iterable[str]) -> List[str]:
    """Distinct names in sorted order."""
    return sorted(set(names))


def group_by_package(names: Iterable[str]) -> Dict[str, List[str]]:
    """Group class names by everything before the last dot (``default`` if none)."""
    groups: Dict[str, List[str]] = {}
    for name in names:
        package, dot, _ = name.rpartition(".")
        key = package if dot and package else "default"
        groups.setdefault(key, []).append(name)
    return groups


__all__ = ["COMPONENT_KINDS", "ComponentExtractor", "deduplicate", "group_by_package"]

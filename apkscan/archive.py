"""APK and XAPK archive access."""

from __future__ import annotations

import io
import zipfile
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Sequence, Tuple

from .logging import get_logger

MANIFEST_ENTRY = "AndroidManifest.xml"

logger = get_logger("archive")


class ArchiveError(RuntimeError):
    """Raised when a package archive is unreadable or lacks a manifest."""


@dataclass
class PackageContents:
    """What the analysis needs from one package: manifest bytes and entry paths."""

    name: str
    manifest: bytes
    paths: List[str] = field(default_factory=list)
    split_apks: List[str] = field(default_factory=list)


def is_xapk(path: Path | str) -> bool:
    return str(path).lower().endswith(".xapk")


def select_main_apk(names: Sequence[str]) -> Tuple[str, List[str]]:
    """Pick the base APK of a split bundle; the rest are configuration splits.

    The base is the last APK whose name carries neither ``config.`` nor
    ``split_config.``; when every name does, the shortest name wins.
    """
    apks = [name for name in names if name.lower().endswith(".apk") and not name.endswith("/")]
    if not apks:
        raise ArchiveError("XAPK contains no APK files")
    main = None
    for name in apks:
        lowered = name.lower()
        if "config." not in lowered and "split_config." not in lowered:
            main = name
    if main is None:
        main = sorted(apks, key=len)[0]
    return main, [name for name in apks if name != main]


def _read_zip(archive: zipfile.ZipFile, label: str) -> Tuple[bytes, List[str]]:
    paths = archive.namelist()
    try:
        manifest = archive.read(MANIFEST_ENTRY)
    except KeyError as exc:
        raise ArchiveError(f"{MANIFEST_ENTRY} not found in {label}") from exc
    return manifest, paths


def open_package(path: Path) -> PackageContents:
    """Read manifest bytes and entry paths from an ``.apk`` or ``.xapk`` file."""
    if not path.exists():
        raise FileNotFoundError(f"Package not found: {path}")
    try:
        with zipfile.ZipFile(path) as outer:
            if not is_xapk(path):
                manifest, paths = _read_zip(outer, path.name)
                return PackageContents(name=path.name, manifest=manifest, paths=paths)

            main, splits = select_main_apk(outer.namelist())
            logger.info("XAPK base APK: %s (%d split(s))", main, len(splits))
            with zipfile.ZipFile(io.BytesIO(outer.read(main))) as inner:
                manifest, paths = _read_zip(inner, main)
    except zipfile.BadZipFile as exc:
        raise ArchiveError(f"{path.name} is not a valid zip archive: {exc}") from exc
    return PackageContents(name=path.name, manifest=manifest, paths=paths, split_apks=splits)


__all__ = [
    "ArchiveError",
    "MANIFEST_ENTRY",
    "PackageContents",
    "is_xapk",
    "open_package",
    "select_main_apk",
]

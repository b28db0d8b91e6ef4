"""Catalog payloads and zip packages used across the test suite."""

from __future__ import annotations

import io
import zipfile
from pathlib import Path
from typing import Any, Dict, Iterable, Mapping

ACRA_UUID = "7c1a7f58-acra"
SENTRY_UUID = "0b7d0cf5-sentry"
STARTUP_UUID = "d2e6a1a4-startup"


def _rule(uuid: str, label: str, category: str, kind: str, **extra: str) -> Dict[str, str]:
    data = {
        "uuid": uuid,
        "label": label,
        "category": category,
        "developer": extra.pop("developer", "Unknown"),
        "type": kind,
    }
    data.update(extra)
    return data


def catalog_payload(version: str = "2024-01-01-0000") -> Dict[str, Any]:
    """A catalog where ACRA is reachable from native, activity and service signals."""
    acra_native = _rule(ACRA_UUID, "ACRA", "crash", "native", developer="ACRA team")
    return {
        "version": version,
        "generatedAt": "2024-01-01T00:00:00",
        "categories": {
            "crash": {"label": "Crash reporting", "icon": "bug"},
            "other": {"label": "Other", "icon": "box"},
        },
        "rules": {
            "native": {
                "libacra.so": dict(acra_native, id="libacra.so"),
                "libsentry.so": _rule(SENTRY_UUID, "Sentry", "crash", "native"),
                "libflutter.so": _rule("", "Flutter", "framework", "native", id="flutter"),
            },
            "activities": {"org.acra": dict(acra_native, type="activities")},
            "services": {"org.acra": dict(acra_native, type="services")},
            "providers": {
                "androidx.startup": _rule(STARTUP_UUID, "App Startup", "androidx", "providers"),
            },
            "receivers": {},
        },
    }


def zip_bytes(entries: Mapping[str, bytes]) -> bytes:
    buffer = io.BytesIO()
    with zipfile.ZipFile(buffer, "w") as archive:
        for name, data in entries.items():
            archive.writestr(name, data)
    return buffer.getvalue()


def write_apk(
    path: Path,
    manifest: bytes | None,
    native_paths: Iterable[str] = (),
) -> Path:
    entries: Dict[str, bytes] = {"classes.dex": b"dex\n035\x00"}
    if manifest is not None:
        entries["AndroidManifest.xml"] = manifest
    for name in native_paths:
        entries[name] = b"\x7fELF"
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_bytes(zip_bytes(entries))
    return path


def write_xapk(path: Path, apks: Mapping[str, bytes]) -> Path:
    entries = {"manifest.json": b"{}", "icon.png": b"\x89PNG"}
    entries.update(apks)
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_bytes(zip_bytes(entries))
    return path


__all__ = [
    "ACRA_UUID",
    "SENTRY_UUID",
    "STARTUP_UUID",
    "catalog_payload",
    "write_apk",
    "write_xapk",
    "zip_bytes",
]

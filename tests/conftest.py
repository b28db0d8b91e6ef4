from __future__ import annotations

from pathlib import Path

import pytest

from apkscan.stores import Catalog
from tests._fixtures.axml_builder import sample_manifest
from tests._fixtures.packages import catalog_payload, write_apk

SAMPLE_NATIVE_PATHS = (
    "lib/arm64-v8a/libacra-5.9.7.so",
    "lib/armeabi-v7a/libacra-5.9.7.so",
    "lib/arm64-v8a/libA3AEECD8.so",
    "lib/arm64-v8a/libmystery.so",
    "lib/arm64-v8a/nested/libdeep.so",
)


@pytest.fixture
def catalog() -> Catalog:
    """Small catalog covering native and component signals."""
    return Catalog.from_dict(catalog_payload())


@pytest.fixture
def manifest_bytes() -> bytes:
    return sample_manifest()


@pytest.fixture
def sample_apk(tmp_path: Path, manifest_bytes: bytes) -> Path:
    """APK with the sample manifest and a handful of native libraries."""
    return write_apk(tmp_path / "sample.apk", manifest_bytes, SAMPLE_NATIVE_PATHS)

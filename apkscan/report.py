"""Analysis results, summary statistics and JSON report export."""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional

from .axml import DecodeStats
from .matching import MatchSummary
from .models import ManifestInfo, MatchedLibrary
from .native import NativeScanResult


@dataclass
class LibraryStats:
    total: int = 0
    by_category: Dict[str, int] = field(default_factory=dict)
    by_type: Dict[str, int] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        return {"total": self.total, "byCategory": self.by_category, "byType": self.by_type}


@dataclass
class AnalysisResult:
    """Everything one analysis run produces."""

    manifest: ManifestInfo
    libraries: List[MatchedLibrary]
    stats: LibraryStats
    manifest_xml: str
    timestamp: str
    decode_stats: DecodeStats = field(default_factory=DecodeStats)
    native_scan: NativeScanResult = field(default_factory=NativeScanResult)
    match_summary: MatchSummary = field(default_factory=MatchSummary)
    catalog_version: Optional[str] = None


def calculate_stats(libraries: Iterable[MatchedLibrary]) -> LibraryStats:
    stats = LibraryStats()
    for library in libraries:
        stats.total += 1
        stats.by_category[library.category] = stats.by_category.get(library.category, 0) + 1
        stats.by_type[library.type] = stats.by_type.get(library.type, 0) + 1
    return stats


def build_report(result: AnalysisResult, *, include_xml: bool = False) -> Dict[str, Any]:
    """JSON-ready report; the manifest XML is left out unless requested."""
    decode = result.decode_stats
    payload: Dict[str, Any] = {
        "basic": {
            "packageName": result.manifest.package_name,
            "versionName": result.manifest.version_name,
            "versionCode": result.manifest.version_code,
            "minSdkVersion": result.manifest.min_sdk_version,
            "targetSdkVersion": result.manifest.target_sdk_version,
        },
        "libraries": [library.to_dict() for library in result.libraries],
        "stats": result.stats.to_dict(),
        "matching": result.match_summary.to_dict(),
        "native": {
            "architectures": result.native_scan.architectures(),
            "byArchitecture": result.native_scan.by_architecture(),
            "ignoredPaths": result.native_scan.ignored_paths,
        },
        "decoder": {
            "skippedWords": decode.skipped_words,
            "mismatchedEndTags": decode.mismatched_end_tags,
            "unmatchedEndTags": decode.unmatched_end_tags,
            "strings": decode.string_count,
        },
        "catalogVersion": result.catalog_version,
        "timestamp": result.timestamp,
    }
    if include_xml:
        payload["manifestXml"] = result.manifest_xml
    return payload


def _timestamp_suffix(timestamp: str) -> str:
    try:
        moment = datetime.fromisoformat(timestamp.replace("Z", "+00:00"))
    except ValueError:
        return "".join(ch for ch in timestamp if ch.isalnum())
    return moment.strftime("%Y%m%d_%H%M%S")


def encodable(text: str) -> str:
    """Replace lone surrogates (from unpaired UTF-16 pool units) with backslash escapes."""
    return text.encode("utf-8", "backslashreplace").decode("utf-8")


def report_filename(base: str, result: AnalysisResult, *, include_timestamp: bool = True) -> str:
    if include_timestamp:
        return f"{base}_{_timestamp_suffix(result.timestamp)}.json"
    return f"{base}.json"


def export_json(
    result: AnalysisResult,
    destination: Path,
    *,
    pretty: bool = True,
    include_xml: bool = False,
    as_directory: bool = False,
) -> Path:
    """Write the report to ``destination``.

    ``destination`` is a directory to name the report in when ``as_directory``
    is set, when it already is one, or when it has no ``.json`` suffix; it is
    created if missing.
    """
    if as_directory or destination.is_dir() or destination.suffix.lower() != ".json":
        destination.mkdir(parents=True, exist_ok=True)
        base = (result.manifest.package_name or "report").replace("/", "_")
        destination = destination / report_filename(base, result)
    destination.parent.mkdir(parents=True, exist_ok=True)
    payload = build_report(result, include_xml=include_xml)
    text = json.dumps(payload, indent=2 if pretty else None, ensure_ascii=False)
    destination.write_text(text + "\n", encoding="utf-8", errors="backslashreplace")
    return destination


__all__ = [
    "AnalysisResult",
    "LibraryStats",
    "build_report",
    "calculate_stats",
    "encodable",
    "export_json",
    "report_filename",
]

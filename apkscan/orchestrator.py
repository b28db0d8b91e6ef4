"""Pipeline orchestration: decode, extract, scan, match, merge."""

from __future__ import annotations

from datetime import UTC, datetime
from pathlib import Path
from typing import Callable, Iterable, Optional, Sequence

from .archive import open_package
from .axml import BinaryXmlDecoder, to_xml
from .logging import get_logger
from .manifest import ComponentExtractor
from .matching import LibraryMatcher, NameNormalizer, ResultAggregator
from .models import COMPONENT_KINDS, AnalysisProgress, ComponentLists
from .native import NativeLibraryScanner
from .report import AnalysisResult, calculate_stats
from .stores import Catalog, MatchCache

ProgressCallback = Callable[[AnalysisProgress], None]

_STAGE_PROGRESS = {
    "extracting": 10,
    "parsing": 30,
    "scanning": 50,
    "matching": 80,
    "completed": 100,
    "error": 0,
}


class Orchestrator:
    """Runs one whole analysis at a time against a catalog.

    The match cache belongs to this orchestrator and is bound to the current
    catalog version; do not share one orchestrator between concurrent runs.
    """

    def __init__(
        self,
        catalog: Catalog,
        *,
        decoder: BinaryXmlDecoder | None = None,
        extractor: ComponentExtractor | None = None,
        scanner: NativeLibraryScanner | None = None,
        normalizer: NameNormalizer | None = None,
        cache: MatchCache | None = None,
        component_kinds: Sequence[str] = COMPONENT_KINDS,
    ) -> None:
        self.decoder = decoder or BinaryXmlDecoder()
        self.extractor = extractor or ComponentExtractor()
        self.scanner = scanner or NativeLibraryScanner()
        self.cache = cache if cache is not None else MatchCache(catalog.version)
        self.matcher = LibraryMatcher(normalizer=normalizer, cache=self.cache)
        self.aggregator = ResultAggregator(self.matcher)
        self.component_kinds = tuple(kind for kind in component_kinds if kind in COMPONENT_KINDS)
        self.logger = get_logger("orchestrator")
        self.catalog = catalog

    @property
    def catalog(self) -> Catalog:
        return self._catalog

    @catalog.setter
    def catalog(self, catalog: Catalog) -> None:
        self._catalog = catalog
        self.cache.bind(catalog.version)

    def run_package(self, path: Path | str, *, progress: ProgressCallback | None = None) -> AnalysisResult:
        """Analyse an ``.apk`` or ``.xapk`` file on disk."""
        package_path = Path(path).expanduser().resolve()
        self.logger.info("Analysing %s", package_path)
        try:
            self._notify(progress, "extracting", "Extracting package contents")
            contents = open_package(package_path)
        except Exception as exc:
            self._notify(progress, "error", f"Analysis failed: {exc}")
            raise
        return self.run_analysis(contents.manifest, contents.paths, progress=progress)

    def run_analysis(
        self,
        manifest: bytes,
        paths: Iterable[str],
        *,
        progress: ProgressCallback | None = None,
    ) -> AnalysisResult:
        """Decode ``manifest`` and match it plus the archive ``paths`` against the catalog."""
        try:
            return self._run(manifest, paths, progress)
        except Exception as exc:
            self._notify(progress, "error", f"Analysis failed: {exc}")
            raise

    def _run(
        self,
        manifest: bytes,
        paths: Iterable[str],
        progress: ProgressCallback | None,
    ) -> AnalysisResult:
        self._notify(progress, "parsing", "Decoding AndroidManifest.xml")
        document = self.decoder.decode_document(manifest)
        manifest_xml = to_xml(document.root)
        info, components = self.extractor.extract(document.root)
        self.logger.info(
            "Package %s version %s (%d)", info.package_name, info.version_name, info.version_code
        )

        self._notify(progress, "scanning", "Scanning native libraries and components")
        native = self.scanner.scan(paths)
        selected = self._select_components(components)
        self.logger.info(
            "Found %d native librar(ies) and %d component(s)",
            len(native.libraries),
            selected.total(),
        )

        self._notify(progress, "matching", f"Matching against catalog {self.catalog.version}")
        libraries, summary = self.aggregator.merge_with_summary(
            native.libraries.values(), selected, self.catalog
        )
        self.logger.info(
            "Identified %d librar(ies); %d unidentified, %d obfuscated",
            len(libraries),
            summary.unidentified,
            summary.obfuscated,
        )

        result = AnalysisResult(
            manifest=info,
            libraries=libraries,
            stats=calculate_stats(libraries),
            manifest_xml=manifest_xml,
            timestamp=datetime.now(UTC).isoformat().replace("+00:00", "Z"),
            decode_stats=document.stats,
            native_scan=native,
            match_summary=summary,
            catalog_version=self.catalog.version,
        )
        self._notify(progress, "completed", "Analysis complete")
        return result

    def _select_components(self, components: ComponentLists) -> ComponentLists:
        selected = ComponentLists()
        for kind in self.component_kinds:
            setattr(selected, kind, list(getattr(components, kind)))
        return selected

    def _notify(self, progress: Optional[ProgressCallback], stage: str, message: str) -> None:
        if progress is None:
            return
        update = AnalysisProgress(stage=stage, message=message, progress=_STAGE_PROGRESS[stage])
        try:
            progress(update)
        except Exception:  # pragma: no cover - advisory callback
            self.logger.warning("Progress callback failed at stage %s", stage, exc_info=True)


__all__ = ["Orchestrator", "ProgressCallback"]

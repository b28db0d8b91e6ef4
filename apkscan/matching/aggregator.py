"""Merges per-signal matches into one record per logical library."""

from __future__ import annotations

from collections import Counter
from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Mapping, Tuple

from ..logging import get_logger
from ..models import (
    COMPONENT_KINDS,
    COMPONENT_LABELS,
    CatalogEntry,
    ComponentLists,
    MatchedLibrary,
    NativeLibraryRecord,
)
from ..stores.catalog import Catalog
from .matcher import MATCHED, OBFUSCATED, LibraryMatcher, MatchOutcome


@dataclass
class MatchSummary:
    """How the analysed names resolved, per signal."""

    native_matched: int = 0
    native_unidentified: int = 0
    native_obfuscated: int = 0
    components_matched: int = 0
    components_unmatched: int = 0
    components_obfuscated: int = 0
    tiers: Dict[str, int] = field(default_factory=dict)

    @property
    def unidentified(self) -> int:
        return self.native_unidentified

    @property
    def obfuscated(self) -> int:
        return self.native_obfuscated + self.components_obfuscated

    def to_dict(self) -> Dict[str, object]:
        return {
            "nativeMatched": self.native_matched,
            "nativeUnidentified": self.native_unidentified,
            "nativeObfuscated": self.native_obfuscated,
            "componentsMatched": self.components_matched,
            "componentsUnmatched": self.components_unmatched,
            "componentsObfuscated": self.components_obfuscated,
            "tiers": dict(sorted(self.tiers.items())),
        }


def _from_entry(entry: CatalogEntry) -> MatchedLibrary:
    return MatchedLibrary(
        id=entry.id,
        uuid=entry.uuid,
        name=entry.name,
        label=entry.label,
        category=entry.category,
        developer=entry.developer,
        description=entry.description,
        source_link=entry.source_link,
        type=entry.type,
        category_label=entry.category_label,
        category_icon=entry.category_icon,
    )


def _placeholder(filename: str, other: Mapping[str, object]) -> MatchedLibrary:
    return MatchedLibrary(
        id=filename,
        uuid="",
        name=filename,
        label=filename,
        category="other",
        developer="Unknown",
        description="Unidentified library",
        source_link="",
        type="native",
        has_metadata=False,
        category_label=str(other.get("label") or ""),
        category_icon=str(other.get("icon") or ""),
    )


def sort_libraries(libraries: Iterable[MatchedLibrary]) -> List[MatchedLibrary]:
    return sorted(libraries, key=lambda library: (library.label.casefold(), library.label))


class ResultAggregator:
    """Builds the final library list from native records and component names.

    Native records merge on the catalog identity when matched and on the
    literal filename otherwise (a placeholder entry). Components merge on the
    catalog identity only; unmatched component names are dropped. Locations are
    concatenated without de-duplication.
    """

    def __init__(self, matcher: LibraryMatcher | None = None) -> None:
        self.matcher = matcher or LibraryMatcher()
        self.logger = get_logger("matching.aggregator")

    def merge(
        self,
        native: Iterable[NativeLibraryRecord],
        components: ComponentLists | Mapping[str, Iterable[str]],
        catalog: Catalog,
    ) -> List[MatchedLibrary]:
        libraries, _ = self.merge_with_summary(native, components, catalog)
        return libraries

    def merge_with_summary(
        self,
        native: Iterable[NativeLibraryRecord],
        components: ComponentLists | Mapping[str, Iterable[str]],
        catalog: Catalog,
    ) -> Tuple[List[MatchedLibrary], MatchSummary]:
        merged: Dict[str, MatchedLibrary] = {}
        other = catalog.categories.get("other")
        if not isinstance(other, Mapping):
            other = {}
        summary = MatchSummary()
        tiers: Counter[str] = Counter()

        for record in native:
            outcome = self.matcher.match_catalog(record.name, catalog, "native")
            self._count(outcome, tiers)
            if outcome.entry is not None:
                summary.native_matched += 1
                key = outcome.entry.identity
            else:
                if outcome.status == OBFUSCATED:
                    summary.native_obfuscated += 1
                else:
                    summary.native_unidentified += 1
                key = record.name
            library = merged.get(key)
            if library is None:
                if outcome.entry is not None:
                    library = _from_entry(outcome.entry)
                else:
                    library = _placeholder(record.name, other)
                merged[key] = library
            library.count += record.count
            library.locations.extend(record.locations)
            library.architectures.update(record.architectures)

        by_kind = components.by_kind() if isinstance(components, ComponentLists) else components
        for kind in COMPONENT_KINDS:
            label = COMPONENT_LABELS[kind]
            for name in by_kind.get(kind, ()):
                outcome = self.matcher.match_catalog(name, catalog, kind)
                self._count(outcome, tiers)
                if outcome.entry is None:
                    if outcome.status == OBFUSCATED:
                        summary.components_obfuscated += 1
                    else:
                        summary.components_unmatched += 1
                    continue
                summary.components_matched += 1
                key = outcome.entry.identity
                library = merged.get(key)
                if library is None:
                    library = merged[key] = _from_entry(outcome.entry)
                library.count += 1
                library.locations.append(f"{label}: {name}")

        summary.tiers = dict(tiers)
        libraries = sort_libraries(merged.values())
        self.logger.debug(
            "Merged into %d librar(ies): %d native matched, %d unidentified, %d obfuscated",
            len(libraries),
            summary.native_matched,
            summary.native_unidentified,
            summary.obfuscated,
        )
        return libraries, summary

    @staticmethod
    def _count(outcome: MatchOutcome, tiers: Counter[str]) -> None:
        if outcome.status == MATCHED and outcome.tier:
            tiers[outcome.tier] += 1


__all__ = ["MatchSummary", "ResultAggregator", "sort_libraries"]

"""Name-to-catalog resolution with a fixed priority cascade."""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Mapping, Optional

from ..logging import get_logger
from ..models import CatalogEntry
from ..stores.catalog import Catalog
from ..stores.match_cache import MatchCache
from .normalizer import NameNormalizer

MATCHED = "matched"
OBFUSCATED = "obfuscated"
UNMATCHED = "unmatched"

TIER_EXACT = "exact"
TIER_NORMALIZED = "normalized"
TIER_SUBSTRING = "substring"

_HASH_CORE = re.compile(r"^[0-9A-Fa-f]{8,16}$")
_LIB_PREFIX = re.compile(r"^lib", re.IGNORECASE)
_SO_SUFFIX = re.compile(r"\.so$", re.IGNORECASE)


@dataclass(frozen=True)
class MatchOutcome:
    """Result of resolving one literal name."""

    entry: Optional[CatalogEntry]
    status: str
    tier: Optional[str] = None
    key: Optional[str] = None

    @property
    def matched(self) -> bool:
        return self.entry is not None


_OBFUSCATED_OUTCOME = MatchOutcome(entry=None, status=OBFUSCATED)
_UNMATCHED_OUTCOME = MatchOutcome(entry=None, status=UNMATCHED)


def is_hash_name(name: str) -> bool:
    """True when the ``lib``/``.so`` stripped core is 8-16 hex characters."""
    core = _SO_SUFFIX.sub("", _LIB_PREFIX.sub("", name))
    return bool(_HASH_CORE.match(core))


def _substring_match(name: str, table: Mapping[str, CatalogEntry]) -> Optional[str]:
    # Catalog iteration order decides ties; keys are not ranked by length.
    lowered = name.lower()
    lowered_core = _SO_SUFFIX.sub("", lowered)
    for key in table:
        lowered_key = key.lower()
        key_core = _SO_SUFFIX.sub("", lowered_key)
        if key_core and key_core in lowered:
            return key
        if lowered_core and lowered_core in lowered_key:
            return key
    return None


class LibraryMatcher:
    """Resolves names in order: exact key, normalized candidates, hash check, substring.

    A name whose core looks like a hex hash is reported as obfuscated before the
    substring scan runs, so short hex catalog keys cannot claim it. Outcomes are
    memoized in the supplied :class:`MatchCache`, keyed by kind and literal name.
    """

    def __init__(
        self,
        normalizer: NameNormalizer | None = None,
        cache: MatchCache | None = None,
    ) -> None:
        self.normalizer = normalizer or NameNormalizer()
        self.cache = cache if cache is not None else MatchCache()
        self.logger = get_logger("matching.matcher")

    def match(
        self,
        name: str,
        table: Mapping[str, CatalogEntry],
        *,
        kind: str = "native",
        catalog_version: str | None = None,
    ) -> MatchOutcome:
        """Resolve ``name`` against ``table``; memoized when a version is given."""
        if catalog_version is not None:
            cached = self.cache.get(kind, name, catalog_version=catalog_version)
            if cached is not None:
                return cached
        outcome = self.resolve(name, table)
        if catalog_version is not None:
            self.cache.store(kind, name, outcome, catalog_version=catalog_version)
        return outcome

    def match_catalog(self, name: str, catalog: Catalog, kind: str) -> MatchOutcome:
        return self.match(name, catalog.table(kind), kind=kind, catalog_version=catalog.version)

    def resolve(self, name: str, table: Mapping[str, CatalogEntry]) -> MatchOutcome:
        """Uncached resolution."""
        entry = table.get(name)
        if entry is not None:
            return MatchOutcome(entry=entry, status=MATCHED, tier=TIER_EXACT, key=name)

        for candidate in self.normalizer.candidates(name):
            entry = table.get(candidate)
            if entry is not None:
                return MatchOutcome(entry=entry, status=MATCHED, tier=TIER_NORMALIZED, key=candidate)

        if is_hash_name(name):
            self.logger.debug("Obfuscated (hash-like) name: %s", name)
            return _OBFUSCATED_OUTCOME

        key = _substring_match(name, table)
        if key is not None:
            return MatchOutcome(entry=table[key], status=MATCHED, tier=TIER_SUBSTRING, key=key)
        return _UNMATCHED_OUTCOME


__all__ = [
    "LibraryMatcher",
    "MATCHED",
    "MatchOutcome",
    "OBFUSCATED",
    "UNMATCHED",
    "is_hash_name",
]

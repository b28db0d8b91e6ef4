"""Session-scoped memo of name-to-catalog match outcomes."""

from __future__ import annotations

from typing import TYPE_CHECKING, Dict, Optional, Tuple

from ..logging import get_logger

if TYPE_CHECKING:  # pragma: no cover - typing aid
    from ..matching.matcher import MatchOutcome

_Key = Tuple[str, str]


class MatchCache:
    """Stores match outcomes keyed by ``(kind, literal name)``.

    A cache is bound to one catalog version. Reading or writing with a
    different version drops every entry first, so outcomes computed against an
    older catalog are never served. One cache must not be shared by analyses
    running at the same time.
    """

    def __init__(self, catalog_version: str | None = None) -> None:
        self._version = catalog_version
        self._entries: Dict[_Key, "MatchOutcome"] = {}
        self.hits = 0
        self.misses = 0
        self.logger = get_logger("stores.match_cache")

    @property
    def catalog_version(self) -> str | None:
        return self._version

    def __len__(self) -> int:
        return len(self._entries)

    def bind(self, catalog_version: str) -> None:
        """Attach to ``catalog_version``, invalidating entries from any other version."""
        if catalog_version == self._version:
            return
        if self._entries:
            self.logger.debug(
                "Catalog version changed (%s -> %s); dropping %d cached match(es)",
                self._version,
                catalog_version,
                len(self._entries),
            )
        self._entries.clear()
        self._version = catalog_version

    def get(self, kind: str, name: str, *, catalog_version: str) -> Optional["MatchOutcome"]:
        self.bind(catalog_version)
        outcome = self._entries.get((kind, name))
        if outcome is None:
            self.misses += 1
        else:
            self.hits += 1
        return outcome

    def store(self, kind: str, name: str, outcome: "MatchOutcome", *, catalog_version: str) -> None:
        self.bind(catalog_version)
        self._entries[(kind, name)] = outcome

    def clear(self) -> None:
        self._entries.clear()
        self.hits = 0
        self.misses = 0


__all__ = ["MatchCache"]

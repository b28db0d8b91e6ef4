"""Catalog and cache stores."""

from .catalog import Catalog, CatalogError, build_catalog, load_catalog, write_catalog
from .match_cache import MatchCache

__all__ = [
    "Catalog",
    "CatalogError",
    "MatchCache",
    "build_catalog",
    "load_catalog",
    "write_catalog",
]

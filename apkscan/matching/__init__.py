"""Name normalization, catalog matching and result merging."""

from .aggregator import MatchSummary, ResultAggregator, sort_libraries
from .matcher import MATCHED, OBFUSCATED, UNMATCHED, LibraryMatcher, MatchOutcome, is_hash_name
from .normalizer import NameNormalizer, Recipe

__all__ = [
    "LibraryMatcher",
    "MATCHED",
    "MatchOutcome",
    "MatchSummary",
    "NameNormalizer",
    "OBFUSCATED",
    "Recipe",
    "ResultAggregator",
    "UNMATCHED",
    "is_hash_name",
    "sort_libraries",
]

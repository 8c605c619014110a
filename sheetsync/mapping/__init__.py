"""Header normalization, fuzzy column matching and row mapping."""

from .matcher import MatchResult, MatchRule, MatchSettings, match_header, resolve_header
from .normalizer import normalize_header
from .row_mapper import HeaderCache, SpreadsheetRowMapper, UnmatchedRowError

__all__ = [
    "HeaderCache",
    "MatchResult",
    "MatchRule",
    "MatchSettings",
    "SpreadsheetRowMapper",
    "UnmatchedRowError",
    "match_header",
    "normalize_header",
    "resolve_header",
]

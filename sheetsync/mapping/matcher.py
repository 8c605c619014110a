from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from functools import lru_cache
from typing import Any

from rapidfuzz.distance import Levenshtein

from ..models.schema import Schema
from .normalizer import normalize_header

"""Fuzzy column matcher.

Resolves one raw spreadsheet header to at most one canonical schema key.
Rules are tried in order of confidence and the first hit wins:

1. EXACT       header is a canonical key (case-sensitive)
2. ALIAS       header is a key of ``schema.key_map``
3. NORMALIZED  normalized header equals a normalized key or alias
4. FUZZY       Levenshtein distance to a normalized key or alias is within
               ``min(max_distance, len(candidate) // chars_per_edit)``

Anything else is no-match: unrecognized columns are dropped rather than
guessed.
"""

__all__ = [
    "MatchResult",
    "MatchRule",
    "MatchSettings",
    "match_header",
    "resolve_header",
]

logger = logging.getLogger(__name__)

DEFAULT_MAX_DISTANCE = 2
DEFAULT_CHARS_PER_EDIT = 4


class MatchRule(Enum):
    EXACT = "exact"
    ALIAS = "alias"
    NORMALIZED = "normalized"
    FUZZY = "fuzzy"


@dataclass(frozen=True)
class MatchSettings:
    """Fuzzy matching thresholds.

    A candidate of length n tolerates ``min(max_distance, n // chars_per_edit)``
    edits: 1 edit from 4 characters, 2 from 8 with the defaults. Candidates
    shorter than ``chars_per_edit`` only match exactly.
    """
    max_distance: int = DEFAULT_MAX_DISTANCE
    chars_per_edit: int = DEFAULT_CHARS_PER_EDIT

    def __post_init__(self) -> None:
        if self.max_distance < 0:
            raise ValueError("max_distance must be >= 0")
        if self.chars_per_edit < 1:
            raise ValueError("chars_per_edit must be >= 1")

    def limit_for(self, candidate: str) -> int:
        return min(self.max_distance, len(candidate) // self.chars_per_edit)


DEFAULT_SETTINGS = MatchSettings()


@dataclass(frozen=True)
class MatchResult:
    key: str
    rule: MatchRule
    distance: int = 0


@lru_cache(maxsize=64)
def _candidates(schema: Schema) -> tuple[tuple[str, str], ...]:
    """(normalized form, canonical key) pairs: keys first, then aliases."""
    pairs: list[tuple[str, str]] = []
    for key in schema.keys:
        pairs.append((normalize_header(key), key))
    for alias, key in schema.key_map.items():
        pairs.append((normalize_header(alias), key))
    # 空文字に正規化される候補は比較対象外
    return tuple((norm, key) for norm, key in pairs if norm)


def resolve_header(
    header: Any,
    schema: Schema,
    settings: MatchSettings | None = None,
) -> MatchResult | None:
    """Resolve ``header`` to a canonical key, reporting which rule fired."""
    settings = settings or DEFAULT_SETTINGS

    if isinstance(header, str):
        if header in schema.keys:
            return MatchResult(header, MatchRule.EXACT)
        if header in schema.key_map:
            return MatchResult(schema.key_map[header], MatchRule.ALIAS)

    normalized = normalize_header(header)
    if not normalized:
        return None

    candidates = _candidates(schema)
    for norm, key in candidates:
        if norm == normalized:
            return MatchResult(key, MatchRule.NORMALIZED)

    best: tuple[int, str] | None = None
    for norm, key in candidates:
        limit = settings.limit_for(norm)
        if limit == 0:
            continue
        distance = Levenshtein.distance(normalized, norm, score_cutoff=limit)
        if distance > limit:
            continue
        if best is None or (distance, key) < best:
            best = (distance, key)

    if best is None:
        return None
    distance, key = best
    logger.debug("fuzzy header match %r -> %s (distance=%d)", header, key, distance)
    return MatchResult(key, MatchRule.FUZZY, distance)


def match_header(
    header: Any,
    schema: Schema,
    settings: MatchSettings | None = None,
) -> str | None:
    """Return the canonical key ``header`` resolves to, or None."""
    result = resolve_header(header, schema, settings)
    return result.key if result is not None else None

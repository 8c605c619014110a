from __future__ import annotations

import logging
from datetime import date, datetime, timedelta
from typing import Any

import pandas as pd

from ..models.import_source import CanonicalRecord, RawRow
from ..models.schema import Schema
from ..models.validation import ISSUE_UNMATCHED_ROW, ValidationError, ValidationIssue
from .matcher import MatchResult, MatchSettings, resolve_header

"""Row mapper: raw spreadsheet row -> canonical record.

Header resolutions are memoized in a HeaderCache owned by the caller. A
cache is only valid for one header vocabulary: "Name" in one file may mean
something other than "Name" in another, so create a fresh cache (or a fresh
SpreadsheetRowMapper) per source file. Cache size is bounded by the number
of distinct headers seen, not by the number of rows.
"""

__all__ = [
    "HeaderCache",
    "SpreadsheetRowMapper",
    "UnmatchedRowError",
]

logger = logging.getLogger(__name__)

# Excel のシリアル日付 (1900 日付システム、閏年バグ込み)
EXCEL_EPOCH = date(1899, 12, 30)
EXCEL_MAX_SERIAL = 2958465  # 9999-12-31
# 1910-01-01 未満は年 (2024) などの数値と区別できないため変換しない
EXCEL_MIN_SERIAL = (date(1910, 1, 1) - EXCEL_EPOCH).days


class UnmatchedRowError(ValidationError):
    """Raised in strict mode when no header of a row maps to the schema."""

    def __init__(self, issue: ValidationIssue) -> None:
        self.issue = issue
        super().__init__([issue])


class HeaderCache:
    """Memo of raw header -> MatchResult (or None for no-match) for one schema."""

    def __init__(self, schema: Schema) -> None:
        self.schema = schema
        self._entries: dict[Any, MatchResult | None] = {}
        self.hits = 0
        self.misses = 0

    def lookup(self, header: Any, settings: MatchSettings | None = None) -> MatchResult | None:
        if header in self._entries:
            self.hits += 1
            return self._entries[header]
        self.misses += 1
        result = resolve_header(header, self.schema, settings)
        self._entries[header] = result
        if result is None:
            logger.debug("schema=%s dropping unrecognized header %r", self.schema.base_name, header)
        else:
            logger.debug(
                "schema=%s header %r -> %s (%s)",
                self.schema.base_name, header, result.key, result.rule.value,
            )
        return result

    def __contains__(self, header: object) -> bool:
        return header in self._entries

    def __len__(self) -> int:
        return len(self._entries)

    def clear(self) -> None:
        self._entries.clear()
        self.hits = 0
        self.misses = 0


def _clean_value(value: Any) -> Any:
    if value is None:
        return None
    if isinstance(value, str):
        return value.strip()
    # NaN / NaT / pd.NA -> None (配列値はそのまま)
    if pd.isna(value) is True:
        return None
    return value


def _coerce_date(value: Any) -> Any:
    """ISO date string for date-like values; anything else unchanged."""
    if isinstance(value, datetime):
        return value.date().isoformat()
    if isinstance(value, date):
        return value.isoformat()
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        if EXCEL_MIN_SERIAL <= value <= EXCEL_MAX_SERIAL:
            return (EXCEL_EPOCH + timedelta(days=int(value))).isoformat()
    return value


class SpreadsheetRowMapper:
    """Maps raw rows onto ``schema``, caching header resolutions.

    Not safe to reuse across sources with different header vocabularies;
    see the module docstring.
    """

    def __init__(
        self,
        schema: Schema,
        cache: HeaderCache | None = None,
        settings: MatchSettings | None = None,
    ) -> None:
        if cache is not None and cache.schema != schema:
            raise ValueError(
                f"header cache is bound to schema '{cache.schema.base_name}', "
                f"not '{schema.base_name}'"
            )
        self.schema = schema
        self.cache = cache if cache is not None else HeaderCache(schema)
        self.settings = settings
        self.rows_mapped = 0

    def format_row(self, raw_row: RawRow, strict: bool = False) -> CanonicalRecord:
        """Return the canonical record for ``raw_row``.

        Headers are visited in sorted order so that when two headers resolve
        to the same key the outcome does not depend on column order: the
        later header wins. In strict mode a row whose headers all fail to
        resolve raises UnmatchedRowError instead of yielding an empty record.
        """
        self.rows_mapped += 1
        schema = self.schema
        passthrough = schema.passthrough_key
        mapped: dict[str, Any] = {}
        sources: dict[str, Any] = {}
        considered: list[Any] = []

        for header in sorted(raw_row, key=str):
            if passthrough is not None and header == passthrough:
                continue
            considered.append(header)
            result = self.cache.lookup(header, self.settings)
            if result is None:
                continue
            if result.key in sources:
                logger.warning(
                    "schema=%s headers %r and %r both map to '%s'; using %r",
                    schema.base_name, sources[result.key], header, result.key, header,
                )
            sources[result.key] = header
            mapped[result.key] = _clean_value(raw_row[header])

        if strict and considered and not mapped:
            shown = ", ".join(repr(h) for h in considered)
            raise UnmatchedRowError(ValidationIssue(
                index=self.rows_mapped,
                field=None,
                message=f"no column matched schema '{schema.base_name}' (headers: {shown})",
                identifier=raw_row.get(passthrough) if passthrough else None,
                error_type=ISSUE_UNMATCHED_ROW,
            ))

        record: CanonicalRecord = {}
        if passthrough is not None and passthrough in raw_row:
            record[passthrough] = _clean_value(raw_row[passthrough])
        for key in schema.keys:
            if key in mapped:
                value = mapped[key]
                if key in schema.date_columns:
                    value = _coerce_date(value)
                record[key] = value
        return record

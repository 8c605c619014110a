from __future__ import annotations

import json
import logging
from collections import Counter
from collections.abc import Mapping, Sequence
from typing import Any

from ..models.diff_result import ARROW, DiffResult, DiffStatus
from ..models.import_source import CanonicalRecord
from ..models.schema import Schema

"""Diff engine: classify incoming records against stored records.

Records are matched on ``schema.primary_key``. The result list puts
MODIFIED entries first (they need a reviewer's attention), followed by NEW
and DUPLICATE entries, each group in incoming order.

Imports are treated as additive/updating: stored records with no incoming
counterpart are never emitted as diff results. ``find_missing`` reports
them separately for callers that want to show them.
"""

__all__ = [
    "count_by_status",
    "diff_import",
    "diff_records",
    "find_duplicate_keys",
    "find_missing",
    "format_change",
]

logger = logging.getLogger(__name__)


def _stringify(value: Any) -> str:
    """Comparison form of a field value; missing and None compare as ""."""
    if value is None:
        return ""
    if isinstance(value, str):
        return value
    # pandas は欠損を含む整数列を float にするため 2.0 と 2 を同一視
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


def _render(value: Any) -> str:
    if value is None:
        return '""'
    return json.dumps(value, ensure_ascii=False, default=str)


def format_change(old: Any, new: Any) -> str:
    """'"Peach" → "Daisy"' style rendering of one field change."""
    return f"{_render(old)} {ARROW} {_render(new)}"


def _changes(old: Mapping[str, Any], new: Mapping[str, Any], schema: Schema) -> dict[str, str]:
    changes: dict[str, str] = {}
    for key in schema.keys:
        if key not in old and key not in new:
            continue
        before, after = old.get(key), new.get(key)
        if _stringify(before) != _stringify(after):
            changes[key] = format_change(before, after)
    return changes


def _index_by_key(records: Sequence[CanonicalRecord], schema: Schema) -> dict[str, CanonicalRecord]:
    index: dict[str, CanonicalRecord] = {}
    for record in records:
        pk = _stringify(record.get(schema.primary_key))
        if not pk:
            continue
        if pk in index:
            # 既存データ側の重複は last-write-wins (警告のみ)
            logger.warning(
                "schema=%s duplicate stored %s=%r; the later record is used for matching",
                schema.base_name, schema.primary_key, pk,
            )
        index[pk] = record
    return index


def diff_records(
    incoming: Sequence[CanonicalRecord],
    existing: Sequence[CanonicalRecord],
    schema: Schema,
) -> list[DiffResult]:
    """Classify each incoming record as NEW, DUPLICATE or MODIFIED.

    Every incoming record yields exactly one DiffResult. Field values are
    compared in string form, with missing fields and None equal to "", so a
    partially filled stored record shows up as modified rather than failing.
    """
    index = _index_by_key(existing, schema)
    modified: list[DiffResult] = []
    others: list[DiffResult] = []

    for record in incoming:
        pk = _stringify(record.get(schema.primary_key))
        stored = index.get(pk) if pk else None
        if stored is None:
            others.append(DiffResult(DiffStatus.NEW, record))
            continue
        changes = _changes(stored, record, schema)
        if changes:
            modified.append(DiffResult(DiffStatus.MODIFIED, record, changes))
        else:
            others.append(DiffResult(DiffStatus.DUPLICATE, stored))

    return modified + others


def diff_import(
    base_name: str,
    incoming: Sequence[CanonicalRecord],
    existing: Mapping[str, Sequence[CanonicalRecord]],
    registry: Mapping[str, Schema],
) -> list[DiffResult]:
    """Diff ``incoming`` against ``existing[base_name]`` using the registered schema.

    Raises KeyError when ``base_name`` has no registered schema. A missing
    ``existing`` entry means nothing is stored yet (everything is NEW).
    """
    schema = registry[base_name]
    return diff_records(incoming, existing.get(base_name, []), schema)


def find_duplicate_keys(records: Sequence[CanonicalRecord], schema: Schema) -> dict[str, int]:
    """Primary key values occurring more than once, with their counts."""
    counts = Counter(_stringify(r.get(schema.primary_key)) for r in records)
    return {pk: n for pk, n in counts.items() if pk and n > 1}


def find_missing(
    incoming: Sequence[CanonicalRecord],
    existing: Sequence[CanonicalRecord],
    schema: Schema,
) -> list[CanonicalRecord]:
    """Stored records whose primary key does not appear in ``incoming``."""
    seen = {_stringify(r.get(schema.primary_key)) for r in incoming}
    missing = []
    for record in existing:
        pk = _stringify(record.get(schema.primary_key))
        if pk and pk not in seen:
            missing.append(record)
    return missing


def count_by_status(results: Sequence[DiffResult]) -> dict[DiffStatus, int]:
    counts = {status: 0 for status in DiffStatus}
    for result in results:
        counts[result.status] += 1
    return counts

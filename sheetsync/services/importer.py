from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import Any

from ..mapping.matcher import MatchSettings
from ..mapping.row_mapper import SpreadsheetRowMapper, UnmatchedRowError
from ..models.import_source import CanonicalRecord, ImportSource
from ..models.schema import Schema
from ..models.validation import ValidationError, ValidationIssue
from .validator import validate

"""Import normalization: parsed rows -> validated canonical batch.

Orchestration only. One row mapper per call (its header cache belongs to
this source), rows mapped in order, then the validator runs over the whole
batch. Unmatched rows found in strict mode and missing required fields are
reported together in a single ValidationError; no partial batch is ever
returned.
"""

__all__ = [
    "normalize_import",
]

logger = logging.getLogger(__name__)


def normalize_import(
    source: ImportSource | Mapping[str, Any],
    schema: Schema,
    *,
    strict: bool = True,
    settings: MatchSettings | None = None,
) -> list[CanonicalRecord]:
    """Map and validate every row of ``source`` against ``schema``.

    Parameters
    ----------
    source: ImportSource, or ``{"data": [...], "fileType": "json"}``
    schema: target schema
    strict: fail rows whose headers match nothing (False for preview workflows)
    settings: fuzzy matching thresholds

    Raises
    ------
    ValidationError: unmatched rows (strict) and/or missing required fields
    """
    src = ImportSource.coerce(source)
    label = src.name or "<memory>"
    logger.debug(
        "normalizing %d rows from %s (%s) as %s",
        len(src.data), label, src.file_type.value, schema.base_name,
    )

    mapper = SpreadsheetRowMapper(schema, settings=settings)
    records: list[CanonicalRecord] = []
    unmatched: list[ValidationIssue] = []
    for raw in src.data:
        try:
            records.append(mapper.format_row(raw, strict))
        except UnmatchedRowError as e:
            unmatched.append(e.issue)
            # 後続の index をずらさないため空レコードで位置を保持
            records.append({})

    if not unmatched:
        validate(records, schema)
    else:
        issues = list(unmatched)
        try:
            validate(records, schema)
        except ValidationError as e:
            unmatched_rows = {i.index for i in unmatched}
            issues.extend(i for i in e.issues if i.index not in unmatched_rows)
        raise ValidationError(issues)

    logger.debug(
        "%s: %d records, header cache %d entries (%d hits)",
        label, len(records), len(mapper.cache), mapper.cache.hits,
    )
    return records

from __future__ import annotations

from collections.abc import Sequence
from datetime import date, datetime
from typing import Any

from ..models.import_source import CanonicalRecord, FileType
from ..models.schema import Schema

"""Exporter: canonical batch -> file-ready rows.

Produces plain row dicts in a fixed column order for a file writer. Tabular
formats (csv/xlsx) get "" for missing values and ISO strings for dates;
json keeps None.
"""

__all__ = [
    "export_columns",
    "export_rows",
]


def export_columns(records: Sequence[CanonicalRecord], schema: Schema) -> list[str]:
    """Schema key order, with the passthrough key first when any record has it."""
    columns = list(schema.keys)
    passthrough = schema.passthrough_key
    if passthrough is not None and any(passthrough in r for r in records):
        columns.insert(0, passthrough)
    return columns


def _export_value(value: Any, tabular: bool) -> Any:
    if isinstance(value, datetime):
        return value.date().isoformat()
    if isinstance(value, date):
        return value.isoformat()
    if value is None and tabular:
        return ""
    return value


def export_rows(
    records: Sequence[CanonicalRecord],
    schema: Schema,
    file_type: FileType | str,
) -> list[dict[str, Any]]:
    ft = FileType.parse(file_type)
    tabular = ft is not FileType.JSON
    columns = export_columns(records, schema)
    rows: list[dict[str, Any]] = []
    for record in records:
        if tabular:
            rows.append({c: _export_value(record.get(c), True) for c in columns})
        else:
            # json は存在するキーのみ出力
            rows.append({c: _export_value(record[c], False) for c in columns if c in record})
    return rows

"""Core services: validation, import normalization, diffing and export."""

from .diff import count_by_status, diff_import, diff_records, find_duplicate_keys, find_missing
from .exporter import export_rows
from .importer import normalize_import
from .validator import validate

__all__ = [
    "count_by_status",
    "diff_import",
    "diff_records",
    "export_rows",
    "find_duplicate_keys",
    "find_missing",
    "normalize_import",
    "validate",
]

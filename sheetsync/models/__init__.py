"""Domain models for the sheetsync import / reconciliation tool.

Schemas describe canonical record types; the remaining models carry data
between the row mapper, validator, diff engine and the CLI.
"""

from .diff_result import DiffResult, DiffStatus
from .import_source import CanonicalRecord, FileType, ImportSource, RawRow
from .schema import Schema, SchemaConfigurationError, SchemaRegistry
from .validation import ValidationError, ValidationIssue

__all__ = [
    # Schema
    "Schema",
    "SchemaConfigurationError",
    "SchemaRegistry",
    # Import
    "CanonicalRecord",
    "FileType",
    "ImportSource",
    "RawRow",
    # Validation
    "ValidationError",
    "ValidationIssue",
    # Diff
    "DiffResult",
    "DiffStatus",
]

from __future__ import annotations

import json
from dataclasses import asdict, dataclass
from datetime import UTC, datetime

from .validation import ValidationIssue

"""ErrorRecord model for the JSON Lines error log.

Each ErrorRecord is one validation issue found while importing a file. The
key set is fixed (see config/contracts/error_log_schema.json); row=-1 marks
file-level errors where no record position applies.
"""

__all__ = [
    "ErrorRecord",
]


@dataclass(frozen=True)
class ErrorRecord:
    """Structured error record for JSON Lines logging.

    Attributes:
        timestamp: ISO8601 UTC timestamp with 'Z' suffix
        file: Source file name
        schema: Schema base_name the file was imported as
        row: Record position (1-based). -1 for file-level errors
        field: Canonical field involved, or None
        error_type: Error classification in UPPER_SNAKE_CASE format
        message: Description of the problem
    """
    timestamp: str  # ISO8601 UTC
    file: str
    schema: str
    row: int  # 不明な場合 -1
    field: str | None
    error_type: str  # UPPER_SNAKE
    message: str

    @staticmethod
    def create(
        file: str,
        schema: str,
        row: int,
        error_type: str,
        message: str,
        field: str | None = None,
    ) -> ErrorRecord:
        """Create a new ErrorRecord stamped with the current UTC time."""
        ts = datetime.now(UTC).isoformat().replace("+00:00", "Z")
        return ErrorRecord(
            timestamp=ts,
            file=file,
            schema=schema,
            row=row,
            field=field,
            error_type=error_type,
            message=message,
        )

    @staticmethod
    def from_issue(file: str, schema: str, issue: ValidationIssue) -> ErrorRecord:
        return ErrorRecord.create(
            file=file,
            schema=schema,
            row=issue.index,
            error_type=issue.error_type,
            message=issue.describe(),
            field=issue.field,
        )

    def to_json_line(self) -> str:
        """Serialize to one JSON line (no extra keys)."""
        return json.dumps(asdict(self), ensure_ascii=False)

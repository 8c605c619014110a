from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass
from typing import Any

"""Validation issue model and the ValidationError that carries them.

Issues are accumulated for a whole batch so a caller can show every
offending record and field at once instead of one failure per attempt.
"""

__all__ = [
    "ISSUE_MISSING_REQUIRED",
    "ISSUE_UNMATCHED_ROW",
    "ValidationError",
    "ValidationIssue",
]

ISSUE_MISSING_REQUIRED = "MISSING_REQUIRED_FIELD"
ISSUE_UNMATCHED_ROW = "UNMATCHED_ROW"


@dataclass(frozen=True)
class ValidationIssue:
    """One problem found on one record.

    Attributes:
        index: 1-based position of the record within the batch
        field: Canonical field involved, or None for row-level problems
        message: Human readable description
        identifier: Primary key value of the record when known
        error_type: Classification in UPPER_SNAKE_CASE
    """
    index: int
    field: str | None
    message: str
    identifier: Any = None
    error_type: str = ISSUE_MISSING_REQUIRED

    def describe(self) -> str:
        where = f"record {self.index}"
        if self.identifier not in (None, ""):
            where += f" ({self.identifier})"
        return f"{where}: {self.message}"


class ValidationError(Exception):
    """Raised when a batch of records fails validation.

    ``issues`` holds every problem found, ordered by record index.
    """

    def __init__(self, issues: Iterable[ValidationIssue]) -> None:
        self.issues: list[ValidationIssue] = sorted(issues, key=lambda i: i.index)
        super().__init__(self._render())

    def _render(self) -> str:
        if not self.issues:
            return "validation failed"
        lines = "; ".join(issue.describe() for issue in self.issues)
        return f"{len(self.issues)} validation issue(s): {lines}"

    @property
    def fields(self) -> set[str]:
        return {i.field for i in self.issues if i.field is not None}

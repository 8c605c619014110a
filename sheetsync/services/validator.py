from __future__ import annotations

from collections.abc import Mapping, Sequence
from typing import Any

from ..models.schema import Schema
from ..models.validation import ValidationError, ValidationIssue

"""Required-field validation for canonical record batches.

Only presence and non-emptiness of ``schema.required_keys`` is checked.
Primary-key uniqueness is deliberately left to the diff engine, which has
to cope with repeated keys anyway.
"""

__all__ = [
    "ValidationError",
    "is_empty",
    "validate",
]


def is_empty(value: Any) -> bool:
    """None, "" and whitespace-only strings count as empty."""
    if value is None:
        return True
    if isinstance(value, str):
        return value.strip() == ""
    return False


def validate(records: Sequence[Mapping[str, Any]], schema: Schema) -> None:
    """Raise ValidationError listing every missing/empty required field.

    Parameters
    ----------
    records: canonical records to check
    schema: schema whose required_keys apply

    Raises
    ------
    ValidationError: one issue per (record, field) violation, ordered by record
    """
    issues: list[ValidationIssue] = []
    # required_keys は frozenset なので keys 順で走査して出力順を固定
    required = [k for k in schema.keys if k in schema.required_keys]
    for index, record in enumerate(records, 1):
        identifier = record.get(schema.primary_key)
        if is_empty(identifier):
            identifier = None
        for key in required:
            if key not in record:
                issues.append(ValidationIssue(index, key, f"missing required field '{key}'", identifier))
            elif is_empty(record[key]):
                issues.append(ValidationIssue(index, key, f"required field '{key}' is empty", identifier))
    if issues:
        raise ValidationError(issues)

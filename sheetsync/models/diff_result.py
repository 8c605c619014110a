from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any

"""DiffResult model and DiffStatus enum.

One DiffResult is produced per incoming record considered by the diff
engine. ``obj`` is the record a reviewer should look at: the incoming
version for NEW / MODIFIED, the stored version for DUPLICATE.
"""

__all__ = [
    "ARROW",
    "DiffResult",
    "DiffStatus",
]

ARROW = "→"


class DiffStatus(Enum):
    """Classification of an incoming record against stored records.

    - NEW: no stored record shares its primary key
    - DUPLICATE: a stored record matches and no field differs
    - MODIFIED: a stored record matches and at least one field differs
    """
    NEW = "new"
    DUPLICATE = "duplicate"
    MODIFIED = "modified"


@dataclass(frozen=True)
class DiffResult:
    status: DiffStatus
    obj: dict[str, Any]
    changes: dict[str, str] = field(default_factory=dict)  # key -> '"old" → "new"'

    @property
    def is_modified(self) -> bool:
        return self.status is DiffStatus.MODIFIED

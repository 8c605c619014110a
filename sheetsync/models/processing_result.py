from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime

"""Processing result models for multi-file imports.

FileStat describes one imported file; ProcessingResult aggregates a whole
run and feeds the SUMMARY line.
"""

__all__ = [
    "FileStat",
    "ProcessingResult",
]


@dataclass(frozen=True)
class FileStat:
    """Per-file import statistics."""
    file_name: str
    status: str  # success/failed
    records: int  # 正規化済みレコード数 (失敗時 0)
    issues: int = 0  # 検出した検証エラー数
    elapsed_seconds: float = 0.0


@dataclass(frozen=True)
class ProcessingResult:
    """Aggregated results of an import run."""
    success_files: int
    failed_files: int
    total_records: int
    start_time: datetime
    end_time: datetime
    elapsed_seconds: float
    file_stats: list[FileStat] | None = None

    @property
    def total_files(self) -> int:
        return self.success_files + self.failed_files

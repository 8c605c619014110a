from __future__ import annotations

from collections.abc import Mapping

from ..models.diff_result import DiffStatus
from ..models.processing_result import ProcessingResult

"""SUMMARY line rendering for import and diff runs.

Formats:
    SUMMARY files={n}/{n} success={s} failed={f} records={r} elapsed_sec={e}
    SUMMARY records={t} new={n} modified={m} duplicate={d} missing={x}
"""


def _format_seconds(seconds: float) -> str:
    if seconds == 0:
        return "0"
    if seconds == int(seconds):
        return str(int(seconds))
    if seconds < 0.01:
        # 指数表記を避ける
        return f"{seconds:.6f}".rstrip("0").rstrip(".")
    return str(round(seconds, 3))


def render_import_summary(result: ProcessingResult) -> str:
    """Render the SUMMARY line for an import run.

    Examples:
        >>> from datetime import datetime, timezone
        >>> start = datetime(2023, 1, 1, 10, 0, 0, tzinfo=timezone.utc)
        >>> end = datetime(2023, 1, 1, 10, 0, 2, tzinfo=timezone.utc)
        >>> result = ProcessingResult(
        ...     success_files=1, failed_files=0, total_records=3,
        ...     start_time=start, end_time=end, elapsed_seconds=2.0,
        ... )
        >>> render_import_summary(result)
        'SUMMARY files=1/1 success=1 failed=0 records=3 elapsed_sec=2'
    """
    total = result.total_files
    return (
        f"SUMMARY files={total}/{total} "
        f"success={result.success_files} "
        f"failed={result.failed_files} "
        f"records={result.total_records} "
        f"elapsed_sec={_format_seconds(result.elapsed_seconds)}"
    )


def render_diff_summary(counts: Mapping[DiffStatus, int], missing: int = 0) -> str:
    """Render the SUMMARY line for a diff run from ``count_by_status`` output."""
    new = counts.get(DiffStatus.NEW, 0)
    modified = counts.get(DiffStatus.MODIFIED, 0)
    duplicate = counts.get(DiffStatus.DUPLICATE, 0)
    return (
        f"SUMMARY records={new + modified + duplicate} "
        f"new={new} "
        f"modified={modified} "
        f"duplicate={duplicate} "
        f"missing={missing}"
    )

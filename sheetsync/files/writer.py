from __future__ import annotations

import json
from collections.abc import Sequence
from pathlib import Path
from typing import Any

import pandas as pd

from ..models.import_source import FileType

"""File writer: exporter rows -> json / csv / xlsx bytes on disk."""

__all__ = [
    "rows_to_json",
    "write_rows",
]


def rows_to_json(rows: Sequence[dict[str, Any]]) -> str:
    return json.dumps(list(rows), ensure_ascii=False, indent=2, default=str)


def write_rows(
    rows: Sequence[dict[str, Any]],
    path: Path,
    file_type: FileType | str | None = None,
    columns: Sequence[str] | None = None,
    sheet_name: str = "Sheet1",
) -> Path:
    """Write ``rows`` to ``path``; the format defaults to the path suffix."""
    ft = FileType.parse(file_type) if file_type is not None else FileType.from_path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    if ft is FileType.JSON:
        path.write_text(rows_to_json(rows) + "\n", encoding="utf-8")
        return path
    df = pd.DataFrame(list(rows), columns=list(columns) if columns is not None else None)
    if ft is FileType.CSV:
        df.to_csv(path, index=False)
    else:
        # シート名は Excel の上限 31 文字
        df.to_excel(path, index=False, sheet_name=sheet_name[:31])
    return path

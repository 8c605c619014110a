from __future__ import annotations

import json
from pathlib import Path
from typing import Any

import pandas as pd

from ..models.import_source import FileType, ImportSource

"""File reader: json / csv / xlsx -> ImportSource.

The first row of a csv/xlsx file is the header row; fully empty rows are
skipped and empty cells become None. Only the first sheet of a workbook is
read. Header strings are passed through untouched (apart from str()) so the
row mapper sees them exactly as the spreadsheet author wrote them.
"""

__all__ = [
    "FileFormatError",
    "UnsupportedFileError",
    "read_source",
]


class UnsupportedFileError(Exception):
    """Raised for file suffixes other than .json/.csv/.xlsx."""


class FileFormatError(Exception):
    """Raised when a file cannot be decoded into rows."""


def _na_options(keep_na_strings: list[str] | None) -> dict[str, Any]:
    # pandas 既定の NA 文字列から keep_na_strings を除外 (例: 'NA' という名字を保持)
    if not keep_na_strings:
        return {"keep_default_na": True, "na_values": None}
    import pandas._libs.parsers as parsers

    custom_na = parsers.STR_NA_VALUES.copy() - set(keep_na_strings)
    return {"keep_default_na": False, "na_values": list(custom_na)}


def _frame_to_rows(df: pd.DataFrame) -> list[dict[str, Any]]:
    df = df.dropna(how="all")
    columns = [str(c) for c in df.columns]
    rows: list[dict[str, Any]] = []
    for values in df.itertuples(index=False, name=None):
        rows.append({
            col: (None if pd.isna(val) is True else val)
            for col, val in zip(columns, values, strict=False)
        })
    return rows


def _read_json(path: Path) -> list[dict[str, Any]]:
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except json.JSONDecodeError as e:
        raise FileFormatError(f"{path.name}: invalid json: {e}") from e
    if not isinstance(data, list) or not all(isinstance(r, dict) for r in data):
        raise FileFormatError(f"{path.name}: expected a JSON array of objects")
    return data


def read_source(path: Path, keep_na_strings: list[str] | None = None) -> ImportSource:
    """Read ``path`` into an ImportSource.

    Parameters
    ----------
    path: .json, .csv or .xlsx file
    keep_na_strings: strings pandas would treat as missing that should be kept (csv/xlsx)
    """
    try:
        file_type = FileType.from_path(path)
    except ValueError as e:
        raise UnsupportedFileError(f"{path.name}: {e}") from e
    if not path.exists():
        raise FileNotFoundError(f"file not found: {path}")

    if file_type is FileType.JSON:
        rows = _read_json(path)
    elif file_type is FileType.CSV:
        df = pd.read_csv(path, dtype=str, **_na_options(keep_na_strings))
        rows = _frame_to_rows(df)
    else:
        df = pd.read_excel(path, sheet_name=0, dtype=object, **_na_options(keep_na_strings))
        rows = _frame_to_rows(df)
    return ImportSource(data=rows, file_type=file_type, name=path.name)

from __future__ import annotations

from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Any

"""ImportSource model and FileType enum.

An ImportSource is what a file parser hands to the import normalizer: rows
already decoded into header -> value mappings, plus the file type they came
from. The file type is provenance only; normalization never branches on it.
"""

__all__ = [
    "CanonicalRecord",
    "FileType",
    "ImportSource",
    "RawRow",
]

RawRow = Mapping[str, Any]
CanonicalRecord = dict[str, Any]


class FileType(Enum):
    """Spreadsheet formats exchanged with the tool."""
    JSON = "json"
    CSV = "csv"
    XLSX = "xlsx"

    @classmethod
    def parse(cls, value: FileType | str) -> FileType:
        if isinstance(value, FileType):
            return value
        try:
            return cls(str(value).strip().lower().lstrip("."))
        except ValueError:
            allowed = ", ".join(ft.value for ft in cls)
            raise ValueError(f"unsupported file type '{value}' (expected one of: {allowed})") from None

    @classmethod
    def from_path(cls, path: Path) -> FileType:
        return cls.parse(path.suffix)


@dataclass(frozen=True)
class ImportSource:
    """Parsed rows plus their provenance."""
    data: Sequence[RawRow]
    file_type: FileType
    name: str | None = None  # 元ファイル名 (ログ用)

    @classmethod
    def coerce(cls, source: ImportSource | Mapping[str, Any]) -> ImportSource:
        """Accept either an ImportSource or ``{"data": [...], "fileType": "csv"}``."""
        if isinstance(source, ImportSource):
            return source
        file_type = source.get("fileType", source.get("file_type"))
        if file_type is None:
            raise ValueError("import source is missing 'fileType'")
        return cls(
            data=list(source.get("data") or []),
            file_type=FileType.parse(file_type),
            name=source.get("name"),
        )

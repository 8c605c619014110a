from __future__ import annotations

import json
from pathlib import Path

import pandas as pd
import pytest

from sheetsync.files.reader import FileFormatError, UnsupportedFileError, read_source
from sheetsync.files.writer import rows_to_json, write_rows
from sheetsync.models.import_source import FileType


def _make_excel(tmp_path: Path, name: str, rows: list[list[object]]) -> Path:
    p = tmp_path / name
    with pd.ExcelWriter(p, engine="openpyxl") as writer:
        pd.DataFrame(rows).to_excel(writer, sheet_name="Sheet1", header=False, index=False)
    return p


def test_read_csv_keeps_headers_verbatim(temp_workdir: Path):
    p = temp_workdir / "data" / "roster.csv"
    p.write_text("First Name,LAST NAMEE,utorid\n Gordon ,Smith,booger\nTommy,,food\n", encoding="utf-8")
    src = read_source(p)
    assert src.file_type is FileType.CSV
    assert src.name == "roster.csv"
    assert src.data == [
        {"First Name": " Gordon ", "LAST NAMEE": "Smith", "utorid": "booger"},
        {"First Name": "Tommy", "LAST NAMEE": None, "utorid": "food"},
    ]


def test_read_csv_skips_fully_empty_rows(temp_workdir: Path):
    p = temp_workdir / "data" / "gaps.csv"
    p.write_text("utorid,email\nbooger,a@a.com\n,\nfood,a@b.com\n", encoding="utf-8")
    assert [r["utorid"] for r in read_source(p).data] == ["booger", "food"]


def test_read_xlsx_first_sheet(temp_workdir: Path):
    p = _make_excel(temp_workdir, "roster.xlsx", [
        ["Given Name", "Surname", "UTORid"],
        ["Gordon", "Smith", "booger"],
        [None, None, None],
        ["Tommy", None, "food"],
    ])
    src = read_source(p)
    assert src.file_type is FileType.XLSX
    assert len(src.data) == 2
    assert src.data[0] == {"Given Name": "Gordon", "Surname": "Smith", "UTORid": "booger"}
    assert src.data[1]["Surname"] is None


def test_keep_na_strings_preserves_literal_na(temp_workdir: Path):
    p = temp_workdir / "data" / "na.csv"
    p.write_text("utorid,last_name\nna01,NA\nna02,\n", encoding="utf-8")
    # 既定では 'NA' は欠損扱い
    assert read_source(p).data[0]["last_name"] is None
    kept = read_source(p, keep_na_strings=["NA"]).data
    assert kept[0]["last_name"] == "NA"
    assert kept[1]["last_name"] is None


def test_read_json_array(temp_workdir: Path):
    p = temp_workdir / "data" / "stored.json"
    p.write_text(json.dumps([{"id": 2, "utorid": "booger"}]), encoding="utf-8")
    src = read_source(p)
    assert src.file_type is FileType.JSON
    assert src.data == [{"id": 2, "utorid": "booger"}]


@pytest.mark.parametrize("content", ["{not json", '{"utorid": "x"}', "[1, 2]"])
def test_read_json_rejects_non_record_payloads(temp_workdir: Path, content: str):
    p = temp_workdir / "data" / "bad.json"
    p.write_text(content, encoding="utf-8")
    with pytest.raises(FileFormatError):
        read_source(p)


def test_unsupported_suffix(temp_workdir: Path):
    p = temp_workdir / "data" / "roster.ods"
    p.write_text("", encoding="utf-8")
    with pytest.raises(UnsupportedFileError):
        read_source(p)


def test_missing_file(temp_workdir: Path):
    with pytest.raises(FileNotFoundError):
        read_source(temp_workdir / "data" / "nope.csv")


def test_write_rows_csv_and_xlsx(temp_workdir: Path):
    rows = [{"utorid": "booger", "email": ""}, {"utorid": "food", "email": "a@b.com"}]
    csv_path = write_rows(rows, temp_workdir / "out" / "r.csv", columns=["utorid", "email"])
    assert csv_path.read_text(encoding="utf-8").splitlines()[0] == "utorid,email"

    xlsx_path = write_rows(rows, temp_workdir / "out" / "r.xlsx", sheet_name="instructors")
    df = pd.read_excel(xlsx_path, sheet_name="instructors", dtype=str)
    assert list(df.columns) == ["utorid", "email"]
    assert df.iloc[1]["email"] == "a@b.com"


def test_write_rows_json(temp_workdir: Path):
    rows = [{"utorid": "booger", "hours": None}]
    p = write_rows(rows, temp_workdir / "out" / "r.json")
    assert json.loads(p.read_text(encoding="utf-8")) == rows
    assert json.loads(rows_to_json(rows)) == rows

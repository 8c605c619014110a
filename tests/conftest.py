# Shared pytest fixtures
from __future__ import annotations

import tempfile
from pathlib import Path

import pytest

from sheetsync.models.schema import Schema


@pytest.fixture()
def temp_workdir(monkeypatch) -> Path:
    with tempfile.TemporaryDirectory() as d:
        p = Path(d)
        (p / "config").mkdir()
        (p / "data").mkdir()
        (p / "logs").mkdir()
        monkeypatch.chdir(p)
        monkeypatch.delenv("SHEETSYNC_CONFIG", raising=False)
        yield p


@pytest.fixture()
def sample_config_yaml() -> str:
    return """schemas:
  instructors:
    keys: [first_name, last_name, utorid, email]
    key_map:
      First Name: first_name
      Given Name: first_name
      First: first_name
      Last Name: last_name
      Surname: last_name
      Family Name: last_name
      Last: last_name
    required_keys: [utorid]
    primary_key: utorid
    date_columns: []
  positions:
    keys: [position_code, position_title, start_date, hours_per_assignment]
    key_map:
      Course Code: position_code
      Hours: hours_per_assignment
    required_keys: [position_code]
    primary_key: position_code
    date_columns: [start_date]
matching:
  max_distance: 2
  chars_per_edit: 4
error_log_dir: ./logs
"""


@pytest.fixture()
def write_config(temp_workdir: Path, sample_config_yaml: str) -> Path:
    cfg = temp_workdir / "config" / "sheetsync.yml"
    cfg.write_text(sample_config_yaml, encoding="utf-8")
    return cfg


@pytest.fixture()
def instructor_schema() -> Schema:
    return Schema.from_dict({
        "keys": ["first_name", "last_name", "utorid", "email"],
        "keyMap": {
            "First Name": "first_name",
            "Given Name": "first_name",
            "First": "first_name",
            "Last Name": "last_name",
            "Surname": "last_name",
            "Family Name": "last_name",
            "Last": "last_name",
        },
        "requiredKeys": ["utorid"],
        "primaryKey": "utorid",
        "dateColumns": [],
        "baseName": "instructors",
    })


@pytest.fixture()
def instructor_data() -> list[dict]:
    return [
        {"id": 2, "first_name": "Gordon", "last_name": "Smith", "email": "a@a.com", "utorid": "booger"},
        {"id": 3, "first_name": "Tommy", "last_name": "Smith", "email": "a@b.com", "utorid": "food"},
        {"first_name": "Grandpa", "last_name": "Boobie", "email": "a@d.com", "utorid": "fooc"},
    ]


@pytest.fixture()
def stored_instructors() -> list[dict]:
    return [
        {
            "id": 2,
            "first_name": "Princess",
            "last_name": "Peach",
            "email": "sorry@inaothercastle.com",
            "utorid": "IBakedACakeForYou",
        },
        {
            "id": 3,
            "first_name": "Mario",
            "last_name": "Mario",
            "email": "m@mushroomkingdom.com",
            "utorid": "itasmeM",
        },
        {
            "id": 4,
            "first_name": "Luigi",
            "last_name": "Mario",
            "email": "l@mushromkingdom.com",
            "utorid": "ohIMissedL",
        },
    ]

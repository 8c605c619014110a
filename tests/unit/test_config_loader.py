from __future__ import annotations

from pathlib import Path

import pytest

from sheetsync.config.loader import (
    DEFAULT_CONFIG_PATH,
    ConfigError,
    load_config,
    resolve_config_path,
)
from sheetsync.mapping.matcher import MatchSettings


def test_load_config_success(write_config: Path):
    cfg = load_config(write_config)
    assert set(cfg.registry) == {"instructors", "positions"}
    positions = cfg.registry["positions"]
    assert positions.primary_key == "position_code"
    assert positions.date_columns == frozenset({"start_date"})
    assert cfg.matching == MatchSettings(max_distance=2, chars_per_edit=4)
    assert cfg.error_log_dir == Path("./logs")


def test_packaged_default_config_loads():
    cfg = load_config(DEFAULT_CONFIG_PATH)
    assert {"instructors", "applicants", "positions"} <= set(cfg.registry)
    assert cfg.registry["instructors"].key_map["Surname"] == "last_name"


def test_load_config_missing_file(temp_workdir: Path):
    with pytest.raises(ConfigError):
        load_config(temp_workdir / "config" / "not_exists.yml")


def test_load_config_invalid_yaml(write_config: Path):
    write_config.write_text("schemas: [unclosed\n", encoding="utf-8")
    with pytest.raises(ConfigError) as e:
        load_config(write_config)
    assert "invalid yaml" in str(e.value)


def test_load_config_missing_required(write_config: Path):
    text = write_config.read_text(encoding="utf-8").replace("    primary_key: utorid\n", "")
    write_config.write_text(text, encoding="utf-8")
    with pytest.raises(ConfigError) as e:
        load_config(write_config)
    assert "config validation failed" in str(e.value) and "required property" in str(e.value)


def test_load_config_extra_field(write_config: Path):
    text = write_config.read_text(encoding="utf-8") + "\nextra_field: not_allowed\n"
    write_config.write_text(text, encoding="utf-8")
    with pytest.raises(ConfigError) as e:
        load_config(write_config)
    assert "config validation failed" in str(e.value)


def test_load_config_inconsistent_schema(write_config: Path):
    # JSON schema 上は正しいが primary_key が keys に無い
    text = write_config.read_text(encoding="utf-8").replace(
        "primary_key: position_code", "primary_key: course_code"
    )
    write_config.write_text(text, encoding="utf-8")
    with pytest.raises(ConfigError) as e:
        load_config(write_config)
    assert "invalid schema definition" in str(e.value)
    assert "positions" in str(e.value)


def test_matching_section_is_optional(write_config: Path):
    text = write_config.read_text(encoding="utf-8").replace(
        "matching:\n  max_distance: 2\n  chars_per_edit: 4\n", ""
    )
    write_config.write_text(text, encoding="utf-8")
    assert load_config(write_config).matching == MatchSettings()


def test_resolve_config_path_precedence(temp_workdir: Path, monkeypatch):
    assert resolve_config_path() == DEFAULT_CONFIG_PATH

    local = temp_workdir / "config" / "sheetsync.yml"
    local.write_text("schemas: {}\n", encoding="utf-8")
    assert resolve_config_path() == Path("config/sheetsync.yml")

    monkeypatch.setenv("SHEETSYNC_CONFIG", "/etc/sheetsync.yml")
    assert resolve_config_path() == Path("/etc/sheetsync.yml")

    assert resolve_config_path(Path("explicit.yml")) == Path("explicit.yml")

from __future__ import annotations

import json

import jsonschema
import pytest
import yaml

from sheetsync.config.loader import DEFAULT_CONFIG_PATH, SCHEMA_PATH

"""Config schema contract: packaged and sample configs validate, unknown keys do not."""


@pytest.fixture()
def config_schema() -> dict:
    return json.loads(SCHEMA_PATH.read_text(encoding="utf-8"))


def test_packaged_default_config_is_valid(config_schema):
    data = yaml.safe_load(DEFAULT_CONFIG_PATH.read_text(encoding="utf-8"))
    jsonschema.validate(data, config_schema)


def test_sample_config_is_valid(config_schema, sample_config_yaml):
    jsonschema.validate(yaml.safe_load(sample_config_yaml), config_schema)


def test_minimal_schema_entry_is_valid(config_schema):
    config = {"schemas": {"rooms": {"keys": ["room_code"], "primary_key": "room_code"}}}
    jsonschema.validate(config, config_schema)


@pytest.mark.parametrize("config", [
    {"schemas": {}},
    {"schemas": {"rooms": {"keys": ["room_code"]}}},
    {"schemas": {"rooms": {"keys": ["room_code"], "primary_key": "room_code", "table": "rooms"}}},
    {"schemas": {"rooms": {"keys": ["room_code"], "primary_key": "room_code"}}, "database": {}},
    {"schemas": {"rooms": {"keys": ["room_code"], "primary_key": "room_code"}},
     "matching": {"max_distance": -1}},
])
def test_invalid_configs_rejected(config_schema, config):
    with pytest.raises(jsonschema.exceptions.ValidationError):
        jsonschema.validate(config, config_schema)

from __future__ import annotations

import json
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any

import jsonschema
import yaml
from jsonschema.exceptions import ValidationError

from ..mapping.matcher import MatchSettings
from ..models.schema import Schema, SchemaConfigurationError, SchemaRegistry

"""Config loader.

Responsibilities:
- Load the YAML config (record schemas, matching thresholds, error log dir)
- Validate it against contracts/config_schema.json
- Build the SchemaRegistry (schema-level consistency is checked by Schema itself)
- Resolve which config file to use (flag > env > ./config/sheetsync.yml > packaged default)
"""

__all__ = [
    "AppConfig",
    "ConfigError",
    "DEFAULT_CONFIG_PATH",
    "ENV_CONFIG_PATH",
    "load_config",
    "resolve_config_path",
]

_package_dir = Path(__file__).parent
SCHEMA_PATH = _package_dir / "contracts" / "config_schema.json"
DEFAULT_CONFIG_PATH = _package_dir / "default.yml"
LOCAL_CONFIG_PATH = Path("config/sheetsync.yml")
ENV_CONFIG_PATH = "SHEETSYNC_CONFIG"


class ConfigError(Exception):
    pass


@dataclass(frozen=True)
class AppConfig:
    registry: SchemaRegistry
    matching: MatchSettings
    error_log_dir: Path
    source: Path  # 読み込んだ設定ファイル


def _validate_config_schema(data: dict[str, Any]) -> None:
    """Validate config data against the JSON schema contract.

    Raises:
        ConfigError: schema file missing or unreadable, or data violates it
    """
    if not SCHEMA_PATH.exists():
        raise ConfigError(f"config schema not found: {SCHEMA_PATH}")
    try:
        schema = json.loads(SCHEMA_PATH.read_text(encoding="utf-8"))
        jsonschema.validate(data, schema)
    except json.JSONDecodeError as e:
        raise ConfigError(f"invalid schema file: {e}") from e
    except ValidationError as e:
        where = "/".join(str(p) for p in e.absolute_path) or "<root>"
        raise ConfigError(f"config validation failed at {where}: {e.message}") from e


def _build_registry(raw_schemas: dict[str, Any]) -> SchemaRegistry:
    schemas = []
    for base_name, body in raw_schemas.items():
        try:
            schemas.append(Schema.from_dict(body, base_name=base_name))
        except SchemaConfigurationError as e:
            raise ConfigError(f"invalid schema definition: {e}") from e
    return SchemaRegistry(schemas)


def load_config(path: Path) -> AppConfig:
    if not path.exists():
        raise ConfigError(f"config file not found: {path}")
    try:
        data = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
    except yaml.YAMLError as e:
        raise ConfigError(f"invalid yaml: {e}") from e
    if not isinstance(data, dict):
        raise ConfigError(f"config root must be a mapping, got {type(data).__name__}")

    _validate_config_schema(data)

    matching_raw = data.get("matching") or {}
    matching = MatchSettings(**matching_raw)
    return AppConfig(
        registry=_build_registry(data["schemas"]),
        matching=matching,
        error_log_dir=Path(data.get("error_log_dir", "./logs")),
        source=path,
    )


def resolve_config_path(explicit: Path | None = None) -> Path:
    """Pick the config file: explicit path, $SHEETSYNC_CONFIG, local file, packaged default."""
    if explicit is not None:
        return explicit
    env_path = os.getenv(ENV_CONFIG_PATH)
    if env_path:
        return Path(env_path)
    if LOCAL_CONFIG_PATH.exists():
        return LOCAL_CONFIG_PATH
    return DEFAULT_CONFIG_PATH

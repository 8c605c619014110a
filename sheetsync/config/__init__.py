"""Configuration loading (YAML + JSON schema contract)."""

from .loader import AppConfig, ConfigError, load_config, resolve_config_path

__all__ = [
    "AppConfig",
    "ConfigError",
    "load_config",
    "resolve_config_path",
]

from __future__ import annotations

from collections.abc import Iterable, Iterator, Mapping
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any

"""Schema model for canonical record types.

A Schema describes the canonical field set one record type (instructors,
positions, ...) is normalized to, independent of how any spreadsheet names
its columns. Schemas are built once at startup and shared read-only by the
row mapper, validator, diff engine and exporter.
"""

__all__ = [
    "DEFAULT_PASSTHROUGH_KEY",
    "Schema",
    "SchemaConfigurationError",
    "SchemaRegistry",
]

DEFAULT_PASSTHROUGH_KEY = "id"


class SchemaConfigurationError(Exception):
    """Raised when a schema definition is malformed."""


@dataclass(frozen=True)
class Schema:
    """Canonical field definitions for one record type.

    Attributes:
        base_name: Record type identifier used for diff dispatch (e.g. "instructors")
        keys: Canonical field names, in export order
        key_map: Alias header -> canonical key
        required_keys: Keys that must be present and non-empty on every record
        primary_key: Key used to match incoming records against stored ones
        date_columns: Keys holding date values
        passthrough_key: Storage identifier kept when present on input (not part of keys)
    """
    base_name: str
    keys: tuple[str, ...]
    key_map: Mapping[str, str] = field(default_factory=dict)
    required_keys: frozenset[str] = frozenset()
    primary_key: str = ""
    date_columns: frozenset[str] = frozenset()
    passthrough_key: str | None = DEFAULT_PASSTHROUGH_KEY

    def __post_init__(self) -> None:
        # frozen なので object.__setattr__ で正規化
        object.__setattr__(self, "keys", tuple(self.keys))
        object.__setattr__(self, "key_map", MappingProxyType(dict(self.key_map)))
        object.__setattr__(self, "required_keys", frozenset(self.required_keys))
        object.__setattr__(self, "date_columns", frozenset(self.date_columns))
        self._check()

    def _check(self) -> None:
        if not self.base_name:
            raise SchemaConfigurationError("schema base_name must be a non-empty string")
        where = f"schema '{self.base_name}'"
        if not self.keys:
            raise SchemaConfigurationError(f"{where}: keys must not be empty")
        if len(set(self.keys)) != len(self.keys):
            dupes = sorted({k for k in self.keys if self.keys.count(k) > 1})
            raise SchemaConfigurationError(f"{where}: duplicate keys {dupes}")
        key_set = set(self.keys)
        if self.primary_key not in key_set:
            raise SchemaConfigurationError(
                f"{where}: primary_key '{self.primary_key}' is not one of the keys"
            )
        unknown_required = self.required_keys - key_set
        if unknown_required:
            raise SchemaConfigurationError(
                f"{where}: required_keys not in keys: {sorted(unknown_required)}"
            )
        unknown_dates = self.date_columns - key_set
        if unknown_dates:
            raise SchemaConfigurationError(
                f"{where}: date_columns not in keys: {sorted(unknown_dates)}"
            )
        bad_aliases = {a: k for a, k in self.key_map.items() if k not in key_set}
        if bad_aliases:
            raise SchemaConfigurationError(
                f"{where}: key_map targets unknown keys: {bad_aliases}"
            )
        if self.passthrough_key is not None and self.passthrough_key in key_set:
            raise SchemaConfigurationError(
                f"{where}: passthrough_key '{self.passthrough_key}' must not be a schema key"
            )

    def __hash__(self) -> int:
        return hash((self.base_name, self.keys, self.primary_key))

    @classmethod
    def from_dict(cls, data: Mapping[str, Any], base_name: str | None = None) -> Schema:
        """Build a Schema from its dictionary form.

        Accepts both snake_case (config file) and camelCase (``keyMap``,
        ``requiredKeys``, ``primaryKey``, ``dateColumns``, ``baseName``) names.
        """
        def pick(snake: str, camel: str, default: Any = None) -> Any:
            if snake in data:
                return data[snake]
            return data.get(camel, default)

        name = base_name or pick("base_name", "baseName")
        if not isinstance(name, str):
            raise SchemaConfigurationError("schema base_name must be a non-empty string")
        keys = data.get("keys")
        if not isinstance(keys, (list, tuple)):
            raise SchemaConfigurationError(f"schema '{name}': keys must be a list")
        return cls(
            base_name=name,
            keys=tuple(keys),
            key_map=dict(pick("key_map", "keyMap", {}) or {}),
            required_keys=frozenset(pick("required_keys", "requiredKeys", []) or []),
            primary_key=pick("primary_key", "primaryKey", ""),
            date_columns=frozenset(pick("date_columns", "dateColumns", []) or []),
            passthrough_key=pick("passthrough_key", "passthroughKey", DEFAULT_PASSTHROUGH_KEY),
        )


class SchemaRegistry(Mapping[str, Schema]):
    """Read-only lookup table base_name -> Schema."""

    def __init__(self, schemas: Iterable[Schema] = ()) -> None:
        self._schemas: dict[str, Schema] = {}
        for schema in schemas:
            if schema.base_name in self._schemas:
                raise SchemaConfigurationError(
                    f"duplicate schema base_name: '{schema.base_name}'"
                )
            self._schemas[schema.base_name] = schema

    def __getitem__(self, base_name: str) -> Schema:
        try:
            return self._schemas[base_name]
        except KeyError:
            known = ", ".join(sorted(self._schemas)) or "<none>"
            raise KeyError(f"unknown schema '{base_name}' (known: {known})") from None

    def __iter__(self) -> Iterator[str]:
        return iter(self._schemas)

    def __len__(self) -> int:
        return len(self._schemas)

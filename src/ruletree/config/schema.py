"""
ruletree config schema.

File: src/ruletree/config/schema.py

Purpose
- Define the engine settings model, its defaults, and strict validation of raw
  config mappings (TOML tables, env/override payloads).

Config layout
- ``[engine]``: ``capture_guard_errors`` (bool), ``log_transitions`` (bool)
- ``[logging]``: ``level`` (str), ``json`` (bool)

Functional requirements
- Unknown sections/keys and wrongly typed values are rejected with a dotted path.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any, Final, Literal

ValueKind = Literal["bool", "str"]

# (section, key) -> (EngineSettings attribute, value kind)
SETTINGS_FIELDS: Final[Mapping[tuple[str, str], tuple[str, ValueKind]]] = {
    ("engine", "capture_guard_errors"): ("capture_guard_errors", "bool"),
    ("engine", "log_transitions"): ("log_transitions", "bool"),
    ("logging", "level"): ("log_level", "str"),
    ("logging", "json"): ("json_logs", "bool"),
}

_LOG_LEVELS: Final[frozenset[str]] = frozenset(
    {"CRITICAL", "ERROR", "WARNING", "INFO", "DEBUG", "NOTSET"}
)


class ConfigValidationError(ValueError):
    """Raised when a config payload does not match the settings schema."""


@dataclass(frozen=True, slots=True)
class EngineSettings:
    """Runtime knobs for validation runs and the package logger."""

    capture_guard_errors: bool = True
    log_transitions: bool = False
    log_level: str = "INFO"
    json_logs: bool = True

    def __post_init__(self) -> None:
        for attribute in ("capture_guard_errors", "log_transitions", "json_logs"):
            value = getattr(self, attribute)
            if not isinstance(value, bool):
                raise ConfigValidationError(
                    f"{attribute}: expected boolean, got {type(value).__name__}"
                )
        if not isinstance(self.log_level, str):
            raise ConfigValidationError(
                f"log_level: expected string, got {type(self.log_level).__name__}"
            )
        level = self.log_level.strip().upper()
        if level not in _LOG_LEVELS:
            allowed = ", ".join(sorted(_LOG_LEVELS))
            raise ConfigValidationError(
                f"log_level: invalid value {self.log_level!r}; expected one of: {allowed}"
            )
        object.__setattr__(self, "log_level", level)

    @property
    def log_level_number(self) -> int:
        return logging.getLevelName(self.log_level)

    @classmethod
    def from_mapping(cls, payload: Mapping[str, object]) -> EngineSettings:
        """Build settings from a ``{section: {key: value}}`` mapping."""

        if not isinstance(payload, Mapping):
            raise ConfigValidationError(
                f"config root: expected object, got {type(payload).__name__}"
            )

        known_sections = {section for section, _ in SETTINGS_FIELDS}
        unknown_sections = sorted(str(key) for key in payload if key not in known_sections)
        if unknown_sections:
            raise ConfigValidationError(f"config root: unexpected sections: {unknown_sections}")

        values: dict[str, Any] = {}
        for section_name in sorted(payload):
            section = payload[section_name]
            if not isinstance(section, Mapping):
                raise ConfigValidationError(
                    f"{section_name}: expected table, got {type(section).__name__}"
                )
            for key in sorted(section):
                binding = SETTINGS_FIELDS.get((section_name, key))
                if binding is None:
                    raise ConfigValidationError(f"{section_name}.{key}: unknown setting")
                attribute, kind = binding
                values[attribute] = _expect_kind(section[key], kind, f"{section_name}.{key}")

        return cls(**values)

    def to_dict(self) -> dict[str, dict[str, object]]:
        """Nested ``{section: {key: value}}`` view, the inverse of ``from_mapping``."""

        payload: dict[str, dict[str, object]] = {}
        for (section, key), (attribute, _) in SETTINGS_FIELDS.items():
            payload.setdefault(section, {})[key] = getattr(self, attribute)
        return payload


_DEFAULT_SETTINGS: Final[EngineSettings] = EngineSettings()


def default_settings() -> EngineSettings:
    return _DEFAULT_SETTINGS


def default_config() -> dict[str, dict[str, object]]:
    """Default settings as a fresh mutable mapping for merging."""
    return _DEFAULT_SETTINGS.to_dict()


def merge_config(base: Mapping[str, Any], overlay: Mapping[str, Any]) -> dict[str, Any]:
    """Deep-merge ``overlay`` into a copy of ``base``; overlay scalars win."""

    merged: dict[str, Any] = {}
    for key, value in base.items():
        merged[key] = merge_config(value, {}) if isinstance(value, Mapping) else value
    for key, value in overlay.items():
        existing = merged.get(key)
        if isinstance(value, Mapping) and isinstance(existing, Mapping):
            merged[key] = merge_config(existing, value)
        elif isinstance(value, Mapping):
            merged[key] = merge_config({}, value)
        else:
            merged[key] = value
    return merged


def _expect_kind(value: object, kind: ValueKind, path: str) -> object:
    if kind == "bool":
        if not isinstance(value, bool):
            raise ConfigValidationError(f"{path}: expected boolean, got {type(value).__name__}")
        return value
    if not isinstance(value, str):
        raise ConfigValidationError(f"{path}: expected string, got {type(value).__name__}")
    return value


__all__ = [
    "ConfigValidationError",
    "EngineSettings",
    "SETTINGS_FIELDS",
    "ValueKind",
    "default_config",
    "default_settings",
    "merge_config",
]

"""
ruletree runtime config loader.

File: src/ruletree/config/loader.py

Purpose
- Load effective engine settings from defaults, a TOML file, env vars, and
  explicit overrides.

What should be included in this file
- Precedence logic: overrides > env (RULETREE_) > file > defaults.
- TOML loading via ``tomllib``.
- Deterministic environment variable mapping and coercion.

Functional requirements
- A missing default file is fine; a missing explicitly requested file is not.
- Invalid values fail fast with ``ConfigLoadError`` naming the offending key.
- String override values are coerced the same way as env vars.
"""

from __future__ import annotations

import json
import os
import tomllib
from collections.abc import Mapping
from pathlib import Path
from typing import Any, Final

from ruletree.config.schema import (
    SETTINGS_FIELDS,
    ConfigValidationError,
    EngineSettings,
    ValueKind,
    default_config,
    merge_config,
)

DEFAULT_CONFIG_FILE: Final[str] = "ruletree.toml"
ENV_PREFIX: Final[str] = "RULETREE_"

_BOOLEAN_TRUE: Final[frozenset[str]] = frozenset({"1", "true", "t", "yes", "y", "on"})
_BOOLEAN_FALSE: Final[frozenset[str]] = frozenset({"0", "false", "f", "no", "n", "off"})


class ConfigLoadError(ValueError):
    """Raised when config cannot be loaded or overrides cannot be coerced."""


def load_settings(
    config_path: str | Path | None = None,
    *,
    environ: Mapping[str, str] | None = None,
    overrides: Mapping[str, object] | None = None,
) -> EngineSettings:
    """Load effective settings with precedence: overrides > env > file > defaults."""

    resolved_path = _resolve_config_path(config_path)
    env_map = dict(os.environ if environ is None else environ)

    file_payload = _load_toml_file(resolved_path, required=config_path is not None)

    merged = merge_config(default_config(), file_payload)
    merged = merge_config(merged, _collect_env_overrides(env_map))
    merged = merge_config(merged, _materialize_overrides(overrides or {}))

    try:
        return EngineSettings.from_mapping(merged)
    except ConfigValidationError as exc:
        raise ConfigLoadError(f"invalid config ({resolved_path}): {exc}") from exc


def dump_settings(settings: EngineSettings) -> str:
    """Return a deterministic JSON dump of effective settings."""

    return json.dumps(settings.to_dict(), sort_keys=True, separators=(",", ":"))


def env_name_for(section: str, key: str) -> str:
    return f"{ENV_PREFIX}{section.upper()}_{key.upper()}"


def _resolve_config_path(config_path: str | Path | None) -> Path:
    if config_path is None:
        return (Path.cwd() / DEFAULT_CONFIG_FILE).resolve()
    return Path(config_path).expanduser().resolve()


def _load_toml_file(path: Path, *, required: bool) -> dict[str, Any]:
    if not path.exists():
        if required:
            raise ConfigLoadError(f"config file not found: {path}")
        return {}

    try:
        with path.open("rb") as handle:
            parsed = tomllib.load(handle)
    except tomllib.TOMLDecodeError as exc:
        raise ConfigLoadError(f"invalid TOML in {path}: {exc}") from exc
    except OSError as exc:
        raise ConfigLoadError(f"unable to read config file {path}: {exc}") from exc

    return parsed


def _collect_env_overrides(environ: Mapping[str, str]) -> dict[str, Any]:
    overrides: dict[str, Any] = {}
    for section, key in sorted(SETTINGS_FIELDS):
        env_name = env_name_for(section, key)
        raw = environ.get(env_name)
        if raw is None:
            continue
        _, kind = SETTINGS_FIELDS[(section, key)]
        overrides.setdefault(section, {})[key] = _coerce_env(raw, kind, env_name)
    return overrides


def _coerce_env(raw: str, kind: ValueKind, env_name: str) -> object:
    value = raw.strip()
    if kind == "str":
        return value

    lowered = value.lower()
    if lowered in _BOOLEAN_TRUE:
        return True
    if lowered in _BOOLEAN_FALSE:
        return False
    raise ConfigLoadError(f"{env_name} must be a boolean (true/false/1/0/yes/no/on/off)")


def _materialize_overrides(overrides: Mapping[str, object]) -> dict[str, Any]:
    payload: dict[str, Any] = {}
    for dotted in sorted(overrides):
        parts = tuple(part for part in dotted.split(".") if part)
        if len(parts) != 2:
            raise ConfigLoadError(
                f"invalid override key {dotted!r}; expected '<section>.<key>'"
            )
        section, key = parts
        value = overrides[dotted]
        binding = SETTINGS_FIELDS.get((section, key))
        if isinstance(value, str) and binding is not None:
            value = _coerce_env(value, binding[1], f"override {dotted!r}")
        payload.setdefault(section, {})[key] = value
    return payload


__all__ = [
    "ConfigLoadError",
    "DEFAULT_CONFIG_FILE",
    "ENV_PREFIX",
    "dump_settings",
    "env_name_for",
    "load_settings",
]

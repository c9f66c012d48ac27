"""
ruletree config package public API.

File: src/ruletree/config/__init__.py

Purpose
- Export settings loading/validation entrypoints and public error types.

Functional requirements
- Support loading from ``ruletree.toml`` + ``RULETREE_`` env overrides.
- Fail fast with clear validation/load errors.
"""

from ruletree.config.loader import (
    DEFAULT_CONFIG_FILE,
    ENV_PREFIX,
    ConfigLoadError,
    dump_settings,
    env_name_for,
    load_settings,
)
from ruletree.config.schema import (
    SETTINGS_FIELDS,
    ConfigValidationError,
    EngineSettings,
    default_config,
    default_settings,
    merge_config,
)

__all__ = [
    "ConfigLoadError",
    "ConfigValidationError",
    "DEFAULT_CONFIG_FILE",
    "ENV_PREFIX",
    "EngineSettings",
    "SETTINGS_FIELDS",
    "default_config",
    "default_settings",
    "dump_settings",
    "env_name_for",
    "load_settings",
    "merge_config",
]

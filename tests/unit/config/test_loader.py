"""
ruletree unit tests for config loader

File: tests/unit/config/test_loader.py

Purpose
- Validate deterministic settings loading from defaults, TOML, env overrides,
  and explicit overrides.

What this test file should cover
- Precedence: overrides > env > file > defaults.
- Env var naming and boolean coercion.
- Fail-fast errors for missing files, bad TOML, and bad values.
"""

from __future__ import annotations

import json
from pathlib import Path

import pytest

from ruletree.config.loader import (
    ConfigLoadError,
    dump_settings,
    env_name_for,
    load_settings,
)
from ruletree.config.schema import EngineSettings


def _write_config(path: Path, text: str) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(text, encoding="utf-8")
    return path


def test_loader_precedence_default_file_env_overrides(tmp_path: Path) -> None:
    config_path = _write_config(
        tmp_path / "ruletree.toml",
        """
[engine]
log_transitions = true

[logging]
level = "warning"
""".strip(),
    )
    empty_path = _write_config(tmp_path / "empty.toml", "")

    defaults = load_settings(empty_path, environ={})
    from_file = load_settings(config_path, environ={})
    from_env = load_settings(config_path, environ={"RULETREE_LOGGING_LEVEL": "error"})
    from_overrides = load_settings(
        config_path,
        environ={"RULETREE_LOGGING_LEVEL": "error"},
        overrides={"logging.level": "debug"},
    )

    assert defaults == EngineSettings()
    assert from_file.log_transitions is True
    assert from_file.log_level == "WARNING"
    assert from_env.log_level == "ERROR"
    assert from_overrides.log_level == "DEBUG"
    assert from_overrides.log_transitions is True


def test_missing_default_file_is_not_an_error(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch
) -> None:
    monkeypatch.chdir(tmp_path)

    assert load_settings(environ={}) == EngineSettings()


def test_default_file_is_picked_up_from_working_directory(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch
) -> None:
    _write_config(tmp_path / "ruletree.toml", "[engine]\ncapture_guard_errors = false\n")
    monkeypatch.chdir(tmp_path)

    assert load_settings(environ={}).capture_guard_errors is False


def test_missing_explicit_file_fails(tmp_path: Path) -> None:
    with pytest.raises(ConfigLoadError, match="config file not found"):
        load_settings(tmp_path / "absent.toml", environ={})


def test_invalid_toml_fails(tmp_path: Path) -> None:
    config_path = _write_config(tmp_path / "broken.toml", "[engine\n")

    with pytest.raises(ConfigLoadError, match="invalid TOML"):
        load_settings(config_path, environ={})


@pytest.mark.parametrize(
    ("raw", "expected"),
    [("1", True), ("TRUE", True), (" yes ", True), ("on", True), ("0", False), ("off", False)],
)
def test_env_boolean_coercion(tmp_path: Path, raw: str, expected: bool) -> None:
    config_path = _write_config(tmp_path / "ruletree.toml", "")

    loaded = load_settings(config_path, environ={"RULETREE_LOGGING_JSON": raw})

    assert loaded.json_logs is expected


def test_env_rejects_non_boolean_value(tmp_path: Path) -> None:
    config_path = _write_config(tmp_path / "ruletree.toml", "")

    with pytest.raises(ConfigLoadError, match="RULETREE_ENGINE_CAPTURE_GUARD_ERRORS"):
        load_settings(config_path, environ={"RULETREE_ENGINE_CAPTURE_GUARD_ERRORS": "maybe"})


def test_unrelated_env_vars_are_ignored(tmp_path: Path) -> None:
    config_path = _write_config(tmp_path / "ruletree.toml", "")

    loaded = load_settings(config_path, environ={"RULETREE_UNKNOWN": "x", "PATH": "/bin"})

    assert loaded == EngineSettings()


def test_env_names_are_deterministic() -> None:
    assert env_name_for("engine", "capture_guard_errors") == "RULETREE_ENGINE_CAPTURE_GUARD_ERRORS"
    assert env_name_for("logging", "json") == "RULETREE_LOGGING_JSON"


def test_wrongly_typed_file_value_names_the_key(tmp_path: Path) -> None:
    config_path = _write_config(tmp_path / "ruletree.toml", '[engine]\nlog_transitions = "yes"\n')

    with pytest.raises(ConfigLoadError, match="engine.log_transitions"):
        load_settings(config_path, environ={})


def test_unknown_file_key_fails(tmp_path: Path) -> None:
    config_path = _write_config(tmp_path / "ruletree.toml", "[engine]\nparallel = true\n")

    with pytest.raises(ConfigLoadError, match="unknown setting"):
        load_settings(config_path, environ={})


@pytest.mark.parametrize("dotted", ["level", "logging.level.extra", ""])
def test_malformed_override_keys_fail(tmp_path: Path, dotted: str) -> None:
    config_path = _write_config(tmp_path / "ruletree.toml", "")

    with pytest.raises(ConfigLoadError, match="invalid override key"):
        load_settings(config_path, environ={}, overrides={dotted: "DEBUG"})


def test_invalid_log_level_override_fails(tmp_path: Path) -> None:
    config_path = _write_config(tmp_path / "ruletree.toml", "")

    with pytest.raises(ConfigLoadError, match="log_level"):
        load_settings(config_path, environ={}, overrides={"logging.level": "chatty"})


def test_dump_settings_is_stable_json(tmp_path: Path) -> None:
    config_path = _write_config(tmp_path / "ruletree.toml", "")
    first = dump_settings(load_settings(config_path, environ={}))
    second = dump_settings(load_settings(config_path, environ={}))

    assert first == second
    assert json.loads(first) == {
        "engine": {"capture_guard_errors": True, "log_transitions": False},
        "logging": {"json": True, "level": "INFO"},
    }


def test_string_override_values_are_coerced(tmp_path: Path) -> None:
    config_path = _write_config(tmp_path / "ruletree.toml", "")

    loaded = load_settings(
        config_path,
        environ={},
        overrides={"engine.log_transitions": "true", "logging.json": False},
    )

    assert loaded.log_transitions is True
    assert loaded.json_logs is False


def test_string_override_rejects_non_boolean_value(tmp_path: Path) -> None:
    config_path = _write_config(tmp_path / "ruletree.toml", "")

    with pytest.raises(ConfigLoadError, match="override 'engine.capture_guard_errors'"):
        load_settings(config_path, environ={}, overrides={"engine.capture_guard_errors": "maybe"})

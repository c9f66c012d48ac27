"""Structured logging setup with JSON-lines output and correlation fields."""

from __future__ import annotations

import contextvars
import json
import logging
import math
import sys
import threading
from collections.abc import Iterator, Mapping
from contextlib import contextmanager
from datetime import UTC, datetime
from enum import Enum
from pathlib import Path
from typing import IO, TYPE_CHECKING, Final

if TYPE_CHECKING:
    from ruletree.config.schema import EngineSettings

JSONScalar = str | int | float | bool | None
JSONValue = JSONScalar | list["JSONValue"] | dict[str, "JSONValue"]

ROOT_LOGGER_NAME: Final[str] = "ruletree"
_PLAIN_FORMAT: Final[str] = "%(asctime)s %(levelname)s %(name)s: %(message)s"

_STANDARD_LOG_RECORD_FIELDS: Final[frozenset[str]] = frozenset(
    {
        "args",
        "asctime",
        "created",
        "exc_info",
        "exc_text",
        "filename",
        "funcName",
        "levelname",
        "levelno",
        "lineno",
        "message",
        "module",
        "msecs",
        "msg",
        "name",
        "pathname",
        "process",
        "processName",
        "relativeCreated",
        "stack_info",
        "thread",
        "threadName",
        "taskName",
    }
)

_CorrelationState = tuple[tuple[str, str], ...]
_CORRELATION_CONTEXT: contextvars.ContextVar[_CorrelationState] = contextvars.ContextVar(
    "ruletree_correlation", default=()
)

_INSTALLED_LOCK = threading.Lock()
_INSTALLED_HANDLERS: dict[str, logging.Handler] = {}


class _CorrelationFilter(logging.Filter):
    """Attach the active correlation fields to every record passing the handler."""

    def filter(self, record: logging.LogRecord) -> bool:
        record.correlation = get_correlation_context()
        return True


class JsonLineFormatter(logging.Formatter):
    """Formatter that emits one canonical JSON object per log line."""

    def format(self, record: logging.LogRecord) -> str:
        event: dict[str, JSONValue] = {
            "timestamp": _iso8601z_from_epoch(record.created),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }

        correlation = getattr(record, "correlation", None)
        if not isinstance(correlation, Mapping):
            correlation = get_correlation_context()
        for key in sorted(correlation):
            event[key] = correlation[key]

        extras = _extract_extra_fields(record)
        if extras:
            event["fields"] = extras

        if record.exc_info:
            event["exception"] = self.formatException(record.exc_info)
        if record.stack_info:
            event["stack"] = str(record.stack_info)

        return json.dumps(event, sort_keys=True, separators=(",", ":"), ensure_ascii=False)


def setup_logging(
    settings: EngineSettings | None = None,
    *,
    stream: IO[str] | None = None,
    logger_name: str = ROOT_LOGGER_NAME,
) -> logging.Logger:
    """Configure the package logger and return it.

    Parameters
    ----------
    settings:
        Engine settings supplying ``log_level`` and ``json_logs``. Defaults apply
        when omitted.
    stream:
        Text stream receiving log lines; ``sys.stderr`` when omitted.
    logger_name:
        Logger to configure. Calling again replaces the handler installed by the
        previous call instead of stacking a second one.
    """

    if settings is None:
        from ruletree.config.schema import default_settings

        settings = default_settings()

    level = _parse_log_level(settings.log_level)
    handler = logging.StreamHandler(stream if stream is not None else sys.stderr)
    handler.setLevel(level)
    handler.addFilter(_CorrelationFilter())
    if settings.json_logs:
        handler.setFormatter(JsonLineFormatter())
    else:
        handler.setFormatter(logging.Formatter(_PLAIN_FORMAT))

    logger = logging.getLogger(logger_name)
    logger.setLevel(level)
    logger.propagate = False

    with _INSTALLED_LOCK:
        previous = _INSTALLED_HANDLERS.pop(logger_name, None)
        if previous is not None:
            logger.removeHandler(previous)
            previous.close()
        logger.addHandler(handler)
        _INSTALLED_HANDLERS[logger_name] = handler

    return logger


def shutdown_logging(logger_name: str = ROOT_LOGGER_NAME) -> None:
    """Remove the handler installed by ``setup_logging`` and restore propagation."""

    with _INSTALLED_LOCK:
        handler = _INSTALLED_HANDLERS.pop(logger_name, None)
    if handler is None:
        return

    logger = logging.getLogger(logger_name)
    logger.removeHandler(handler)
    handler.flush()
    handler.close()
    logger.propagate = True
    logger.setLevel(logging.NOTSET)


def get_correlation_context() -> dict[str, str]:
    """Return the current correlation context as a plain dictionary."""
    return dict(_CORRELATION_CONTEXT.get())


def set_correlation_fields(**fields: str | None) -> contextvars.Token[_CorrelationState]:
    """Set correlation fields for the active context and return a reset token."""
    state = get_correlation_context()
    for key, value in fields.items():
        key_name = _validate_correlation_key(key)
        if value is None:
            state.pop(key_name, None)
            continue
        state[key_name] = _validate_correlation_value(value)
    return _CORRELATION_CONTEXT.set(tuple(state.items()))


def reset_correlation_fields(token: contextvars.Token[_CorrelationState]) -> None:
    _CORRELATION_CONTEXT.reset(token)


@contextmanager
def correlation_scope(**fields: str | None) -> Iterator[None]:
    """Temporarily bind correlation fields for log records in scope."""
    token = set_correlation_fields(**fields)
    try:
        yield
    finally:
        reset_correlation_fields(token)


def _parse_log_level(value: int | str) -> int:
    if isinstance(value, int):
        return value

    normalized = value.strip().upper()
    parsed = logging.getLevelName(normalized)
    if isinstance(parsed, int):
        return parsed

    raise ValueError(f"unsupported logging level {value!r}")


def _validate_correlation_key(value: str) -> str:
    normalized = value.strip()
    if not normalized:
        raise ValueError("correlation key must not be empty")
    return normalized


def _validate_correlation_value(value: str) -> str:
    if not isinstance(value, str):
        raise ValueError(f"correlation value must be a string, got {type(value).__name__}")
    normalized = value.strip()
    if not normalized:
        raise ValueError("correlation value must not be empty")
    return normalized


def _iso8601z_from_epoch(epoch_seconds: float) -> str:
    timestamp = datetime.fromtimestamp(epoch_seconds, tz=UTC)
    return timestamp.isoformat(timespec="milliseconds").replace("+00:00", "Z")


def _extract_extra_fields(record: logging.LogRecord) -> dict[str, JSONValue]:
    fields: dict[str, JSONValue] = {}
    for key, value in record.__dict__.items():
        if key in _STANDARD_LOG_RECORD_FIELDS or key == "correlation":
            continue
        if key.startswith("_"):
            continue
        fields[key] = _normalize_json_value(value)
    return fields


def _normalize_json_value(value: object) -> JSONValue:
    if value is None or isinstance(value, (bool, str)):
        return value
    if isinstance(value, Enum):
        return _normalize_json_value(value.value)
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        return value if math.isfinite(value) else repr(value)
    if isinstance(value, Path):
        return str(value)
    if isinstance(value, Mapping):
        return {str(key): _normalize_json_value(item) for key, item in value.items()}
    if isinstance(value, (list, tuple)):
        return [_normalize_json_value(item) for item in value]
    return repr(value)


__all__ = [
    "JSONScalar",
    "JSONValue",
    "JsonLineFormatter",
    "ROOT_LOGGER_NAME",
    "correlation_scope",
    "get_correlation_context",
    "reset_correlation_fields",
    "set_correlation_fields",
    "setup_logging",
    "shutdown_logging",
]

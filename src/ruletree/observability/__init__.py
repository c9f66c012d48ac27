"""Public observability primitives: structured logging and correlation scopes."""

from ruletree.observability.logging import (
    ROOT_LOGGER_NAME,
    JsonLineFormatter,
    correlation_scope,
    get_correlation_context,
    reset_correlation_fields,
    set_correlation_fields,
    setup_logging,
    shutdown_logging,
)

__all__ = [
    "JsonLineFormatter",
    "ROOT_LOGGER_NAME",
    "correlation_scope",
    "get_correlation_context",
    "reset_correlation_fields",
    "set_correlation_fields",
    "setup_logging",
    "shutdown_logging",
]

"""
ruletree: hierarchical asynchronous rule validation.

File: src/ruletree/__init__.py

Purpose
- Package root. Re-exports the construction, execution and inspection API so
  hosts can ``from ruletree import RuleNode, RuleSpec, ValidationResult``.

Functional requirements
- Must not have side effects at import time (no config loading, no logging init).
"""

from ruletree.config import EngineSettings, load_settings
from ruletree.definitions import DefinitionError, RuleRegistry, build_tree, load_tree
from ruletree.domain import (
    Guard,
    NodeAttachmentError,
    RuleBody,
    RuleSpec,
    Status,
    ValidationError,
    ValidationResult,
)
from ruletree.engine import (
    Observer,
    ObserverFanout,
    RuleNode,
    TransitionRecorder,
    merge_result,
    validate_with_timeout,
)
from ruletree.observability import correlation_scope, setup_logging

__version__ = "0.1.0"

__all__ = [
    "DefinitionError",
    "EngineSettings",
    "Guard",
    "NodeAttachmentError",
    "Observer",
    "ObserverFanout",
    "RuleBody",
    "RuleNode",
    "RuleRegistry",
    "RuleSpec",
    "Status",
    "TransitionRecorder",
    "ValidationError",
    "ValidationResult",
    "__version__",
    "build_tree",
    "correlation_scope",
    "load_settings",
    "load_tree",
    "merge_result",
    "setup_logging",
    "validate_with_timeout",
]

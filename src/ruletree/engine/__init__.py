"""
ruletree engine public API.

File: src/ruletree/engine/__init__.py

Purpose
- Export the node/tree construction API, the traversal entry points, the
  status merge, and the observer helpers.
"""

from ruletree.engine.aggregation import merge_result, status_changed
from ruletree.engine.execution import captured_failure, evaluate_guard, execute_rule
from ruletree.engine.node import RuleNode, validate_with_timeout
from ruletree.engine.observers import (
    Observer,
    ObserverDispatchError,
    ObserverFanout,
    Transition,
    TransitionRecorder,
    notify_observer,
)

__all__ = [
    "Observer",
    "ObserverDispatchError",
    "ObserverFanout",
    "RuleNode",
    "Transition",
    "TransitionRecorder",
    "captured_failure",
    "evaluate_guard",
    "execute_rule",
    "merge_result",
    "notify_observer",
    "status_changed",
    "validate_with_timeout",
]

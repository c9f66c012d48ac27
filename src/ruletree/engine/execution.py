"""
ruletree rule execution boundary.

File: src/ruletree/engine/execution.py

Purpose
- Invoke guards and rule bodies that may be synchronous or return awaitables,
  and convert anything a rule body raises into a ``fail`` result.

Normative behavior
- A missing body contributes an implicit ``pass``; so does a body returning ``None``.
- A raised ``ValidationError`` is attached unchanged; any other ``Exception``
  is wrapped with the raised object as its error code.
- A body returning anything other than ``ValidationResult``/``None`` counts as
  a crash (wrapped ``TypeError``).
- ``asyncio.CancelledError`` is not captured.
"""

from __future__ import annotations

import asyncio
import inspect
import logging
from typing import TYPE_CHECKING, Literal

from ruletree.domain.errors import ValidationError
from ruletree.domain.models import RuleSpec, ValidationResult

if TYPE_CHECKING:
    from ruletree.engine.node import RuleNode

logger = logging.getLogger(__name__)

Phase = Literal["guard", "rule"]

_IMPLICIT_PASS = ValidationResult.passed()


async def evaluate_guard(spec: RuleSpec, context: object, node: RuleNode) -> bool:
    """Return whether the node applies to ``context``; exceptions propagate."""

    if spec.when is None:
        return True
    outcome = spec.when(context, node)
    if inspect.isawaitable(outcome):
        outcome = await outcome
    return bool(outcome)


async def execute_rule(spec: RuleSpec, context: object, node: RuleNode) -> ValidationResult:
    """Run the node's own rule body under the error-capture policy."""

    if spec.rule is None:
        return _IMPLICIT_PASS

    try:
        output = spec.rule(context, node)
        if inspect.isawaitable(output):
            output = await output
    except asyncio.CancelledError:
        raise
    except Exception as exc:  # noqa: BLE001
        return captured_failure(exc, node=node, phase="rule")

    if output is None:
        return _IMPLICIT_PASS
    if isinstance(output, ValidationResult):
        return output

    crash = TypeError(
        f"rule {spec.id!r} returned {type(output).__name__}; "
        "expected ValidationResult or None"
    )
    return captured_failure(crash, node=node, phase="rule")


def captured_failure(raised: BaseException, *, node: RuleNode, phase: Phase) -> ValidationResult:
    """Convert a raised value into a ``fail`` result and log it."""

    error = ValidationError.wrap(raised)
    if isinstance(raised, ValidationError):
        logger.debug(
            "rule reported structured failure",
            extra={"rule_path": node.path_text, "phase": phase, "error_code": raised.error_code},
        )
    else:
        logger.warning(
            "%s of rule %r raised; recording fail",
            phase,
            node.id,
            extra={"rule_path": node.path_text, "phase": phase},
            exc_info=(type(raised), raised, raised.__traceback__),
        )
    return ValidationResult.failed(error)


__all__ = [
    "Phase",
    "captured_failure",
    "evaluate_guard",
    "execute_rule",
]

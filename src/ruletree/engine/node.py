"""
ruletree validation node and traversal.

File: src/ruletree/engine/node.py

Purpose
- Compose rule nodes into an ordered tree and drive a subtree to a terminal
  result against a shared context.

Normative behavior
- Per node: reset to ``none``; evaluate the guard; a false guard finalizes the
  node as ``not-applicable`` without visiting its body or children. Otherwise
  mark ``running``, merge the own rule result, then merge child results in
  declared order. Before each child the node must still be ``running``, so the
  first divergent contributor stops the walk. A node still ``running`` at the
  end is finalized to ``pass``.
- Children are awaited strictly one after another.
- Observers see every status change of every visited node.
- Rule and guard exceptions never escape ``validate``.

Concurrency
- A node's result is shared mutable state. Validating the same node from two
  concurrent tasks is unsupported; results of such runs are undefined.
"""

from __future__ import annotations

import logging
import weakref
from collections.abc import Iterator
from typing import Any, Final
from uuid import uuid4

from ruletree.config.schema import EngineSettings, default_settings
from ruletree.domain.errors import NodeAttachmentError
from ruletree.domain.models import JSONValue, RuleSpec, Status, ValidationResult
from ruletree.engine.aggregation import merge_result, status_changed
from ruletree.engine.execution import captured_failure, evaluate_guard, execute_rule
from ruletree.engine.observers import Observer, notify_observer
from ruletree.observability.logging import correlation_scope
from ruletree.utils.concurrency import CancellationToken, run_with_timeout

logger = logging.getLogger(__name__)

_NONE: Final[ValidationResult] = ValidationResult.none()
_RUNNING: Final[ValidationResult] = ValidationResult(Status.RUNNING)
_PASS: Final[ValidationResult] = ValidationResult.passed()
_NOT_APPLICABLE: Final[ValidationResult] = ValidationResult.not_applicable()


class RuleNode:
    """One unit of the validation tree.

    Children are owned and evaluated in insertion order. The parent link is a
    weak, diagnostics-only reference: it never keeps the parent alive.
    """

    __slots__ = ("_spec", "_children", "_parent_ref", "_result", "__weakref__")

    def __init__(self, spec: RuleSpec) -> None:
        if not isinstance(spec, RuleSpec):
            raise TypeError(f"spec must be a RuleSpec, got {type(spec).__name__}")
        self._spec = spec
        self._children: list[RuleNode] = []
        self._parent_ref: weakref.ReferenceType[RuleNode] | None = None
        self._result: ValidationResult = _NONE

    @classmethod
    def create(cls, spec: RuleSpec | None = None, /, **fields: Any) -> RuleNode:
        """Build a node from a ``RuleSpec`` or from ``RuleSpec`` keyword fields."""

        if spec is None:
            spec = RuleSpec(**fields)
        elif fields:
            raise TypeError("pass either a RuleSpec or RuleSpec fields, not both")
        return cls(spec)

    # -- composition -------------------------------------------------------

    def add_rule(self, spec: RuleSpec | None = None, /, **fields: Any) -> RuleNode:
        """Create a node for ``spec`` and attach it as the last child; returns ``self``."""

        return self.add_child(RuleNode.create(spec, **fields))

    def add_child(self, node: RuleNode) -> RuleNode:
        """Attach ``node`` as the last child; returns ``self`` for chaining.

        A node belongs to exactly one parent. Attaching a node that already has
        a parent, the node itself, or one of its own ancestors raises
        ``NodeAttachmentError``.
        """

        if not isinstance(node, RuleNode):
            raise TypeError(f"child must be a RuleNode, got {type(node).__name__}")
        if node is self:
            raise NodeAttachmentError(f"rule {self.id!r} cannot be its own child")

        current_parent = node.parent
        if current_parent is not None:
            raise NodeAttachmentError(
                f"rule {node.id!r} is already attached to {current_parent.path_text!r}"
            )
        for ancestor in self.ancestors():
            if ancestor is node:
                raise NodeAttachmentError(
                    f"attaching {node.id!r} under {self.path_text!r} would create a cycle"
                )

        node._parent_ref = weakref.ref(self)
        self._children.append(node)
        return self

    # -- inspection --------------------------------------------------------

    @property
    def spec(self) -> RuleSpec:
        return self._spec

    @property
    def id(self) -> str:
        return self._spec.id

    @property
    def description(self) -> str | None:
        return self._spec.description

    @property
    def result(self) -> ValidationResult:
        return self._result

    @property
    def status(self) -> Status:
        return self._result.status

    @property
    def children(self) -> tuple[RuleNode, ...]:
        return tuple(self._children)

    @property
    def parent(self) -> RuleNode | None:
        if self._parent_ref is None:
            return None
        return self._parent_ref()

    @property
    def path(self) -> tuple[str, ...]:
        """Rule ids from the outermost live ancestor down to this node."""
        ids = [self.id]
        ids.extend(ancestor.id for ancestor in self.ancestors())
        return tuple(reversed(ids))

    @property
    def path_text(self) -> str:
        return "/".join(self.path)

    def ancestors(self) -> Iterator[RuleNode]:
        cursor = self.parent
        while cursor is not None:
            yield cursor
            cursor = cursor.parent

    def walk(self) -> Iterator[RuleNode]:
        """Pre-order, depth-first iteration over this subtree in evaluation order."""
        stack: list[RuleNode] = [self]
        while stack:
            current = stack.pop()
            yield current
            stack.extend(reversed(current._children))

    def find(self, rule_id: str) -> RuleNode | None:
        for candidate in self.walk():
            if candidate.id == rule_id:
                return candidate
        return None

    def snapshot(self) -> dict[str, JSONValue]:
        """JSON-safe view of ids, descriptions and current results of the subtree."""

        exported = self._result.to_dict()
        return {
            "id": self.id,
            "description": self.description,
            "status": exported["status"],
            "error": exported["error"],
            "children": [child.snapshot() for child in self._children],
        }

    def __repr__(self) -> str:
        return (
            f"RuleNode(id={self.id!r}, status={self.status.value!r}, "
            f"children={len(self._children)})"
        )

    # -- evaluation --------------------------------------------------------

    async def validate(
        self,
        context: object,
        observer: Observer | None = None,
        *,
        settings: EngineSettings | None = None,
    ) -> ValidationResult:
        """Evaluate this subtree against ``context`` and return its terminal result.

        Every node of the subtree is reset to ``none`` first, so nodes skipped
        by short-circuiting do not keep results from an earlier run. Ancestors
        of this node are ignored.
        """

        effective = settings if settings is not None else default_settings()
        for node in self.walk():
            node._result = _NONE

        with correlation_scope(validation_id=uuid4().hex, rule_id=self.id):
            logger.debug("validation started", extra={"rule_path": self.path_text})
            result = await self._evaluate(context, observer, effective)
            logger.debug(
                "validation finished",
                extra={"rule_path": self.path_text, "status": result.status},
            )
        return result

    async def _evaluate(
        self,
        context: object,
        observer: Observer | None,
        settings: EngineSettings,
    ) -> ValidationResult:
        self._result = _NONE

        try:
            applicable = await evaluate_guard(self._spec, context, self)
        except Exception as exc:  # noqa: BLE001
            if not settings.capture_guard_errors:
                raise
            self._apply(
                captured_failure(exc, node=self, phase="guard"),
                observer,
                settings,
                finalizing=True,
            )
            return self._result

        if not applicable:
            self._apply(_NOT_APPLICABLE, observer, settings, finalizing=True)
            return self._result

        self._apply(_RUNNING, observer, settings)

        if self._spec.rule is not None:
            self._apply(await execute_rule(self._spec, context, self), observer, settings)

        for child in self._children:
            if self._result.status is not Status.RUNNING:
                break
            child_result = await child._evaluate(context, observer, settings)
            self._apply(child_result, observer, settings)

        if self._result.status is Status.RUNNING:
            self._apply(_PASS, observer, settings, finalizing=True)

        return self._result

    def _apply(
        self,
        incoming: ValidationResult,
        observer: Observer | None,
        settings: EngineSettings,
        *,
        finalizing: bool = False,
    ) -> ValidationResult:
        before = self._result
        after = merge_result(before, incoming, finalizing=finalizing)
        self._result = after

        if status_changed(before, after):
            if settings.log_transitions:
                logger.debug(
                    "rule status %s -> %s",
                    before.status.value,
                    after.status.value,
                    extra={"rule_path": self.path_text},
                )
            if observer is not None:
                notify_observer(observer, self, after)

        return after


async def validate_with_timeout(
    node: RuleNode,
    context: object,
    timeout_seconds: float,
    observer: Observer | None = None,
    *,
    cancel_token: CancellationToken | None = None,
    settings: EngineSettings | None = None,
) -> ValidationResult:
    """Time-box ``node.validate``; raises ``TimeoutError`` when the box expires.

    The engine itself has no timeouts or cancellation. This helper is the
    caller-side wrapper; an interrupted run leaves partial results on the tree.
    """

    return await run_with_timeout(
        node.validate(context, observer, settings=settings),
        timeout_seconds,
        cancel_token,
    )


__all__ = ["RuleNode", "validate_with_timeout"]

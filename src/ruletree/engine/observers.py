"""Status-change observers: safe dispatch, fan-out, and a transition recorder."""

from __future__ import annotations

import logging
from collections import deque
from collections.abc import Callable
from dataclasses import dataclass
from typing import TYPE_CHECKING, Final, TypeAlias

from ruletree.domain.models import Status, ValidationResult

if TYPE_CHECKING:
    from ruletree.engine.node import RuleNode

logger = logging.getLogger(__name__)

Observer: TypeAlias = Callable[["RuleNode", ValidationResult], object]

_DEFAULT_ERROR_BUFFER: Final[int] = 1024


@dataclass(frozen=True, slots=True)
class ObserverDispatchError:
    """Observer failure captured without interrupting the traversal."""

    rule_path: str
    status: Status
    target: str
    error_type: str
    message: str


def notify_observer(observer: Observer, node: RuleNode, result: ValidationResult) -> None:
    """Invoke ``observer``; an observer that raises is logged, never propagated."""

    try:
        observer(node, result)
    except Exception:  # noqa: BLE001
        logger.exception(
            "observer %s failed",
            _describe_target(observer),
            extra={"rule_path": node.path_text, "status": result.status},
        )


class ObserverFanout:
    """Forward each status change to several observers, in registration order."""

    def __init__(self, *observers: Observer, error_buffer_size: int = _DEFAULT_ERROR_BUFFER) -> None:
        if error_buffer_size <= 0:
            raise ValueError("error_buffer_size must be > 0")
        for observer in observers:
            _require_callable(observer)
        self._observers: list[Observer] = list(observers)
        self._errors: deque[ObserverDispatchError] = deque(maxlen=error_buffer_size)

    def add(self, observer: Observer) -> ObserverFanout:
        _require_callable(observer)
        self._observers.append(observer)
        return self

    @property
    def observers(self) -> tuple[Observer, ...]:
        return tuple(self._observers)

    @property
    def dispatch_errors(self) -> tuple[ObserverDispatchError, ...]:
        return tuple(self._errors)

    def __call__(self, node: RuleNode, result: ValidationResult) -> None:
        for observer in self._observers:
            try:
                observer(node, result)
            except Exception as exc:  # noqa: BLE001
                target = _describe_target(observer)
                self._errors.append(
                    ObserverDispatchError(
                        rule_path=node.path_text,
                        status=result.status,
                        target=target,
                        error_type=type(exc).__name__,
                        message=str(exc),
                    )
                )
                logger.exception(
                    "observer %s failed",
                    target,
                    extra={"rule_path": node.path_text, "status": result.status},
                )


@dataclass(frozen=True, slots=True)
class Transition:
    rule_id: str
    rule_path: str
    status: Status
    result: ValidationResult


class TransitionRecorder:
    """Observer that keeps every reported transition in arrival order."""

    def __init__(self) -> None:
        self._transitions: list[Transition] = []

    def __call__(self, node: RuleNode, result: ValidationResult) -> None:
        self._transitions.append(
            Transition(
                rule_id=node.id,
                rule_path=node.path_text,
                status=result.status,
                result=result,
            )
        )

    def __len__(self) -> int:
        return len(self._transitions)

    @property
    def transitions(self) -> tuple[Transition, ...]:
        return tuple(self._transitions)

    def statuses_for(self, rule_id: str) -> tuple[Status, ...]:
        return tuple(item.status for item in self._transitions if item.rule_id == rule_id)

    def rule_ids(self) -> tuple[str, ...]:
        """Distinct rule ids in first-reported order."""
        seen: dict[str, None] = {}
        for item in self._transitions:
            seen.setdefault(item.rule_id, None)
        return tuple(seen)

    def clear(self) -> None:
        self._transitions.clear()


def _require_callable(observer: object) -> None:
    if not callable(observer):
        raise TypeError(f"observer must be callable, got {type(observer).__name__}")


def _describe_target(observer: object) -> str:
    module = getattr(observer, "__module__", None) or "<unknown>"
    qualname = getattr(observer, "__qualname__", None) or type(observer).__qualname__
    return f"{module}.{qualname}"


__all__ = [
    "Observer",
    "ObserverDispatchError",
    "ObserverFanout",
    "Transition",
    "TransitionRecorder",
    "notify_observer",
]

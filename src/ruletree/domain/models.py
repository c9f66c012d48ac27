"""Status lattice, immutable results, and caller-supplied rule descriptors."""

from __future__ import annotations

from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from enum import StrEnum
from typing import TYPE_CHECKING, Any, Final, TypeAlias

from ruletree.domain.errors import ValidationError

if TYPE_CHECKING:
    from ruletree.engine.node import RuleNode

JSONScalar = str | int | float | bool | None
JSONValue = JSONScalar | list["JSONValue"] | dict[str, "JSONValue"]

_MAX_RULE_ID_LENGTH: Final[int] = 256


class Status(StrEnum):
    """Node outcome; members double as points in the override lattice."""

    NONE = "none"
    NOT_APPLICABLE = "not-applicable"
    RUNNING = "running"
    PASS = "pass"
    INCONCLUSIVE = "inconclusive"
    FAIL = "fail"

    @property
    def is_terminal(self) -> bool:
        return self in TERMINAL_STATUSES


TERMINAL_STATUSES: Final[frozenset[Status]] = frozenset(
    {
        Status.NOT_APPLICABLE,
        Status.PASS,
        Status.INCONCLUSIVE,
        Status.FAIL,
    }
)

# Statuses the traversal itself issues; they overwrite whatever is recorded.
AUTHORITATIVE_STATUSES: Final[frozenset[Status]] = frozenset(
    {
        Status.NONE,
        Status.NOT_APPLICABLE,
        Status.RUNNING,
    }
)


@dataclass(frozen=True, slots=True)
class ValidationResult:
    """Immutable outcome of one node: a status plus an optional structured error."""

    status: Status
    error: ValidationError | None = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "status", _coerce_status(self.status))
        if self.error is not None and not isinstance(self.error, ValidationError):
            raise TypeError(
                "ValidationResult.error must be a ValidationError, "
                f"got {type(self.error).__name__}"
            )

    @classmethod
    def none(cls) -> ValidationResult:
        return cls(Status.NONE)

    @classmethod
    def passed(cls) -> ValidationResult:
        return cls(Status.PASS)

    @classmethod
    def failed(cls, error: ValidationError | None = None) -> ValidationResult:
        return cls(Status.FAIL, error)

    @classmethod
    def inconclusive(cls, error: ValidationError | None = None) -> ValidationResult:
        return cls(Status.INCONCLUSIVE, error)

    @classmethod
    def not_applicable(cls) -> ValidationResult:
        return cls(Status.NOT_APPLICABLE)

    @property
    def is_terminal(self) -> bool:
        return self.status.is_terminal

    def to_dict(self) -> dict[str, JSONValue]:
        """JSON-safe export; non-scalar error codes are rendered with ``repr``."""

        error: JSONValue = None
        if self.error is not None:
            error = {
                "code": _json_scalar_or_repr(self.error.error_code),
                "message": self.error.message,
            }
        return {"status": self.status.value, "error": error}


Guard: TypeAlias = Callable[[Any, "RuleNode"], bool | Awaitable[bool]]
RuleBody: TypeAlias = Callable[
    [Any, "RuleNode"],
    ValidationResult | None | Awaitable[ValidationResult | None],
]


@dataclass(frozen=True, slots=True)
class RuleSpec:
    """Caller-supplied rule descriptor.

    ``when`` is the applicability guard and ``rule`` the executable check; both
    receive ``(context, node)`` and may return an awaitable. A spec without a
    ``rule`` describes a pure grouping node. ``id`` is kept exactly as given;
    blank ids and ids with surrounding whitespace are rejected.
    """

    id: str
    description: str | None = None
    when: Guard | None = None
    rule: RuleBody | None = None

    def __post_init__(self) -> None:
        if not isinstance(self.id, str):
            raise ValueError(f"RuleSpec.id: expected string, got {type(self.id).__name__}")
        if not self.id.strip():
            raise ValueError("RuleSpec.id: must not be empty")
        if self.id != self.id.strip():
            raise ValueError(
                f"RuleSpec.id: must not have leading or trailing whitespace, got {self.id!r}"
            )
        if len(self.id) > _MAX_RULE_ID_LENGTH:
            raise ValueError(f"RuleSpec.id: must be <= {_MAX_RULE_ID_LENGTH} characters")

        if self.description is not None and not isinstance(self.description, str):
            raise ValueError(
                "RuleSpec.description: expected string, "
                f"got {type(self.description).__name__}"
            )
        if self.when is not None and not callable(self.when):
            raise ValueError("RuleSpec.when: must be callable")
        if self.rule is not None and not callable(self.rule):
            raise ValueError("RuleSpec.rule: must be callable")


def _coerce_status(value: object) -> Status:
    if isinstance(value, Status):
        return value
    if isinstance(value, str):
        try:
            return Status(value.strip().lower())
        except ValueError:
            allowed = ", ".join(item.value for item in Status)
            raise ValueError(
                f"invalid status value {value!r}; expected one of: {allowed}"
            ) from None
    raise TypeError(f"invalid status value: {value!r}")


def _json_scalar_or_repr(value: object) -> JSONScalar:
    if value is None or isinstance(value, (str, bool, int, float)):
        return value
    return repr(value)


__all__ = [
    "AUTHORITATIVE_STATUSES",
    "Guard",
    "JSONScalar",
    "JSONValue",
    "RuleBody",
    "RuleSpec",
    "Status",
    "TERMINAL_STATUSES",
    "ValidationResult",
]

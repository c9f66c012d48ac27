"""
ruletree declarative tree definitions.

File: src/ruletree/definitions.py

Purpose
- Describe the shape of a rule tree as data (mapping or YAML) while guards and
  rule bodies stay Python callables registered by name.

Definition format
- ``id`` (required), ``description``, ``when`` (guard name), ``rule`` (rule
  name), ``children`` (list of nested definitions, evaluated in order).

Functional requirements
- Unknown fields, unknown callable names, and duplicate ids within one tree are
  rejected with a dotted location such as ``root.children[1].rule``.
"""

from __future__ import annotations

from collections.abc import Callable, Mapping, Sequence
from dataclasses import dataclass
from pathlib import Path
from typing import Final, Literal, NoReturn, TypeVar, cast

import yaml

from ruletree.domain.models import Guard, RuleBody, RuleSpec
from ruletree.engine.node import RuleNode

EntryKind = Literal["guard", "rule"]
F = TypeVar("F", bound=Callable[..., object])

_REQUIRED_FIELDS: Final[frozenset[str]] = frozenset({"id"})
_OPTIONAL_FIELDS: Final[frozenset[str]] = frozenset({"description", "when", "rule", "children"})
_MAX_NAME_LENGTH: Final[int] = 128


class DefinitionError(ValueError):
    """Raised when a tree definition or registry lookup is invalid."""


@dataclass(frozen=True, slots=True)
class RegistryEntry:
    name: str
    kind: EntryKind
    target: Callable[..., object]


class RuleRegistry:
    """Named guards and rule bodies referenced from tree definitions."""

    def __init__(self) -> None:
        self._entries: dict[tuple[EntryKind, str], RegistryEntry] = {}

    def register_guard(self, name: str, guard: Guard) -> None:
        self._register("guard", name, guard)

    def register_rule(self, name: str, rule: RuleBody) -> None:
        self._register("rule", name, rule)

    def guard(self, name: str) -> Callable[[F], F]:
        """Decorator form of ``register_guard``."""

        def decorator(target: F) -> F:
            self._register("guard", name, target)
            return target

        return decorator

    def rule(self, name: str) -> Callable[[F], F]:
        """Decorator form of ``register_rule``."""

        def decorator(target: F) -> F:
            self._register("rule", name, target)
            return target

        return decorator

    def get_guard(self, name: str) -> Guard:
        return cast("Guard", self._lookup("guard", name))

    def get_rule(self, name: str) -> RuleBody:
        return cast("RuleBody", self._lookup("rule", name))

    def contains(self, kind: EntryKind, name: str) -> bool:
        return (kind, _as_name(name, f"{kind} name")) in self._entries

    def names(self, kind: EntryKind) -> tuple[str, ...]:
        return tuple(sorted(name for entry_kind, name in self._entries if entry_kind == kind))

    def _register(self, kind: EntryKind, name: str, target: Callable[..., object]) -> None:
        normalized = _as_name(name, f"{kind} name")
        if not callable(target):
            _fail(f"{kind} {normalized!r}", "must be callable")
        key = (kind, normalized)
        if key in self._entries:
            _fail(f"{kind} {normalized!r}", "already registered")
        self._entries[key] = RegistryEntry(name=normalized, kind=kind, target=target)

    def _lookup(self, kind: EntryKind, name: str) -> Callable[..., object]:
        normalized = _as_name(name, f"{kind} name")
        entry = self._entries.get((kind, normalized))
        if entry is None:
            known = ", ".join(self.names(kind))
            _fail(f"{kind} {normalized!r}", f"unknown; registered: [{known}]")
        return entry.target


def build_tree(definition: Mapping[str, object], registry: RuleRegistry) -> RuleNode:
    """Build a ``RuleNode`` tree from a nested definition mapping."""

    seen_ids: set[str] = set()
    root_label = _root_label(definition)
    return _build_node(definition, registry, location=root_label, seen_ids=seen_ids)


def load_tree(path: str | Path, registry: RuleRegistry) -> RuleNode:
    """Read a YAML tree definition from ``path`` and build it."""

    source = Path(path)
    try:
        # Binary mode lets PyYAML report undecodable bytes as a ReaderError.
        with source.open("rb") as handle:
            loaded = cast("object", yaml.safe_load(handle))
    except yaml.YAMLError as exc:
        raise DefinitionError(f"{source}: invalid YAML ({exc})") from exc
    except OSError as exc:
        raise DefinitionError(f"{source}: unable to read definition ({exc})") from exc

    if not isinstance(loaded, Mapping):
        _fail(str(source), f"expected top-level YAML mapping, got {type(loaded).__name__}")
    return build_tree(cast("Mapping[str, object]", loaded), registry)


def _build_node(
    definition: object,
    registry: RuleRegistry,
    *,
    location: str,
    seen_ids: set[str],
) -> RuleNode:
    parsed = _expect_object(definition, location)

    rule_id = _as_name(parsed["id"], f"{location}.id", max_len=256)
    if rule_id in seen_ids:
        _fail(f"{location}.id", f"duplicate rule id {rule_id!r}")
    seen_ids.add(rule_id)

    description = parsed.get("description")
    if description is not None and not isinstance(description, str):
        _fail(f"{location}.description", f"expected string, got {type(description).__name__}")

    when: Guard | None = None
    if parsed.get("when") is not None:
        when = _resolve(registry.get_guard, parsed["when"], f"{location}.when")

    rule: RuleBody | None = None
    if parsed.get("rule") is not None:
        rule = _resolve(registry.get_rule, parsed["rule"], f"{location}.rule")

    node = RuleNode.create(RuleSpec(id=rule_id, description=description, when=when, rule=rule))

    children = parsed.get("children", ())
    if children is None:
        children = ()
    if not isinstance(children, Sequence) or isinstance(children, (str, bytes)):
        _fail(f"{location}.children", f"expected list, got {type(children).__name__}")
    for index, child in enumerate(children):
        node.add_child(
            _build_node(
                child,
                registry,
                location=f"{location}.children[{index}]",
                seen_ids=seen_ids,
            )
        )
    return node


def _resolve(lookup: Callable[[str], F], name: object, location: str) -> F:
    if not isinstance(name, str):
        _fail(location, f"expected registered name, got {type(name).__name__}")
    try:
        return lookup(name)
    except DefinitionError as exc:
        raise DefinitionError(f"{location}: {exc}") from exc


def _expect_object(value: object, location: str) -> dict[str, object]:
    if not isinstance(value, Mapping):
        _fail(location, f"expected object, got {type(value).__name__}")

    out: dict[str, object] = {}
    for key, item in value.items():
        if not isinstance(key, str):
            _fail(location, f"object key must be string, got {type(key).__name__}")
        out[key] = item

    unknown = sorted(key for key in out if key not in _REQUIRED_FIELDS | _OPTIONAL_FIELDS)
    if unknown:
        _fail(location, f"unexpected fields: {unknown}")
    missing = sorted(key for key in _REQUIRED_FIELDS if key not in out)
    if missing:
        _fail(location, f"missing required fields: {missing}")
    return out


def _as_name(value: object, location: str, *, max_len: int = _MAX_NAME_LENGTH) -> str:
    if not isinstance(value, str):
        _fail(location, f"expected string, got {type(value).__name__}")
    normalized = value.strip()
    if not normalized:
        _fail(location, "must not be empty")
    if len(normalized) > max_len:
        _fail(location, f"must be <= {max_len} characters")
    return normalized


def _root_label(definition: object) -> str:
    if isinstance(definition, Mapping):
        candidate = definition.get("id")
        if isinstance(candidate, str) and candidate.strip():
            return candidate.strip()
    return "<root>"


def _fail(location: str, message: str) -> NoReturn:
    raise DefinitionError(f"{location}: {message}")


__all__ = [
    "DefinitionError",
    "EntryKind",
    "RegistryEntry",
    "RuleRegistry",
    "build_tree",
    "load_tree",
]

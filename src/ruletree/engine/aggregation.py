"""
ruletree status merge.

File: src/ruletree/engine/aggregation.py

Purpose
- Fold an incoming result (own rule, child, or traversal signal) into a node's
  accumulated result.

Normative behavior
- ``none`` / ``not-applicable`` / ``running`` always overwrite.
- ``pass`` overwrites only a ``running`` result, and only when finalizing.
  A non-finalizing pass means "no objection" and is absorbed.
- ``inconclusive`` overwrites anything except ``fail``.
- ``fail`` overwrites anything except an existing ``fail``; the first recorded
  failure and its error are kept.
- Authoritative signals can displace a recorded ``fail``. The traversal only
  issues them before any contributor has been merged, which keeps this safe.
"""

from __future__ import annotations

from ruletree.domain.models import AUTHORITATIVE_STATUSES, Status, ValidationResult


def merge_result(
    current: ValidationResult,
    incoming: ValidationResult,
    *,
    finalizing: bool = False,
) -> ValidationResult:
    """Return the node result after merging ``incoming`` into ``current``."""

    status = incoming.status

    if status in AUTHORITATIVE_STATUSES:
        return incoming

    if status is Status.PASS:
        if finalizing and current.status is Status.RUNNING:
            return incoming
        return current

    if status is Status.INCONCLUSIVE or status is Status.FAIL:
        if current.status is Status.FAIL:
            return current
        return incoming

    raise ValueError(f"unsupported status for merge: {status!r}")


def status_changed(before: ValidationResult, after: ValidationResult) -> bool:
    """Observable transitions are status changes; error-only changes are not."""

    return before.status is not after.status


__all__ = ["merge_result", "status_changed"]

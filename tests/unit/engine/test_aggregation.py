"""
ruletree unit tests for the status merge

File: tests/unit/engine/test_aggregation.py

Purpose
- Validate the override lattice applied when folding results into a node.

What this test file should cover
- Unconditional overwrite by none/not-applicable/running.
- Finalizing-only pass, fail-sticky inconclusive, idempotent fail.
- Lattice properties over arbitrary status pairs.
"""

from __future__ import annotations

import pytest
from hypothesis import given
from hypothesis import strategies as st

from ruletree.domain import Status, ValidationError, ValidationResult
from ruletree.engine.aggregation import merge_result, status_changed

ALL_STATUSES = tuple(Status)
results = st.builds(ValidationResult, st.sampled_from(ALL_STATUSES))


@pytest.mark.parametrize("incoming", [Status.NONE, Status.NOT_APPLICABLE, Status.RUNNING])
@pytest.mark.parametrize("current", ALL_STATUSES)
def test_authoritative_statuses_always_overwrite(current: Status, incoming: Status) -> None:
    merged = merge_result(ValidationResult(current), ValidationResult(incoming))

    assert merged.status is incoming


def test_non_finalizing_pass_is_absorbed() -> None:
    running = ValidationResult(Status.RUNNING)

    assert merge_result(running, ValidationResult.passed()) is running


def test_finalizing_pass_closes_running_node() -> None:
    merged = merge_result(
        ValidationResult(Status.RUNNING), ValidationResult.passed(), finalizing=True
    )

    assert merged.status is Status.PASS


@pytest.mark.parametrize(
    "current",
    [Status.NONE, Status.NOT_APPLICABLE, Status.INCONCLUSIVE, Status.FAIL, Status.PASS],
)
def test_finalizing_pass_only_applies_to_running(current: Status) -> None:
    before = ValidationResult(current)

    assert merge_result(before, ValidationResult.passed(), finalizing=True) is before


def test_fail_is_sticky_against_inconclusive() -> None:
    failed = ValidationResult.failed(ValidationError("E1"))

    assert merge_result(failed, ValidationResult.inconclusive()) is failed


def test_inconclusive_overwrites_running_and_pass() -> None:
    incoming = ValidationResult.inconclusive(ValidationError("maybe"))

    assert merge_result(ValidationResult(Status.RUNNING), incoming) is incoming
    assert merge_result(ValidationResult.passed(), incoming) is incoming


def test_repeated_fail_keeps_first_error() -> None:
    first = ValidationResult.failed(ValidationError("first"))
    second = ValidationResult.failed(ValidationError("second"))

    merged = merge_result(first, second)

    assert merged is first
    assert merged.error is not None
    assert merged.error.error_code == "first"


def test_fail_overwrites_inconclusive() -> None:
    incoming = ValidationResult.failed()

    assert merge_result(ValidationResult.inconclusive(), incoming) is incoming


def test_authoritative_signal_displaces_fail() -> None:
    failed = ValidationResult.failed(ValidationError("E"))

    merged = merge_result(failed, ValidationResult.not_applicable(), finalizing=True)

    assert merged.status is Status.NOT_APPLICABLE
    assert merged.error is None


def test_status_changed_ignores_error_only_difference() -> None:
    before = ValidationResult.inconclusive(ValidationError("a"))
    after = ValidationResult.inconclusive(ValidationError("b"))

    assert not status_changed(before, after)
    assert status_changed(ValidationResult.none(), ValidationResult(Status.RUNNING))


@given(current=results, incoming=results, finalizing=st.booleans())
def test_merge_returns_one_of_its_inputs(
    current: ValidationResult, incoming: ValidationResult, finalizing: bool
) -> None:
    merged = merge_result(current, incoming, finalizing=finalizing)

    assert merged is current or merged is incoming


@given(incoming=results, finalizing=st.booleans())
def test_only_authoritative_statuses_leave_fail(
    incoming: ValidationResult, finalizing: bool
) -> None:
    merged = merge_result(ValidationResult.failed(), incoming, finalizing=finalizing)

    if incoming.status in {Status.NONE, Status.NOT_APPLICABLE, Status.RUNNING}:
        assert merged.status is incoming.status
    else:
        assert merged.status is Status.FAIL


@given(current=results, finalizing=st.booleans())
def test_pass_never_reaches_a_node_except_by_finalizing_running(
    current: ValidationResult, finalizing: bool
) -> None:
    merged = merge_result(current, ValidationResult.passed(), finalizing=finalizing)

    if finalizing and current.status is Status.RUNNING:
        assert merged.status is Status.PASS
    else:
        assert merged is current

"""
ruletree end-to-end smoke test

File: tests/smoke/test_end_to_end.py

Purpose
- Drive a full run: settings from TOML, JSON logging, a YAML-defined tree with
  registered callables, observer fan-out, and a time-boxed validation.
"""

from __future__ import annotations

import asyncio
import io
import json
from pathlib import Path

import pytest

from ruletree import (
    ObserverFanout,
    RuleNode,
    RuleRegistry,
    Status,
    TransitionRecorder,
    ValidationError,
    ValidationResult,
    load_settings,
    load_tree,
    setup_logging,
    validate_with_timeout,
)
from ruletree.observability.logging import shutdown_logging

_TREE_YAML = """
id: checkout
description: checkout readiness
children:
  - id: customer
    rule: customer_known
  - id: payment
    when: pays_by_card
    children:
      - id: card-expiry
        rule: card_not_expired
      - id: card-limit
        rule: within_limit
  - id: shipping
    rule: address_present
""".lstrip()


def _registry() -> RuleRegistry:
    registry = RuleRegistry()

    @registry.rule("customer_known")
    def customer_known(context: dict[str, object], _node: RuleNode) -> ValidationResult | None:
        if not context.get("customer"):
            return ValidationResult.failed(ValidationError("E_CUSTOMER", "unknown customer"))
        return None

    @registry.guard("pays_by_card")
    async def pays_by_card(context: dict[str, object], _node: RuleNode) -> bool:
        await asyncio.sleep(0)
        return context.get("payment") == "card"

    @registry.rule("card_not_expired")
    async def card_not_expired(context: dict[str, object], _node: RuleNode) -> None:
        await asyncio.sleep(0)
        if context.get("card_expired"):
            raise ValidationError("E_CARD_EXPIRED", "card expired")

    @registry.rule("within_limit")
    def within_limit(context: dict[str, object], _node: RuleNode) -> ValidationResult:
        amount = context["amount"]
        limit = context["limit"]
        if amount > limit:  # type: ignore[operator]
            return ValidationResult.inconclusive(ValidationError("E_LIMIT", "needs review"))
        return ValidationResult.passed()

    @registry.rule("address_present")
    def address_present(context: dict[str, object], _node: RuleNode) -> None:
        context["address"].strip()  # type: ignore[union-attr]

    return registry


@pytest.mark.smoke
@pytest.mark.asyncio
async def test_end_to_end_checkout_run(tmp_path: Path) -> None:
    config_path = tmp_path / "ruletree.toml"
    config_path.write_text(
        '[engine]\nlog_transitions = true\n\n[logging]\nlevel = "debug"\n', encoding="utf-8"
    )
    definition_path = tmp_path / "checkout.yaml"
    definition_path.write_text(_TREE_YAML, encoding="utf-8")

    settings = load_settings(config_path, environ={})
    stream = io.StringIO()
    setup_logging(settings, stream=stream)
    try:
        root = load_tree(definition_path, _registry())
        recorder = TransitionRecorder()
        fanout = ObserverFanout(recorder)

        base = {"customer": "c-1", "payment": "card", "amount": 10, "limit": 50}

        ok = await validate_with_timeout(
            root, {**base, "address": "Main St"}, 1.0, fanout, settings=settings
        )
        assert ok.status is Status.PASS
        assert recorder.rule_ids() == (
            "checkout",
            "customer",
            "payment",
            "card-expiry",
            "card-limit",
            "shipping",
        )

        recorder.clear()
        review = await root.validate({**base, "amount": 90}, fanout, settings=settings)
        assert review.status is Status.INCONCLUSIVE
        assert review.error is not None
        assert review.error.error_code == "E_LIMIT"
        assert root.find("shipping").status is Status.NONE  # type: ignore[union-attr]
        assert "shipping" not in recorder.rule_ids()

        skipped = await root.validate(
            {**base, "payment": "cash", "address": None}, fanout, settings=settings
        )
        assert skipped.status is Status.NOT_APPLICABLE
        assert root.find("payment").status is Status.NOT_APPLICABLE  # type: ignore[union-attr]

        shipping = load_tree(definition_path, _registry()).find("shipping")
        assert shipping is not None
        broken = await shipping.validate({"address": None}, settings=settings)
        assert broken.status is Status.FAIL
        assert broken.error is not None
        assert isinstance(broken.error.error_code, AttributeError)

        snapshot = root.snapshot()
        assert snapshot["status"] == "not-applicable"
        assert fanout.dispatch_errors == ()
    finally:
        shutdown_logging()

    events = [json.loads(line) for line in stream.getvalue().splitlines()]
    assert any(event["message"] == "validation started" for event in events)
    assert any(event["level"] == "WARNING" for event in events)
    assert all("validation_id" in event for event in events)

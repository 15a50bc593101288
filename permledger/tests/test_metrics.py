from __future__ import annotations

import pytest

from permledger import metrics
from permledger.errors import Paused, RecipientNotWhitelisted, Unauthorized


def _count(op: str, result: str) -> float:
    return metrics.sample("permledger_ops_total", op=op, result=result) or 0.0


def _rejections(reason: str) -> float:
    return metrics.sample("permledger_gate_rejections_total", reason=reason) or 0.0


def test_ok_and_rejected_counts(funded, owner, alice, bob, carol):
    ok0 = _count("transfer", metrics.RESULT_OK)
    rej0 = _count("transfer", metrics.RESULT_REJECTED)
    gate0 = _rejections("RECIPIENT_NOT_WHITELISTED")

    funded.transfer(alice, bob, 1)
    with pytest.raises(RecipientNotWhitelisted):
        funded.transfer(alice, carol, 1)

    assert _count("transfer", metrics.RESULT_OK) == ok0 + 1
    assert _count("transfer", metrics.RESULT_REJECTED) == rej0 + 1
    assert _rejections("RECIPIENT_NOT_WHITELISTED") == gate0 + 1


def test_authorization_failure_is_not_a_gate_rejection(ledger, alice):
    before = _count("pause", metrics.RESULT_REJECTED)
    with pytest.raises(Unauthorized):
        ledger.pause(alice)
    assert _count("pause", metrics.RESULT_REJECTED) == before + 1


def test_op_seconds_histogram(ledger, owner, alice):
    before = metrics.sample("permledger_op_seconds_count", op="mint") or 0.0
    ledger.mint(owner, alice, 1)
    assert metrics.sample("permledger_op_seconds_count", op="mint") == before + 1


def test_exposition_text(ledger, owner, alice):
    ledger.mint(owner, alice, 1)
    text = metrics.generate_latest_text().decode()
    assert "permledger_ops_total" in text
    assert 'op="mint"' in text


def test_timer_returns_elapsed():
    with metrics.time_op("unit") as t:
        pass
    assert t.stop() >= 0.0


def test_set_registry_ignored_once_built():
    from prometheus_client import CollectorRegistry

    reg = metrics.get_registry()
    metrics.set_registry(CollectorRegistry())
    assert metrics.get_registry() is reg


def test_paused_holder_op_counts_as_gate_rejection(funded, owner, alice, bob):
    funded.pause(owner)
    before = _rejections("PAUSED")
    with pytest.raises(Paused):
        funded.transfer(alice, bob, -1)
    with pytest.raises(Paused):
        funded.approve(alice, bob, 1)
    assert _rejections("PAUSED") == before + 2

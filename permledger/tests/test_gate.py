from __future__ import annotations

import pytest

from permledger.errors import (AccountBlacklisted, Paused,
                               RecipientNotWhitelisted, SenderNotWhitelisted)
from permledger.gate import (REASON_BLACKLISTED, REASON_OK, REASON_PAUSED,
                             REASON_RECIPIENT_NOT_WHITELISTED,
                             REASON_SENDER_NOT_WHITELISTED, GateDecision)
from permledger.types.address import NULL_ADDRESS


@pytest.fixture
def gate(ledger):
    return ledger.gate


def test_allows_whitelisted_pair(ledger, gate, owner, alice):
    ledger.set_whitelisted(owner, alice, True)
    d = gate.evaluate(owner, alice)
    assert d.allowed and d.reason == REASON_OK
    assert d.error() is None
    gate.enforce(owner, alice)


def test_sender_checked_before_recipient(gate, alice, bob):
    d = gate.evaluate(alice, bob)
    assert d == GateDecision(False, REASON_SENDER_NOT_WHITELISTED, alice)
    with pytest.raises(SenderNotWhitelisted):
        gate.enforce(alice, bob)


def test_recipient_not_whitelisted(ledger, gate, owner, bob):
    d = gate.evaluate(owner, bob)
    assert d.reason == REASON_RECIPIENT_NOT_WHITELISTED and d.account == bob
    assert isinstance(d.error(), RecipientNotWhitelisted)


def test_blacklist_beats_whitelist(ledger, gate, owner, alice):
    ledger.set_whitelisted(owner, alice, True)
    ledger.set_blacklisted(owner, alice, True)
    assert gate.evaluate(owner, alice) == GateDecision(False, REASON_BLACKLISTED, alice)
    assert gate.evaluate(alice, owner) == GateDecision(False, REASON_BLACKLISTED, alice)


def test_origin_blacklist_reported_first(ledger, gate, owner, alice, bob):
    ledger.set_blacklisted(owner, alice, True)
    ledger.set_blacklisted(owner, bob, True)
    assert gate.evaluate(alice, bob).account == alice


def test_pause_dominates_everything(ledger, gate, owner, alice):
    ledger.set_blacklisted(owner, alice, True)
    ledger.pause(owner)
    assert gate.evaluate(alice, owner).reason == REASON_PAUSED
    assert gate.evaluate(NULL_ADDRESS, owner).reason == REASON_PAUSED
    assert gate.evaluate_approval(alice, owner).reason == REASON_PAUSED
    with pytest.raises(Paused):
        gate.enforce_approval(owner, owner)


def test_mint_and_burn_skip_whitelist(gate, alice):
    assert gate.evaluate(NULL_ADDRESS, alice).allowed
    assert gate.evaluate(alice, NULL_ADDRESS).allowed


def test_mint_and_burn_respect_blacklist(ledger, gate, owner, alice):
    ledger.set_blacklisted(owner, alice, True)
    with pytest.raises(AccountBlacklisted):
        gate.enforce(NULL_ADDRESS, alice)
    with pytest.raises(AccountBlacklisted):
        gate.enforce(alice, NULL_ADDRESS)


def test_whitelist_toggle_off_permits_unlisted(ledger, gate, owner, alice, bob):
    ledger.set_whitelisting_enabled(owner, False)
    assert gate.evaluate(alice, bob).allowed


def test_approval_gate_ignores_whitelist(ledger, gate, owner, alice, bob):
    assert gate.evaluate_approval(alice, bob).allowed
    ledger.set_blacklisted(owner, bob, True)
    d = gate.evaluate_approval(alice, bob)
    assert d.reason == REASON_BLACKLISTED and d.account == bob

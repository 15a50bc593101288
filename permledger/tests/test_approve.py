from __future__ import annotations

import pytest

from permledger.errors import (AccountBlacklisted, ApproveRaceCondition,
                               InvalidAddress, RecipientNotWhitelisted)
from permledger.types.address import NULL_ADDRESS


def test_race_guard_sequence(ledger, alice, bob, sink):
    ledger.approve(alice, bob, 100)
    with pytest.raises(ApproveRaceCondition) as ei:
        ledger.approve(alice, bob, 50)
    assert ei.value.data == {"current": 100, "requested": 50}
    assert ledger.allowance(alice, bob) == 100

    ledger.approve(alice, bob, 0)
    ledger.approve(alice, bob, 50)
    assert ledger.allowance(alice, bob) == 50
    assert [e.fields["amount"] for e in sink.get_logs(name="Approval")] == [100, 0, 50]
    assert sink.last("Approval").fields["previous"] == 0


def test_zero_to_zero_allowed(ledger, alice, bob):
    ledger.approve(alice, bob, 0)
    ledger.approve(alice, bob, 0)
    assert ledger.allowance(alice, bob) == 0


def test_approve_null_spender(ledger, alice):
    with pytest.raises(InvalidAddress):
        ledger.approve(alice, NULL_ADDRESS, 1)


def test_approve_blacklisted_parties(ledger, owner, alice, bob):
    ledger.set_blacklisted(owner, alice, True)
    with pytest.raises(AccountBlacklisted):
        ledger.approve(alice, bob, 1)
    with pytest.raises(AccountBlacklisted):
        ledger.approve(bob, alice, 1)


def test_approve_does_not_need_whitelist(ledger, alice, bob):
    assert not ledger.is_whitelisted(alice)
    ledger.approve(alice, bob, 7)
    assert ledger.allowance(alice, bob) == 7


def test_allowance_unchanged_after_blocked_transfer_from(ledger, owner, alice, bob, carol):
    ledger.mint(owner, alice, 10)
    ledger.approve(alice, carol, 10)
    ledger.set_whitelisted(owner, alice, True)
    with pytest.raises(RecipientNotWhitelisted):
        ledger.transfer_from(carol, alice, bob, 10)
    assert ledger.allowance(alice, carol) == 10

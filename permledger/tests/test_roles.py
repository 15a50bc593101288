from __future__ import annotations

import pytest

from permledger.access.roles import ROLE_BLACKLISTER, ROLE_WHITELISTER, is_authorized
from permledger.errors import (InvalidAddress, InvalidBlacklisterAddress,
                               InvalidWhitelisterAddress, Unauthorized)
from permledger.types.address import NULL_ADDRESS


def test_owner_gets_roles_and_whitelist_at_construction(ledger, owner, sink):
    assert ledger.owner == owner
    assert ledger.is_whitelister(owner)
    assert ledger.is_blacklister(owner)
    assert ledger.is_whitelisted(owner)
    assert sink.names() == ["RoleChanged", "RoleChanged", "WhitelistChanged"]


def test_null_owner_rejected():
    from permledger.ledger import PermissionedLedger

    with pytest.raises(InvalidAddress):
        PermissionedLedger(NULL_ADDRESS)


def test_is_authorized_predicate(owner, alice, bob):
    roles = {alice: True, bob: False}
    assert is_authorized(alice, roles, owner)
    assert is_authorized(owner, roles, owner)
    assert not is_authorized(bob, roles, owner)


def test_set_whitelister_owner_only(ledger, owner, alice, bob):
    with pytest.raises(Unauthorized):
        ledger.set_whitelister(alice, bob, True)
    ledger.set_whitelister(owner, alice, True)
    assert ledger.is_whitelister(alice)
    # alice can now whitelist but still cannot grant roles
    ledger.set_whitelisted(alice, bob, True)
    with pytest.raises(Unauthorized):
        ledger.set_whitelister(alice, bob, True)


def test_set_role_rejects_null_account(ledger, owner):
    with pytest.raises(InvalidAddress):
        ledger.set_whitelister(owner, NULL_ADDRESS, True)
    with pytest.raises(InvalidAddress):
        ledger.set_blacklister(owner, NULL_ADDRESS, True)


def test_role_errors_for_non_holders(ledger, alice, bob):
    with pytest.raises(InvalidWhitelisterAddress):
        ledger.set_whitelisted(alice, bob, True)
    with pytest.raises(InvalidBlacklisterAddress):
        ledger.set_blacklisted(alice, bob, True)


def test_revoked_blacklister_loses_access(ledger, owner, alice, bob):
    ledger.set_blacklister(owner, alice, True)
    ledger.set_blacklisted(alice, bob, True)
    ledger.set_blacklister(owner, alice, False)
    with pytest.raises(InvalidBlacklisterAddress):
        ledger.set_blacklisted(alice, bob, False)
    assert ledger.is_blacklisted(bob)


def test_idempotent_role_set_reemits_event(ledger, owner, alice, sink):
    ledger.set_whitelister(owner, alice, True)
    ledger.set_whitelister(owner, alice, True)
    evs = sink.get_logs(name="RoleChanged", account=alice)
    assert len(evs) == 2
    assert all(e.fields["role"] == ROLE_WHITELISTER and e.fields["status"] is True for e in evs)
    assert ledger.is_whitelister(alice)


def test_transfer_ownership_keeps_previous_explicit_roles(ledger, owner, alice, bob, sink):
    ledger.transfer_ownership(owner, alice)
    assert ledger.owner == alice
    ev = sink.last("OwnershipTransferred")
    assert ev.fields == {"previous_owner": owner, "new_owner": alice}

    # previous owner lost the override but kept explicit memberships
    with pytest.raises(Unauthorized):
        ledger.pause(owner)
    assert ledger.is_blacklister(owner)
    ledger.set_blacklisted(owner, bob, True)

    # new owner is authorized via the override without explicit roles
    assert not ledger.is_whitelister(alice)
    ledger.set_whitelisted(alice, bob, True)
    ledger.set_blacklister(alice, bob, True)
    assert sink.last("RoleChanged").fields["role"] == ROLE_BLACKLISTER


def test_transfer_ownership_guards(ledger, owner, alice):
    with pytest.raises(Unauthorized):
        ledger.transfer_ownership(alice, alice)
    with pytest.raises(InvalidAddress):
        ledger.transfer_ownership(owner, NULL_ADDRESS)
    assert ledger.owner == owner


def test_hex_string_addresses_accepted(ledger, owner, alice):
    ledger.set_whitelister("0x" + owner.hex(), "0x" + alice.hex(), True)
    assert ledger.is_whitelister(alice)
    with pytest.raises(InvalidAddress):
        ledger.set_whitelister(owner, "0x1234", True)

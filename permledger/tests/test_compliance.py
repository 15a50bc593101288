from __future__ import annotations

import pytest

from permledger.errors import (BatchTooLarge, CannotWhitelistBlacklisted,
                               InvalidAddress, InvalidWhitelisterAddress,
                               Unauthorized)
from permledger.types.address import NULL_ADDRESS, derive_address


def _accounts(n: int):
    return [derive_address(f"holder-{i}") for i in range(n)]


def test_flags_default_false_and_independent(ledger, owner, alice):
    assert not ledger.is_whitelisted(alice)
    assert not ledger.is_blacklisted(alice)
    ledger.set_whitelisted(owner, alice, True)
    ledger.set_blacklisted(owner, alice, True)
    assert ledger.is_whitelisted(alice)
    assert ledger.is_blacklisted(alice)


def test_single_updates_reject_null(ledger, owner):
    with pytest.raises(InvalidAddress):
        ledger.set_whitelisted(owner, NULL_ADDRESS, True)
    with pytest.raises(InvalidAddress):
        ledger.set_blacklisted(owner, NULL_ADDRESS, True)


def test_whitelisting_switch_is_owner_only(ledger, owner, alice, sink):
    ledger.set_whitelister(owner, alice, True)
    with pytest.raises(Unauthorized):
        ledger.set_whitelisting_enabled(alice, False)
    ledger.set_whitelisting_enabled(owner, False)
    assert not ledger.whitelisting_enabled
    assert sink.last().name == "WhitelistingToggled"
    assert sink.last().fields["status"] is False


def test_toggle_leaves_flags_untouched(ledger, owner, alice):
    ledger.set_whitelisted(owner, alice, True)
    ledger.set_whitelisting_enabled(owner, False)
    ledger.set_whitelisting_enabled(owner, True)
    assert ledger.is_whitelisted(alice)


def test_batch_at_cap_succeeds_and_skips_null(ledger, owner, sink):
    accts = _accounts(299) + [NULL_ADDRESS]
    before = len(sink)
    written = ledger.batch_whitelist(owner, accts, True)
    assert written == 299
    assert all(ledger.is_whitelisted(a) for a in accts[:-1])
    assert not ledger.is_whitelisted(NULL_ADDRESS)
    assert len(sink) - before == 299


def test_batch_over_cap_mutates_nothing(ledger, owner, sink):
    accts = _accounts(301)
    before = len(sink)
    with pytest.raises(BatchTooLarge) as ei:
        ledger.batch_whitelist(owner, accts, True)
    assert ei.value.data == {"size": 301, "limit": 300}
    assert not any(ledger.is_whitelisted(a) for a in accts)
    assert len(sink) == before


def test_batch_blacklist(ledger, owner):
    accts = _accounts(5)
    assert ledger.batch_blacklist(owner, accts, True) == 5
    assert all(ledger.is_blacklisted(a) for a in accts)
    ledger.batch_blacklist(owner, accts[:2], False)
    assert [ledger.is_blacklisted(a) for a in accts] == [False, False, True, True, True]


def test_batch_requires_role(ledger, alice):
    with pytest.raises(InvalidWhitelisterAddress):
        ledger.batch_whitelist(alice, _accounts(2), True)


def test_configured_batch_cap(make_ledger, owner):
    small = make_ledger(max_batch_size=3)
    with pytest.raises(BatchTooLarge):
        small.batch_blacklist(owner, _accounts(4), True)
    assert small.batch_blacklist(owner, _accounts(3), True) == 3


# ---- blacklist-revokes-whitelist policy ---------------------------------------


def test_revocation_policy_off_by_default(ledger, owner, alice):
    ledger.set_whitelisted(owner, alice, True)
    ledger.set_blacklisted(owner, alice, True)
    assert ledger.is_whitelisted(alice)
    ledger.set_blacklisted(owner, alice, False)
    ledger.set_whitelisted(owner, alice, True)


def test_revocation_policy_clears_and_refuses(make_ledger, owner, alice, sink):
    led = make_ledger(blacklist_revokes_whitelist=True)
    led.set_whitelisted(owner, alice, True)
    led.set_blacklisted(owner, alice, True)
    assert not led.is_whitelisted(alice)
    assert sink.names()[-2:] == ["BlacklistChanged", "WhitelistChanged"]

    with pytest.raises(CannotWhitelistBlacklisted):
        led.set_whitelisted(owner, alice, True)

    led.set_blacklisted(owner, alice, False)
    led.set_whitelisted(owner, alice, True)
    assert led.is_whitelisted(alice)


def test_revocation_policy_fails_whole_batch(make_ledger, owner, alice, bob, carol):
    led = make_ledger(blacklist_revokes_whitelist=True)
    led.set_blacklisted(owner, carol, True)
    with pytest.raises(CannotWhitelistBlacklisted):
        led.batch_whitelist(owner, [alice, bob, carol], True)
    assert not led.is_whitelisted(alice)
    assert not led.is_whitelisted(bob)
    # removing from the whitelist is always allowed
    led.batch_whitelist(owner, [carol], False)


@pytest.mark.parametrize(
    "update",
    [
        lambda l, o, a: l.set_whitelisted(o, a, True),
        lambda l, o, a: l.set_whitelisted(o, a, False),
        lambda l, o, a: l.set_blacklisted(o, a, True),
        lambda l, o, a: l.set_blacklisted(o, a, False),
        lambda l, o, a: l.set_whitelisting_enabled(o, False),
        lambda l, o, a: l.set_whitelisting_enabled(o, True),
    ],
    ids=["whitelist", "unwhitelist", "blacklist", "unblacklist", "switch_off", "switch_on"],
)
def test_repeated_flag_update_is_idempotent(ledger, owner, alice, sink, update):
    update(ledger, owner, alice)
    snap, events = ledger.snapshot(), len(sink)
    update(ledger, owner, alice)
    assert ledger.snapshot() == snap
    # the repeat still announces itself
    assert len(sink) == events + 1
    assert sink.last().fields["sender"] == owner


def test_oversized_batch_rejected_before_entries_are_parsed(make_ledger, owner, sink):
    small = make_ledger(max_batch_size=3)
    before = len(sink)
    with pytest.raises(BatchTooLarge):
        small.batch_whitelist(owner, _accounts(3) + ["0xnot-an-address"], True)
    assert len(sink) == before


def test_malformed_batch_entry_within_cap(ledger, owner, sink):
    accts = _accounts(2)
    before = len(sink)
    with pytest.raises(InvalidAddress) as ei:
        ledger.batch_blacklist(owner, accts + ["0x1234"], True)
    assert ei.value.data["argument"] == "accounts"
    assert not any(ledger.is_blacklisted(a) for a in accts)
    assert len(sink) == before


def test_batch_accepts_hex_strings(ledger, owner, alice):
    assert ledger.batch_whitelist(owner, ["0x" + alice.hex()], True) == 1
    assert ledger.is_whitelisted(alice)


def test_batch_role_checked_before_size(make_ledger, alice):
    small = make_ledger(max_batch_size=1)
    with pytest.raises(InvalidWhitelisterAddress):
        small.batch_whitelist(alice, _accounts(5), True)

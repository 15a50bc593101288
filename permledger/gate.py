"""
permledger.gate: the transfer gate.

A pure decision over ``(from, to)`` evaluated before any balance is moved, and
over ``(owner, spender)`` before any allowance is written. ``from == NULL``
denotes a mint and ``to == NULL`` a burn.

Order of checks (first failure wins):

1. ledger paused                                 -> PAUSED
2. from is non-null and blacklisted              -> ACCOUNT_BLACKLISTED
3. to is non-null and blacklisted                -> ACCOUNT_BLACKLISTED
4. both non-null and whitelisting enforced:
     from not whitelisted                        -> SENDER_NOT_WHITELISTED
     to not whitelisted                          -> RECIPIENT_NOT_WHITELISTED
5. allowed

Mints and burns therefore skip the whitelist but never the pause switch or the
blacklist. Approvals run steps 1-3 with (owner, spender) and no whitelist step.
`evaluate_live` is step 1 alone; holder operations run it before looking at
their arguments, so a paused ledger reports ``Paused`` ahead of any validation
error.

`evaluate*` never raise and return a :class:`GateDecision`; `enforce*` raise the
matching :class:`~permledger.errors.LedgerError` and count the rejection in
``permledger_gate_rejections_total``.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from .access.compliance import ComplianceFlags
from .control.pausable import PauseSwitch
from .errors import (AccountBlacklisted, LedgerError, Paused,
                     RecipientNotWhitelisted, SenderNotWhitelisted)
from .metrics import observe_rejection
from .types.address import Address, is_null

REASON_OK = "OK"
REASON_PAUSED = "PAUSED"
REASON_BLACKLISTED = "ACCOUNT_BLACKLISTED"
REASON_SENDER_NOT_WHITELISTED = "SENDER_NOT_WHITELISTED"
REASON_RECIPIENT_NOT_WHITELISTED = "RECIPIENT_NOT_WHITELISTED"


@dataclass(frozen=True)
class GateDecision:
    """Outcome of a gate evaluation."""

    allowed: bool
    reason: str = REASON_OK
    # Account that caused the rejection, if any.
    account: Optional[Address] = None

    def error(self) -> Optional[LedgerError]:
        """The exception matching this decision (None when allowed)."""
        if self.allowed:
            return None
        if self.reason == REASON_PAUSED:
            return Paused()
        if self.reason == REASON_BLACKLISTED:
            return AccountBlacklisted(account=self.account)
        if self.reason == REASON_SENDER_NOT_WHITELISTED:
            return SenderNotWhitelisted(account=self.account)
        if self.reason == REASON_RECIPIENT_NOT_WHITELISTED:
            return RecipientNotWhitelisted(account=self.account)
        raise ValueError(f"unknown gate reason: {self.reason}")


ALLOW = GateDecision(allowed=True)


def _deny(reason: str, account: Optional[Address] = None) -> GateDecision:
    return GateDecision(allowed=False, reason=reason, account=account)


class TransferGate:
    def __init__(self, compliance: ComplianceFlags, pause: PauseSwitch) -> None:
        self._compliance = compliance
        self._pause = pause

    def evaluate_live(self) -> GateDecision:
        return _deny(REASON_PAUSED) if self._pause.paused else ALLOW

    def evaluate(self, sender: Address, recipient: Address) -> GateDecision:
        live = self.evaluate_live()
        if not live.allowed:
            return live

        flags = self._compliance
        if not is_null(sender) and flags.is_blacklisted(sender):
            return _deny(REASON_BLACKLISTED, sender)
        if not is_null(recipient) and flags.is_blacklisted(recipient):
            return _deny(REASON_BLACKLISTED, recipient)

        if is_null(sender) or is_null(recipient) or not flags.whitelisting_enabled:
            return ALLOW
        if not flags.is_whitelisted(sender):
            return _deny(REASON_SENDER_NOT_WHITELISTED, sender)
        if not flags.is_whitelisted(recipient):
            return _deny(REASON_RECIPIENT_NOT_WHITELISTED, recipient)
        return ALLOW

    def evaluate_approval(self, owner: Address, spender: Address) -> GateDecision:
        live = self.evaluate_live()
        if not live.allowed:
            return live
        if self._compliance.is_blacklisted(owner):
            return _deny(REASON_BLACKLISTED, owner)
        if self._compliance.is_blacklisted(spender):
            return _deny(REASON_BLACKLISTED, spender)
        return ALLOW

    def enforce_live(self) -> None:
        _raise_unless_allowed(self.evaluate_live())

    def enforce(self, sender: Address, recipient: Address) -> None:
        _raise_unless_allowed(self.evaluate(sender, recipient))

    def enforce_approval(self, owner: Address, spender: Address) -> None:
        _raise_unless_allowed(self.evaluate_approval(owner, spender))


def _raise_unless_allowed(decision: GateDecision) -> None:
    err = decision.error()
    if err is not None:
        observe_rejection(decision.reason)
        raise err


__all__ = [
    "GateDecision",
    "TransferGate",
    "ALLOW",
    "REASON_OK",
    "REASON_PAUSED",
    "REASON_BLACKLISTED",
    "REASON_SENDER_NOT_WHITELISTED",
    "REASON_RECIPIENT_NOT_WHITELISTED",
]

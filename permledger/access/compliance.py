"""
permledger.access.compliance
============================

Per-account allow/deny flags and the global whitelisting switch.

- ``whitelisted[account]`` and ``blacklisted[account]`` default to False and are
  independent of each other unless the *blacklist revokes whitelist* policy is
  enabled, in which case blacklisting also clears the whitelist flag and
  whitelisting a blacklisted account is refused with
  :class:`~permledger.errors.CannotWhitelistBlacklisted`.
- ``whitelisting_enabled`` only changes how the transfer gate reads the flags;
  toggling it leaves every per-account flag as it was.

Authorization comes from the :class:`~permledger.access.roles.RoleRegistry`:
the switch is owner-only, whitelist updates need an authorized whitelister,
blacklist updates an authorized blacklister.

Batches
-------
``batch_whitelist`` / ``batch_blacklist`` accept up to ``max_batch_size``
address-like entries. A larger batch fails with ``BatchTooLarge`` before any
entry is parsed, a malformed entry fails with ``InvalidAddress``, null entries
are skipped, and the whole batch is validated before the
first flag is written, so a batch either applies fully or not at all.

Events (emitted on every write, including no-op writes)
------------------------------------------------------
- ``WhitelistChanged``    : {"account", "status", "sender"}
- ``BlacklistChanged``    : {"account", "status", "sender"}
- ``WhitelistingToggled`` : {"status", "sender"}
"""

from __future__ import annotations

from typing import Iterable, List

from ..errors import BatchTooLarge, CannotWhitelistBlacklisted, InvalidAddress
from ..events import EventBus
from ..state.journal import Journal, JournaledMap
from ..types.address import Address, AddressLike, is_null, require_address
from ..types.events import (EVT_BLACKLIST_CHANGED, EVT_WHITELIST_CHANGED,
                            EVT_WHITELISTING_TOGGLED)
from .roles import RoleRegistry

_ENABLED = "whitelisting_enabled"


class ComplianceFlags:
    def __init__(
        self,
        journal: Journal,
        bus: EventBus,
        roles: RoleRegistry,
        *,
        whitelisting_enabled: bool = True,
        max_batch_size: int = 300,
        blacklist_revokes_whitelist: bool = False,
    ) -> None:
        self._bus = bus
        self._roles = roles
        self.max_batch_size = max_batch_size
        self.blacklist_revokes_whitelist = blacklist_revokes_whitelist
        self.whitelisted: JournaledMap[Address, bool] = JournaledMap(journal, "whitelisted", default=False)
        self.blacklisted: JournaledMap[Address, bool] = JournaledMap(journal, "blacklisted", default=False)
        self._switch: JournaledMap[str, bool] = JournaledMap(journal, "whitelisting", default=True)
        self._switch[_ENABLED] = bool(whitelisting_enabled)

    # ---- queries ---------------------------------------------------------------

    @property
    def whitelisting_enabled(self) -> bool:
        return self._switch[_ENABLED]

    def is_whitelisted(self, account: Address) -> bool:
        return self.whitelisted.value(account)

    def is_blacklisted(self, account: Address) -> bool:
        return self.blacklisted.value(account)

    def grant_initial(self, owner: Address) -> None:
        """Construction-time whitelisting of the owner (no auth check)."""
        self._write_whitelisted(owner, owner, True)

    # ---- switch ----------------------------------------------------------------

    def set_whitelisting_enabled(self, caller: Address, status: bool) -> None:
        self._roles.require_owner(caller)
        self._switch[_ENABLED] = bool(status)
        self._bus.emit(EVT_WHITELISTING_TOGGLED, status=bool(status), sender=caller)

    # ---- single updates --------------------------------------------------------

    def set_whitelisted(self, caller: Address, account: Address, status: bool) -> None:
        self._roles.require_whitelister(caller)
        if is_null(account):
            raise InvalidAddress(argument="account")
        self._check_whitelistable(account, status)
        self._write_whitelisted(caller, account, bool(status))

    def set_blacklisted(self, caller: Address, account: Address, status: bool) -> None:
        self._roles.require_blacklister(caller)
        if is_null(account):
            raise InvalidAddress(argument="account")
        self._write_blacklisted(caller, account, bool(status))

    # ---- batches ---------------------------------------------------------------

    def batch_whitelist(self, caller: Address, accounts: Iterable[AddressLike], status: bool) -> int:
        """Returns the number of non-null accounts written."""
        self._roles.require_whitelister(caller)
        todo = self._batch(accounts)
        for acct in todo:
            self._check_whitelistable(acct, status)
        for acct in todo:
            self._write_whitelisted(caller, acct, bool(status))
        return len(todo)

    def batch_blacklist(self, caller: Address, accounts: Iterable[AddressLike], status: bool) -> int:
        self._roles.require_blacklister(caller)
        todo = self._batch(accounts)
        for acct in todo:
            self._write_blacklisted(caller, acct, bool(status))
        return len(todo)

    # ---- internals -------------------------------------------------------------

    def _batch(self, accounts: Iterable[AddressLike]) -> List[Address]:
        items = list(accounts)
        if len(items) > self.max_batch_size:
            raise BatchTooLarge(size=len(items), limit=self.max_batch_size)
        parsed = [require_address(a, "accounts") for a in items]
        return [a for a in parsed if not is_null(a)]

    def _check_whitelistable(self, account: Address, status: bool) -> None:
        if status and self.blacklist_revokes_whitelist and self.is_blacklisted(account):
            raise CannotWhitelistBlacklisted(account=account)

    def _write_whitelisted(self, caller: Address, account: Address, status: bool) -> None:
        self.whitelisted[account] = status
        self._bus.emit(EVT_WHITELIST_CHANGED, account=account, status=status, sender=caller)

    def _write_blacklisted(self, caller: Address, account: Address, status: bool) -> None:
        self.blacklisted[account] = status
        self._bus.emit(EVT_BLACKLIST_CHANGED, account=account, status=status, sender=caller)
        if status and self.blacklist_revokes_whitelist and self.is_whitelisted(account):
            self._write_whitelisted(caller, account, False)


__all__ = ["ComplianceFlags"]

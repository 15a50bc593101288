"""
permledger.access.roles
=======================

Ownership plus the two administrative role sets (whitelisters, blacklisters).

Authorization model
-------------------
- Exactly one **owner**, never the null address.
- Membership of a role set is a plain boolean per account, overwritten by
  :meth:`RoleRegistry.set_whitelister` / :meth:`RoleRegistry.set_blacklister`
  and never deleted.
- The owner is implicitly authorized for every role-gated action:

      is_authorized(caller, role_set, owner) = role_set[caller] or caller == owner

- Transferring ownership moves only that implicit override; explicit
  memberships held by the previous owner stay in place.

Every mutation is owner-only and emits an event, even when the stored value is
unchanged:

- ``RoleChanged``          : {"role", "account", "status", "sender"}
- ``OwnershipTransferred`` : {"previous_owner", "new_owner"}
"""

from __future__ import annotations

from typing import Final, Mapping

from ..errors import (InvalidAddress, InvalidBlacklisterAddress,
                      InvalidWhitelisterAddress, Unauthorized)
from ..events import EventBus
from ..state.journal import Journal, JournaledMap
from ..types.address import NULL_ADDRESS, Address, is_null
from ..types.events import EVT_OWNERSHIP_TRANSFERRED, EVT_ROLE_CHANGED

ROLE_WHITELISTER: Final[str] = "whitelister"
ROLE_BLACKLISTER: Final[str] = "blacklister"

_OWNER = "owner"


def is_authorized(caller: Address, role_set: Mapping[Address, bool], owner: Address) -> bool:
    """Capability predicate shared by every role-gated operation."""
    return bool(role_set.get(caller, False)) or caller == owner


class RoleRegistry:
    """Owner and role memberships of one ledger instance."""

    def __init__(self, journal: Journal, bus: EventBus, owner: Address) -> None:
        if is_null(owner):
            raise InvalidAddress("owner must not be the null address", argument="owner")
        self._bus = bus
        self._scalars: JournaledMap[str, Address] = JournaledMap(journal, "ownership", default=NULL_ADDRESS)
        self._scalars[_OWNER] = owner
        self.whitelisters: JournaledMap[Address, bool] = JournaledMap(journal, "whitelisters", default=False)
        self.blacklisters: JournaledMap[Address, bool] = JournaledMap(journal, "blacklisters", default=False)

    # ---- queries ---------------------------------------------------------------

    @property
    def owner(self) -> Address:
        return self._scalars[_OWNER]

    def is_whitelister(self, account: Address) -> bool:
        """Explicit membership only (the owner override is not reflected here)."""
        return self.whitelisters.value(account)

    def is_blacklister(self, account: Address) -> bool:
        return self.blacklisters.value(account)

    def is_authorized_whitelister(self, caller: Address) -> bool:
        return is_authorized(caller, self.whitelisters, self.owner)

    def is_authorized_blacklister(self, caller: Address) -> bool:
        return is_authorized(caller, self.blacklisters, self.owner)

    # ---- guards ----------------------------------------------------------------

    def require_owner(self, caller: Address) -> None:
        if caller != self.owner:
            raise Unauthorized(caller=caller)

    def require_whitelister(self, caller: Address) -> None:
        if not self.is_authorized_whitelister(caller):
            raise InvalidWhitelisterAddress(caller=caller)

    def require_blacklister(self, caller: Address) -> None:
        if not self.is_authorized_blacklister(caller):
            raise InvalidBlacklisterAddress(caller=caller)

    # ---- mutations -------------------------------------------------------------

    def set_whitelister(self, caller: Address, account: Address, status: bool) -> None:
        self._set_role(caller, ROLE_WHITELISTER, self.whitelisters, account, status)

    def set_blacklister(self, caller: Address, account: Address, status: bool) -> None:
        self._set_role(caller, ROLE_BLACKLISTER, self.blacklisters, account, status)

    def _set_role(
        self,
        caller: Address,
        role: str,
        members: JournaledMap[Address, bool],
        account: Address,
        status: bool,
    ) -> None:
        self.require_owner(caller)
        if is_null(account):
            raise InvalidAddress(argument="account")
        members[account] = bool(status)
        self._bus.emit(EVT_ROLE_CHANGED, role=role, account=account, status=bool(status), sender=caller)

    def grant_initial(self, owner: Address) -> None:
        """Construction-time grant of both roles to the owner (no auth check)."""
        self.whitelisters[owner] = True
        self.blacklisters[owner] = True
        self._bus.emit(EVT_ROLE_CHANGED, role=ROLE_WHITELISTER, account=owner, status=True, sender=owner)
        self._bus.emit(EVT_ROLE_CHANGED, role=ROLE_BLACKLISTER, account=owner, status=True, sender=owner)

    def transfer_ownership(self, caller: Address, new_owner: Address) -> None:
        self.require_owner(caller)
        if is_null(new_owner):
            raise InvalidAddress("new owner must not be the null address", argument="new_owner")
        previous = self.owner
        self._scalars[_OWNER] = new_owner
        self._bus.emit(EVT_OWNERSHIP_TRANSFERRED, previous_owner=previous, new_owner=new_owner)


__all__ = [
    "ROLE_WHITELISTER",
    "ROLE_BLACKLISTER",
    "is_authorized",
    "RoleRegistry",
]

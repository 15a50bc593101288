"""
permledger.control.pausable
===========================

Global, owner-controlled pause switch.

While paused, the transfer gate rejects every gated operation (transfer,
transfer_from, approve, mint, burn_from) with ``Paused`` before any other gate
check. Holder operations consult it even before validating their arguments.
Administrative operations (roles, flags, ownership) are not affected.

- ``pause(caller)``   : owner only; ``AlreadyPaused`` if already paused.
- ``unpause(caller)`` : owner only; ``NotPaused`` if not paused.

Events: ``Paused`` / ``Unpaused`` with {"sender"}.
"""

from __future__ import annotations

from ..access.roles import RoleRegistry
from ..errors import AlreadyPaused, NotPaused
from ..events import EventBus
from ..state.journal import Journal, JournaledMap
from ..types.address import Address
from ..types.events import EVT_PAUSED, EVT_UNPAUSED

_PAUSED = "paused"


class PauseSwitch:
    def __init__(self, journal: Journal, bus: EventBus, roles: RoleRegistry) -> None:
        self._bus = bus
        self._roles = roles
        self._flag: JournaledMap[str, bool] = JournaledMap(journal, "pause", default=False)

    @property
    def paused(self) -> bool:
        return self._flag.value(_PAUSED)

    def pause(self, caller: Address) -> None:
        self._roles.require_owner(caller)
        if self.paused:
            raise AlreadyPaused()
        self._flag[_PAUSED] = True
        self._bus.emit(EVT_PAUSED, sender=caller)

    def unpause(self, caller: Address) -> None:
        self._roles.require_owner(caller)
        if not self.paused:
            raise NotPaused()
        self._flag[_PAUSED] = False
        self._bus.emit(EVT_UNPAUSED, sender=caller)


__all__ = ["PauseSwitch"]

"""
Permissioned fungible ledger
============================

`PermissionedLedger` is the public surface of the package: an ERC-20-like
accounting store (balances, allowances, total supply) whose every balance- or
allowance-changing call passes through role checks and the transfer gate.

Public interface
----------------
# metadata / views
name, symbol, decimals, total_supply, owner, paused, whitelisting_enabled
balance_of(account) -> int
allowance(owner, spender) -> int
is_whitelisted / is_blacklisted / is_whitelister / is_blacklister(account) -> bool
snapshot() -> dict

# holders
transfer(caller, to, amount)
transfer_from(caller, from_, to, amount)
approve(caller, spender, amount)

# owner
mint(caller, to, amount)
burn_from(caller, from_, amount)
pause(caller) / unpause(caller)
set_whitelister / set_blacklister(caller, account, status)
set_whitelisting_enabled(caller, status)
transfer_ownership(caller, new_owner)

# role holders (or owner)
set_whitelisted / set_blacklisted(caller, account, status)
batch_whitelist / batch_blacklist(caller, accounts, status)

Pipeline
--------
Each call runs authorization, then argument validation, then the transfer gate
(pause first), then arithmetic checks, then the mutation, then notification.
Holder operations (transfer, transfer_from, approve) have no authorization step
and check the pause switch before validating their arguments.
The whole call executes inside one journal checkpoint: any exception restores
the exact prior state. Calls are serialized by an RLock; observers notified
during a call may call back in on the same thread.

Addresses are accepted as 20-byte ``bytes`` or ``0x``-hex strings.
"""

from __future__ import annotations

import threading
from contextlib import contextmanager
from typing import Any, Callable, Dict, Iterable, Iterator, List, Optional

from .access.compliance import ComplianceFlags
from .access.roles import RoleRegistry
from .config import LedgerConfig, get_config
from .control.pausable import PauseSwitch
from .control.reentrancy import ReentrancyGuard, nonreentrant
from .errors import (ApproveRaceCondition, InvalidAddress, InvalidBurnAmount,
                     InvalidMintAmount, LedgerError)
from .events import EventBus, EventRecord, EventSink, JsonlEventSink
from .gate import TransferGate
from .logging import get_logger, trace_scope
from .math.safe_uint import require_amount
from .metrics import RESULT_ERROR, RESULT_OK, RESULT_REJECTED, observe_op, time_op
from .state.journal import Journal
from .state.store import LedgerState
from .types.address import (NULL_ADDRESS, Address, AddressLike, is_null,
                            require_address, to_hex)
from .types.events import EVT_APPROVAL, EVT_BURN, EVT_MINT, EVT_TRANSFER

log = get_logger(__name__)

SUPPLY_SCOPE = "supply"


_addr = require_address


def _non_null(value: AddressLike, argument: str) -> Address:
    a = require_address(value, argument)
    if is_null(a):
        raise InvalidAddress(argument=argument)
    return a


class PermissionedLedger:
    def __init__(
        self,
        owner: AddressLike,
        *,
        config: Optional[LedgerConfig] = None,
        sink: Optional[EventSink] = None,
    ) -> None:
        self.config = config or get_config()
        self._lock = threading.RLock()
        self._guard = ReentrancyGuard()
        self.journal = Journal()

        if sink is None and self.config.event_log_path is not None:
            sink = JsonlEventSink(str(self.config.event_log_path))
        self.events = EventBus(sink)

        owner_addr = _non_null(owner, "owner")
        with self.journal.atomic():
            self.roles = RoleRegistry(self.journal, self.events, owner_addr)
            self.compliance = ComplianceFlags(
                self.journal,
                self.events,
                self.roles,
                whitelisting_enabled=self.config.whitelisting_enabled,
                max_batch_size=self.config.max_batch_size,
                blacklist_revokes_whitelist=self.config.blacklist_revokes_whitelist,
            )
            self._pause = PauseSwitch(self.journal, self.events, self.roles)
            self.gate = TransferGate(self.compliance, self._pause)
            self.state = LedgerState(self.journal)

            self.roles.grant_initial(owner_addr)
            self.compliance.grant_initial(owner_addr)

        log.debug("ledger created", extra={"owner": owner_addr, "symbol": self.config.symbol})

    # ------------------------------------------------------------------ #
    # Views
    # ------------------------------------------------------------------ #

    @property
    def name(self) -> str:
        return self.config.name

    @property
    def symbol(self) -> str:
        return self.config.symbol

    @property
    def decimals(self) -> int:
        return self.config.decimals

    @property
    def total_supply(self) -> int:
        return self.state.total_supply

    @property
    def owner(self) -> Address:
        return self.roles.owner

    @property
    def paused(self) -> bool:
        return self._pause.paused

    @property
    def whitelisting_enabled(self) -> bool:
        return self.compliance.whitelisting_enabled

    def balance_of(self, account: AddressLike) -> int:
        return self.state.balance_of(_addr(account, "account"))

    def allowance(self, owner: AddressLike, spender: AddressLike) -> int:
        return self.state.allowance(_addr(owner, "owner"), _addr(spender, "spender"))

    def is_whitelisted(self, account: AddressLike) -> bool:
        return self.compliance.is_whitelisted(_addr(account, "account"))

    def is_blacklisted(self, account: AddressLike) -> bool:
        return self.compliance.is_blacklisted(_addr(account, "account"))

    def is_whitelister(self, account: AddressLike) -> bool:
        return self.roles.is_whitelister(_addr(account, "account"))

    def is_blacklister(self, account: AddressLike) -> bool:
        return self.roles.is_blacklister(_addr(account, "account"))

    def snapshot(self) -> Dict[str, Any]:
        """JSON-safe copy of the full ledger state (addresses as 0x-hex)."""

        def flagged(m: Iterable[Any]) -> List[str]:
            return sorted(to_hex(a) for a, on in m if on)

        with self._lock:
            return {
                "name": self.name,
                "symbol": self.symbol,
                "decimals": self.decimals,
                "owner": to_hex(self.owner),
                "paused": self.paused,
                "whitelisting_enabled": self.whitelisting_enabled,
                "total_supply": self.total_supply,
                "balances": {to_hex(a): b for a, b in self.state.holders()},
                "allowances": [
                    {"owner": to_hex(o), "spender": to_hex(s), "amount": v}
                    for (o, s), v in sorted(self.state.allowances.items())
                ],
                "whitelisters": flagged(self.roles.whitelisters.items()),
                "blacklisters": flagged(self.roles.blacklisters.items()),
                "whitelisted": flagged(self.compliance.whitelisted.items()),
                "blacklisted": flagged(self.compliance.blacklisted.items()),
            }

    # ------------------------------------------------------------------ #
    # Notifications
    # ------------------------------------------------------------------ #

    def subscribe(self, observer: Callable[[EventRecord], None]) -> Callable[[], None]:
        """Call `observer` for every event; returns an unsubscribe callable."""
        return self.events.subscribe(observer)

    def close(self) -> None:
        self.events.sink.close()

    # ------------------------------------------------------------------ #
    # Holder operations
    # ------------------------------------------------------------------ #

    def transfer(self, caller: AddressLike, to: AddressLike, amount: int) -> None:
        with self._operation("transfer", caller):
            self.gate.enforce_live()
            sender = _non_null(caller, "caller")
            recipient = _non_null(to, "to")
            amount = require_amount(amount)
            self.gate.enforce(sender, recipient)
            self._move(sender, recipient, amount)

    def transfer_from(self, caller: AddressLike, from_: AddressLike, to: AddressLike, amount: int) -> None:
        with self._operation("transfer_from", caller):
            self.gate.enforce_live()
            spender = _non_null(caller, "caller")
            sender = _non_null(from_, "from")
            recipient = _non_null(to, "to")
            amount = require_amount(amount)
            self.gate.enforce(sender, recipient)
            self.state.spend_allowance(sender, spender, amount, unlimited=self.config.unlimited_allowance)
            self._move(sender, recipient, amount)

    def approve(self, caller: AddressLike, spender: AddressLike, amount: int) -> None:
        with self._operation("approve", caller):
            self.gate.enforce_live()
            holder = _non_null(caller, "caller")
            approved = _non_null(spender, "spender")
            amount = require_amount(amount)
            self.gate.enforce_approval(holder, approved)

            current = self.state.allowance(holder, approved)
            if amount != 0 and current != 0:
                raise ApproveRaceCondition(current=current, requested=amount)
            previous = self.state.set_allowance(holder, approved, amount)
            self.events.emit(EVT_APPROVAL, owner=holder, spender=approved, previous=previous, amount=amount)

    # ------------------------------------------------------------------ #
    # Supply (owner only, non-reentrant)
    # ------------------------------------------------------------------ #

    def mint(self, caller: AddressLike, to: AddressLike, amount: int) -> None:
        with self._operation("mint", caller):
            self._mint(caller, to, amount)

    def burn_from(self, caller: AddressLike, from_: AddressLike, amount: int) -> None:
        with self._operation("burn_from", caller):
            self._burn(caller, from_, amount)

    @nonreentrant(SUPPLY_SCOPE)
    def _mint(self, caller: AddressLike, to: AddressLike, amount: int) -> None:
        self.roles.require_owner(_addr(caller, "caller"))
        recipient = _non_null(to, "to")
        if require_amount(amount) == 0:
            raise InvalidMintAmount()
        self.gate.enforce(NULL_ADDRESS, recipient)

        supply_before, supply_after = self.state.grow_supply(amount)
        before, after = self.state.credit(recipient, amount)
        self.events.emit(
            EVT_MINT,
            to=recipient,
            amount=amount,
            balance_before=before,
            balance_after=after,
            supply_before=supply_before,
            supply_after=supply_after,
        )

    @nonreentrant(SUPPLY_SCOPE)
    def _burn(self, caller: AddressLike, from_: AddressLike, amount: int) -> None:
        self.roles.require_owner(_addr(caller, "caller"))
        holder = _non_null(from_, "from")
        if require_amount(amount) == 0:
            raise InvalidBurnAmount()
        self.gate.enforce(holder, NULL_ADDRESS)

        before, after = self.state.debit(holder, amount)
        supply_before, supply_after = self.state.shrink_supply(amount)
        self.events.emit(
            EVT_BURN,
            **{
                "from": holder,
                "amount": amount,
                "balance_before": before,
                "balance_after": after,
                "supply_before": supply_before,
                "supply_after": supply_after,
            },
        )

    # ------------------------------------------------------------------ #
    # Pause
    # ------------------------------------------------------------------ #

    def pause(self, caller: AddressLike) -> None:
        with self._operation("pause", caller):
            self._pause.pause(_addr(caller, "caller"))

    def unpause(self, caller: AddressLike) -> None:
        with self._operation("unpause", caller):
            self._pause.unpause(_addr(caller, "caller"))

    # ------------------------------------------------------------------ #
    # Roles & ownership
    # ------------------------------------------------------------------ #

    def set_whitelister(self, caller: AddressLike, account: AddressLike, status: bool) -> None:
        with self._operation("set_whitelister", caller):
            self.roles.set_whitelister(_addr(caller, "caller"), _addr(account, "account"), status)

    def set_blacklister(self, caller: AddressLike, account: AddressLike, status: bool) -> None:
        with self._operation("set_blacklister", caller):
            self.roles.set_blacklister(_addr(caller, "caller"), _addr(account, "account"), status)

    def transfer_ownership(self, caller: AddressLike, new_owner: AddressLike) -> None:
        with self._operation("transfer_ownership", caller):
            self.roles.transfer_ownership(_addr(caller, "caller"), _addr(new_owner, "new_owner"))

    # ------------------------------------------------------------------ #
    # Compliance flags
    # ------------------------------------------------------------------ #

    def set_whitelisting_enabled(self, caller: AddressLike, status: bool) -> None:
        with self._operation("set_whitelisting_enabled", caller):
            self.compliance.set_whitelisting_enabled(_addr(caller, "caller"), status)

    def set_whitelisted(self, caller: AddressLike, account: AddressLike, status: bool) -> None:
        with self._operation("set_whitelisted", caller):
            self.compliance.set_whitelisted(_addr(caller, "caller"), _addr(account, "account"), status)

    def set_blacklisted(self, caller: AddressLike, account: AddressLike, status: bool) -> None:
        with self._operation("set_blacklisted", caller):
            self.compliance.set_blacklisted(_addr(caller, "caller"), _addr(account, "account"), status)

    def batch_whitelist(self, caller: AddressLike, accounts: Iterable[AddressLike], status: bool) -> int:
        with self._operation("batch_whitelist", caller):
            return self.compliance.batch_whitelist(_addr(caller, "caller"), accounts, status)

    def batch_blacklist(self, caller: AddressLike, accounts: Iterable[AddressLike], status: bool) -> int:
        with self._operation("batch_blacklist", caller):
            return self.compliance.batch_blacklist(_addr(caller, "caller"), accounts, status)

    # ------------------------------------------------------------------ #
    # Internals
    # ------------------------------------------------------------------ #

    @contextmanager
    def _operation(self, op: str, caller: Any) -> Iterator[None]:
        """Serialize, journal, time, count and log one public operation."""
        with self._lock, trace_scope(op=op, caller=caller), time_op(op):
            try:
                with self.journal.atomic():
                    yield
            except LedgerError as e:
                observe_op(op, RESULT_REJECTED)
                log.info("rejected", extra={"code": e.code, "detail": e.data})
                raise
            except Exception:
                observe_op(op, RESULT_ERROR)
                log.warning("failed", exc_info=True)
                raise
            observe_op(op, RESULT_OK)
            log.debug("accepted")

    def _move(self, sender: Address, recipient: Address, amount: int) -> None:
        from_before, from_after = self.state.debit(sender, amount)
        to_before, to_after = self.state.credit(recipient, amount)
        self.events.emit(
            EVT_TRANSFER,
            **{
                "from": sender,
                "to": recipient,
                "amount": amount,
                "from_before": from_before,
                "from_after": from_after,
                "to_before": to_before,
                "to_after": to_after,
            },
        )


__all__ = ["PermissionedLedger", "SUPPLY_SCOPE"]

"""
permledger.state.store: balances, allowances and total supply.

`LedgerState` owns the accounting maps of one ledger instance. It performs the
checked arithmetic for credits and debits but no policy: authorization, the
transfer gate and event emission belong to :mod:`permledger.ledger`.

All maps are :class:`~permledger.state.journal.JournaledMap` instances on the
ledger's journal, so every write made here is undone if the surrounding
operation fails. Entries are created on first credit and kept afterwards, even
at zero.
"""

from __future__ import annotations

from typing import Iterator, Tuple

from ..errors import InsufficientAllowance, InsufficientBalance
from ..math.safe_uint import U256_MAX, u256_add, u256_sub
from ..types.address import Address
from .journal import Journal, JournaledMap

_TOTAL_SUPPLY = "total_supply"


class LedgerState:
    def __init__(self, journal: Journal) -> None:
        self.journal = journal
        self.balances: JournaledMap[Address, int] = JournaledMap(journal, "balances", default=0)
        self.allowances: JournaledMap[Tuple[Address, Address], int] = JournaledMap(
            journal, "allowances", default=0
        )
        self._scalars: JournaledMap[str, int] = JournaledMap(journal, "supply", default=0)

    # ---- reads ---------------------------------------------------------------

    @property
    def total_supply(self) -> int:
        return self._scalars.value(_TOTAL_SUPPLY)

    def balance_of(self, account: Address) -> int:
        return self.balances.value(account)

    def allowance(self, owner: Address, spender: Address) -> int:
        return self.allowances.value((owner, spender))

    def holders(self) -> Iterator[Tuple[Address, int]]:
        """(account, balance) pairs in byte order, including zero balances."""
        for acct in sorted(self.balances):
            yield acct, self.balances[acct]

    # ---- writes --------------------------------------------------------------

    def credit(self, account: Address, amount: int) -> Tuple[int, int]:
        """Add `amount` to `account`; returns (before, after)."""
        before = self.balance_of(account)
        after = u256_add(before, amount)
        self.balances[account] = after
        return before, after

    def debit(self, account: Address, amount: int) -> Tuple[int, int]:
        """Subtract `amount` from `account`; InsufficientBalance if short."""
        before = self.balance_of(account)
        after = u256_sub(
            before,
            amount,
            underflow=lambda: InsufficientBalance(account=account, balance=before, needed=amount),
        )
        self.balances[account] = after
        return before, after

    def grow_supply(self, amount: int) -> Tuple[int, int]:
        before = self.total_supply
        after = u256_add(before, amount)
        self._scalars[_TOTAL_SUPPLY] = after
        return before, after

    def shrink_supply(self, amount: int) -> Tuple[int, int]:
        before = self.total_supply
        after = u256_sub(before, amount)
        self._scalars[_TOTAL_SUPPLY] = after
        return before, after

    def set_allowance(self, owner: Address, spender: Address, amount: int) -> int:
        """Overwrite the allowance; returns the previous value."""
        previous = self.allowance(owner, spender)
        self.allowances[(owner, spender)] = amount
        return previous

    def spend_allowance(self, owner: Address, spender: Address, amount: int, *, unlimited: bool) -> int:
        """
        Consume `amount` of the (owner, spender) allowance.

        With `unlimited` set, an allowance equal to U256_MAX is left untouched.
        Returns the remaining allowance.
        """
        current = self.allowance(owner, spender)
        if current < amount:
            raise InsufficientAllowance(owner=owner, spender=spender, allowance=current, needed=amount)
        if unlimited and current == U256_MAX:
            return current
        remaining = current - amount
        self.allowances[(owner, spender)] = remaining
        return remaining


__all__ = ["LedgerState"]

"""
permledger.math.safe_uint
=========================

Checked unsigned 256-bit integer helpers.

Every ledger quantity (balance, allowance, total supply) lives in the closed
interval [0, U256_MAX]. These helpers fail fast instead of wrapping:

- out-of-domain inputs (negative, too large, non-int, bool) raise
  :class:`~permledger.errors.InvalidAmount`;
- an addition past U256_MAX raises :class:`~permledger.errors.ArithmeticOverflow`;
- a subtraction below zero raises the error produced by the caller-supplied
  ``underflow`` factory, so the ledger can surface ``InsufficientBalance`` or
  ``InsufficientAllowance`` with context rather than a generic underflow.
"""

from __future__ import annotations

from typing import Callable, Final, Optional

from ..errors import ArithmeticOverflow, InvalidAmount, LedgerError

U256_MAX: Final[int] = 2**256 - 1


def require_amount(x: object) -> int:
    """Return `x` if it is an int in [0, U256_MAX]; otherwise raise InvalidAmount."""
    # bool is an int subclass; reject it explicitly.
    if isinstance(x, bool) or not isinstance(x, int):
        raise InvalidAmount("amount must be an integer", amount=x)
    if x < 0 or x > U256_MAX:
        raise InvalidAmount(amount=x)
    return x


def u256_add(x: int, y: int) -> int:
    """Checked add: raise ArithmeticOverflow past U256_MAX."""
    require_amount(x)
    require_amount(y)
    s = x + y
    if s > U256_MAX:
        raise ArithmeticOverflow(data={"lhs": x, "rhs": y})
    return s


def u256_sub(
    x: int,
    y: int,
    *,
    underflow: Optional[Callable[[], LedgerError]] = None,
) -> int:
    """
    Checked sub: raise on underflow (y > x).

    `underflow` builds the exception to raise; defaults to ArithmeticOverflow.
    """
    require_amount(x)
    require_amount(y)
    if y > x:
        if underflow is not None:
            raise underflow()
        raise ArithmeticOverflow("u256 underflow", data={"lhs": x, "rhs": y})
    return x - y


__all__ = [
    "U256_MAX",
    "require_amount",
    "u256_add",
    "u256_sub",
]

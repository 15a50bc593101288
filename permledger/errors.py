"""
permledger.errors: typed failures raised by the permissioned ledger.

Every public operation either completes or raises one of the exceptions below
with zero state mutation. Callers are expected to fix the input or the account
state and retry the whole operation; nothing here is retried internally.

Hierarchy
---------
LedgerError (base)
 ├─ authorization : Unauthorized, InvalidWhitelisterAddress, InvalidBlacklisterAddress
 ├─ validation    : InvalidAddress, InvalidAmount, InvalidMintAmount,
 │                  InvalidBurnAmount, BatchTooLarge
 ├─ policy        : Paused, AlreadyPaused, NotPaused, AccountBlacklisted,
 │                  SenderNotWhitelisted, RecipientNotWhitelisted,
 │                  ApproveRaceCondition, CannotWhitelistBlacklisted
 ├─ arithmetic    : InsufficientBalance, InsufficientAllowance, ArithmeticOverflow
 └─ reentrancy    : Reentrant

Each error carries a stable machine `code` (e.g. ``ACCOUNT_BLACKLISTED``), a
`category`, and optional JSON-safe `data` (addresses rendered as 0x-hex).

This module imports nothing from the rest of the package so it can be used by
the low-level helpers (safe math, journal) without cycles.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Optional, Type


class Category(str, Enum):
    AUTHORIZATION = "authorization"
    VALIDATION = "validation"
    POLICY = "policy"
    ARITHMETIC = "arithmetic"
    REENTRANCY = "reentrancy"


def _coerce(v: Any) -> Any:
    if isinstance(v, (bytes, bytearray)):
        return "0x" + bytes(v).hex()
    if isinstance(v, (list, tuple)):
        return [_coerce(x) for x in v]
    return v


def _ctx(data: Optional[Dict[str, Any]], **fields: Any) -> Optional[Dict[str, Any]]:
    d: Dict[str, Any] = {}
    if data:
        d.update(data)
    for k, v in fields.items():
        if v is not None:
            d.setdefault(k, _coerce(v))
    return d or None


@dataclass(eq=False)
class LedgerError(Exception):
    """
    Base ledger error.

    Attributes:
        message:  Human-readable explanation.
        code:     Stable machine code string (e.g. 'PAUSED').
        category: Which family of checks rejected the operation.
        data:     Optional structured details (kept JSON-serializable).
    """

    message: str = "ledger error"
    code: str = "LEDGER_ERROR"
    category: Category = Category.VALIDATION
    data: Optional[Dict[str, Any]] = field(default=None)

    def __str__(self) -> str:
        if self.data:
            return f"{self.code}: {self.message} ({self.data})"
        return f"{self.code}: {self.message}"

    def to_dict(self) -> Dict[str, Any]:
        """Serialize to a JSON-safe dict for logs and the CLI."""
        out: Dict[str, Any] = {
            "code": self.code,
            "name": type(self).__name__,
            "category": self.category.value,
            "message": self.message,
        }
        if self.data is not None:
            out["data"] = self.data
        return out


# ---------------------------------------------------------------------------
# Authorization
# ---------------------------------------------------------------------------


class Unauthorized(LedgerError):
    """Caller is not the owner for an owner-only operation."""

    def __init__(
        self,
        message: str = "caller is not the owner",
        *,
        caller: Optional[bytes] = None,
        data: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(
            message=message,
            code="UNAUTHORIZED",
            category=Category.AUTHORIZATION,
            data=_ctx(data, caller=caller),
        )


class InvalidWhitelisterAddress(LedgerError):
    """Caller holds neither the whitelister role nor ownership."""

    def __init__(
        self,
        message: str = "caller is not an authorized whitelister",
        *,
        caller: Optional[bytes] = None,
        data: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(
            message=message,
            code="INVALID_WHITELISTER_ADDRESS",
            category=Category.AUTHORIZATION,
            data=_ctx(data, caller=caller),
        )


class InvalidBlacklisterAddress(LedgerError):
    """Caller holds neither the blacklister role nor ownership."""

    def __init__(
        self,
        message: str = "caller is not an authorized blacklister",
        *,
        caller: Optional[bytes] = None,
        data: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(
            message=message,
            code="INVALID_BLACKLISTER_ADDRESS",
            category=Category.AUTHORIZATION,
            data=_ctx(data, caller=caller),
        )


# ---------------------------------------------------------------------------
# Validation
# ---------------------------------------------------------------------------


class InvalidAddress(LedgerError):
    """The null identifier (or a malformed address) was passed where an account is required."""

    def __init__(
        self,
        message: str = "invalid address",
        *,
        argument: Optional[str] = None,
        data: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(
            message=message,
            code="INVALID_ADDRESS",
            category=Category.VALIDATION,
            data=_ctx(data, argument=argument),
        )


class InvalidAmount(LedgerError):
    """Amount is not an integer in [0, 2**256 - 1]."""

    def __init__(
        self,
        message: str = "amount out of range",
        *,
        amount: Any = None,
        data: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(
            message=message,
            code="INVALID_AMOUNT",
            category=Category.VALIDATION,
            data=_ctx(data, amount=None if amount is None else repr(amount)),
        )


class InvalidMintAmount(LedgerError):
    def __init__(self, message: str = "mint amount must be > 0", *, data: Optional[Dict[str, Any]] = None):
        super().__init__(
            message=message,
            code="INVALID_MINT_AMOUNT",
            category=Category.VALIDATION,
            data=data,
        )


class InvalidBurnAmount(LedgerError):
    def __init__(self, message: str = "burn amount must be > 0", *, data: Optional[Dict[str, Any]] = None):
        super().__init__(
            message=message,
            code="INVALID_BURN_AMOUNT",
            category=Category.VALIDATION,
            data=data,
        )


class BatchTooLarge(LedgerError):
    """Batch exceeds the configured cap; nothing was applied."""

    def __init__(
        self,
        message: str = "batch too large",
        *,
        size: Optional[int] = None,
        limit: Optional[int] = None,
        data: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(
            message=message,
            code="BATCH_TOO_LARGE",
            category=Category.VALIDATION,
            data=_ctx(data, size=size, limit=limit),
        )


# ---------------------------------------------------------------------------
# Policy
# ---------------------------------------------------------------------------


class Paused(LedgerError):
    """The ledger is paused; every gated operation is rejected."""

    def __init__(self, message: str = "ledger is paused", *, data: Optional[Dict[str, Any]] = None):
        super().__init__(message=message, code="PAUSED", category=Category.POLICY, data=data)


class AlreadyPaused(LedgerError):
    def __init__(self, message: str = "ledger is already paused", *, data: Optional[Dict[str, Any]] = None):
        super().__init__(message=message, code="ALREADY_PAUSED", category=Category.POLICY, data=data)


class NotPaused(LedgerError):
    def __init__(self, message: str = "ledger is not paused", *, data: Optional[Dict[str, Any]] = None):
        super().__init__(message=message, code="NOT_PAUSED", category=Category.POLICY, data=data)


class AccountBlacklisted(LedgerError):
    """Origin, destination, owner or spender is on the deny-list."""

    def __init__(
        self,
        message: str = "account is blacklisted",
        *,
        account: Optional[bytes] = None,
        data: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(
            message=message,
            code="ACCOUNT_BLACKLISTED",
            category=Category.POLICY,
            data=_ctx(data, account=account),
        )


class SenderNotWhitelisted(LedgerError):
    def __init__(
        self,
        message: str = "sender is not whitelisted",
        *,
        account: Optional[bytes] = None,
        data: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(
            message=message,
            code="SENDER_NOT_WHITELISTED",
            category=Category.POLICY,
            data=_ctx(data, account=account),
        )


class RecipientNotWhitelisted(LedgerError):
    def __init__(
        self,
        message: str = "recipient is not whitelisted",
        *,
        account: Optional[bytes] = None,
        data: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(
            message=message,
            code="RECIPIENT_NOT_WHITELISTED",
            category=Category.POLICY,
            data=_ctx(data, account=account),
        )


class ApproveRaceCondition(LedgerError):
    """A nonzero allowance may only be changed to zero first."""

    def __init__(
        self,
        message: str = "allowance must be zeroed before setting a new nonzero value",
        *,
        current: Optional[int] = None,
        requested: Optional[int] = None,
        data: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(
            message=message,
            code="APPROVE_RACE_CONDITION",
            category=Category.POLICY,
            data=_ctx(data, current=current, requested=requested),
        )


class CannotWhitelistBlacklisted(LedgerError):
    """Raised only when the blacklist-revokes-whitelist policy is enabled."""

    def __init__(
        self,
        message: str = "blacklisted account cannot be whitelisted",
        *,
        account: Optional[bytes] = None,
        data: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(
            message=message,
            code="CANNOT_WHITELIST_BLACKLISTED",
            category=Category.POLICY,
            data=_ctx(data, account=account),
        )


# ---------------------------------------------------------------------------
# Arithmetic
# ---------------------------------------------------------------------------


class InsufficientBalance(LedgerError):
    def __init__(
        self,
        message: str = "insufficient balance",
        *,
        account: Optional[bytes] = None,
        balance: Optional[int] = None,
        needed: Optional[int] = None,
        data: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(
            message=message,
            code="INSUFFICIENT_BALANCE",
            category=Category.ARITHMETIC,
            data=_ctx(data, account=account, balance=balance, needed=needed),
        )


class InsufficientAllowance(LedgerError):
    def __init__(
        self,
        message: str = "insufficient allowance",
        *,
        owner: Optional[bytes] = None,
        spender: Optional[bytes] = None,
        allowance: Optional[int] = None,
        needed: Optional[int] = None,
        data: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(
            message=message,
            code="INSUFFICIENT_ALLOWANCE",
            category=Category.ARITHMETIC,
            data=_ctx(data, owner=owner, spender=spender, allowance=allowance, needed=needed),
        )


class ArithmeticOverflow(LedgerError):
    """Result would exceed the unsigned 256-bit range."""

    def __init__(self, message: str = "u256 overflow", *, data: Optional[Dict[str, Any]] = None):
        super().__init__(
            message=message,
            code="ARITHMETIC_OVERFLOW",
            category=Category.ARITHMETIC,
            data=data,
        )


# ---------------------------------------------------------------------------
# Reentrancy
# ---------------------------------------------------------------------------


class Reentrant(LedgerError):
    """A guarded region was entered again while already held."""

    def __init__(
        self,
        message: str = "reentrant call",
        *,
        scope: Optional[str] = None,
        data: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(
            message=message,
            code="REENTRANT",
            category=Category.REENTRANCY,
            data=_ctx(data, scope=scope),
        )


# -------- lookup helpers -----------------------------------------------------

_ALL: tuple[Type[LedgerError], ...] = (
    Unauthorized,
    InvalidWhitelisterAddress,
    InvalidBlacklisterAddress,
    InvalidAddress,
    InvalidAmount,
    InvalidMintAmount,
    InvalidBurnAmount,
    BatchTooLarge,
    Paused,
    AlreadyPaused,
    NotPaused,
    AccountBlacklisted,
    SenderNotWhitelisted,
    RecipientNotWhitelisted,
    ApproveRaceCondition,
    CannotWhitelistBlacklisted,
    InsufficientBalance,
    InsufficientAllowance,
    ArithmeticOverflow,
    Reentrant,
)

ERRORS_BY_NAME: Dict[str, Type[LedgerError]] = {cls.__name__: cls for cls in _ALL}

# Machine codes of every error above (each class builds with defaults only).
ERROR_CODES: frozenset = frozenset(cls().code for cls in _ALL)


def matches(err: LedgerError, expected: str) -> bool:
    """True if `expected` names the error by class name or by machine code."""
    e = expected.strip()
    return e == type(err).__name__ or e.upper() == err.code


__all__ = [
    "Category",
    "LedgerError",
    "ERRORS_BY_NAME",
    "ERROR_CODES",
    "matches",
    *ERRORS_BY_NAME.keys(),
]

"""
permledger.math: integer-only arithmetic helpers.

See :mod:`permledger.math.safe_uint` for the checked U256 operations used by the
ledger for balances, allowances and total supply.
"""

from .safe_uint import U256_MAX, require_amount, u256_add, u256_sub

__all__ = [
    "U256_MAX",
    "require_amount",
    "u256_add",
    "u256_sub",
]

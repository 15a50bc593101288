"""
permledger.types: small shared value types.

Public surface (re-exported):
    Address, NULL_ADDRESS, to_address, is_null, to_hex, derive_address
    LedgerEvent
"""

from __future__ import annotations

from .address import (ADDRESS_LEN, NULL_ADDRESS, Address, AddressLike,
                      derive_address, is_null, to_address, to_hex)
from .events import LedgerEvent

__all__ = [
    "Address",
    "AddressLike",
    "ADDRESS_LEN",
    "NULL_ADDRESS",
    "to_address",
    "is_null",
    "to_hex",
    "derive_address",
    "LedgerEvent",
]

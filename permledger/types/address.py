"""
permledger.types.address: account identifiers.

Accounts are raw 20-byte ``bytes`` values. They compare and sort with ordinary
byte ordering, hash as dict keys, and render as ``0x``-hex at the edges (logs,
events, CLI). The all-zero value :data:`NULL_ADDRESS` is reserved: it is the
synthetic origin of a mint and the synthetic destination of a burn, and is never
a real participant.

Inputs may be bytes-like or hex strings (with or without ``0x``); they are
normalized with :func:`to_address`.
"""

from __future__ import annotations

import hashlib
from typing import Final, Union

from ..errors import InvalidAddress

Address = bytes
AddressLike = Union[str, bytes, bytearray, memoryview]

ADDRESS_LEN: Final[int] = 20
NULL_ADDRESS: Final[Address] = b"\x00" * ADDRESS_LEN


def to_address(value: AddressLike) -> Address:
    """
    Normalize a bytes-like or hex string into a 20-byte :data:`Address`.

    Raises:
        TypeError: for unsupported input types.
        ValueError: for malformed hex or a wrong length.
    """
    if isinstance(value, (bytes, bytearray, memoryview)):
        b = bytes(value)
    elif isinstance(value, str):
        s = value.strip()
        if s.startswith(("0x", "0X")):
            s = s[2:]
        try:
            b = bytes.fromhex(s)
        except ValueError as e:
            raise ValueError(f"invalid hex address: {value!r}") from e
    else:
        raise TypeError(f"expected address-like value, got {type(value).__name__}")

    if len(b) != ADDRESS_LEN:
        raise ValueError(f"address must be {ADDRESS_LEN} bytes, got {len(b)}")
    return b


def require_address(value: AddressLike, argument: str) -> Address:
    """:func:`to_address`, raising ``InvalidAddress`` (naming `argument`) instead."""
    try:
        return to_address(value)
    except (TypeError, ValueError) as e:
        raise InvalidAddress(str(e), argument=argument) from e


def is_null(addr: Address) -> bool:
    return addr == NULL_ADDRESS


def to_hex(addr: Address) -> str:
    return "0x" + bytes(addr).hex()


def derive_address(label: str) -> Address:
    """
    Deterministic address for a human label: first 20 bytes of sha3_256(label).

    Used for scenario aliases and test fixtures; not a key-derivation scheme.
    """
    return hashlib.sha3_256(label.encode("utf-8")).digest()[:ADDRESS_LEN]


__all__ = [
    "Address",
    "require_address",
    "AddressLike",
    "ADDRESS_LEN",
    "NULL_ADDRESS",
    "to_address",
    "is_null",
    "to_hex",
    "derive_address",
]

"""
permledger.types.events: notification record emitted by ledger operations.

`LedgerEvent` is a compact, immutable container: an event `name` and a mapping
of `fields`. Addresses inside `fields` are raw 20-byte ``bytes``; amounts are
plain ints. ``to_dict()`` / ``from_dict()`` convert to and from a JSON-friendly
form where addresses become ``0x``-hex strings.

Event names
-----------
RoleChanged          {role, account, status, sender}
OwnershipTransferred {previous_owner, new_owner}
WhitelistChanged     {account, status, sender}
BlacklistChanged     {account, status, sender}
WhitelistingToggled  {status, sender}
Paused / Unpaused    {sender}
Mint                 {to, amount, balance_before, balance_after, supply_before, supply_after}
Burn                 {from, amount, balance_before, balance_after, supply_before, supply_after}
Transfer             {from, to, amount, from_before, from_after, to_before, to_after}
Approval             {owner, spender, previous, amount}
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, Final, Mapping

from .address import ADDRESS_LEN

EVT_ROLE_CHANGED: Final[str] = "RoleChanged"
EVT_OWNERSHIP_TRANSFERRED: Final[str] = "OwnershipTransferred"
EVT_WHITELIST_CHANGED: Final[str] = "WhitelistChanged"
EVT_BLACKLIST_CHANGED: Final[str] = "BlacklistChanged"
EVT_WHITELISTING_TOGGLED: Final[str] = "WhitelistingToggled"
EVT_PAUSED: Final[str] = "Paused"
EVT_UNPAUSED: Final[str] = "Unpaused"
EVT_MINT: Final[str] = "Mint"
EVT_BURN: Final[str] = "Burn"
EVT_TRANSFER: Final[str] = "Transfer"
EVT_APPROVAL: Final[str] = "Approval"

# Field names whose values are addresses (hex-encoded on the wire).
ADDRESS_FIELDS: Final[frozenset] = frozenset(
    {
        "account",
        "sender",
        "previous_owner",
        "new_owner",
        "to",
        "from",
        "owner",
        "spender",
    }
)


def _encode(k: str, v: Any) -> Any:
    if isinstance(v, (bytes, bytearray)):
        return "0x" + bytes(v).hex()
    return v


def _decode(k: str, v: Any) -> Any:
    if k in ADDRESS_FIELDS and isinstance(v, str):
        s = v[2:] if v.startswith(("0x", "0X")) else v
        b = bytes.fromhex(s)
        if len(b) != ADDRESS_LEN:
            raise ValueError(f"field {k!r} is not a {ADDRESS_LEN}-byte address")
        return b
    return v


@dataclass(frozen=True)
class LedgerEvent:
    """A single notification. Immutable once built."""

    name: str
    fields: Dict[str, Any] = field(default_factory=dict)

    def __getitem__(self, key: str) -> Any:
        return self.fields[key]

    def get(self, key: str, default: Any = None) -> Any:
        return self.fields.get(key, default)

    def involves(self, account: bytes) -> bool:
        """True if `account` appears in any address-valued field."""
        return any(
            self.fields.get(k) == account for k in ADDRESS_FIELDS if k in self.fields
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "fields": {k: _encode(k, v) for k, v in self.fields.items()},
        }

    @classmethod
    def from_dict(cls, d: Mapping[str, Any]) -> "LedgerEvent":
        raw = d.get("fields") or {}
        if not isinstance(raw, Mapping):
            raise TypeError("fields must be a mapping")
        return cls(name=str(d["name"]), fields={k: _decode(k, v) for k, v in raw.items()})


__all__ = [
    "LedgerEvent",
    "ADDRESS_FIELDS",
    "EVT_ROLE_CHANGED",
    "EVT_OWNERSHIP_TRANSFERRED",
    "EVT_WHITELIST_CHANGED",
    "EVT_BLACKLIST_CHANGED",
    "EVT_WHITELISTING_TOGGLED",
    "EVT_PAUSED",
    "EVT_UNPAUSED",
    "EVT_MINT",
    "EVT_BURN",
    "EVT_TRANSFER",
    "EVT_APPROVAL",
]

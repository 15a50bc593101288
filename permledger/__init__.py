"""
permledger: a permissioned fungible-asset ledger.

Balances, allowances and total supply behind role-based administration,
per-account whitelist/blacklist flags and a global pause switch.

    from permledger import PermissionedLedger, derive_address

    owner, alice = derive_address("owner"), derive_address("alice")
    ledger = PermissionedLedger(owner)
    ledger.mint(owner, owner, 1_000)
    ledger.set_whitelisted(owner, alice, True)
    ledger.transfer(owner, alice, 10)

Common symbols are lazily re-exported from their submodules on first access.
"""

from __future__ import annotations

from importlib import import_module as _imp
from typing import Any, Dict, Tuple

from .version import __version__

_exports: Dict[str, Tuple[str, str]] = {
    # ledger
    "PermissionedLedger": ("ledger", "PermissionedLedger"),
    # config
    "LedgerConfig": ("config", "LedgerConfig"),
    "load_config": ("config", "load_config"),
    # types
    "Address": ("types.address", "Address"),
    "NULL_ADDRESS": ("types.address", "NULL_ADDRESS"),
    "to_address": ("types.address", "to_address"),
    "derive_address": ("types.address", "derive_address"),
    "LedgerEvent": ("types.events", "LedgerEvent"),
    "U256_MAX": ("math.safe_uint", "U256_MAX"),
    # events
    "EventRecord": ("events", "EventRecord"),
    "InMemoryEventSink": ("events", "InMemoryEventSink"),
    "JsonlEventSink": ("events", "JsonlEventSink"),
    "NullEventSink": ("events", "NullEventSink"),
    # gate
    "GateDecision": ("gate", "GateDecision"),
    # errors
    "LedgerError": ("errors", "LedgerError"),
    "Unauthorized": ("errors", "Unauthorized"),
    "InvalidAddress": ("errors", "InvalidAddress"),
    "Paused": ("errors", "Paused"),
    "AccountBlacklisted": ("errors", "AccountBlacklisted"),
    # scenario
    "load_scenario": ("scenario", "load_scenario"),
    "replay": ("scenario", "replay"),
}

__all__ = tuple(["__version__", *_exports.keys()])


def __getattr__(name: str) -> Any:
    if name in _exports:
        submod, symbol = _exports[name]
        mod = _imp(f"{__name__}.{submod}")
        return getattr(mod, symbol)
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")


def __dir__() -> list[str]:  # pragma: no cover
    return sorted(list(globals().keys()) + list(__all__))

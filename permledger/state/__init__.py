"""
permledger.state: journaled storage used by a ledger instance.

Submodules:
- journal: undo journal with nested checkpoints, and JournaledMap
- store:   LedgerState (balances, allowances, total supply) over JournaledMaps

Common symbols are lazily re-exported from their submodules on first access.
"""

from __future__ import annotations

from importlib import import_module as _imp
from typing import Any, Dict, Tuple

_exports: Dict[str, Tuple[str, str]] = {
    "Journal": ("journal", "Journal"),
    "JournaledMap": ("journal", "JournaledMap"),
    "LedgerState": ("store", "LedgerState"),
}

__all__ = tuple(_exports.keys())


def __getattr__(name: str) -> Any:
    if name in _exports:
        submod, symbol = _exports[name]
        mod = _imp(f"{__name__}.{submod}")
        return getattr(mod, symbol)
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")


def __dir__() -> list[str]:  # pragma: no cover
    return sorted(list(globals().keys()) + list(__all__))

"""
permledger.config: runtime configuration for a ledger instance.

Knobs:
  • Token metadata (name, symbol, decimals)
  • Policy switches (initial whitelist enforcement, unlimited-allowance sentinel,
    blacklist-revokes-whitelist extension)
  • Limits (batch size for whitelist/blacklist updates)
  • Optional JSONL event log path

Environment variables (all optional):
  PERMLEDGER_NAME                        -> token name (default: "Permissioned Token")
  PERMLEDGER_SYMBOL                      -> token symbol (default: "PTK")
  PERMLEDGER_DECIMALS                    -> integer 0..36 (default: 18)
  PERMLEDGER_MAX_BATCH                   -> integer > 0 (default: 300)
  PERMLEDGER_WHITELISTING                -> 0/1/true/false (default: 1)
  PERMLEDGER_UNLIMITED_ALLOWANCE         -> 0/1 (default: 1)
  PERMLEDGER_BLACKLIST_REVOKES_WHITELIST -> 0/1 (default: 0)
  PERMLEDGER_EVENT_LOG                   -> path of a JSON-lines event log (default: unset)

Explicit `overrides` passed to :func:`load_config` win over the environment.

Programmatic usage:
    from permledger.config import load_config
    cfg = load_config(overrides={"max_batch_size": 50})
"""

from __future__ import annotations

import os
from dataclasses import asdict, dataclass
from functools import lru_cache
from pathlib import Path
from typing import Any, Dict, Mapping, Optional, Union

# ----------------------------- helpers -------------------------------------

_BOOL_TRUE = {"1", "true", "t", "yes", "y", "on"}
_BOOL_FALSE = {"0", "false", "f", "no", "n", "off"}

DEFAULT_NAME = "Permissioned Token"
DEFAULT_SYMBOL = "PTK"
DEFAULT_DECIMALS = 18
DEFAULT_MAX_BATCH = 300
MAX_DECIMALS = 36


def parse_bool(value: Union[str, bool, int], *, key: str) -> bool:
    if isinstance(value, bool):
        return value
    if isinstance(value, int):
        return value != 0
    v = str(value).strip().lower()
    if v in _BOOL_TRUE:
        return True
    if v in _BOOL_FALSE:
        return False
    raise ValueError(f"{key}: expected a boolean, got {value!r}")


def _parse_int(value: Union[str, int], *, key: str) -> int:
    if isinstance(value, bool):
        raise ValueError(f"{key}: expected an integer, got {value!r}")
    try:
        return int(str(value).strip(), 10) if isinstance(value, str) else int(value)
    except (TypeError, ValueError) as e:
        raise ValueError(f"{key}: expected an integer, got {value!r}") from e


# ------------------------------ dataclass -----------------------------------


@dataclass(frozen=True)
class LedgerConfig:
    name: str = DEFAULT_NAME
    symbol: str = DEFAULT_SYMBOL
    decimals: int = DEFAULT_DECIMALS
    max_batch_size: int = DEFAULT_MAX_BATCH
    whitelisting_enabled: bool = True
    unlimited_allowance: bool = True
    blacklist_revokes_whitelist: bool = False
    event_log_path: Optional[Path] = None

    def to_dict(self) -> Dict[str, Any]:
        d = asdict(self)
        d["event_log_path"] = str(self.event_log_path) if self.event_log_path else None
        return d

    def replace(self, **changes: Any) -> "LedgerConfig":
        """Return a validated copy with `changes` applied."""
        merged = {**self.to_dict(), **changes}
        return load_config(env={}, overrides=merged)


def _validate(cfg: LedgerConfig) -> LedgerConfig:
    if not cfg.name.strip():
        raise ValueError("name must be non-empty")
    if not cfg.symbol.strip():
        raise ValueError("symbol must be non-empty")
    if not (0 <= cfg.decimals <= MAX_DECIMALS):
        raise ValueError(f"decimals must be in [0,{MAX_DECIMALS}]")
    if cfg.max_batch_size <= 0:
        raise ValueError("max_batch_size must be > 0")
    return cfg


# ------------------------------ loader --------------------------------------

# field -> environment variable
_ENV_KEYS = {
    "name": "PERMLEDGER_NAME",
    "symbol": "PERMLEDGER_SYMBOL",
    "decimals": "PERMLEDGER_DECIMALS",
    "max_batch_size": "PERMLEDGER_MAX_BATCH",
    "whitelisting_enabled": "PERMLEDGER_WHITELISTING",
    "unlimited_allowance": "PERMLEDGER_UNLIMITED_ALLOWANCE",
    "blacklist_revokes_whitelist": "PERMLEDGER_BLACKLIST_REVOKES_WHITELIST",
    "event_log_path": "PERMLEDGER_EVENT_LOG",
}


def load_config(
    env: Optional[Mapping[str, str]] = None,
    *,
    overrides: Optional[Mapping[str, Any]] = None,
) -> LedgerConfig:
    """
    Build a LedgerConfig from environment and optional overrides.

    Args:
        env: mapping to read variables from (default: os.environ)
        overrides: explicit field values keyed by LedgerConfig field name

    Raises:
        ValueError: unknown override keys or invalid values.
    """
    env = os.environ if env is None else env
    overrides = dict(overrides or {})
    unknown = set(overrides) - set(_ENV_KEYS)
    if unknown:
        raise ValueError(f"unknown config keys: {sorted(unknown)}")

    def pick(field: str) -> Any:
        if field in overrides and overrides[field] is not None:
            return overrides[field]
        return env.get(_ENV_KEYS[field])

    def pick_bool(field: str, default: bool) -> bool:
        raw = pick(field)
        if raw is None or raw == "":
            return default
        return parse_bool(raw, key=field)

    def pick_int(field: str, default: int) -> int:
        raw = pick(field)
        if raw is None or raw == "":
            return default
        return _parse_int(raw, key=field)

    log_path = pick("event_log_path")
    cfg = LedgerConfig(
        name=str(pick("name") or DEFAULT_NAME),
        symbol=str(pick("symbol") or DEFAULT_SYMBOL),
        decimals=pick_int("decimals", DEFAULT_DECIMALS),
        max_batch_size=pick_int("max_batch_size", DEFAULT_MAX_BATCH),
        whitelisting_enabled=pick_bool("whitelisting_enabled", True),
        unlimited_allowance=pick_bool("unlimited_allowance", True),
        blacklist_revokes_whitelist=pick_bool("blacklist_revokes_whitelist", False),
        event_log_path=Path(log_path).expanduser() if log_path else None,
    )
    return _validate(cfg)


@lru_cache(maxsize=1)
def get_config() -> LedgerConfig:
    """Cached process-wide config read from os.environ."""
    return load_config()


# ----------------------------- pretty-print ---------------------------------


def summary(cfg: Optional[LedgerConfig] = None) -> str:
    """One-line summary of the effective knobs."""
    cfg = cfg or get_config()
    return (
        "ledger{"
        f"name={cfg.name!r}, symbol={cfg.symbol}, decimals={cfg.decimals}, "
        f"batch={cfg.max_batch_size}, wl={int(cfg.whitelisting_enabled)}, "
        f"unlimited={int(cfg.unlimited_allowance)}, "
        f"bl_revokes_wl={int(cfg.blacklist_revokes_whitelist)}, "
        f"events={cfg.event_log_path or '-'}"
        "}"
    )


__all__ = [
    "LedgerConfig",
    "load_config",
    "get_config",
    "summary",
    "parse_bool",
    "DEFAULT_MAX_BATCH",
]

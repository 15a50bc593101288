"""
permledger.scenario: replay scripted operations against a fresh ledger.

A scenario is a YAML or JSON document:

    owner: treasury                 # alias or 0x-hex
    accounts:                       # optional explicit aliases
      custodian: "0x00112233445566778899aabbccddeeff00112233"
    config:                         # optional LedgerConfig overrides
      max_batch_size: 10
    steps:
      - op: mint
        caller: treasury
        args: {to: treasury, amount: 1000000}
      - op: transfer
        caller: alice
        args: {to: bob, amount: 5}
        expect: SenderNotWhitelisted   # class name or code; default "ok"
      - op: check
        args:
          balances: {treasury: 1000000}
          total_supply: 1000000

Aliases that are neither listed under `accounts` nor hex addresses resolve to
``derive_address(alias)``. The alias ``null`` is the null address. The amount
``max`` means 2**256 - 1.

Configuration comes only from the document (the process environment is
ignored) so a scenario replays the same way everywhere.
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional, Tuple, Union

import yaml

from .config import load_config, parse_bool
from .errors import ERROR_CODES, ERRORS_BY_NAME, LedgerError, matches
from .events import EventSink, InMemoryEventSink
from .ledger import PermissionedLedger
from .logging import get_logger, with_fields
from .math.safe_uint import U256_MAX
from .types.address import (ADDRESS_LEN, NULL_ADDRESS, Address, derive_address,
                            to_address, to_hex)

log = get_logger(__name__)

EXPECT_OK = "ok"


class ScenarioError(ValueError):
    """The scenario document is malformed."""


# op -> (ledger method, ordered argument names). Address-valued arguments are
# listed in _ADDRESS_ARGS; `accounts` is a list of addresses.
_OPS: Dict[str, Tuple[str, Tuple[str, ...]]] = {
    "transfer": ("transfer", ("to", "amount")),
    "transfer_from": ("transfer_from", ("from", "to", "amount")),
    "approve": ("approve", ("spender", "amount")),
    "mint": ("mint", ("to", "amount")),
    "burn_from": ("burn_from", ("from", "amount")),
    "pause": ("pause", ()),
    "unpause": ("unpause", ()),
    "set_whitelister": ("set_whitelister", ("account", "status")),
    "set_blacklister": ("set_blacklister", ("account", "status")),
    "transfer_ownership": ("transfer_ownership", ("new_owner",)),
    "set_whitelisting_enabled": ("set_whitelisting_enabled", ("status",)),
    "set_whitelisted": ("set_whitelisted", ("account", "status")),
    "set_blacklisted": ("set_blacklisted", ("account", "status")),
    "batch_whitelist": ("batch_whitelist", ("accounts", "status")),
    "batch_blacklist": ("batch_blacklist", ("accounts", "status")),
}

_ADDRESS_ARGS = frozenset({"to", "from", "spender", "account", "new_owner"})

OP_CHECK = "check"


@dataclass(frozen=True)
class Step:
    op: str
    caller: Optional[str] = None
    args: Dict[str, Any] = field(default_factory=dict)
    expect: str = EXPECT_OK


@dataclass(frozen=True)
class Scenario:
    owner: str
    steps: List[Step]
    accounts: Dict[str, str] = field(default_factory=dict)
    config: Dict[str, Any] = field(default_factory=dict)
    name: str = ""


@dataclass
class StepResult:
    index: int
    op: str
    caller: Optional[str]
    expected: str
    outcome: str
    passed: bool
    error: Optional[Dict[str, Any]] = None

    def to_dict(self) -> Dict[str, Any]:
        d: Dict[str, Any] = {
            "index": self.index,
            "op": self.op,
            "caller": self.caller,
            "expected": self.expected,
            "outcome": self.outcome,
            "passed": self.passed,
        }
        if self.error is not None:
            d["error"] = self.error
        return d


@dataclass
class ScenarioReport:
    scenario: Scenario
    ledger: PermissionedLedger
    aliases: Dict[str, Address]
    results: List[StepResult] = field(default_factory=list)

    @property
    def passed(self) -> bool:
        return all(r.passed for r in self.results)

    @property
    def failures(self) -> List[StepResult]:
        return [r for r in self.results if not r.passed]

    def label(self, addr: Address) -> str:
        for alias, a in self.aliases.items():
            if a == addr:
                return alias
        return to_hex(addr)

    def balances(self) -> Dict[str, int]:
        return {self.label(a): b for a, b in self.ledger.state.holders()}

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.scenario.name,
            "passed": self.passed,
            "steps": [r.to_dict() for r in self.results],
            "total_supply": self.ledger.total_supply,
            "balances": self.balances(),
        }


# ----------------------------------------------------------------------------
# Loading
# ----------------------------------------------------------------------------


def load_scenario(path: Union[str, Path]) -> Scenario:
    """Read a .yaml/.yml/.json scenario file."""
    p = Path(path)
    text = p.read_text(encoding="utf-8")
    try:
        if p.suffix.lower() == ".json":
            doc = json.loads(text)
        else:
            doc = yaml.safe_load(text)
    except (json.JSONDecodeError, yaml.YAMLError) as e:
        raise ScenarioError(f"cannot parse {p}: {e}") from e
    return parse_scenario(doc, name=p.stem)


def parse_scenario(doc: Any, *, name: str = "") -> Scenario:
    if not isinstance(doc, Mapping):
        raise ScenarioError("scenario must be a mapping")
    if "owner" not in doc:
        raise ScenarioError("scenario needs an 'owner'")
    raw_steps = doc.get("steps") or []
    if not isinstance(raw_steps, list):
        raise ScenarioError("'steps' must be a list")

    steps: List[Step] = []
    for i, s in enumerate(raw_steps):
        if not isinstance(s, Mapping) or "op" not in s:
            raise ScenarioError(f"step {i}: expected a mapping with an 'op'")
        op = str(s["op"])
        if op not in _OPS and op != OP_CHECK:
            raise ScenarioError(f"step {i}: unknown op {op!r}")
        args = s.get("args") or {}
        if not isinstance(args, Mapping):
            raise ScenarioError(f"step {i}: 'args' must be a mapping")
        if op != OP_CHECK:
            missing = [a for a in _OPS[op][1] if a not in args]
            if missing:
                raise ScenarioError(f"step {i} ({op}): missing args {missing}")
            if s.get("caller") is None:
                raise ScenarioError(f"step {i} ({op}): missing 'caller'")
        caller = s.get("caller")
        steps.append(
            Step(
                op=op,
                caller=None if caller is None else str(caller),
                args=_normalize_args(i, op, args),
                expect=_expectation(i, s.get("expect", EXPECT_OK)),
            )
        )

    return Scenario(
        owner=str(doc["owner"]),
        steps=steps,
        accounts={str(k): str(v) for k, v in (doc.get("accounts") or {}).items()},
        config=dict(doc.get("config") or {}),
        name=str(doc.get("name") or name),
    )


def _flag(index: int, key: str, raw: Any) -> bool:
    try:
        return parse_bool(raw, key=key)
    except ValueError as e:
        raise ScenarioError(f"step {index}: {e}") from e


def _normalize_args(index: int, op: str, args: Mapping[str, Any]) -> Dict[str, Any]:
    """Copy `args`, turning boolean-valued entries ("false", "no", 0, ...) into bools."""
    out = dict(args)
    if op != OP_CHECK:
        if "status" in out:
            out["status"] = _flag(index, "status", out["status"])
        return out
    for key in ("paused", "whitelisting_enabled"):
        if key in out:
            out[key] = _flag(index, key, out[key])
    for key in ("whitelisted", "blacklisted"):
        flags = out.get(key) or {}
        if not isinstance(flags, Mapping):
            raise ScenarioError(f"step {index}: '{key}' must be a mapping")
        out[key] = {alias: _flag(index, f"{key}({alias})", v) for alias, v in flags.items()}
    return out


def _expectation(index: int, raw: Any) -> str:
    """`ok`, an error class name, or an error code."""
    e = str(raw).strip()
    if e.lower() == EXPECT_OK or e in ERRORS_BY_NAME or e.upper() in ERROR_CODES:
        return e
    raise ScenarioError(f"step {index}: unknown expected outcome {raw!r}")


# ----------------------------------------------------------------------------
# Replay
# ----------------------------------------------------------------------------


class _Resolver:
    def __init__(self, accounts: Mapping[str, str]) -> None:
        self.aliases: Dict[str, Address] = {}
        for alias, value in accounts.items():
            try:
                self.aliases[alias] = to_address(value)
            except (TypeError, ValueError) as e:
                raise ScenarioError(f"account {alias!r}: {e}") from e

    def __call__(self, ref: Any) -> Address:
        if isinstance(ref, (bytes, bytearray)):
            return to_address(ref)
        s = str(ref)
        if s in self.aliases:
            return self.aliases[s]
        if s == "null":
            return NULL_ADDRESS
        if s.startswith(("0x", "0X")) and len(s) == 2 + 2 * ADDRESS_LEN:
            try:
                return to_address(s)
            except ValueError as e:
                raise ScenarioError(f"bad address {s!r}: {e}") from e
        addr = derive_address(s)
        self.aliases[s] = addr
        return addr


def _amount(v: Any) -> Any:
    if isinstance(v, str) and v.strip().lower() == "max":
        return U256_MAX
    return v


def replay(scenario: Scenario, *, sink: Optional[EventSink] = None) -> ScenarioReport:
    """Run every step in order; never raises for ledger errors."""
    try:
        cfg = load_config(env={}, overrides=scenario.config)
    except ValueError as e:
        raise ScenarioError(f"config: {e}") from e

    slog = with_fields(log, scenario=scenario.name)
    resolve = _Resolver(scenario.accounts)
    owner = resolve(scenario.owner)
    try:
        ledger = PermissionedLedger(owner, config=cfg, sink=sink if sink is not None else InMemoryEventSink())
    except LedgerError as e:
        raise ScenarioError(f"owner: {e}") from e
    report = ScenarioReport(scenario=scenario, ledger=ledger, aliases=resolve.aliases)
    if scenario.owner not in resolve.aliases:
        resolve.aliases[scenario.owner] = owner

    for i, step in enumerate(scenario.steps):
        if step.op == OP_CHECK:
            report.results.append(_check(i, step, ledger, resolve))
            continue

        method_name, arg_names = _OPS[step.op]
        call_args: List[Any] = [resolve(step.caller)]
        for a in arg_names:
            v = step.args[a]
            if a in _ADDRESS_ARGS:
                v = resolve(v)
            elif a == "accounts":
                v = [resolve(x) for x in (v or [])]
            elif a == "amount":
                v = _amount(v)
            call_args.append(v)

        try:
            getattr(ledger, method_name)(*call_args)
        except LedgerError as e:
            passed = step.expect.lower() != EXPECT_OK and matches(e, step.expect)
            report.results.append(
                StepResult(i, step.op, step.caller, step.expect, e.code, passed, e.to_dict())
            )
        else:
            report.results.append(
                StepResult(i, step.op, step.caller, step.expect, EXPECT_OK, step.expect.lower() == EXPECT_OK)
            )

        if not report.results[-1].passed:
            slog.info(
                "scenario step mismatch",
                extra={"step": i, "op": step.op, "expected": step.expect, "outcome": report.results[-1].outcome},
            )
    slog.debug("scenario replayed", extra={"steps": len(report.results), "passed": report.passed})
    return report


def _check(index: int, step: Step, ledger: PermissionedLedger, resolve: _Resolver) -> StepResult:
    problems: List[str] = []
    for alias, want in (step.args.get("balances") or {}).items():
        got = ledger.balance_of(resolve(alias))
        if got != _amount(want):
            problems.append(f"balance_of({alias})={got} != {want}")
    for key in ("total_supply", "paused", "whitelisting_enabled"):
        if key in step.args:
            got = getattr(ledger, key)
            if got != _amount(step.args[key]):
                problems.append(f"{key}={got} != {step.args[key]}")
    for key, view in (("whitelisted", ledger.is_whitelisted), ("blacklisted", ledger.is_blacklisted)):
        for alias, want in (step.args.get(key) or {}).items():
            if view(resolve(alias)) != want:
                problems.append(f"{key}({alias}) != {want}")

    outcome = EXPECT_OK if not problems else "; ".join(problems)
    return StepResult(index, step.op, step.caller, EXPECT_OK, outcome, not problems)


__all__ = [
    "Scenario",
    "Step",
    "StepResult",
    "ScenarioReport",
    "ScenarioError",
    "load_scenario",
    "parse_scenario",
    "replay",
]

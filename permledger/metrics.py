"""
permledger.metrics: Prometheus counters & histograms for ledger operations.

* Centralized registry: `get_registry()` creates a dedicated CollectorRegistry on
  first use (or accepts one via `set_registry()` before that), and
  `generate_latest_text()` renders it for a /metrics handler.
* Helpers: `observe_op(...)`, `observe_rejection(...)` and `time_op(...)`.

Exposed metrics (prefixed with `permledger_`):
  - ops_total{op,result}         : Counter   operations by outcome
  - gate_rejections_total{reason}: Counter   transfer-gate refusals by reason code
  - op_seconds{op}               : Histogram wall time per operation

Labels:
  - op     ∈ public operation names (transfer, mint, set_whitelisted, ...)
  - result ∈ {ok, rejected, error}; `rejected` is a LedgerError, `error` anything else
"""

from __future__ import annotations

import os
import time
from dataclasses import dataclass
from typing import Iterable, Optional

from prometheus_client import (CONTENT_TYPE_LATEST, CollectorRegistry, Counter,
                               Histogram, generate_latest)

_PREFIX = "permledger_"

RESULT_OK = "ok"
RESULT_REJECTED = "rejected"
RESULT_ERROR = "error"


def _buckets_from_env(name: str, default: Iterable[float]) -> Iterable[float]:
    raw = os.getenv(name)
    if not raw:
        return default
    out = []
    for tok in raw.split(","):
        tok = tok.strip()
        if not tok:
            continue
        try:
            out.append(float(tok))
        except ValueError:
            continue
    return out or default


_OP_SECONDS_BUCKETS = tuple(
    _buckets_from_env(
        "PERMLEDGER_METRICS_OP_SECONDS_BUCKETS",
        # 10µs .. 100ms; operations are in-memory
        (0.00001, 0.000025, 0.00005, 0.0001, 0.00025, 0.0005, 0.001, 0.0025, 0.005, 0.01, 0.025, 0.1),
    )
)


# ------------------------------ registry ------------------------------------

_registry: Optional[CollectorRegistry] = None

OPS_TOTAL: Counter
GATE_REJECTIONS_TOTAL: Counter
OP_SECONDS: Histogram


def set_registry(registry: CollectorRegistry) -> None:
    """
    Inject a registry (e.g. an application-wide one). Ignored once metrics exist.
    """
    global _registry
    if _registry is not None:
        return
    _registry = registry
    _build_metrics(registry)


def get_registry() -> CollectorRegistry:
    global _registry
    if _registry is None:
        _registry = CollectorRegistry()
        _build_metrics(_registry)
    return _registry


def _build_metrics(reg: CollectorRegistry) -> None:
    global OPS_TOTAL, GATE_REJECTIONS_TOTAL, OP_SECONDS

    OPS_TOTAL = Counter(
        _PREFIX + "ops_total",
        "Ledger operations by name and outcome.",
        labelnames=("op", "result"),
        registry=reg,
    )
    GATE_REJECTIONS_TOTAL = Counter(
        _PREFIX + "gate_rejections_total",
        "Operations refused by the transfer gate, by reason code.",
        labelnames=("reason",),
        registry=reg,
    )
    OP_SECONDS = Histogram(
        _PREFIX + "op_seconds",
        "Wall time per ledger operation.",
        labelnames=("op",),
        buckets=_OP_SECONDS_BUCKETS,
        registry=reg,
    )


# ------------------------------ helpers -------------------------------------


def observe_op(op: str, result: str) -> None:
    get_registry()
    OPS_TOTAL.labels(op=op, result=result).inc()


def observe_rejection(reason: str) -> None:
    get_registry()
    GATE_REJECTIONS_TOTAL.labels(reason=reason).inc()


@dataclass
class _TimerCtx:
    op: str
    t0: float

    def stop(self) -> float:
        dt = max(0.0, time.perf_counter() - self.t0)
        OP_SECONDS.labels(op=self.op).observe(dt)
        return dt

    def __enter__(self) -> "_TimerCtx":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.stop()


def time_op(op: str) -> _TimerCtx:
    """
    Context manager timing one operation:

        with time_op("transfer"):
            ...
    """
    get_registry()
    return _TimerCtx(op=op, t0=time.perf_counter())


# ------------------------------ exposition ----------------------------------


def generate_latest_text() -> bytes:
    return generate_latest(get_registry())


def sample(name: str, **labels: str) -> Optional[float]:
    """Current value of one sample, or None if it has not been recorded."""
    return get_registry().get_sample_value(name, labels)


__all__ = [
    "get_registry",
    "set_registry",
    "generate_latest_text",
    "observe_op",
    "observe_rejection",
    "time_op",
    "sample",
    "RESULT_OK",
    "RESULT_REJECTED",
    "RESULT_ERROR",
    "CONTENT_TYPE_LATEST",
]

from __future__ import annotations

import logging
import os

import pytest
from hypothesis import HealthCheck, settings

from permledger.config import load_config
from permledger.events import InMemoryEventSink
from permledger.ledger import PermissionedLedger
from permledger.types.address import derive_address

# ---- Hypothesis profiles -----------------------------------------------------

settings.register_profile(
    "dev",
    settings(max_examples=60, deadline=None, suppress_health_check=(HealthCheck.too_slow,)),
)
settings.register_profile(
    "ci",
    settings(max_examples=200, deadline=None, derandomize=True, suppress_health_check=(HealthCheck.too_slow,)),
)
settings.register_profile("fast", settings(max_examples=15, deadline=None))
settings.load_profile(os.getenv("HYPOTHESIS_PROFILE") or ("ci" if os.getenv("CI") else "dev"))


# ---- deterministic accounts --------------------------------------------------

OWNER = derive_address("owner")
ALICE = derive_address("alice")
BOB = derive_address("bob")
CAROL = derive_address("carol")
MALLORY = derive_address("mallory")


@pytest.fixture
def owner() -> bytes:
    return OWNER


@pytest.fixture
def alice() -> bytes:
    return ALICE


@pytest.fixture
def bob() -> bytes:
    return BOB


@pytest.fixture
def carol() -> bytes:
    return CAROL


@pytest.fixture
def mallory() -> bytes:
    return MALLORY


@pytest.fixture
def sink() -> InMemoryEventSink:
    return InMemoryEventSink()


@pytest.fixture
def make_ledger(sink):
    """Factory: make_ledger(**config_overrides) -> fresh ledger on the shared sink."""

    def _make(**overrides) -> PermissionedLedger:
        cfg = load_config(env={}, overrides=overrides)
        return PermissionedLedger(OWNER, config=cfg, sink=sink)

    return _make


@pytest.fixture
def ledger(make_ledger) -> PermissionedLedger:
    return make_ledger()


@pytest.fixture
def funded(ledger) -> PermissionedLedger:
    """Owner holds 1,000,000; alice and bob whitelisted; alice holds 1,000."""
    ledger.mint(OWNER, OWNER, 1_000_000)
    ledger.set_whitelisted(OWNER, ALICE, True)
    ledger.set_whitelisted(OWNER, BOB, True)
    ledger.transfer(OWNER, ALICE, 1_000)
    return ledger


@pytest.fixture(autouse=True)
def _restore_package_logger():
    """CLI tests call plog.configure(); undo it so caplog keeps working."""
    logger = logging.getLogger("permledger")
    saved = (list(logger.handlers), logger.level, logger.propagate)
    yield
    logger.handlers[:] = saved[0]
    logger.setLevel(saved[1])
    logger.propagate = saved[2]

from __future__ import annotations

import json

import pytest
from typer.testing import CliRunner

from permledger.cli.main import app
from permledger.version import __version__

PASSING = """
owner: treasury
steps:
  - op: mint
    caller: treasury
    args: {to: treasury, amount: 50}
  - op: check
    args: {total_supply: 50}
"""

FAILING = """
owner: treasury
steps:
  - op: mint
    caller: mallory
    args: {to: mallory, amount: 50}
"""


@pytest.fixture
def runner() -> CliRunner:
    return CliRunner()


@pytest.fixture
def write(tmp_path):
    def _write(name: str, text: str):
        p = tmp_path / name
        p.write_text(text)
        return p

    return _write


def test_replay_pass(runner, write):
    res = runner.invoke(app, ["replay", str(write("ok.yaml", PASSING))])
    assert res.exit_code == 0, res.output
    assert "PASS" in res.output


def test_replay_mismatch_exits_1(runner, write):
    res = runner.invoke(app, ["replay", str(write("bad.yaml", FAILING))])
    assert res.exit_code == 1
    assert "FAIL" in res.output


def test_replay_json_with_events(runner, write):
    res = runner.invoke(app, ["replay", "--json", "--events", str(write("ok.yaml", PASSING))])
    assert res.exit_code == 0, res.output
    out = json.loads(res.output)
    assert out["passed"] is True
    assert out["balances"] == {"treasury": 50}
    assert out["events"][-1]["name"] == "Mint"


def test_replay_malformed_exits_2(runner, write):
    res = runner.invoke(app, ["replay", str(write("x.yaml", "steps: []\n"))])
    assert res.exit_code == 2


def test_config_json(runner, monkeypatch):
    monkeypatch.setenv("PERMLEDGER_MAX_BATCH", "12")
    res = runner.invoke(app, ["config", "--json"])
    assert res.exit_code == 0, res.output
    assert json.loads(res.output)["max_batch_size"] == 12


def test_config_table(runner, monkeypatch):
    monkeypatch.delenv("PERMLEDGER_MAX_BATCH", raising=False)
    res = runner.invoke(app, ["config"])
    assert res.exit_code == 0, res.output
    assert "max_batch_size" in res.output and "ledger{" in res.output


def test_config_invalid_env(runner, monkeypatch):
    monkeypatch.setenv("PERMLEDGER_DECIMALS", "99")
    res = runner.invoke(app, ["config"])
    assert res.exit_code == 2


def test_version(runner):
    res = runner.invoke(app, ["version"])
    assert res.exit_code == 0
    assert __version__ in res.output

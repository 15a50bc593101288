from __future__ import annotations

import io
import json
import logging

import pytest

from permledger import logging as plog
from permledger.errors import Paused


def _lines(buf: io.StringIO):
    return [json.loads(l) for l in buf.getvalue().splitlines() if l.strip()]


def test_trace_scope_restores_context():
    plog.clear_context()
    with plog.trace_scope(op="outer") as tid:
        assert plog.context()["trace_id"] == tid
        with plog.trace_scope(op="inner") as inner:
            assert inner == tid
            assert plog.context()["op"] == "inner"
        assert plog.context()["op"] == "outer"
    assert plog.context() == {}


def test_bind_coerces_bytes(alice):
    plog.clear_context()
    plog.bind(caller=alice)
    assert plog.context()["caller"] == "0x" + alice.hex()
    plog.unbind("caller")
    assert "caller" not in plog.context()


def test_rejection_logged_as_json(ledger, owner, alice, bob):
    buf = io.StringIO()
    plog.configure(json=True, level="DEBUG", stream=buf)
    ledger.pause(owner)
    with pytest.raises(Paused):
        ledger.transfer(alice, bob, 1)

    rejected = [r for r in _lines(buf) if r["msg"] == "rejected"]
    assert len(rejected) == 1
    rec = rejected[0]
    assert rec["code"] == "PAUSED"
    assert rec["op"] == "transfer"
    assert rec["caller"] == "0x" + alice.hex()
    assert rec["level"] == "INFO" and rec["logger"] == "permledger.ledger"
    assert any(r["msg"] == "accepted" and r["op"] == "pause" for r in _lines(buf))


def test_text_formatter_line():
    fmt = plog.TextFormatter()
    rec = logging.LogRecord("permledger.x", logging.WARNING, __file__, 1, "hello", None, None)
    rec.code = "PAUSED"
    with plog.trace_scope(trace_id="abc", op="mint"):
        line = fmt.format(rec)
    assert "| WARN" in line and "trace_id=abc op=mint" in line
    assert line.endswith("hello code=PAUSED")


def test_configure_level_from_env(monkeypatch):
    monkeypatch.setenv("PERMLEDGER_LOG_LEVEL", "ERROR")
    logger = plog.configure(json=True, stream=io.StringIO())
    assert logger.level == logging.ERROR
    assert logger.propagate is False


def test_with_fields_adds_constant_extras():
    buf = io.StringIO()
    plog.configure(json=True, level="DEBUG", stream=buf)
    log = plog.with_fields(plog.get_logger("permledger.test"), scenario="demo")
    log.info("hello", extra={"step": 3})
    rec = _lines(buf)[-1]
    assert (rec["scenario"], rec["step"], rec["msg"]) == ("demo", 3, "hello")

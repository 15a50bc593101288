"""
permledger.cli.main
===================

Command-line entry point (console script ``permledger``).

Commands:
  replay FILE [--json] [--events]   replay a YAML/JSON scenario; exit 1 on any mismatch
  config [--json]                   print the effective configuration
  version                           print version information

Examples:
  permledger replay scenarios/onboarding.yaml
  permledger replay scenarios/onboarding.yaml --json | jq .balances
  PERMLEDGER_MAX_BATCH=50 permledger config
"""

from __future__ import annotations

import json
import os
from pathlib import Path
from typing import Any, Dict, Optional

import typer
from rich import box
from rich.console import Console
from rich.table import Table

from .. import logging as plog
from ..config import load_config, summary
from ..events import InMemoryEventSink
from ..scenario import ScenarioError, load_scenario, replay
from ..version import __version__, git_describe

app = typer.Typer(
    name="permledger",
    help="Permissioned fungible ledger tools.",
    no_args_is_help=True,
    add_completion=False,
)


def _console() -> Console:
    return Console(highlight=False)


def _die(msg: str, code: int = 2) -> None:
    typer.echo(msg.rstrip(), err=True)
    raise typer.Exit(code)


@app.callback()
def _main(
    log_level: Optional[str] = typer.Option(
        None, "--log-level", help="Log level (default: PERMLEDGER_LOG_LEVEL or WARNING)."
    ),
) -> None:
    plog.configure(level=log_level or _env_level())


def _env_level() -> str:
    return os.environ.get("PERMLEDGER_LOG_LEVEL", "WARNING")


@app.command("replay")
def replay_cmd(
    file: Path = typer.Argument(..., exists=True, dir_okay=False, readable=True, help="Scenario file (.yaml/.json)."),
    as_json: bool = typer.Option(False, "--json", help="Emit a JSON report instead of tables."),
    show_events: bool = typer.Option(False, "--events", help="Also print the emitted events."),
) -> None:
    """Replay a scenario against a fresh ledger and compare each step's outcome."""
    try:
        scenario = load_scenario(file)
    except ScenarioError as e:
        _die(f"error: {e}")
        return

    sink = InMemoryEventSink()
    try:
        report = replay(scenario, sink=sink)
    except ScenarioError as e:
        _die(f"error: {e}")
        return

    if as_json:
        out: Dict[str, Any] = report.to_dict()
        if show_events:
            out["events"] = [r.to_dict() for r in sink.get_logs()]
        typer.echo(json.dumps(out, indent=2, sort_keys=False))
    else:
        console = _console()
        _render_steps(console, report)
        _render_balances(console, report)
        if show_events:
            _render_events(console, sink)
        verdict = "[green]PASS[/green]" if report.passed else f"[red]FAIL[/red] ({len(report.failures)} mismatched)"
        console.print(f"{scenario.name or file.name}: {verdict}")

    if not report.passed:
        raise typer.Exit(1)


@app.command("config")
def config_cmd(as_json: bool = typer.Option(False, "--json", help="Emit JSON.")) -> None:
    """Print the configuration read from PERMLEDGER_* environment variables."""
    try:
        cfg = load_config()
    except ValueError as e:
        _die(f"error: {e}")
        return
    if as_json:
        typer.echo(json.dumps(cfg.to_dict(), indent=2))
        return
    t = Table(title="Ledger configuration", box=box.SIMPLE)
    t.add_column("Field")
    t.add_column("Value", justify="right")
    for k, v in cfg.to_dict().items():
        t.add_row(k, "-" if v is None else str(v))
    console = _console()
    console.print(t)
    console.print(summary(cfg))


@app.command("version")
def version_cmd() -> None:
    """Print version information."""
    typer.echo(f"permledger {__version__} ({git_describe()})")


# ---- rendering ---------------------------------------------------------------


def _render_steps(console: Console, report: Any) -> None:
    t = Table(title="Steps", box=box.SIMPLE)
    t.add_column("#", justify="right")
    t.add_column("op")
    t.add_column("caller")
    t.add_column("expected")
    t.add_column("outcome")
    t.add_column("")
    for r in report.results:
        mark = "[green]✓[/green]" if r.passed else "[red]✗[/red]"
        t.add_row(str(r.index), r.op, r.caller or "-", r.expected, r.outcome, mark)
    console.print(t)


def _render_balances(console: Console, report: Any) -> None:
    t = Table(title=f"Balances (total supply {report.ledger.total_supply})", box=box.SIMPLE)
    t.add_column("account")
    t.add_column("balance", justify="right")
    for label, bal in report.balances().items():
        t.add_row(label, str(bal))
    console.print(t)


def _render_events(console: Console, sink: InMemoryEventSink) -> None:
    t = Table(title="Events", box=box.SIMPLE)
    t.add_column("seq", justify="right")
    t.add_column("name")
    t.add_column("fields")
    for rec in sink.get_logs():
        fields = rec.event.to_dict()["fields"]
        t.add_row(str(rec.seq), rec.name, " ".join(f"{k}={v}" for k, v in fields.items()))
    console.print(t)


def main() -> None:  # pragma: no cover
    app()


if __name__ == "__main__":  # pragma: no cover
    main()

"""
permledger.cli: command-line tools (typer + rich).

    permledger replay FILE [--json]
    permledger config
"""

from .main import app

__all__ = ["app"]

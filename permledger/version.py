"""
permledger.version: semantic version string and VCS describe helper.

Kept tiny and dependency-free so it can be imported very early (CLI banners,
log records, packaging).

Usage:
    from permledger.version import __version__, git_describe
"""

from __future__ import annotations

import os
import subprocess
from functools import lru_cache

# Bump this when making a tagged release. Use semver (major.minor.patch).
__version__ = "0.1.0"


@lru_cache(maxsize=1)
def git_describe() -> str:
    """
    Return a best-effort 'git describe' style string.

    Resolution order:
      1) Environment override PERMLEDGER_GIT_DESCRIBE.
      2) `git describe --tags --dirty --always` (if git and a repo are present).
      3) Fallback to ``<__version__>+local``.
    """
    override = os.getenv("PERMLEDGER_GIT_DESCRIBE")
    if override:
        return override.strip()

    try:
        out = subprocess.check_output(
            ["git", "describe", "--tags", "--dirty", "--always"],
            stderr=subprocess.DEVNULL,
        )
        desc = out.decode("utf-8", "replace").strip()
        if desc:
            return desc
    except (OSError, subprocess.CalledProcessError):
        pass

    return f"{__version__}+local"


__all__ = ["__version__", "git_describe"]

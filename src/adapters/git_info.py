"""Source revision lookup.

Mirrors what the backend build embeds: the current `HEAD`, or "unknown" when
the tree is not a git checkout or git is not installed.
"""

from __future__ import annotations

import subprocess
from pathlib import Path

from core.logging_setup import get_logger

UNKNOWN_REVISION = "unknown"

logger = get_logger("git")


def read_git_revision(root: Path) -> str:
    """Return `git rev-parse HEAD` for `root`, or "unknown"."""

    try:
        completed = subprocess.run(
            ["git", "rev-parse", "HEAD"],
            cwd=root,
            capture_output=True,
            text=True,
            check=False,
        )
    except (OSError, subprocess.SubprocessError) as exc:
        logger.debug("git unavailable: %s", exc)
        return UNKNOWN_REVISION

    if completed.returncode != 0:
        logger.debug("git rev-parse failed: %s", completed.stderr.strip())
        return UNKNOWN_REVISION
    return completed.stdout.strip() or UNKNOWN_REVISION

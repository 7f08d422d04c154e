"""Subprocess-backed `CommandRunner`.

Why a wrapper:
- Standardizes how children are spawned: explicit working directory per
  call, inherited stdio, exit status returned instead of raised.
- Makes testing trivial: the orchestrator only sees the `CommandRunner`
  protocol and tests substitute a recording fake.
"""

from __future__ import annotations

import os
import shutil
import subprocess
from pathlib import Path
from typing import Sequence

from core.logging_setup import get_logger

# Shell conventions for "command not found" / "found but not executable".
EXIT_NOT_FOUND = 127
EXIT_NOT_EXECUTABLE = 126
# A child killed by signal N is reported as 128 + N.
EXIT_SIGNAL_BASE = 128

logger = get_logger("runner")


class SubprocessRunner:
    """Runs each command to completion with `subprocess.run`.

    Output is not captured: build tools and the server write straight to the
    terminal, as they would when run by hand.
    """

    def __init__(self, *, env: dict[str, str] | None = None) -> None:
        self._env = env

    def run(self, command: Sequence[str], *, cwd: Path | None = None) -> int:
        argv = [str(part) for part in command]
        logger.debug("spawn %s (cwd=%s)", argv, cwd or Path.cwd())
        try:
            completed = subprocess.run(argv, cwd=cwd, env=self._env, check=False)
        except FileNotFoundError as exc:
            logger.error("command not found: %s (%s)", argv[0], exc)
            return EXIT_NOT_FOUND
        except PermissionError as exc:
            logger.error("command not executable: %s (%s)", argv[0], exc)
            return EXIT_NOT_EXECUTABLE
        except OSError as exc:
            logger.error("failed to start %s: %s", argv[0], exc)
            return EXIT_NOT_EXECUTABLE

        code = completed.returncode
        if code < 0:
            logger.warning("%s killed by signal %d", argv[0], -code)
            code = EXIT_SIGNAL_BASE - code
        logger.debug("exit %s <- %s", code, argv)
        return code


def is_superuser() -> bool:
    """True when the current process already has an effective uid of 0."""

    geteuid = getattr(os, "geteuid", None)
    return bool(geteuid is not None and geteuid() == 0)


def elevation_available(elevate_command: Sequence[str]) -> bool:
    return bool(elevate_command) and shutil.which(elevate_command[0]) is not None

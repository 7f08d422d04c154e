"""Command runner contracts.

Why Protocol:
- A structural contract (duck typing) with no rigid inheritance.
- Lets the subprocess adapter be swapped for a recording fake in tests
  without coupling the orchestrator to a concrete implementation.
"""

from __future__ import annotations

from pathlib import Path
from typing import Protocol, Sequence, runtime_checkable


@runtime_checkable
class CommandRunner(Protocol):
    """Minimal contract for spawning a blocking child process.

    Design rules:
    - `run` blocks until the child exits and returns its exit status.
    - The working directory is passed per call; implementations must never
      change the parent's own working directory.
    - Failure to spawn is reported as a status code, not raised.
    """

    def run(self, command: Sequence[str], *, cwd: Path | None = None) -> int:
        """Run `command` in `cwd` and return its exit status."""

        ...

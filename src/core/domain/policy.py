"""Failure policy for the build flow.

Kept in the domain layer so the CLI, the settings and the orchestrator share
one definition without importing each other.
"""

from __future__ import annotations

from enum import Enum


class FailurePolicy(str, Enum):
    """What the orchestrator does after a build step exits non-zero."""

    ABORT = "abort"
    CONTINUE = "continue"

    @classmethod
    def default(cls) -> "FailurePolicy":
        return cls.ABORT

    @classmethod
    def from_bool(cls, keep_going: bool) -> "FailurePolicy":
        """Derive a policy from the `--keep-going` flag."""

        return cls.CONTINUE if keep_going else cls.ABORT

    def label(self) -> str:
        """Human readable label for tables and logging."""

        return "continue on error" if self is FailurePolicy.CONTINUE else "stop at first failure"

"""Domain models (Pydantic v2).

Why Pydantic in the domain:
- Strict validation plus self-documenting fields (Field) without coupling
  the Core to subprocess or CLI details.
- The build report serializes to JSON as-is.

Note:
- These models describe *what* runs and *what happened*, not *how* a
  process is spawned.
"""

from __future__ import annotations

from datetime import datetime, timezone
from pathlib import Path

from pydantic import BaseModel, Field, computed_field

from core.domain.policy import FailurePolicy


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class BuildStep(BaseModel):
    """One subsystem build: an entrypoint run inside its own directory."""

    name: str = Field(
        ...,
        min_length=1,
        max_length=64,
        description="Subsystem name (e.g. 'frontend', 'backend').",
    )
    workdir: Path = Field(
        ...,
        description="Working directory handed to the child process.",
    )
    entrypoint: str = Field(
        default="./build.sh",
        min_length=1,
        description="Build entrypoint, resolved relative to `workdir`.",
    )

    def command(self, args: list[str]) -> list[str]:
        """Argv for this step; `args` is forwarded untouched."""

        return [self.entrypoint, *args]


class LaunchTarget(BaseModel):
    """The binary started once both builds have been attempted."""

    binary: Path = Field(
        ...,
        description="Path to the prebuilt executable.",
    )
    elevate: bool = Field(
        default=False,
        description="Whether the caller consented to superuser elevation.",
    )
    elevate_command: list[str] = Field(
        default_factory=lambda: ["sudo"],
        min_length=1,
        description="Wrapper prepended to the binary when elevating.",
    )

    def command(self) -> list[str]:
        if self.elevate:
            return [*self.elevate_command, str(self.binary)]
        return [str(self.binary)]


class StepResult(BaseModel):
    """Outcome of one spawned (or skipped) command."""

    name: str = Field(..., min_length=1, description="Step name.")
    command: list[str] = Field(
        default_factory=list,
        description="Exact argv that was (or would have been) spawned.",
    )
    cwd: Path | None = Field(
        default=None,
        description="Working directory of the child (None = inherited).",
    )
    returncode: int | None = Field(
        default=None,
        description="Exit status; None when the step was skipped.",
    )
    skipped: bool = Field(
        default=False,
        description="True when an earlier failure prevented this step.",
    )
    started_at: datetime = Field(
        default_factory=_utcnow,
        description="Start time (UTC).",
    )
    duration_seconds: float = Field(
        default=0.0,
        ge=0.0,
        description="Wall-clock duration of the child process.",
    )

    @computed_field  # type: ignore[prop-decorator]
    @property
    def ok(self) -> bool:
        return not self.skipped and self.returncode == 0


class BuildReport(BaseModel):
    """Aggregate of a full build-and-launch run.

    Why an aggregate:
    - Keeps every step's outcome together for presentation, JSON export and
      the final exit code.
    """

    args: list[str] = Field(
        default_factory=list,
        description="Forwarded argument vector, exactly as received.",
    )
    policy: FailurePolicy = Field(
        default=FailurePolicy.ABORT,
        description="What happens after a failing build step.",
    )
    git_revision: str = Field(
        default="unknown",
        description="Source revision the build ran against.",
    )
    steps: list[StepResult] = Field(
        default_factory=list,
        description="Build step outcomes, in execution order.",
    )
    launch: StepResult | None = Field(
        default=None,
        description="Target launch outcome (None if not launched).",
    )
    aborted: bool = Field(
        default=False,
        description="True when a failure stopped the run early.",
    )

    def first_failure(self) -> StepResult | None:
        for step in self.steps:
            if not step.skipped and step.returncode not in (None, 0):
                return step
        return None

    @computed_field  # type: ignore[prop-decorator]
    @property
    def exit_code(self) -> int:
        """Exit status the CLI should end with.

        - ABORT: first failing build step, else the target's status.
        - CONTINUE: status of the last command that actually ran.
        """

        if self.policy is FailurePolicy.ABORT:
            failed = self.first_failure()
            if failed is not None:
                return int(failed.returncode or 1)
            if self.launch is not None:
                return int(self.launch.returncode or 0)
            return 0

        executed = [s for s in self.steps if not s.skipped]
        if self.launch is not None:
            executed.append(self.launch)
        if not executed:
            return 0
        return int(executed[-1].returncode or 0)

"""Build flow errors.

The orchestrator only raises after the report is complete, so callers can
still present or export what happened before the failure.
"""

from __future__ import annotations

from core.domain.models import BuildReport, StepResult

# Status a shell reports for a SIGINT-terminated command.
EXIT_INTERRUPTED = 130


class BuildError(Exception):
    """Base class for every error raised by the build flow."""


class ConfigurationError(BuildError):
    """Settings are invalid or point at directories that do not exist."""


class StepFailed(BuildError):
    """A build step exited non-zero and the policy said to stop."""

    def __init__(self, step: StepResult, report: BuildReport) -> None:
        super().__init__(f"{step.name} build failed with exit code {step.returncode}")
        self.step = step
        self.report = report

    @property
    def exit_code(self) -> int:
        return self.report.exit_code


class BuildInterrupted(BuildError):
    """Ctrl+C stopped the run; the report covers what ran until then."""

    def __init__(self, report: BuildReport) -> None:
        super().__init__("interrupted")
        self.report = report

    @property
    def exit_code(self) -> int:
        return EXIT_INTERRUPTED

"""Build-and-launch orchestration.

This module owns the whole flow: build each subsystem in order, report
progress, then start the server binary. The CLI only collects options and
renders results; side effects that touch the terminal (status lines) go
through a callback so the flow stays reusable from tests and other
entry-points.

Invariants:
- The forwarded argument vector reaches every build entrypoint unchanged.
- Child working directories are passed per call; the parent process never
  calls `os.chdir`.
- The binary is launched with no arguments, and elevated only on explicit
  consent.
"""

from __future__ import annotations

import time
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Sequence

from adapters.git_info import read_git_revision
from adapters.process_runner import SubprocessRunner, is_superuser
from core.config import AppSettings, load_settings
from core.domain.models import BuildReport, BuildStep, LaunchTarget, StepResult
from core.domain.policy import FailurePolicy
from core.errors import EXIT_INTERRUPTED, BuildInterrupted, ConfigurationError, StepFailed
from core.interfaces.runner import CommandRunner
from core.logging_setup import get_logger

STATUS_DONE = "Build process completed."
LAUNCH_STEP = "launch"

StatusCallback = Callable[[str], None]

logger = get_logger("pipeline")


def status_for(step: BuildStep) -> str:
    return f"Building {step.name}..."


@dataclass
class BuildRequest:
    """Parameters that control one run of the flow."""

    args: Sequence[str] = ()
    launch: bool = True
    elevate: bool = False
    policy: FailurePolicy = FailurePolicy.ABORT


@dataclass(frozen=True)
class PlannedCommand:
    """A command the flow would spawn, in order."""

    name: str
    cwd: Path | None
    command: list[str]


def build_steps(settings: AppSettings) -> list[BuildStep]:
    """Fixed build order: frontend, then backend."""

    return [
        BuildStep(name="frontend", workdir=settings.frontend_path, entrypoint=settings.build_entrypoint),
        BuildStep(name="backend", workdir=settings.backend_path, entrypoint=settings.build_entrypoint),
    ]


def launch_target(settings: AppSettings, *, elevate: bool) -> LaunchTarget:
    """Describe the binary launch.

    No wrapper is needed when the process already runs as root.
    """

    return LaunchTarget(
        binary=settings.binary_path,
        elevate=elevate and not is_superuser(),
        elevate_command=list(settings.elevate_command),
    )


def validate_layout(settings: AppSettings) -> None:
    """Raise `ConfigurationError` when a subsystem directory is missing."""

    missing = [str(step.workdir) for step in build_steps(settings) if not step.workdir.is_dir()]
    if missing:
        raise ConfigurationError(f"missing build directories: {', '.join(missing)}")


def plan_build(request: BuildRequest, settings: AppSettings) -> list[PlannedCommand]:
    """Return what `run_build` would spawn, without spawning anything."""

    args = list(request.args)
    planned = [PlannedCommand(step.name, step.workdir, step.command(args)) for step in build_steps(settings)]
    if request.launch:
        target = launch_target(settings, elevate=request.elevate)
        planned.append(PlannedCommand(LAUNCH_STEP, None, target.command()))
    return planned


def _execute(runner: CommandRunner, result: StepResult) -> StepResult:
    """Run `result.command`, filling in its status and duration in place.

    The result is already attached to the report, so an interrupted step is
    still recorded (with status 130).
    """

    started = time.monotonic()
    try:
        result.returncode = runner.run(result.command, cwd=result.cwd)
    except KeyboardInterrupt:
        result.returncode = EXIT_INTERRUPTED
        raise
    finally:
        result.duration_seconds = round(time.monotonic() - started, 3)
    return result


def run_build(
    request: BuildRequest,
    *,
    settings: AppSettings | None = None,
    runner: CommandRunner | None = None,
    on_status: StatusCallback | None = None,
    revision_reader: Callable[[Path], str] = read_git_revision,
) -> BuildReport:
    """Run every build step, then launch the binary.

    Under `FailurePolicy.ABORT` the first failing step stops the flow: later
    steps are recorded as skipped, the completion status is not emitted, the
    binary is not launched and `StepFailed` is raised with the final report.
    Under `FailurePolicy.CONTINUE` every step runs regardless of exit codes.
    Ctrl+C raises `BuildInterrupted` with the report as it stood, the
    interrupted step carrying status 130.
    """

    settings = settings or load_settings()
    runner = runner or SubprocessRunner()
    emit = on_status or (lambda _msg: None)
    args = list(request.args)

    report = BuildReport(
        args=args,
        policy=request.policy,
        git_revision=revision_reader(settings.project_root),
    )
    logger.info("Source revision %s, forwarding %d argument(s)", report.git_revision, len(args))

    try:
        _run_steps(request, settings, runner, emit, report)
    except KeyboardInterrupt:
        report.aborted = True
        logger.warning("Interrupted; stopping the build")
        raise BuildInterrupted(report) from None
    return report


def _run_steps(
    request: BuildRequest,
    settings: AppSettings,
    runner: CommandRunner,
    emit: StatusCallback,
    report: BuildReport,
) -> None:
    args = report.args
    failed: StepResult | None = None
    for step in build_steps(settings):
        result = StepResult(name=step.name, command=step.command(args), cwd=step.workdir)
        report.steps.append(result)
        if failed is not None:
            result.skipped = True
            continue

        emit(status_for(step))
        _execute(runner, result)

        if result.ok:
            logger.info("%s build finished in %.1fs", step.name, result.duration_seconds)
            continue

        logger.error("%s build failed with exit code %s", step.name, result.returncode)
        if request.policy is FailurePolicy.ABORT:
            failed = result

    if failed is not None:
        report.aborted = True
        raise StepFailed(failed, report)

    emit(STATUS_DONE)

    if not request.launch:
        logger.info("Launch disabled; not starting %s", settings.binary_path)
        return

    target = launch_target(settings, elevate=request.elevate)
    if target.elevate:
        logger.warning("Launching with elevated privileges: %s", " ".join(target.command()))
    elif request.elevate:
        logger.info("Already running as superuser; launching %s directly", target.binary)
    else:
        logger.warning("Launching %s without elevation (pass --elevate to consent)", target.binary)

    report.launch = StepResult(name=LAUNCH_STEP, command=target.command(), cwd=None)
    _execute(runner, report.launch)
    logger.info("%s exited with code %s", target.binary.name, report.launch.returncode)

"""Command-line entry point (Typer).

Why a thin CLI:
- Every decision about ordering, failure handling and elevation lives in
  `core.services.build_pipeline`; this layer only maps options to a
  `BuildRequest` and renders results.
"""

from __future__ import annotations

from pathlib import Path
from typing import Optional

import typer
from rich.console import Console

from adapters.json_exporter import export_report_json
from adapters.process_runner import SubprocessRunner
from cli import doctor
from cli.ui_components import (
    build_plan_table,
    build_report_table,
    print_banner,
    print_config_error,
    print_status,
)
from core.config import AppSettings, load_settings
from core.domain.models import BuildReport
from core.domain.policy import FailurePolicy
from core.errors import EXIT_INTERRUPTED, BuildInterrupted, ConfigurationError, StepFailed
from core.logging_setup import setup_logging
from core.services.build_pipeline import BuildRequest, plan_build, run_build, validate_layout

# Exit status for configuration problems (same as usage errors).
EXIT_CONFIG = 2

# Forwarded tokens are opaque: unknown options must not be rejected.
FORWARDING = {"allow_extra_args": True, "ignore_unknown_options": True}

app = typer.Typer(
    no_args_is_help=True,
    help="Build the frontend and backend, then launch memory-server.",
)
app.add_typer(doctor.app, name="doctor")

_console = Console()


@app.callback()
def main(
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Debug logging on the console."),
    log_file: Optional[Path] = typer.Option(None, "--log-file", help="Also write a rotating log file."),
) -> None:
    """Configure logging for every subcommand."""

    settings = _settings_or_exit(None)
    setup_logging(
        "DEBUG" if verbose else settings.log_level,
        log_file=log_file or settings.log_file,
    )


def _settings_or_exit(project_root: Path | None) -> AppSettings:
    try:
        if project_root is None:
            return load_settings()
        return load_settings(project_root=project_root.resolve())
    except ConfigurationError as exc:
        print_config_error(_console, exc)
        raise typer.Exit(code=EXIT_CONFIG)


def _build_request(
    args: list[str],
    settings: AppSettings,
    *,
    elevate: bool | None,
    keep_going: bool | None,
    launch: bool,
) -> BuildRequest:
    policy = settings.failure_policy if keep_going is None else FailurePolicy.from_bool(keep_going)
    return BuildRequest(
        args=args,
        launch=launch,
        elevate=settings.elevate if elevate is None else elevate,
        policy=policy,
    )


def _finish(report: BuildReport, report_path: Path | None) -> None:
    _console.print(build_report_table(report))
    if report_path is not None:
        written = export_report_json(report=report, output_path=report_path)
        _console.print(f"[green]Report saved to:[/green] {written}")


@app.command(context_settings=FORWARDING)
def build(
    ctx: typer.Context,
    elevate: Optional[bool] = typer.Option(
        None,
        "--elevate/--no-elevate",
        help="Consent to launch the binary with superuser privileges.",
    ),
    keep_going: Optional[bool] = typer.Option(
        None,
        "--keep-going/--fail-fast",
        help="Continue after a failing build step (default: stop).",
    ),
    launch: bool = typer.Option(True, "--launch/--no-launch", help="Start the binary after building."),
    project_root: Optional[Path] = typer.Option(None, "--project-root", help="Directory with frontend/ and backend/."),
    report_path: Optional[Path] = typer.Option(None, "--report", help="Write the build report as JSON."),
    quiet: bool = typer.Option(False, "--quiet", "-q", help="No banner."),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Debug logging on the console."),
    log_file: Optional[Path] = typer.Option(None, "--log-file", help="Also write a rotating log file."),
) -> None:
    """Build frontend and backend, then launch the server.

    Any other arguments are forwarded unchanged to both build entrypoints
    (use `--` before arguments that clash with the options above).
    """

    settings = _settings_or_exit(project_root)
    if verbose or log_file is not None:
        setup_logging("DEBUG" if verbose else None, log_file=log_file)
    request = _build_request(list(ctx.args), settings, elevate=elevate, keep_going=keep_going, launch=launch)

    if not quiet:
        print_banner(_console)

    try:
        validate_layout(settings)
        report = run_build(
            request,
            settings=settings,
            runner=SubprocessRunner(),
            on_status=lambda message: print_status(_console, message),
        )
    except ConfigurationError as exc:
        print_config_error(_console, exc)
        raise typer.Exit(code=EXIT_CONFIG)
    except StepFailed as exc:
        _finish(exc.report, report_path)
        _console.print(f"[bold red]{exc}[/bold red]")
        raise typer.Exit(code=exc.exit_code)
    except BuildInterrupted as exc:
        _finish(exc.report, report_path)
        _console.print("[yellow]Interrupted.[/yellow]")
        raise typer.Exit(code=exc.exit_code)
    except KeyboardInterrupt:
        _console.print("[yellow]Interrupted.[/yellow]")
        raise typer.Exit(code=EXIT_INTERRUPTED)

    _finish(report, report_path)
    raise typer.Exit(code=report.exit_code)


@app.command(context_settings=FORWARDING)
def plan(
    ctx: typer.Context,
    elevate: Optional[bool] = typer.Option(None, "--elevate/--no-elevate"),
    launch: bool = typer.Option(True, "--launch/--no-launch"),
    project_root: Optional[Path] = typer.Option(None, "--project-root"),
) -> None:
    """Show the commands `build` would run, without running them."""

    settings = _settings_or_exit(project_root)
    request = _build_request(list(ctx.args), settings, elevate=elevate, keep_going=None, launch=launch)
    _console.print(build_plan_table(plan_build(request, settings)))


def run() -> None:
    app()

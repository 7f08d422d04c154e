"""Doctor command for environment diagnostics."""

from __future__ import annotations

import json
import os
from pathlib import Path
from typing import Optional

import typer
from rich.console import Console
from rich.table import Table

from adapters.git_info import read_git_revision
from adapters.process_runner import elevation_available, is_superuser
from cli.ui_components import print_config_error
from core.config import AppSettings, get_user_env_file, load_settings, write_user_env_vars
from core.domain.platform import host_target_triple
from core.domain.policy import FailurePolicy
from core.errors import ConfigurationError
from core.services.build_pipeline import build_steps

app = typer.Typer(no_args_is_help=True, help="Environment diagnostics and configuration checks.")

_console = Console()


def _check_entrypoint(workdir: Path, entrypoint: str) -> tuple[str, str]:
    if not workdir.is_dir():
        return "FAIL", f"directory not found: {workdir}"
    script = workdir / entrypoint
    if not script.is_file():
        return "FAIL", f"entrypoint not found: {script}"
    if not os.access(script, os.X_OK):
        return "FAIL", f"not executable: {script} (chmod +x)"
    return "OK", str(script)


def collect_checks(settings: AppSettings) -> list[tuple[str, str, str]]:
    """Rows of (check, status, details); status is OK, FAIL, WARN or INFO."""

    rows: list[tuple[str, str, str]] = []
    root = settings.project_root
    rows.append(("Project root", "OK" if root.is_dir() else "FAIL", str(root)))

    for step in build_steps(settings):
        status, detail = _check_entrypoint(step.workdir, step.entrypoint)
        rows.append((f"{step.name} build", status, detail))

    binary = settings.binary_path
    if binary.is_file():
        rows.append(("Target binary", "OK", str(binary)))
    else:
        rows.append(("Target binary", "INFO", f"not built yet: {binary}"))
    rows.append(("Target triple", "OK", settings.effective_triple))

    if is_superuser():
        rows.append(("Elevation", "OK", "already running as superuser"))
    elif not settings.elevate:
        rows.append(("Elevation", "INFO", "off (pass --elevate or set MEMSRV_BUILD_ELEVATE=true)"))
    elif elevation_available(settings.elevate_command):
        rows.append(("Elevation", "OK", " ".join(settings.elevate_command)))
    else:
        rows.append(("Elevation", "FAIL", f"{settings.elevate_command[0]} not found on PATH"))

    rows.append(("Failure policy", "OK", settings.failure_policy.label()))
    rows.append(("Git revision", "INFO", read_git_revision(root)))
    rows.append(("User config", "INFO", str(get_user_env_file())))
    return rows


def _settings_or_exit(**overrides: object) -> AppSettings:
    try:
        return load_settings(**overrides)
    except ConfigurationError as exc:
        print_config_error(_console, exc)
        raise typer.Exit(code=2)


_STATUS_STYLE = {"OK": "green", "FAIL": "bold red", "WARN": "yellow", "INFO": "dim"}


@app.command()
def run(
    project_root: Optional[Path] = typer.Option(None, "--project-root", help="Directory with frontend/ and backend/."),
) -> None:
    """Run baseline diagnostics and show recommended fixes."""

    settings = _settings_or_exit(project_root=project_root.resolve()) if project_root else _settings_or_exit()

    table = Table(title="memsrv-build Doctor")
    table.add_column("Check", style="bright_green", no_wrap=True)
    table.add_column("Status", style="white")
    table.add_column("Details", style="dim")

    rows = collect_checks(settings)
    for check, status, detail in rows:
        table.add_row(check, f"[{_STATUS_STYLE[status]}]{status}[/]", detail)

    _console.print(table)

    if any(status == "FAIL" for _, status, _ in rows):
        raise typer.Exit(code=1)


@app.command()
def configure() -> None:
    """Interactive setup (stores config in the user config .env)."""

    current = _settings_or_exit()

    triple = typer.prompt(
        "Target triple",
        default=current.target_triple or host_target_triple(),
        show_default=True,
    ).strip()
    elevate = typer.confirm(
        "Launch memory-server with superuser privileges by default?",
        default=current.elevate,
    )
    elevate_command = typer.prompt(
        "Elevation command",
        default=" ".join(current.elevate_command),
        show_default=True,
    ).split()
    keep_going = typer.confirm(
        "Keep going after a failing build step?",
        default=current.failure_policy is FailurePolicy.CONTINUE,
    )

    if not triple or not elevate_command:
        raise typer.BadParameter("target triple and elevation command are required")

    env_path = write_user_env_vars(
        {
            "MEMSRV_BUILD_TARGET_TRIPLE": triple,
            "MEMSRV_BUILD_ELEVATE": "true" if elevate else "false",
            "MEMSRV_BUILD_ELEVATE_COMMAND": json.dumps(elevate_command),
            "MEMSRV_BUILD_FAILURE_POLICY": FailurePolicy.from_bool(keep_going).value,
        }
    )

    _console.print(f"[green]Saved config to:[/green] {env_path}")

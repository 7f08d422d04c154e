"""UI components for the CLI (Rich).

Why separate components:
- Keeps command logic apart from visual details.
- Lets `build`, `plan` and `doctor` reuse the same tables and panels.
"""

from __future__ import annotations

from typing import Sequence

from rich.align import Align
from rich.console import Console
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from core.domain.models import BuildReport, StepResult
from core.services.build_pipeline import PlannedCommand


def print_banner(console: Console) -> None:
    """Print the welcome banner.

    Why here:
    - Avoids circular imports (main <-> doctor).
    - Can be turned off for non-interactive runs (`--quiet`, CI logs).
    """

    title = Text("memsrv-build", style="bold cyan")
    subtitle = Text("frontend • backend • memory-server", style="dim")
    body = Align.center(Text.assemble(title, "\n", subtitle), vertical="middle")
    console.print(Panel(body, border_style="cyan", padding=(1, 4)))


def print_status(console: Console, message: str) -> None:
    console.print(Text(message, style="bold cyan"))


def print_config_error(console: Console, exc: Exception) -> None:
    console.print(Text.assemble(("Configuration error: ", "bold red"), str(exc)))


def build_plan_table(planned: Sequence[PlannedCommand]) -> Table:
    """Table of the commands a build would spawn, in order."""

    table = Table(title="Build plan")
    table.add_column("#", style="dim", justify="right")
    table.add_column("Step", style="cyan", no_wrap=True)
    table.add_column("Directory", style="white")
    table.add_column("Command", style="magenta")
    for index, item in enumerate(planned, start=1):
        table.add_row(
            str(index),
            item.name,
            str(item.cwd) if item.cwd is not None else "(current)",
            " ".join(item.command),
        )
    return table


def _status_cell(result: StepResult) -> Text:
    if result.skipped:
        return Text("SKIPPED", style="yellow")
    if result.ok:
        return Text("OK", style="green")
    return Text(f"FAIL ({result.returncode})", style="bold red")


def build_report_table(report: BuildReport) -> Table:
    """Per-step outcome table for a finished (or aborted) run."""

    table = Table(title="Build report")
    table.add_column("Step", style="cyan", no_wrap=True)
    table.add_column("Status")
    table.add_column("Time", justify="right", style="dim")
    table.add_column("Command", style="magenta")

    rows = list(report.steps)
    if report.launch is not None:
        rows.append(report.launch)
    for result in rows:
        table.add_row(
            result.name,
            _status_cell(result),
            "-" if result.skipped else f"{result.duration_seconds:.1f}s",
            " ".join(result.command),
        )

    table.caption = f"revision {report.git_revision} • {report.policy.label()} • exit {report.exit_code}"
    return table

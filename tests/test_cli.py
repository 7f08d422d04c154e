"""
Tests for the Typer CLI.

The subprocess runner is replaced by the recording fake; output is captured
through a wide Rich console so tables do not wrap.
"""

import io
import json
import logging

import pytest
from rich.console import Console
from rich.logging import RichHandler
from typer.testing import CliRunner

from cli import doctor as cli_doctor
from cli import main as cli_main
from core.errors import EXIT_INTERRUPTED
from core.logging_setup import LOGGER_NAME


@pytest.fixture
def output(monkeypatch):
    buffer = io.StringIO()
    console = Console(file=buffer, width=200, color_system=None)
    monkeypatch.setattr(cli_main, "_console", console)
    monkeypatch.setattr(cli_doctor, "_console", console)
    return buffer


@pytest.fixture
def cli_runner(runner, monkeypatch):
    monkeypatch.setattr(cli_main, "SubprocessRunner", lambda: runner)
    return CliRunner()


class TestBuildCommand:
    def test_forwards_unknown_options(self, cli_runner, runner, project, output):
        result = cli_runner.invoke(
            cli_main.app,
            ["build", "--project-root", str(project), "--quiet", "--no-launch", "--release"],
        )

        assert result.exit_code == 0
        assert runner.calls == [
            (["./build.sh", "--release"], project / "frontend"),
            (["./build.sh", "--release"], project / "backend"),
        ]

    def test_status_lines_in_order(self, cli_runner, project, output):
        cli_runner.invoke(cli_main.app, ["build", "--project-root", str(project), "-q", "--no-launch"])

        text = output.getvalue()
        first = text.index("Building frontend...")
        second = text.index("Building backend...")
        third = text.index("Build process completed.")
        assert first < second < third

    def test_elevated_launch(self, cli_runner, runner, project, output):
        result = cli_runner.invoke(
            cli_main.app,
            ["build", "--project-root", str(project), "-q", "--elevate", "--", "--elevate"],
        )

        assert result.exit_code == 0
        assert runner.calls[0][0] == ["./build.sh", "--elevate"]
        launch_command, launch_cwd = runner.calls[-1]
        assert launch_cwd is None
        assert launch_command[0] == "sudo"
        assert launch_command[1].endswith("memory-server")
        assert len(launch_command) == 2

    def test_failure_exit_code(self, cli_runner, runner, project, output):
        runner.codes = {"frontend": 3}
        result = cli_runner.invoke(cli_main.app, ["build", "--project-root", str(project), "-q"])

        assert result.exit_code == 3
        assert len(runner.calls) == 1
        assert "SKIPPED" in output.getvalue()

    def test_keep_going(self, cli_runner, runner, project, output):
        runner.codes = {"frontend": 3}
        result = cli_runner.invoke(
            cli_main.app,
            ["build", "--project-root", str(project), "-q", "--keep-going", "--no-launch"],
        )

        assert result.exit_code == 0
        assert len(runner.calls) == 2

    def test_missing_directory(self, cli_runner, runner, tmp_path, output):
        result = cli_runner.invoke(cli_main.app, ["build", "--project-root", str(tmp_path / "empty"), "-q"])

        assert result.exit_code == cli_main.EXIT_CONFIG
        assert runner.calls == []
        assert "Configuration error" in output.getvalue()

    def test_report_file(self, cli_runner, project, output):
        report_path = project / "out" / "report.json"
        result = cli_runner.invoke(
            cli_main.app,
            ["build", "--project-root", str(project), "-q", "--no-launch", "--report", str(report_path), "x y"],
        )

        assert result.exit_code == 0
        payload = json.loads(report_path.read_text(encoding="utf-8"))
        assert payload["args"] == ["x y"]
        assert [step["name"] for step in payload["steps"]] == ["frontend", "backend"]


class TestPlanCommand:
    def test_nothing_spawned(self, cli_runner, runner, project, output):
        result = cli_runner.invoke(cli_main.app, ["plan", "--project-root", str(project), "--elevate", "--release"])

        assert result.exit_code == 0
        assert runner.calls == []
        text = output.getvalue()
        assert "./build.sh --release" in text
        assert "sudo" in text


class TestDoctorCommand:
    def test_healthy_project(self, project, output):
        result = CliRunner().invoke(cli_main.app, ["doctor", "run", "--project-root", str(project)])

        assert result.exit_code == 0
        assert "frontend build" in output.getvalue()

    def test_missing_entrypoint(self, project, output):
        (project / "frontend" / "build.sh").unlink()
        result = CliRunner().invoke(cli_main.app, ["doctor", "run", "--project-root", str(project)])

        assert result.exit_code == 1
        assert "entrypoint not found" in output.getvalue()

    def test_collect_checks_elevation_missing(self, settings):
        settings.elevate = True
        settings.elevate_command = ["definitely-not-a-real-binary-xyz"]

        rows = {check: (status, detail) for check, status, detail in cli_doctor.collect_checks(settings)}
        assert rows["Elevation"][0] == "FAIL"
        assert rows["Target binary"][0] == "INFO"


class TestBuildOptions:
    def test_verbose_is_not_forwarded(self, cli_runner, runner, project, output):
        result = cli_runner.invoke(
            cli_main.app,
            ["build", "--project-root", str(project), "-q", "--no-launch", "--verbose"],
        )

        assert result.exit_code == 0
        assert [command for command, _cwd in runner.calls] == [["./build.sh"], ["./build.sh"]]
        handler = next(h for h in logging.getLogger(LOGGER_NAME).handlers if isinstance(h, RichHandler))
        assert handler.level == logging.DEBUG

    def test_invalid_setting_exits_with_config_status(self, cli_runner, runner, project, output, monkeypatch):
        monkeypatch.setenv("MEMSRV_BUILD_FAILURE_POLICY", "stop")
        result = cli_runner.invoke(cli_main.app, ["build", "--project-root", str(project), "-q"])

        assert result.exit_code == cli_main.EXIT_CONFIG
        assert runner.calls == []
        text = output.getvalue()
        assert "Configuration error" in text
        assert "MEMSRV_BUILD_FAILURE_POLICY" in text

    def test_invalid_setting_in_plan(self, cli_runner, project, output, monkeypatch):
        monkeypatch.setenv("MEMSRV_BUILD_LOG_LEVEL", "loud")
        result = cli_runner.invoke(cli_main.app, ["plan", "--project-root", str(project)])

        assert result.exit_code == cli_main.EXIT_CONFIG
        assert "Configuration error" in output.getvalue()


class StoppingRunner:
    """Simulates Ctrl+C while the backend build runs."""

    def __init__(self):
        self.calls = []

    def run(self, command, *, cwd=None):
        self.calls.append((list(command), cwd))
        if cwd is not None and cwd.name == "backend":
            raise KeyboardInterrupt
        return 0


class TestInterruptedBuild:
    def test_report_written(self, project, output, monkeypatch):
        monkeypatch.setattr(cli_main, "SubprocessRunner", StoppingRunner)
        report_path = project / "report.json"
        result = CliRunner().invoke(
            cli_main.app,
            ["build", "--project-root", str(project), "-q", "--report", str(report_path)],
        )

        assert result.exit_code == EXIT_INTERRUPTED
        payload = json.loads(report_path.read_text(encoding="utf-8"))
        assert payload["aborted"] is True
        assert [step["returncode"] for step in payload["steps"]] == [0, EXIT_INTERRUPTED]
        assert "Interrupted" in output.getvalue()


class TestConfigureCommand:
    def test_elevation_command_stored_as_json(self, project, output, monkeypatch):
        env_path = project / "user" / ".env"
        monkeypatch.setattr("core.config.get_user_env_file", lambda: env_path)

        result = CliRunner().invoke(
            cli_main.app,
            ["doctor", "configure"],
            input='aarch64-apple-darwin\ny\nsudo --prompt="pw:"\nn\n',
        )

        assert result.exit_code == 0
        values = dict(
            line.split("=", 1)
            for line in env_path.read_text(encoding="utf-8").splitlines()
            if not line.startswith("#")
        )
        assert json.loads(values["MEMSRV_BUILD_ELEVATE_COMMAND"]) == ["sudo", '--prompt="pw:"']
        assert values["MEMSRV_BUILD_ELEVATE"] == "true"
        assert values["MEMSRV_BUILD_FAILURE_POLICY"] == "abort"

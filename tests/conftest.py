"""Shared fixtures: a throwaway project tree and a recording runner."""

from __future__ import annotations

import os
import stat
from pathlib import Path
from typing import Sequence

import pytest

from core.config import AppSettings


class RecordingRunner:
    """`CommandRunner` fake that records every call instead of spawning.

    `codes` maps a step key (the child's directory name, or "launch" for a
    call without cwd) to the exit status to report.
    """

    def __init__(self, codes: dict[str, int] | None = None) -> None:
        self.codes = codes or {}
        self.calls: list[tuple[list[str], Path | None]] = []
        self.parent_cwds: list[Path] = []

    def run(self, command: Sequence[str], *, cwd: Path | None = None) -> int:
        self.calls.append((list(command), cwd))
        self.parent_cwds.append(Path.cwd())
        key = cwd.name if cwd is not None else "launch"
        return self.codes.get(key, 0)


def _write_script(path: Path) -> None:
    path.write_text("#!/bin/sh\nexit 0\n", encoding="utf-8")
    path.chmod(path.stat().st_mode | stat.S_IXUSR | stat.S_IXGRP | stat.S_IXOTH)


@pytest.fixture
def project(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Project root with frontend/ and backend/ build scripts."""

    for name in ("frontend", "backend"):
        (tmp_path / name).mkdir()
        _write_script(tmp_path / name / "build.sh")
    monkeypatch.chdir(tmp_path)
    return tmp_path


@pytest.fixture
def settings(project: Path) -> AppSettings:
    return AppSettings(
        _env_file=None,
        project_root=project,
        target_triple="aarch64-apple-darwin",
    )


@pytest.fixture
def runner() -> RecordingRunner:
    return RecordingRunner()


@pytest.fixture(autouse=True)
def not_superuser(monkeypatch: pytest.MonkeyPatch) -> None:
    """Tests may run as root; pin the elevation check to a normal user."""

    monkeypatch.setattr("core.services.build_pipeline.is_superuser", lambda: False)
    monkeypatch.setattr("cli.doctor.is_superuser", lambda: False)


@pytest.fixture(autouse=True)
def clean_env(monkeypatch: pytest.MonkeyPatch) -> None:
    for key in list(os.environ):
        if key.startswith("MEMSRV_BUILD_"):
            monkeypatch.delenv(key, raising=False)

"""Core configuration.

Why here:
- Centralizes environment variables (pydantic-settings) without polluting
  the CLI.
- Lets adapters (process runner, logging) read config consistently.
"""

from __future__ import annotations

import os
import sys
from pathlib import Path

from pydantic import Field, ValidationError, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict, SettingsError

from core.domain.platform import default_target_binary, host_target_triple
from core.domain.policy import FailurePolicy
from core.errors import ConfigurationError


def get_user_config_dir() -> Path:
    """Per-user configuration directory (cross-platform, no dependencies)."""

    if sys.platform.startswith("win"):
        base = Path(os.environ.get("APPDATA", str(Path.home())))
        return base / "memsrv-build"
    if sys.platform == "darwin":
        return Path.home() / "Library" / "Application Support" / "memsrv-build"

    xdg = os.environ.get("XDG_CONFIG_HOME")
    if xdg:
        return Path(xdg) / "memsrv-build"
    return Path.home() / ".config" / "memsrv-build"


def get_user_env_file() -> Path:
    return get_user_config_dir() / ".env"


def _parse_env_lines(text: str) -> dict[str, str]:
    data: dict[str, str] = {}
    for raw_line in text.splitlines():
        line = raw_line.strip()
        if not line or line.startswith("#"):
            continue
        if "=" not in line:
            continue
        key, value = line.split("=", 1)
        key = key.strip()
        value = value.strip().strip('"').strip("'")
        if key:
            data[key] = value
    return data


def write_user_env_vars(values: dict[str, str | None], env_path: Path | None = None) -> Path:
    """Write/update variables in the user's global .env."""

    env_path = env_path or get_user_env_file()
    env_path.parent.mkdir(parents=True, exist_ok=True)

    existing: dict[str, str] = {}
    if env_path.exists():
        existing = _parse_env_lines(env_path.read_text(encoding="utf-8"))

    existing.update({k: v for k, v in values.items() if v is not None})

    lines = ["# memsrv-build user config (.env)"]
    for key in sorted(existing.keys()):
        lines.append(f"{key}={existing[key]}")
    env_path.write_text("\n".join(lines) + "\n", encoding="utf-8")
    return env_path


class AppSettings(BaseSettings):
    """Central application settings.

    Why pydantic-settings:
    - Typing + validation at the edge (env vars) without leaking logic into
      the Core.
    - One configuration contract for the CLI and the adapters.
    """

    model_config = SettingsConfigDict(
        env_prefix="MEMSRV_BUILD_",
        extra="ignore",
        case_sensitive=False,
        # Order: project first (dev), then the user's global config.
        env_file=(".env", str(get_user_env_file())),
        env_file_encoding="utf-8",
    )

    project_root: Path = Field(
        default_factory=Path.cwd,
        description="Directory holding `frontend/`, `backend/` and `target/`.",
    )
    frontend_dir: Path = Field(
        default=Path("frontend"),
        description="Frontend directory (relative to project_root unless absolute).",
    )
    backend_dir: Path = Field(
        default=Path("backend"),
        description="Backend directory (relative to project_root unless absolute).",
    )
    build_entrypoint: str = Field(
        default="./build.sh",
        min_length=1,
        description="Build entrypoint run inside each subsystem directory.",
    )

    binary_name: str = Field(
        default="memory-server",
        min_length=1,
        description="File name of the server binary produced by the backend.",
    )
    target_triple: str | None = Field(
        default=None,
        description="Override for the target triple (default: derived from the host).",
    )
    target_binary: Path | None = Field(
        default=None,
        description="Full path to the binary; takes precedence over the triple.",
    )

    elevate: bool = Field(
        default=False,
        description="Consent to launch the binary with superuser privileges.",
    )
    elevate_command: list[str] = Field(
        default_factory=lambda: ["sudo"],
        min_length=1,
        description="Wrapper used for elevation (JSON list in env, e.g. '[\"sudo\",\"-E\"]').",
    )

    failure_policy: FailurePolicy = Field(
        default=FailurePolicy.ABORT,
        description="abort = stop at the first failing build; continue = shell default.",
    )

    log_level: str = Field(
        default="INFO",
        description="Console log level (DEBUG, INFO, WARNING, ERROR).",
    )
    log_file: Path | None = Field(
        default=None,
        description="Optional rotating log file.",
    )

    @field_validator("log_level")
    @classmethod
    def _upper_level(cls, value: str) -> str:
        value = value.strip().upper()
        if value not in {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}:
            raise ValueError(f"unknown log level: {value}")
        return value

    def resolve(self, path: Path) -> Path:
        """Resolve a configured path against `project_root`."""

        return path if path.is_absolute() else self.project_root / path

    @property
    def frontend_path(self) -> Path:
        return self.resolve(self.frontend_dir)

    @property
    def backend_path(self) -> Path:
        return self.resolve(self.backend_dir)

    @property
    def effective_triple(self) -> str:
        return self.target_triple or host_target_triple()

    @property
    def binary_path(self) -> Path:
        if self.target_binary is not None:
            return self.resolve(self.target_binary)
        return default_target_binary(self.project_root, self.effective_triple, self.binary_name)


def load_settings(**overrides: object) -> AppSettings:
    """Build `AppSettings`, reporting invalid values as `ConfigurationError`.

    Every bad field is named by its environment variable, on a single line.
    """

    try:
        return AppSettings(**overrides)
    except ValidationError as exc:
        problems = []
        for error in exc.errors():
            field = ".".join(str(part) for part in error.get("loc", ())) or "settings"
            problems.append(f"{AppSettings.model_config['env_prefix']}{field.upper()}: {error.get('msg', 'invalid')}")
        raise ConfigurationError("invalid settings: " + "; ".join(problems)) from exc
    except SettingsError as exc:
        raise ConfigurationError(f"invalid settings: {exc}") from exc

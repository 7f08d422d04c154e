"""Host platform helpers.

The backend is compiled into `target/<triple>/release/`, so the launcher
needs the same triple the toolchain would pick for this host.
"""

from __future__ import annotations

import platform
import sys
from pathlib import Path

_ARCH_ALIASES = {
    "arm64": "aarch64",
    "aarch64": "aarch64",
    "x86_64": "x86_64",
    "amd64": "x86_64",
    "i386": "i686",
    "i686": "i686",
}


def normalize_arch(machine: str) -> str:
    machine = (machine or "").strip().lower()
    return _ARCH_ALIASES.get(machine, machine or "x86_64")


def host_target_triple(
    *,
    system: str | None = None,
    machine: str | None = None,
) -> str:
    """Return the target triple for the current (or given) host.

    Examples:
    - macOS on Apple Silicon -> `aarch64-apple-darwin`
    - Linux x86_64 -> `x86_64-unknown-linux-gnu`
    - Windows x86_64 -> `x86_64-pc-windows-msvc`
    """

    system = (system if system is not None else sys.platform).lower()
    arch = normalize_arch(machine if machine is not None else platform.machine())

    if system.startswith("win"):
        return f"{arch}-pc-windows-msvc"
    if system == "darwin":
        return f"{arch}-apple-darwin"
    if system.startswith("linux"):
        return f"{arch}-unknown-linux-gnu"
    if "android" in system:
        return f"{arch}-linux-android"
    return f"{arch}-unknown-{system}"


def executable_name(name: str, triple: str) -> str:
    if "windows" in triple and not name.endswith(".exe"):
        return f"{name}.exe"
    return name


def default_target_binary(root: Path, triple: str, name: str = "memory-server") -> Path:
    """`<root>/target/<triple>/release/<name>`"""

    return root / "target" / triple / "release" / executable_name(name, triple)

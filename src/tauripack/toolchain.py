"""Toolchain probes and installers for Tauri builds.

Probes are read-only: they look an executable up on PATH, fall back to a
fixed list of well-known install directories, and never touch the
environment. Installers mutate the host and are only run on request.
"""

from __future__ import annotations

import logging
import os
import shutil
import subprocess
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable, Optional

from rich.console import Console

from .errors import ToolchainInstallError
from .targets import WINDOWS_GNU_TARGET, TargetPlatform, detect_host

logger = logging.getLogger("tauripack.toolchain")

console = Console(stderr=True)

RUST_INSTALL_SCRIPT_UNIX = "curl --proto '=https' --tlsv1.2 -sSf https://sh.rustup.rs | sh -s -- -y"
RUST_INSTALL_SCRIPT_WIN = "winget install --id Rustlang.Rustup"

MINGW_COMPILERS = ("x86_64-w64-mingw32-gcc", "i686-w64-mingw32-gcc")
_MINGW_DIRS = ("/opt/homebrew/bin", "/usr/local/bin", "/usr/bin")


@dataclass
class ToolchainStatus:
    """Snapshot of toolchain availability, recomputed on every probe."""

    rust: bool
    msvc: bool
    wix: bool
    mingw: bool
    windows_gnu_target: bool


def _host(host: Optional[TargetPlatform]) -> Optional[TargetPlatform]:
    return host if host is not None else detect_host()


def _query(cmd: list[str]) -> Optional[subprocess.CompletedProcess]:
    """Run a read-only diagnostic command; None if it cannot be spawned."""
    try:
        return subprocess.run(cmd, capture_output=True, text=True, check=False)
    except OSError as exc:
        logger.debug("[probe] %s could not be run: %s", cmd[0], exc)
        return None


def _on_path(names: Iterable[str]) -> bool:
    return any(shutil.which(n) is not None for n in names)


def _program_files() -> str:
    return os.environ.get("ProgramFiles(x86)") or os.environ.get("ProgramFiles") or ""


def msvc_search_dirs() -> list[Path]:
    base = Path(_program_files()) / "Microsoft Visual Studio"
    return [
        base / "2022" / "BuildTools" / "VC" / "Tools" / "MSVC",
        base / "2022" / "Community" / "VC" / "Tools" / "MSVC",
        base / "2022" / "Professional" / "VC" / "Tools" / "MSVC",
        base / "2019" / "BuildTools" / "VC" / "Tools" / "MSVC",
        base / "2019" / "Community" / "VC" / "Tools" / "MSVC",
    ]


def wix_search_dirs() -> list[Path]:
    return [Path(_program_files()) / "WiX Toolset v3.11" / "bin"]


# ---------------------------------------------------------------------------
# Probes
# ---------------------------------------------------------------------------

def check_rust_installed() -> bool:
    result = _query(["rustc", "--version"])
    if result is not None and result.returncode == 0:
        return True
    return (Path.home() / ".cargo" / "bin" / "rustc").is_file()


def check_msvc_installed(host: Optional[TargetPlatform] = None) -> bool:
    """MSVC (Visual Studio Build Tools); only meaningful on a Windows host."""
    if _host(host) != TargetPlatform.WINDOWS:
        return True
    if _on_path(("cl.exe", "link.exe")):
        return True
    return any(p.is_dir() for p in msvc_search_dirs())


def check_wix_installed(host: Optional[TargetPlatform] = None) -> bool:
    """WiX Toolset (candle.exe/light.exe); it only runs on Windows."""
    if _host(host) != TargetPlatform.WINDOWS:
        return False
    if _on_path(("candle.exe", "light.exe")):
        return True
    return any(p.is_dir() for p in wix_search_dirs())


def check_mingw_installed(host: Optional[TargetPlatform] = None) -> bool:
    """mingw-w64 cross linker; Windows hosts use MSVC instead."""
    if _host(host) == TargetPlatform.WINDOWS:
        return False
    if _on_path(MINGW_COMPILERS):
        return True
    return any((Path(d) / name).is_file() for d in _MINGW_DIRS for name in MINGW_COMPILERS)


def check_windows_gnu_target() -> bool:
    result = _query(["rustup", "target", "list", "--installed"])
    if result is None or result.returncode != 0:
        return False
    return "x86_64-pc-windows-gnu" in result.stdout or "i686-pc-windows-gnu" in result.stdout


def probe_toolchain(host: Optional[TargetPlatform] = None) -> ToolchainStatus:
    h = _host(host)
    return ToolchainStatus(
        rust=check_rust_installed(),
        msvc=check_msvc_installed(h),
        wix=check_wix_installed(h),
        mingw=check_mingw_installed(h),
        windows_gnu_target=check_windows_gnu_target(),
    )


# ---------------------------------------------------------------------------
# Installers
# ---------------------------------------------------------------------------

def _install(cmd: str, *, label: str) -> None:
    logger.info("[install] %s: %s", label, cmd)
    with console.status(label):
        proc = subprocess.run(cmd, shell=True, capture_output=True, text=True, check=False)
    if proc.returncode != 0:
        output = (proc.stderr or proc.stdout or "").strip()
        console.print(f"[red]✗ {label} failed (exit {proc.returncode})[/red]")
        if output:
            console.print(output, markup=False, highlight=False)
        raise ToolchainInstallError(
            f"{label} failed with exit code {proc.returncode}: {cmd}\n{output}".rstrip()
        )
    console.print(f"[green]✓ {label} done[/green]")


def install_rust(host: Optional[TargetPlatform] = None) -> None:
    """Install the Rust toolchain with the platform's public installer."""
    cmd = RUST_INSTALL_SCRIPT_WIN if _host(host) == TargetPlatform.WINDOWS else RUST_INSTALL_SCRIPT_UNIX
    _install(cmd, label="Installing Rust")


def install_windows_gnu_target() -> None:
    _install(f"rustup target add {WINDOWS_GNU_TARGET}", label=f"Installing Rust target {WINDOWS_GNU_TARGET}")


MINGW_INSTALL_HINT = "\n".join(
    [
        "Install mingw-w64 and try again:",
        "  macOS: brew install mingw-w64",
        "  Linux: sudo apt-get install mingw-w64",
        "  Manual download: https://www.mingw-w64.org/downloads/",
        "Or build on a Windows host to get an installer.",
    ]
)

MSVC_INSTALL_HINT = "\n".join(
    [
        "Install Visual Studio Build Tools 2022 (>=17.2) with:",
        "  - Desktop development with C++ workload",
        "  - Windows 10 SDK (10.0.19041.0 or later)",
        "Download: https://visualstudio.microsoft.com/downloads/#build-tools-for-visual-studio-2022",
    ]
)

WIX_INSTALL_HINT = "\n".join(
    [
        "WiX Toolset v3.11 is needed for .msi installers; NSIS will be used without it.",
        "  https://wixtoolset.org/releases/",
        "  winget install --id WiXToolset.WiXToolset",
    ]
)

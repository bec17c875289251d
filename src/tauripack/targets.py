"""Target platform definitions for tauripack builds.

A build targets one of three desktop platforms:
- mac: .dmg bundle
- win: NSIS ``*-setup.exe`` (default), MSI via WiX, or a bare .exe when
  cross-compiling
- linux: .deb package (plus an AppImage when the toolchain produces one)
"""

from __future__ import annotations

import platform as _platform
import sys
from dataclasses import dataclass, field
from enum import Enum
from typing import Optional


class TargetPlatform(str, Enum):
    """Target platform for a desktop build."""

    MAC = "mac"
    WINDOWS = "win"
    LINUX = "linux"


class InstallerFormat(str, Enum):
    """Installer produced by the Tauri bundler (mutually exclusive)."""

    NONE = "none"
    MSI = "msi"
    NSIS = "nsis"


_ALIASES = {
    "mac": TargetPlatform.MAC,
    "macos": TargetPlatform.MAC,
    "darwin": TargetPlatform.MAC,
    "osx": TargetPlatform.MAC,
    "win": TargetPlatform.WINDOWS,
    "win32": TargetPlatform.WINDOWS,
    "windows": TargetPlatform.WINDOWS,
    "linux": TargetPlatform.LINUX,
}


def parse_platform(value: Optional[str]) -> Optional[TargetPlatform]:
    """Map a user-facing platform name to a TargetPlatform.

    Returns None for an empty value; raises ValueError for unknown names.
    """
    key = (value or "").strip().lower()
    if not key:
        return None
    plat = _ALIASES.get(key)
    if plat is None:
        raise ValueError(f"Unsupported target platform: {value}")
    return plat


def detect_host() -> Optional[TargetPlatform]:
    """Return the platform of the running interpreter, or None if unsupported."""
    if sys.platform == "win32":
        return TargetPlatform.WINDOWS
    if sys.platform == "darwin":
        return TargetPlatform.MAC
    if sys.platform.startswith("linux"):
        return TargetPlatform.LINUX
    return None


def parse_installer(value: Optional[str]) -> Optional[InstallerFormat]:
    key = (value or "").strip().lower()
    if not key:
        return None
    try:
        return InstallerFormat(key)
    except ValueError:
        raise ValueError(f"Unsupported installer format: {value}") from None


# ---------------------------------------------------------------------------
# Platform metadata: icon format, default icons, config file, arch naming
# ---------------------------------------------------------------------------

@dataclass
class PlatformMeta:
    """Per-platform packaging conventions used by the resolver and builders."""

    platform: TargetPlatform
    icon_ext: str
    config_file: str
    default_icons: list[str] = field(default_factory=list)
    arch_names: dict[str, str] = field(default_factory=dict)

    def arch(self, machine: Optional[str] = None) -> str:
        """Bundler architecture label for *machine* (defaults to the host CPU)."""
        m = (machine or _platform.machine() or "").lower()
        return self.arch_names.get(m, m)


PLATFORM_REGISTRY: dict[TargetPlatform, PlatformMeta] = {
    TargetPlatform.MAC: PlatformMeta(
        platform=TargetPlatform.MAC,
        icon_ext=".icns",
        config_file="tauri.macos.conf.json",
        default_icons=["icons/icon.icns"],
        arch_names={"arm64": "aarch64", "aarch64": "aarch64", "x86_64": "x64", "amd64": "x64"},
    ),
    TargetPlatform.WINDOWS: PlatformMeta(
        platform=TargetPlatform.WINDOWS,
        icon_ext=".ico",
        config_file="tauri.windows.conf.json",
        default_icons=["png/icon_32.ico", "png/icon_256.ico"],
        arch_names={"amd64": "x64", "x86_64": "x64", "arm64": "arm64"},
    ),
    TargetPlatform.LINUX: PlatformMeta(
        platform=TargetPlatform.LINUX,
        icon_ext=".png",
        config_file="tauri.linux.conf.json",
        default_icons=["png/icon_512.png"],
        arch_names={"x86_64": "amd64", "amd64": "amd64", "aarch64": "arm64", "arm64": "arm64"},
    ),
}


def get_platform_meta(platform: TargetPlatform) -> PlatformMeta:
    return PLATFORM_REGISTRY[platform]


# Rust target triple used for Windows cross-compilation.
WINDOWS_GNU_TARGET = "x86_64-pc-windows-gnu"
